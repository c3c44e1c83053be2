"""Configuration: YAML + env overlay."""

from irc2slack.config.loader import load_config, load_config_with_env, sample_config
from irc2slack.config.schema import Config, parse_address

__all__ = ["Config", "load_config", "load_config_with_env", "parse_address", "sample_config"]
