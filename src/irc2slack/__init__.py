"""IRC <-> Slack relay for a single channel pair."""

__version__ = "0.3.0"
