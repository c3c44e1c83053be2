"""Tests for cross-platform message formatting."""

from __future__ import annotations

import pytest

from irc2slack.formatting.irc_message_split import split_irc_lines, split_irc_message
from irc2slack.formatting.irc_to_slack import irc_to_slack
from irc2slack.formatting.slack_to_irc import slack_to_irc


class TestIrcToSlack:
    """Test IRC control code conversion to mrkdwn."""

    @pytest.mark.parametrize(
        "input,expected",
        [
            ("\x02bold\x02", "*bold*"),
            ("\x1ditalic\x1d", "_italic_"),
            ("\x1estrike\x1e", "~strike~"),
            ("\x11mono\x11", "`mono`"),
            ("\x1funderlined\x1f", "underlined"),
            ("\x16reversed\x16", "reversed"),
        ],
    )
    def test_converts_codes(self, input, expected):
        assert irc_to_slack(input) == expected

    def test_strips_colors(self):
        assert irc_to_slack("\x0304,01red on black\x03 plain") == "red on black plain"
        assert irc_to_slack("\x04ff0000hex\x04") == "hex"

    def test_reset_closes_open_formatting(self):
        assert irc_to_slack("\x02\x1dboth\x0f done") == "*_both_* done"

    def test_unclosed_formatting_is_closed(self):
        assert irc_to_slack("\x02bold to the end") == "*bold to the end*"

    def test_plain_text_unchanged(self):
        assert irc_to_slack("nothing special: a < b & c") == "nothing special: a < b & c"

    def test_empty(self):
        assert irc_to_slack("") == ""


class TestSlackToIrc:
    """Test Slack markup flattening for IRC."""

    def test_unescapes_entities(self):
        assert slack_to_irc("a &lt; b &amp;&amp; c &gt; d") == "a < b && c > d"

    def test_literal_entity_text_survives(self):
        # Slack sends a typed "&lt;" as "&amp;lt;"
        assert slack_to_irc("&amp;lt;") == "&lt;"

    def test_bare_link(self):
        assert slack_to_irc("see <https://example.com/x>") == "see https://example.com/x"

    def test_labelled_link(self):
        assert slack_to_irc("<https://example.com|the docs>") == "the docs (https://example.com)"

    def test_autolinked_domain_collapses(self):
        assert slack_to_irc("<http://example.com|example.com>") == "example.com"

    def test_mailto(self):
        assert slack_to_irc("<mailto:a@b.org|a@b.org>") == "a@b.org"

    def test_channel_reference(self):
        assert slack_to_irc("join <#C024BE7LR|general>") == "join #general"

    @pytest.mark.parametrize(
        "input,expected",
        [("<!here>", "@here"), ("<!channel>", "@channel"), ("<!everyone>", "@everyone")],
    )
    def test_special_mentions(self, input, expected):
        assert slack_to_irc(input) == expected

    def test_user_mentions_left_for_identity_cache(self):
        assert slack_to_irc("hi <@U123>") == "hi <@U123>"


class TestSplitIrcMessage:
    def test_empty_content_returns_empty_list(self):
        assert split_irc_message("") == []

    def test_short_is_single_chunk(self):
        assert split_irc_message("hello", max_bytes=50) == ["hello"]

    def test_exact_byte_boundary_is_single_chunk(self):
        content = "a" * 400
        assert split_irc_message(content, max_bytes=400) == [content]

    def test_long_content_splits_within_limit(self):
        content = "word " * 200
        chunks = split_irc_message(content, max_bytes=100)
        assert len(chunks) > 1
        assert all(len(c.encode("utf-8")) <= 100 for c in chunks)
        assert "".join(chunks) == content

    def test_prefers_word_boundaries(self):
        chunks = split_irc_message("alpha beta gamma delta", max_bytes=12)
        assert chunks[0] == "alpha beta "

    def test_multi_byte_unicode_not_split_mid_codepoint(self):
        content = "\U0001f389" * 120  # 4 bytes each
        chunks = split_irc_message(content, max_bytes=21)
        assert "".join(chunks) == content
        assert all(len(c.encode("utf-8")) <= 21 for c in chunks)

    def test_cjk_not_split_mid_codepoint(self):
        content = "日本語" * 50  # 3 bytes each
        chunks = split_irc_message(content, max_bytes=10)
        assert "".join(chunks) == content

    def test_limit_smaller_than_one_character(self):
        assert split_irc_message("\U0001f389\U0001f389", max_bytes=2) == ["\U0001f389", "\U0001f389"]


class TestSplitIrcLines:
    def test_one_payload_per_line(self):
        assert split_irc_lines("one\ntwo\r\nthree\rfour") == ["one", "two", "three", "four"]

    def test_blank_lines_dropped(self):
        assert split_irc_lines("one\n\n   \ntwo\n") == ["one", "two"]

    def test_no_crlf_survives(self):
        payloads = split_irc_lines("x" * 900 + "\ny\r\nz", max_bytes=400)
        assert all("\r" not in p and "\n" not in p for p in payloads)
        assert len(payloads) == 5
