"""Tests for the outbound Slack webhook poster."""

from __future__ import annotations

import json

import httpx
import pytest

from irc2slack.adapters.slack import SlackPoster

WEBHOOK = "https://hooks.slack.test/services/T/B/X"


def _poster(status=200, seen=None, exc=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if exc is not None:
            raise exc
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, text="ok" if status == 200 else "invalid_payload")

    return SlackPoster(WEBHOOK, transport=httpx.MockTransport(handler))


class TestSlackPoster:
    @pytest.mark.asyncio
    async def test_posts_json_text(self):
        seen: list[httpx.Request] = []
        poster = _poster(seen=seen)

        assert await poster.post("<alice> hello") is True

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == WEBHOOK
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"text": "<alice> hello"}
        await poster.aclose()

    @pytest.mark.parametrize(
        "text",
        [
            'she said "hi"',
            "back\\slash",
            "tab\tand bell\x07",
            "naïve café ☕ 日本語",
        ],
    )
    @pytest.mark.asyncio
    async def test_payload_survives_special_characters(self, text):
        seen: list[httpx.Request] = []
        poster = _poster(seen=seen)
        await poster.post(text)
        assert json.loads(seen[0].content)["text"] == text
        await poster.aclose()

    @pytest.mark.asyncio
    async def test_non_2xx_is_logged_and_dropped(self):
        poster = _poster(status=400)
        assert await poster.post("x") is False
        await poster.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_is_swallowed(self):
        poster = _poster(exc=httpx.ConnectError("refused"))
        assert await poster.post("x") is False
        await poster.aclose()

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self):
        calls: list[httpx.Request] = []
        poster = _poster(status=500, seen=calls)
        await poster.post("x")
        assert len(calls) == 1
        await poster.aclose()

    @pytest.mark.asyncio
    async def test_client_reopened_after_close(self):
        seen: list[httpx.Request] = []
        poster = _poster(seen=seen)
        await poster.post("one")
        await poster.aclose()
        await poster.post("two")
        assert len(seen) == 2
        await poster.aclose()
