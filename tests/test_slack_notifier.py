"""Tests for Slack notifier adapter."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from pr_poker.adapters.notifications import SlackNotifier
from pr_poker.adapters.notifications.slack_notifier import SLACK_POST_MESSAGE_URL
from pr_poker.exceptions import NotificationError


def _response(body: dict) -> Mock:
    response = Mock()
    response.raise_for_status = Mock()
    response.json = Mock(return_value=body)
    return response


@pytest.mark.asyncio
async def test_post_message_success() -> None:
    """Test successful Slack post returns the message timestamp."""
    notifier = SlackNotifier("xoxb-test", "#team-prs")

    with patch("httpx.AsyncClient") as mock_client:
        mock_post = AsyncMock(return_value=_response({"ok": True, "ts": "1700000000.0001"}))
        mock_client.return_value.__aenter__.return_value.post = mock_post

        ts = await notifier.post_message("*PR Summary for Team*")

        assert ts == "1700000000.0001"
        call_args = mock_post.call_args
        assert call_args.args[0] == SLACK_POST_MESSAGE_URL
        assert call_args.kwargs["headers"]["Authorization"] == "Bearer xoxb-test"

        payload = call_args.kwargs["json"]
        assert payload["channel"] == "#team-prs"
        assert payload["text"] == "*PR Summary for Team*"
        assert payload["unfurl_links"] is False
        assert payload["unfurl_media"] is False
        assert "thread_ts" not in payload


@pytest.mark.asyncio
async def test_post_message_in_thread() -> None:
    """Test replies carry the parent thread timestamp."""
    notifier = SlackNotifier("xoxb-test", "#team-prs")

    with patch("httpx.AsyncClient") as mock_client:
        mock_post = AsyncMock(return_value=_response({"ok": True, "ts": "2"}))
        mock_client.return_value.__aenter__.return_value.post = mock_post

        await notifier.post_message("Hey <@U1>", thread_ts="1")

        assert mock_post.call_args.kwargs["json"]["thread_ts"] == "1"


@pytest.mark.asyncio
async def test_post_message_api_error() -> None:
    """Test Slack 'ok: false' responses raise."""
    notifier = SlackNotifier("xoxb-test", "#team-prs")

    with patch("httpx.AsyncClient") as mock_client:
        mock_post = AsyncMock(return_value=_response({"ok": False, "error": "channel_not_found"}))
        mock_client.return_value.__aenter__.return_value.post = mock_post

        with pytest.raises(NotificationError, match="channel_not_found"):
            await notifier.post_message("text")


@pytest.mark.asyncio
async def test_post_message_http_error() -> None:
    """Test HTTP failures are surfaced as notification errors."""
    notifier = SlackNotifier("xoxb-test", "#team-prs")

    with patch("httpx.AsyncClient") as mock_client:
        mock_response = Mock()
        mock_response.raise_for_status = Mock(side_effect=httpx.HTTPError("API Error"))
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=mock_response)

        with pytest.raises(NotificationError, match="API Error"):
            await notifier.post_message("text")


@pytest.mark.asyncio
async def test_post_message_invalid_json() -> None:
    """Test a non-JSON body from Slack is surfaced as a notification error."""
    notifier = SlackNotifier("xoxb-test", "#team-prs")

    with patch("httpx.AsyncClient") as mock_client:
        mock_response = _response({})
        mock_response.json = Mock(side_effect=ValueError("Expecting value: line 1 column 1"))
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=mock_response)

        with pytest.raises(NotificationError, match="invalid JSON"):
            await notifier.post_message("text")
