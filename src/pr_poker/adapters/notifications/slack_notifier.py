"""Slack notification adapter."""

import logging
from typing import Optional

import httpx

from pr_poker.core import Notifier
from pr_poker.exceptions import NotificationError

logger = logging.getLogger(__name__)

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


class SlackNotifier(Notifier):
    """Post messages to a Slack channel with a bot token."""

    def __init__(self, token: str, channel: str, timeout: float = 30.0) -> None:
        """Initialize Slack notifier.

        Args:
            token: Slack bot user OAuth token
            channel: Channel id or name to post to
            timeout: Request timeout in seconds
        """
        self.token = token
        self.channel = channel
        self.timeout = timeout

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json; charset=utf-8",
        }

    async def post_message(self, text: str, thread_ts: Optional[str] = None) -> Optional[str]:
        """Post a message to the channel.

        Args:
            text: Message text in Slack mrkdwn
            thread_ts: Parent message timestamp when replying in a thread

        Returns:
            Timestamp of the posted message

        Raises:
            NotificationError: If the request fails or Slack rejects it
        """
        payload = {
            "channel": self.channel,
            "text": text,
            "unfurl_links": False,
            "unfurl_media": False,
        }
        if thread_ts:
            payload["thread_ts"] = thread_ts

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(SLACK_POST_MESSAGE_URL, headers=self._get_headers(), json=payload)
                response.raise_for_status()
                result = response.json()
            except httpx.HTTPError as e:
                raise NotificationError(f"Failed to post to Slack: {e}") from e
            except ValueError as e:
                raise NotificationError(f"Slack returned invalid JSON: {e}") from e

        if not isinstance(result, dict):
            raise NotificationError(f"Slack returned {type(result).__name__} instead of an object")
        if not result.get("ok"):
            raise NotificationError(f"Slack API error: {result.get('error', 'unknown_error')}")

        logger.debug("Posted message to Slack channel %s: %s", self.channel, result.get("ts"))
        return result.get("ts")
