"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional

from pr_poker.core.entities import NotificationPayload, PullRequest, RecipientDigest, SourceSnapshot


class PullRequestSource(ABC):
    """Interface for fetching open pull requests and their reviews."""

    @abstractmethod
    async def fetch_snapshot(
        self, needs_reviews: Optional[Callable[[PullRequest], bool]] = None
    ) -> SourceSnapshot:
        """Fetch open pull requests for all configured repositories.

        Reviews are fetched only for pull requests accepted by
        ``needs_reviews`` (all of them when it is None).
        """
        pass


class MessageRenderer(ABC):
    """Interface for turning engine output into message text."""

    @abstractmethod
    def render_summary(self, payload: NotificationPayload, now: datetime) -> str:
        """Render the channel-wide summary."""
        pass

    @abstractmethod
    def render_digest(self, digest: RecipientDigest, now: datetime) -> str:
        """Render one recipient's digest."""
        pass


class Notifier(ABC):
    """Interface for delivering messages."""

    @abstractmethod
    async def post_message(self, text: str, thread_ts: Optional[str] = None) -> Optional[str]:
        """Post a message, optionally as a thread reply. Returns the message id."""
        pass
