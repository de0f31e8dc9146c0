"""Business logic use cases."""

import logging
from datetime import datetime, timezone
from functools import partial
from typing import Optional

from pr_poker.core import (
    EngineConfig,
    MessageRenderer,
    NotificationPayload,
    Notifier,
    PullRequestSource,
    SourceSnapshot,
    aggregate,
    is_relevant,
)
from pr_poker.core.digest_builder import Resolver

logger = logging.getLogger(__name__)


class ReportService:
    """Service for one reporting run: fetch, aggregate, render, notify."""

    def __init__(
        self,
        source: PullRequestSource,
        renderer: MessageRenderer,
        engine_config: EngineConfig,
        resolve: Resolver,
        notifier: Optional[Notifier] = None,
        log_messages: bool = False,
    ) -> None:
        self.source = source
        self.renderer = renderer
        self.engine_config = engine_config
        self.resolve = resolve
        self.notifier = notifier
        self.log_messages = log_messages

    async def collect(self) -> SourceSnapshot:
        """Fetch the snapshot, asking for reviews only where they can matter."""
        needs_reviews = partial(
            is_relevant,
            members=self.engine_config.members,
            teams=self.engine_config.teams,
        )
        return await self.source.fetch_snapshot(needs_reviews=needs_reviews)

    def build_payload(self, snapshot: SourceSnapshot, now: datetime) -> NotificationPayload:
        return aggregate(snapshot, self.engine_config, self.resolve, now)

    async def publish(self, payload: NotificationPayload, now: datetime) -> None:
        """Send the summary, then each digest as a thread reply to it.

        Digests are never posted unless the summary was posted first.
        """
        logger.debug("Generating summary message")
        summary = self.renderer.render_summary(payload, now)
        logger.info("Generated summary message for Slack")
        if self.log_messages:
            logger.info(summary)

        summary_ts: Optional[str] = None
        if self.notifier:
            summary_ts = await self.notifier.post_message(summary)
            logger.info("Posted summary message to Slack")

        for recipient, digest in payload.digests.items():
            message = self.renderer.render_digest(digest, now)
            logger.info("Generated individual message for Slack user: %s", recipient)
            if self.log_messages:
                logger.info(message)

            if self.notifier and summary_ts:
                await self.notifier.post_message(message, thread_ts=summary_ts)
                logger.info("Posted individual message for Slack user: %s", recipient)

    async def run(self, now: Optional[datetime] = None) -> NotificationPayload:
        """Run the whole report and return what was produced."""
        now = now or datetime.now(timezone.utc)
        snapshot = await self.collect()
        payload = self.build_payload(snapshot, now)
        await self.publish(payload, now)
        return payload
