"""Aggregation engine: relevance, classification and digest building."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from pr_poker.core.classifier import classify, validate_thresholds
from pr_poker.core.digest_builder import Resolver, build_payload
from pr_poker.core.entities import ClassifiedPullRequest, NotificationPayload, SourceSnapshot, require_aware
from pr_poker.core.relevance import filter_relevant, order_for_display
from pr_poker.exceptions import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Team and threshold settings the engine runs with."""

    approval_threshold: int
    age_threshold: timedelta
    members: frozenset[str] = frozenset()
    teams: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        validate_thresholds(self.approval_threshold, self.age_threshold)
        object.__setattr__(self, "members", frozenset(self.members))
        object.__setattr__(self, "teams", frozenset(self.teams))


def validate_snapshot(snapshot: SourceSnapshot) -> None:
    """Reject duplicate pull requests and reviews for unknown pull requests."""
    known = set()
    for pull_request in snapshot.pull_requests:
        if pull_request.ref in known:
            raise InvalidInputError(f"Duplicate pull request {pull_request.ref}")
        known.add(pull_request.ref)

    unknown = [ref for ref in snapshot.reviews if ref not in known]
    if unknown:
        names = ", ".join(str(ref) for ref in unknown)
        raise InvalidInputError(f"Reviews reference pull requests not in the snapshot: {names}")


def aggregate(
    snapshot: SourceSnapshot,
    config: EngineConfig,
    resolve: Resolver,
    now: datetime,
) -> NotificationPayload:
    """Turn a fetched snapshot into a summary and per-recipient digests.

    Args:
        snapshot: Open pull requests and their reviews, in discovery order
        config: Thresholds and tracked members/teams
        resolve: Maps a handle to an external identity, or None if unknown
        now: Reference time for the age check

    Raises:
        InvalidInputError: If the snapshot or ``now`` breaks the data model
    """
    require_aware(now, "now")
    validate_snapshot(snapshot)

    relevant = order_for_display(filter_relevant(snapshot.pull_requests, config.members, config.teams))
    logger.info("Total %d matching PRs found", len(relevant))

    classified = [
        ClassifiedPullRequest(
            pull_request=pull_request,
            category=classify(
                pull_request,
                snapshot.reviews_for(pull_request),
                approval_threshold=config.approval_threshold,
                age_threshold=config.age_threshold,
                now=now,
            ),
        )
        for pull_request in relevant
    ]
    return build_payload(classified, resolve)
