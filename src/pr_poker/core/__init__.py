"""Core domain layer."""

from pr_poker.core.classifier import CATEGORY_RULES, SUMMARY_ORDER, classify, latest_reviews
from pr_poker.core.digest_builder import build_digests, build_payload, build_summary
from pr_poker.core.engine import EngineConfig, aggregate
from pr_poker.core.entities import (
    Category,
    CategoryGroup,
    ClassifiedPullRequest,
    NotificationPayload,
    PullRequest,
    PullRequestRef,
    RecipientDigest,
    RepositoryRef,
    Review,
    ReviewState,
    SourceSnapshot,
)
from pr_poker.core.interfaces import MessageRenderer, Notifier, PullRequestSource
from pr_poker.core.relevance import filter_relevant, is_relevant, order_for_display

__all__ = [
    "Category",
    "CategoryGroup",
    "ClassifiedPullRequest",
    "NotificationPayload",
    "PullRequest",
    "PullRequestRef",
    "RecipientDigest",
    "RepositoryRef",
    "Review",
    "ReviewState",
    "SourceSnapshot",
    "EngineConfig",
    "aggregate",
    "CATEGORY_RULES",
    "SUMMARY_ORDER",
    "classify",
    "latest_reviews",
    "build_digests",
    "build_payload",
    "build_summary",
    "filter_relevant",
    "is_relevant",
    "order_for_display",
    "MessageRenderer",
    "Notifier",
    "PullRequestSource",
]
