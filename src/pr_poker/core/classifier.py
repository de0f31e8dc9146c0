"""Review state classification.

Each relevant pull request gets exactly one :class:`Category`. The
precedence is declared as data in :data:`CATEGORY_RULES`: rules are tried
in order and the first one whose predicate holds wins. The last rule
always holds, so classification is total.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import reduce
from typing import Callable, Iterable, Mapping

from pr_poker.core.entities import Category, PullRequest, Review, ReviewState, require_aware
from pr_poker.exceptions import InvalidInputError

logger = logging.getLogger(__name__)


def validate_thresholds(approval_threshold: int, age_threshold: timedelta) -> None:
    """Reject non-integer or negative approval thresholds and negative ages."""
    if isinstance(approval_threshold, bool) or not isinstance(approval_threshold, int):
        raise InvalidInputError(f"Approval threshold must be an integer, got {approval_threshold!r}")
    if approval_threshold < 0:
        raise InvalidInputError(f"Approval threshold cannot be negative, got {approval_threshold}")
    if not isinstance(age_threshold, timedelta):
        raise InvalidInputError(f"Age threshold must be a timedelta, got {age_threshold!r}")
    if age_threshold < timedelta(0):
        raise InvalidInputError(f"Age threshold cannot be negative, got {age_threshold}")


def _keep_latest(latest: Mapping[str, Review], review: Review) -> Mapping[str, Review]:
    current = latest.get(review.reviewer)
    if current is not None and review.submitted_at < current.submitted_at:
        return latest
    # Equal timestamps: the review seen last wins.
    return {**latest, review.reviewer: review}


def latest_reviews(reviews: Iterable[Review]) -> dict[str, Review]:
    """Reduce reviews to the most recent one per reviewer.

    When two reviews from the same reviewer share a submission timestamp,
    the one encountered later in ``reviews`` is retained.
    """
    return dict(reduce(_keep_latest, reviews, {}))


@dataclass(frozen=True)
class ClassificationContext:
    """Facts about one pull request that the category rules look at."""

    pull_request: PullRequest
    latest: Mapping[str, Review]
    approval_threshold: int
    age_threshold: timedelta
    now: datetime

    @property
    def approvals(self) -> int:
        return sum(1 for review in self.latest.values() if review.state is ReviewState.APPROVED)

    @property
    def age(self) -> timedelta:
        return self.now - self.pull_request.created_at


@dataclass(frozen=True)
class CategoryRule:
    category: Category
    applies: Callable[[ClassificationContext], bool]


def _has_changes_requested(ctx: ClassificationContext) -> bool:
    return any(review.state is ReviewState.CHANGES_REQUESTED for review in ctx.latest.values())


def _has_enough_approvals(ctx: ClassificationContext) -> bool:
    # A PR without reviews is never approved, even with a threshold of 0.
    return bool(ctx.latest) and ctx.approvals >= ctx.approval_threshold


def _is_old(ctx: ClassificationContext) -> bool:
    return ctx.age >= ctx.age_threshold


def _always(ctx: ClassificationContext) -> bool:
    return True


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(Category.CHANGES_REQUESTED, _has_changes_requested),
    CategoryRule(Category.APPROVED, _has_enough_approvals),
    CategoryRule(Category.OLD, _is_old),
    CategoryRule(Category.OTHER, _always),
)

# Summary sections follow rule precedence.
SUMMARY_ORDER: tuple[Category, ...] = tuple(rule.category for rule in CATEGORY_RULES)


def classify(
    pull_request: PullRequest,
    reviews: Iterable[Review],
    approval_threshold: int,
    age_threshold: timedelta,
    now: datetime,
) -> Category:
    """Return the single category for a relevant pull request.

    Raises:
        InvalidInputError: If a threshold is invalid or ``now`` is naive
    """
    validate_thresholds(approval_threshold, age_threshold)
    require_aware(now, "now")
    ctx = ClassificationContext(
        pull_request=pull_request,
        latest=latest_reviews(reviews),
        approval_threshold=approval_threshold,
        age_threshold=age_threshold,
        now=now,
    )
    for rule in CATEGORY_RULES:
        if rule.applies(ctx):
            logger.debug("PR %s categorized as %s", pull_request.url, rule.category.value)
            return rule.category
    raise AssertionError("Category rules must end with a catch-all")
