"""Grouping of classified pull requests into a summary and personal digests."""

from functools import reduce
from typing import Callable, Iterable, Mapping, Optional, Sequence

from pr_poker.core.classifier import SUMMARY_ORDER
from pr_poker.core.entities import (
    Category,
    CategoryGroup,
    ClassifiedPullRequest,
    NotificationPayload,
    RecipientDigest,
)

Resolver = Callable[[str], Optional[str]]

# Author-side digest sections by category.
_AUTHORED_SECTIONS: Mapping[Category, str] = {
    Category.APPROVED: "approved_authored",
    Category.CHANGES_REQUESTED: "changes_requested_authored",
}


def build_summary(classified: Sequence[ClassifiedPullRequest]) -> tuple[CategoryGroup, ...]:
    """Group pull requests by category in precedence order, skipping empty groups."""
    groups = []
    for category in SUMMARY_ORDER:
        members = tuple(item.pull_request for item in classified if item.category is category)
        if members:
            groups.append(CategoryGroup(category=category, pull_requests=members))
    return tuple(groups)


def _contributions(item: ClassifiedPullRequest, resolve: Resolver) -> Iterable[tuple[str, str]]:
    """Yield ``(identity, section)`` pairs one pull request adds to digests."""
    pull_request = item.pull_request
    for reviewer in sorted(pull_request.requested_reviewers):
        identity = resolve(reviewer)
        if identity:
            yield identity, "review_requested"

    section = _AUTHORED_SECTIONS.get(item.category)
    if section:
        identity = resolve(pull_request.author)
        if identity:
            yield identity, section


def _fold_digest(
    resolve: Resolver,
) -> Callable[[Mapping[str, RecipientDigest], ClassifiedPullRequest], Mapping[str, RecipientDigest]]:
    def step(digests: Mapping[str, RecipientDigest], item: ClassifiedPullRequest) -> Mapping[str, RecipientDigest]:
        for identity, section in _contributions(item, resolve):
            digest = digests.get(identity) or RecipientDigest(recipient=identity)
            digests = {**digests, identity: digest.with_entry(section, item.pull_request)}
        return digests

    return step


def build_digests(
    classified: Sequence[ClassifiedPullRequest],
    resolve: Resolver,
) -> dict[str, RecipientDigest]:
    """Build per-recipient digests keyed by resolved identity.

    Identities appear in order of their first contribution. Handles that
    do not resolve are skipped. Only identities with at least one
    contributing pull request get a digest.
    """
    return dict(reduce(_fold_digest(resolve), classified, {}))


def build_payload(
    classified: Sequence[ClassifiedPullRequest],
    resolve: Resolver,
) -> NotificationPayload:
    return NotificationPayload(
        total=len(classified),
        summary=build_summary(classified),
        digests=build_digests(classified, resolve),
    )
