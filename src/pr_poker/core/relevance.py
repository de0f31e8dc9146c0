"""Relevance filtering of pull requests for a tracked team."""

import logging
from typing import AbstractSet, Iterable

from pr_poker.core.entities import PullRequest

logger = logging.getLogger(__name__)


def is_relevant(
    pull_request: PullRequest,
    members: AbstractSet[str],
    teams: AbstractSet[str],
) -> bool:
    """
    Check if a pull request matters to the tracked team.

    Args:
        pull_request: Pull request to check
        members: Tracked member handles
        teams: Tracked team names

    Returns:
        False for drafts. Otherwise True if the author is a tracked member,
        a tracked member is directly requested as reviewer, or a tracked
        team is requested.
    """
    if pull_request.draft:
        return False

    return (
        pull_request.author in members
        or not pull_request.requested_reviewers.isdisjoint(members)
        or not pull_request.requested_teams.isdisjoint(teams)
    )


def filter_relevant(
    pull_requests: Iterable[PullRequest],
    members: AbstractSet[str],
    teams: AbstractSet[str],
) -> list[PullRequest]:
    """Keep relevant pull requests, preserving input order."""
    relevant = []
    for pull_request in pull_requests:
        if pull_request.draft:
            logger.debug("Skipped draft PR %s", pull_request.url)
        elif is_relevant(pull_request, members, teams):
            logger.debug("PR %s is a match", pull_request.url)
            relevant.append(pull_request)
        else:
            logger.debug("PR %s is NOT a match", pull_request.url)
    return relevant


def order_for_display(pull_requests: Iterable[PullRequest]) -> list[PullRequest]:
    """Oldest first; equal creation times keep discovery order."""
    return sorted(pull_requests, key=lambda pr: pr.created_at)
