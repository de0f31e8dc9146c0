"""Shared test fixtures for PR Poker."""

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from pr_poker.core import PullRequest, RepositoryRef, Review, ReviewState

NOW = datetime(2025, 11, 27, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_pr() -> Callable[..., PullRequest]:
    """Factory for pull requests created ``age`` before NOW."""

    def _make(
        number: int = 1,
        author: str = "alice",
        age: timedelta = timedelta(days=1),
        draft: bool = False,
        reviewers: tuple[str, ...] = (),
        teams: tuple[str, ...] = (),
        repo: str = "acme/api",
        title: str = "",
    ) -> PullRequest:
        repository = RepositoryRef.parse(repo)
        return PullRequest(
            repository=repository,
            number=number,
            title=title or f"Change {number}",
            url=f"https://github.com/{repo}/pull/{number}",
            author=author,
            created_at=NOW - age,
            updated_at=NOW - age / 2,
            draft=draft,
            requested_reviewers=frozenset(reviewers),
            requested_teams=frozenset(teams),
        )

    return _make


@pytest.fixture
def make_review() -> Callable[..., Review]:
    """Factory for reviews submitted ``minutes`` after 2025-11-01."""
    base = datetime(2025, 11, 1, tzinfo=timezone.utc)

    def _make(reviewer: str, state: ReviewState, minutes: int = 0) -> Review:
        return Review(reviewer=reviewer, state=state, submitted_at=base + timedelta(minutes=minutes))

    return _make
