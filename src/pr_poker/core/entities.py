"""Core domain entities."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional

from pr_poker.exceptions import InvalidInputError


def require_aware(value: datetime, name: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidInputError(f"{name} must be timezone-aware, got {value!r}")


@dataclass(frozen=True)
class RepositoryRef:
    """Repository identity (owner + name)."""

    owner: str
    name: str

    def __post_init__(self) -> None:
        if not self.owner or not self.name:
            raise InvalidInputError("Repository owner and name cannot be empty")

    @classmethod
    def parse(cls, full_name: str) -> "RepositoryRef":
        """Parse an ``owner/name`` string."""
        owner, sep, name = full_name.strip().partition("/")
        if not sep or "/" in name:
            raise InvalidInputError(f"Repository must look like 'owner/name', got {full_name!r}")
        return cls(owner=owner, name=name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class PullRequestRef:
    """Pull request identity: repository plus number."""

    repository: RepositoryRef
    number: int

    def __str__(self) -> str:
        return f"{self.repository.full_name}#{self.number}"


@dataclass(frozen=True)
class PullRequest:
    """Open pull request as fetched from the source."""

    repository: RepositoryRef
    number: int
    title: str
    url: str
    author: str
    created_at: datetime
    updated_at: datetime
    draft: bool = False
    requested_reviewers: frozenset[str] = frozenset()
    requested_teams: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if self.number <= 0:
            raise InvalidInputError(f"Pull request number must be positive, got {self.number}")
        if not self.url:
            raise InvalidInputError("URL cannot be empty")
        require_aware(self.created_at, "created_at")
        require_aware(self.updated_at, "updated_at")
        # Accept any iterable of handles from callers.
        object.__setattr__(self, "requested_reviewers", frozenset(self.requested_reviewers))
        object.__setattr__(self, "requested_teams", frozenset(self.requested_teams))

    @property
    def ref(self) -> PullRequestRef:
        return PullRequestRef(self.repository, self.number)


class ReviewState(str, Enum):
    """State of a submitted review."""

    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    OTHER = "OTHER"

    @classmethod
    def from_api(cls, value: Optional[str]) -> "ReviewState":
        """Map a GitHub review state, folding unknown states into OTHER."""
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class Review:
    """A single review submission on one pull request."""

    reviewer: str
    state: ReviewState
    submitted_at: datetime

    def __post_init__(self) -> None:
        if not self.reviewer:
            raise InvalidInputError("Reviewer cannot be empty")
        require_aware(self.submitted_at, "submitted_at")


class Category(str, Enum):
    """Classification bucket of a relevant pull request."""

    CHANGES_REQUESTED = "changes-requested"
    APPROVED = "approved"
    OLD = "old"
    OTHER = "other"


@dataclass(frozen=True)
class ClassifiedPullRequest:
    """Relevant pull request with its category."""

    pull_request: PullRequest
    category: Category


@dataclass(frozen=True)
class CategoryGroup:
    """Summary section: one category and its pull requests in display order."""

    category: Category
    pull_requests: tuple[PullRequest, ...]


@dataclass(frozen=True)
class RecipientDigest:
    """Pull requests that need one person's attention."""

    recipient: str
    approved_authored: tuple[PullRequest, ...] = ()
    changes_requested_authored: tuple[PullRequest, ...] = ()
    review_requested: tuple[PullRequest, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.approved_authored or self.changes_requested_authored or self.review_requested)

    def with_entry(self, section: str, pull_request: PullRequest) -> "RecipientDigest":
        """Return a copy with ``pull_request`` appended to ``section``."""
        current: tuple[PullRequest, ...] = getattr(self, section)
        return replace(self, **{section: current + (pull_request,)})


@dataclass(frozen=True)
class SourceSnapshot:
    """Everything fetched for one run: open pull requests and their reviews.

    ``pull_requests`` keeps discovery order (repository order, then source
    order). ``reviews`` is keyed by pull request identity; a missing key
    means the pull request has no reviews.
    """

    pull_requests: tuple[PullRequest, ...] = ()
    reviews: Mapping[PullRequestRef, tuple[Review, ...]] = field(default_factory=dict)

    def reviews_for(self, pull_request: PullRequest) -> tuple[Review, ...]:
        return tuple(self.reviews.get(pull_request.ref, ()))


@dataclass(frozen=True)
class NotificationPayload:
    """Engine output: channel summary plus per-recipient digests."""

    total: int
    summary: tuple[CategoryGroup, ...]
    digests: Mapping[str, RecipientDigest]
