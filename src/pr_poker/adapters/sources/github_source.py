"""GitHub source for open pull requests and their reviews."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Optional

import httpx

from pr_poker.core import (
    PullRequest,
    PullRequestRef,
    PullRequestSource,
    RepositoryRef,
    Review,
    ReviewState,
    SourceSnapshot,
)
from pr_poker.adapters.sources.github_auth import GitHubAppAuth
from pr_poker.exceptions import SourceError

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> datetime:
    """Parse a GitHub ISO-8601 timestamp into an aware datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GitHubPullRequestSource(PullRequestSource):
    """Fetch open pull requests and reviews from the GitHub REST API."""

    def __init__(
        self,
        repositories: list[RepositoryRef],
        token: Optional[str] = None,
        api_base: str = "https://api.github.com",
        per_page: int = 100,
        max_concurrency: int = 5,
        timeout: float = 30.0,
        app_auth: Optional[GitHubAppAuth] = None,
    ) -> None:
        self.repositories = repositories
        self.token = token
        self.app_auth = app_auth
        self.api_base = api_base.rstrip("/")
        self.per_page = per_page
        self.max_concurrency = max_concurrency
        self.timeout = timeout

    async def fetch_snapshot(
        self, needs_reviews: Optional[Callable[[PullRequest], bool]] = None
    ) -> SourceSnapshot:
        """Fetch every open pull request, repository by repository."""
        pull_requests: list[PullRequest] = []
        reviews: dict[PullRequestRef, tuple[Review, ...]] = {}
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            if self.app_auth is not None and not self.token:
                self.token = await self.app_auth.fetch_installation_token(client)

            for repository in self.repositories:
                logger.debug("Fetching PRs for repository: %s", repository.full_name)
                repo_pulls = [
                    self._parse_pull_request(repository, data)
                    for data in await self._get_paginated(
                        client,
                        f"{self.api_base}/repos/{repository.owner}/{repository.name}/pulls",
                        {"state": "open", "per_page": self.per_page},
                    )
                ]
                logger.info("Found total %d PRs for repository: %s", len(repo_pulls), repository.full_name)
                pull_requests.extend(repo_pulls)

                wanted = [pr for pr in repo_pulls if needs_reviews is None or needs_reviews(pr)]
                fetched = await asyncio.gather(
                    *(self._fetch_reviews(client, semaphore, pr) for pr in wanted)
                )
                for pr, pr_reviews in zip(wanted, fetched):
                    reviews[pr.ref] = pr_reviews

        return SourceSnapshot(pull_requests=tuple(pull_requests), reviews=reviews)

    async def _fetch_reviews(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        pull_request: PullRequest,
    ) -> tuple[Review, ...]:
        repository = pull_request.repository
        async with semaphore:
            payload = await self._get_paginated(
                client,
                f"{self.api_base}/repos/{repository.owner}/{repository.name}"
                f"/pulls/{pull_request.number}/reviews",
                {"per_page": self.per_page},
            )

        parsed = [review for review in map(self._parse_review, payload) if review is not None]
        logger.debug("%d reviews found for PR %s", len(parsed), pull_request.url)
        return tuple(parsed)

    async def _get_paginated(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[dict[str, Any]] = None,
    ) -> list[dict]:
        """GET a list endpoint, following ``Link: rel="next"`` headers."""
        results: list[dict] = []
        next_url: Optional[str] = url

        while next_url:
            try:
                response = await client.get(next_url, headers=self._get_headers(), params=params)
            except httpx.HTTPError as e:
                raise SourceError(f"GitHub request failed for {next_url}: {e}") from e

            if response.status_code != 200:
                raise SourceError(
                    f"GitHub API error: {response.status_code} for {next_url}: {response.text[:200]}"
                )

            try:
                page = response.json()
            except ValueError as e:
                raise SourceError(f"GitHub returned invalid JSON for {next_url}: {e}") from e
            if not isinstance(page, list):
                raise SourceError(f"GitHub returned {type(page).__name__} instead of a list for {next_url}")

            results.extend(page)
            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            params = None

        return results

    def _parse_pull_request(self, repository: RepositoryRef, data: dict) -> PullRequest:
        try:
            return PullRequest(
                repository=repository,
                number=data["number"],
                title=data.get("title") or "",
                url=data["html_url"],
                author=(data.get("user") or {}).get("login", ""),
                created_at=parse_timestamp(data["created_at"]),
                updated_at=parse_timestamp(data["updated_at"]),
                draft=bool(data.get("draft")),
                requested_reviewers=frozenset(
                    user["login"] for user in data.get("requested_reviewers") or []
                ),
                requested_teams=frozenset(
                    team["name"] for team in data.get("requested_teams") or []
                ),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SourceError(
                f"Malformed pull request in {repository.full_name}: {type(e).__name__}: {e}"
            ) from e

    def _parse_review(self, data: dict) -> Optional[Review]:
        """Create a review, or None for pending reviews and deleted users."""
        try:
            user = data.get("user") or {}
            submitted_at = data.get("submitted_at")
            if not user.get("login") or not submitted_at:
                return None

            return Review(
                reviewer=user["login"],
                state=ReviewState.from_api(data.get("state")),
                submitted_at=parse_timestamp(submitted_at),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise SourceError(f"Malformed review: {type(e).__name__}: {e}") from e

    def _get_headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        return headers
