"""GitHub App authentication: app JWT exchanged for an installation token."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
import jwt

from pr_poker.exceptions import SourceError

logger = logging.getLogger(__name__)

# GitHub rejects app JWTs valid for more than ten minutes.
JWT_LIFETIME = timedelta(minutes=9)
# Backdated to tolerate clock drift against GitHub.
JWT_CLOCK_SKEW = timedelta(seconds=60)


class GitHubAppAuth:
    """Mint installation access tokens for a GitHub App."""

    def __init__(
        self,
        app_id: str,
        installation_id: str,
        private_key: str,
        api_base: str = "https://api.github.com",
    ) -> None:
        """Initialize GitHub App credentials.

        Args:
            app_id: Numeric GitHub App id
            installation_id: Installation id of the app on the organization
            private_key: PEM encoded RSA private key of the app
            api_base: GitHub REST API base URL
        """
        self.app_id = app_id
        self.installation_id = installation_id
        self.private_key = private_key
        self.api_base = api_base.rstrip("/")

    def build_jwt(self, now: Optional[datetime] = None) -> str:
        """Sign a short-lived RS256 JWT identifying the app."""
        now = now or datetime.now(timezone.utc)
        claims = {
            "iat": int((now - JWT_CLOCK_SKEW).timestamp()),
            "exp": int((now + JWT_LIFETIME).timestamp()),
            "iss": str(self.app_id),
        }
        try:
            return jwt.encode(claims, self.private_key, algorithm="RS256")
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise SourceError(f"Cannot sign GitHub App JWT: {e}") from e

    async def fetch_installation_token(self, client: httpx.AsyncClient) -> str:
        """Exchange the app JWT for an installation access token.

        Raises:
            SourceError: If GitHub refuses the exchange or answers garbage
        """
        url = f"{self.api_base}/app/installations/{self.installation_id}/access_tokens"
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.build_jwt()}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        try:
            response = await client.post(url, headers=headers)
        except httpx.HTTPError as e:
            raise SourceError(f"GitHub App token request failed: {e}") from e

        if response.status_code != 201:
            raise SourceError(
                f"GitHub App token error: {response.status_code} for installation "
                f"{self.installation_id}: {response.text[:200]}"
            )

        try:
            token = response.json()["token"]
        except (ValueError, KeyError, TypeError) as e:
            raise SourceError(f"Malformed GitHub App token response: {e}") from e

        logger.info("Obtained installation token for GitHub App %s", self.app_id)
        return token
