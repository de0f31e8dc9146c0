"""Source adapters for fetching pull requests."""

from pr_poker.adapters.sources.github_auth import GitHubAppAuth
from pr_poker.adapters.sources.github_source import GitHubPullRequestSource

__all__ = ["GitHubAppAuth", "GitHubPullRequestSource"]
