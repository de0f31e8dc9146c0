"""Message rendering adapters."""

from pr_poker.adapters.digest.slack_formatter import SlackMessageFormatter

__all__ = ["SlackMessageFormatter"]
