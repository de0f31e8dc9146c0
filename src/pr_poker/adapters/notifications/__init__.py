"""Notification adapters."""

from pr_poker.adapters.notifications.slack_notifier import SlackNotifier

__all__ = ["SlackNotifier"]
