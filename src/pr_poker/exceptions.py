"""Custom exceptions for PR Poker."""


class PRPokerError(Exception):
    """Base exception for all PR Poker errors."""


class ConfigError(PRPokerError):
    """Configuration-related errors."""


class InvalidInputError(PRPokerError, ValueError):
    """Input that breaks the data model contract."""


class SourceError(PRPokerError):
    """Pull request source errors."""


class NotificationError(PRPokerError):
    """Message delivery errors."""
