"""Configuration management."""

import json
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional

import yaml

from pr_poker.core import EngineConfig, RepositoryRef
from pr_poker.exceptions import ConfigError, InvalidInputError


@dataclass
class GitHubConfig:
    """GitHub API settings."""
    token: Optional[str] = None
    repositories: list[str] = field(default_factory=list)
    api_base: str = "https://api.github.com"
    per_page: int = 100
    max_concurrency: int = 5
    # GitHub App credentials, used when no token is set
    app_id: Optional[str] = None
    installation_id: Optional[str] = None
    private_key: Optional[str] = None


@dataclass
class TeamConfig:
    """Who the report is for."""
    members: list[str] = field(default_factory=list)
    teams: list[str] = field(default_factory=list)
    # GitHub handle -> Slack user id
    user_map: dict[str, str] = field(default_factory=dict)


@dataclass
class ThresholdsConfig:
    """Classification thresholds."""
    approval_threshold: int = 2
    old_pr_threshold_days: int = 7


@dataclass
class SlackConfig:
    """Slack settings."""
    token: str = ""
    channel: str = ""
    enable_posting: bool = True
    enable_message_logging: bool = False


@dataclass
class Settings:
    """Application settings."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    team: TeamConfig = field(default_factory=TeamConfig)
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    log_level: str = "INFO"

    @property
    def github_token(self) -> Optional[str]:
        return self.github.token

    @property
    def approval_threshold(self) -> int:
        return self.thresholds.approval_threshold

    @property
    def old_pr_threshold_days(self) -> int:
        return self.thresholds.old_pr_threshold_days

    @property
    def slack_configured(self) -> bool:
        return bool(self.slack.token and self.slack.channel)

    def uses_github_app(self) -> bool:
        """Whether GitHub App credentials are configured.

        Raises:
            ConfigError: If only some of the app credentials are set
        """
        credentials = {
            "app_id": self.github.app_id,
            "installation_id": self.github.installation_id,
            "private_key": self.github.private_key,
        }
        missing = [name for name, value in credentials.items() if not value]
        if len(missing) == len(credentials):
            return False
        if missing:
            raise ConfigError(f"Incomplete GitHub App credentials, missing: {', '.join(missing)}")
        return True

    def repository_refs(self) -> list[RepositoryRef]:
        try:
            return [RepositoryRef.parse(name) for name in self.github.repositories]
        except InvalidInputError as e:
            raise ConfigError(str(e)) from e

    def engine_config(self) -> EngineConfig:
        try:
            return EngineConfig(
                approval_threshold=self.thresholds.approval_threshold,
                age_threshold=timedelta(days=self.thresholds.old_pr_threshold_days),
                members=frozenset(self.team.members),
                teams=frozenset(self.team.teams),
            )
        except (InvalidInputError, TypeError) as e:
            raise ConfigError(f"Invalid thresholds: {e}") from e

    def resolve_handle(self, handle: str) -> Optional[str]:
        """Slack user id for a GitHub handle, or None if unmapped."""
        return self.team.user_map.get(handle)


def _split_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def _coerce_user_map(source: str, user_map: object) -> dict[str, str]:
    """Normalize a handle -> Slack id mapping so ids are always strings."""
    if not isinstance(user_map, dict):
        raise ConfigError(f"{source} must be a mapping of GitHub handle to Slack user id")
    return {str(k): str(v) for k, v in user_map.items()}


def _parse_user_map(value: str) -> dict[str, str]:
    try:
        user_map = json.loads(value)
    except json.JSONDecodeError as e:
        raise ConfigError(f"GH_TO_SLACK_USER_MAP is not valid JSON: {e}") from e
    return _coerce_user_map("GH_TO_SLACK_USER_MAP", user_map)


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {config_path}: {e}") from e


def apply_environment(settings: Settings, environ: Optional[dict[str, str]] = None) -> Settings:
    """Override settings with environment variables that are set."""
    env = os.environ if environ is None else environ

    if env.get("GITHUB_TOKEN"):
        settings.github.token = env["GITHUB_TOKEN"]
    if env.get("GH_APP_ID"):
        settings.github.app_id = env["GH_APP_ID"]
    if env.get("GH_INSTALLATION_ID"):
        settings.github.installation_id = env["GH_INSTALLATION_ID"]
    if env.get("GH_PRIVATE_KEY"):
        # .env files usually carry the PEM on one line with literal \n
        settings.github.private_key = env["GH_PRIVATE_KEY"].replace("\\n", "\n")
    if "GH_REPOS" in env:
        settings.github.repositories = _split_list(env["GH_REPOS"])
    if "GH_TEAM_MEMBERS" in env:
        settings.team.members = _split_list(env["GH_TEAM_MEMBERS"])
    if "GH_TEAMS" in env:
        settings.team.teams = _split_list(env["GH_TEAMS"])
    if env.get("GH_TO_SLACK_USER_MAP"):
        settings.team.user_map = _parse_user_map(env["GH_TO_SLACK_USER_MAP"])

    # An explicit 0 is a legal threshold, only unset/empty falls back to defaults
    if env.get("APPROVAL_THRESHOLD"):
        settings.thresholds.approval_threshold = _parse_int("APPROVAL_THRESHOLD", env["APPROVAL_THRESHOLD"])
    if env.get("OLD_PR_THRESHOLD_DAYS"):
        settings.thresholds.old_pr_threshold_days = _parse_int("OLD_PR_THRESHOLD_DAYS", env["OLD_PR_THRESHOLD_DAYS"])

    if env.get("SLACK_TOKEN"):
        settings.slack.token = env["SLACK_TOKEN"]
    if env.get("SLACK_CHANNEL"):
        settings.slack.channel = env["SLACK_CHANNEL"]
    if "ENABLE_SLACK_POSTING" in env:
        settings.slack.enable_posting = env["ENABLE_SLACK_POSTING"].strip().lower() != "false"
    if "ENABLE_MESSAGE_LOGGING" in env:
        settings.slack.enable_message_logging = env["ENABLE_MESSAGE_LOGGING"].strip().lower() == "true"

    if env.get("LOG_LEVEL"):
        settings.log_level = env["LOG_LEVEL"].upper()

    return settings


def get_settings(
    config_path: Path = Path("config.yaml"),
    environ: Optional[dict[str, str]] = None,
) -> Settings:
    """Get application settings from YAML config and environment."""
    # Load YAML config
    config = load_config(config_path)

    settings = Settings()

    # Apply YAML config
    sections = {
        "github": settings.github,
        "team": settings.team,
        "thresholds": settings.thresholds,
        "slack": settings.slack,
    }
    for name, section in sections.items():
        for key, value in (config.get(name) or {}).items():
            if not hasattr(section, key):
                raise ConfigError(f"Unknown setting {name}.{key} in {config_path}")
            setattr(section, key, value)

    # YAML reads unquoted numeric ids as ints
    settings.team.user_map = _coerce_user_map("team.user_map", settings.team.user_map or {})
    for key in ("app_id", "installation_id"):
        value = getattr(settings.github, key)
        if value is not None:
            setattr(settings.github, key, str(value))

    if "log_level" in config:
        settings.log_level = str(config["log_level"]).upper()

    # Environment wins over the file
    return apply_environment(settings, environ)
