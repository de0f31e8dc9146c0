"""CLI entry point for PR Poker."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from pr_poker.adapters.digest import SlackMessageFormatter
from pr_poker.adapters.notifications import SlackNotifier
from pr_poker.adapters.sources import GitHubAppAuth, GitHubPullRequestSource
from pr_poker.config import Settings, get_settings
from pr_poker.exceptions import PRPokerError
from pr_poker.use_cases import ReportService

logger = logging.getLogger("pr_poker")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT, force=True)


def main(
    config: Path = typer.Option(Path("config.yaml"), "--config", help="YAML config file"),
    no_slack: bool = typer.Option(False, "--no-slack", help="Disable Slack posting"),
    log_messages: bool = typer.Option(False, "--log-messages", help="Log rendered messages"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
) -> None:
    """Post a summary of the team's open pull requests to Slack."""
    load_dotenv()
    try:
        settings = get_settings(config)
    except PRPokerError as e:
        configure_logging("INFO")
        logger.error("Invalid configuration: %s", e)
        raise typer.Exit(code=1)

    if log_level:
        settings.log_level = log_level.upper()
    if log_messages:
        settings.slack.enable_message_logging = True
    configure_logging(settings.log_level)

    try:
        asyncio.run(async_run(settings, no_slack))
    except PRPokerError:
        logger.exception("Error while compiling PR report")
        raise typer.Exit(code=1)


def app() -> None:
    """CLI entry point."""
    typer.run(main)


def print_banner(settings: Settings, posting: bool) -> None:
    print("\n" + "=" * 70)
    print("PR POKER - open pull requests for the team")
    print("=" * 70)

    print("\nCredentials:")
    if settings.github_token:
        print("  ✓ GITHUB_TOKEN")
    elif settings.uses_github_app():
        print(f"  ✓ GitHub App {settings.github.app_id}")
    else:
        print("  ⚠️  GITHUB_TOKEN not found (unauthenticated, low rate limit)")
    if posting:
        print(f"  ✓ Slack posting to {settings.slack.channel}")
    else:
        print("  ⚠️  Slack posting disabled")

    print("\nSettings:")
    print(f"  • Repositories: {', '.join(settings.github.repositories) or '-'}")
    print(f"  • Members: {len(settings.team.members)}, teams: {len(settings.team.teams)}")
    print(f"  • Approval threshold: {settings.approval_threshold}")
    print(f"  • Old PR threshold: {settings.old_pr_threshold_days} days")
    print()


def build_app_auth(settings: Settings) -> Optional[GitHubAppAuth]:
    """GitHub App credentials for the source, unless a token is configured."""
    if settings.github_token or not settings.uses_github_app():
        return None
    return GitHubAppAuth(
        app_id=settings.github.app_id,
        installation_id=settings.github.installation_id,
        private_key=settings.github.private_key,
        api_base=settings.github.api_base,
    )


async def async_run(settings: Settings, no_slack: bool) -> None:
    """Async implementation of the report run."""
    posting = settings.slack.enable_posting and not no_slack and settings.slack_configured
    print_banner(settings, posting)

    logger.info("Starting PR Poker")

    source = GitHubPullRequestSource(
        repositories=settings.repository_refs(),
        token=settings.github_token,
        api_base=settings.github.api_base,
        per_page=settings.github.per_page,
        max_concurrency=settings.github.max_concurrency,
        app_auth=build_app_auth(settings),
    )
    renderer = SlackMessageFormatter(
        approval_threshold=settings.approval_threshold,
        old_pr_threshold_days=settings.old_pr_threshold_days,
    )
    notifier = SlackNotifier(settings.slack.token, settings.slack.channel) if posting else None

    service = ReportService(
        source=source,
        renderer=renderer,
        engine_config=settings.engine_config(),
        resolve=settings.resolve_handle,
        notifier=notifier,
        log_messages=settings.slack.enable_message_logging,
    )
    payload = await service.run()

    logger.info(
        "PR Poker done: %d PRs, %d personal digests", payload.total, len(payload.digests)
    )


if __name__ == "__main__":
    app()
