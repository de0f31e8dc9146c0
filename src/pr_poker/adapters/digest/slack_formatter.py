"""Slack mrkdwn rendering of the summary and personal digests."""

from datetime import datetime

import humanize

from pr_poker.core import Category, MessageRenderer, NotificationPayload, PullRequest, RecipientDigest


def time_since(moment: datetime, now: datetime) -> str:
    """Relative time with a suffix, e.g. "3 days ago" or "5 minutes from now"."""
    # A timedelta keeps humanize off the local clock
    return humanize.naturaltime(now - moment)


class SlackMessageFormatter(MessageRenderer):
    """Render engine output as Slack mrkdwn text."""

    def __init__(self, approval_threshold: int, old_pr_threshold_days: int) -> None:
        self.approval_threshold = approval_threshold
        self.old_pr_threshold_days = old_pr_threshold_days

    def heading(self, category: Category) -> str:
        if category is Category.CHANGES_REQUESTED:
            return "PRs with Changes Requested"
        if category is Category.APPROVED:
            return f"PRs with >= {self.approval_threshold} Approvals"
        if category is Category.OLD:
            return f"Older PRs (over {self.old_pr_threshold_days} days)"
        return "Everything Else"

    def format_pull_request(self, pull_request: PullRequest, now: datetime) -> str:
        """Format single pull request line."""
        return (
            f"• *<{pull_request.url}|{pull_request.repository.name}-{pull_request.number}: "
            f"{pull_request.title}>* by _{pull_request.author}_ - "
            f"Opened {time_since(pull_request.created_at, now)}, "
            f"Last updated {time_since(pull_request.updated_at, now)}"
        )

    def render_summary(self, payload: NotificationPayload, now: datetime) -> str:
        lines = [
            "*PR Summary for Team*",
            f"Total PRs: {payload.total}",
        ]

        for group in payload.summary:
            lines.append("")
            lines.append(f"*{self.heading(group.category)}*")
            lines.extend(self.format_pull_request(pr, now) for pr in group.pull_requests)

        return "\n".join(lines) + "\n"

    def render_digest(self, digest: RecipientDigest, now: datetime) -> str:
        lines = [f"Hey <@{digest.recipient}>, you have the following PRs to take a closer look at:"]

        sections = [
            (
                f"*Your PRs with >= {self.approval_threshold} Approvals (Probably Ready to Merge):*",
                digest.approved_authored,
            ),
            ("*Your PRs with Changes Requested:*", digest.changes_requested_authored),
            ("*Directly Requested Review:*", digest.review_requested),
        ]
        for title, pull_requests in sections:
            if pull_requests:
                lines.append(title)
                lines.extend(self.format_pull_request(pr, now) for pr in pull_requests)

        return "\n".join(lines) + "\n"
