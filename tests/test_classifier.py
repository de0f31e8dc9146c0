"""Tests for review state classification."""

from datetime import datetime, timedelta

import pytest

from pr_poker.core import CATEGORY_RULES, SUMMARY_ORDER, Category, ReviewState, classify, latest_reviews
from pr_poker.exceptions import InvalidInputError

WEEK = timedelta(days=7)

APPROVED = ReviewState.APPROVED
CHANGES = ReviewState.CHANGES_REQUESTED
COMMENTED = ReviewState.COMMENTED


def _classify(pr, reviews, now, approvals: int = 2, age: timedelta = WEEK) -> Category:
    return classify(pr, reviews, approval_threshold=approvals, age_threshold=age, now=now)


def test_latest_reviews_keeps_most_recent(make_review) -> None:
    """Test only the newest review per reviewer survives."""
    old = make_review("bob", APPROVED, minutes=1)
    new = make_review("bob", CHANGES, minutes=5)
    other = make_review("carol", COMMENTED, minutes=3)

    latest = latest_reviews([new, other, old])

    assert latest == {"bob": new, "carol": other}


def test_latest_reviews_tie_last_seen_wins(make_review) -> None:
    """Test equal timestamps resolve to the review encountered last."""
    first = make_review("bob", APPROVED, minutes=2)
    second = make_review("bob", CHANGES, minutes=2)

    assert latest_reviews([first, second])["bob"] is second
    assert latest_reviews([second, first])["bob"] is first


def test_latest_reviews_empty() -> None:
    assert latest_reviews([]) == {}


def test_old_pr_without_reviews(make_pr, make_review, now) -> None:
    """Scenario: 10 days old, threshold 7, no reviews -> old."""
    pr = make_pr(number=1, age=timedelta(days=10))

    assert _classify(pr, [], now) is Category.OLD


def test_two_approvals_meet_threshold(make_pr, make_review, now) -> None:
    """Scenario: 1 day old, two approvals, threshold 2 -> approved."""
    pr = make_pr(number=2, age=timedelta(days=1))
    reviews = [make_review("bob", APPROVED, 1), make_review("carol", APPROVED, 2)]

    assert _classify(pr, reviews, now) is Category.APPROVED


def test_changes_requested_after_approval(make_pr, make_review, now) -> None:
    """Scenario: same reviewer approves then requests changes -> changes-requested."""
    pr = make_pr(number=3)
    reviews = [make_review("bob", APPROVED, 1), make_review("bob", CHANGES, 2)]

    assert _classify(pr, reviews, now, approvals=1) is Category.CHANGES_REQUESTED


def test_fresh_pr_without_reviews_is_other(make_pr, now) -> None:
    """Scenario: 1 day old, no reviews, threshold 2 -> other."""
    pr = make_pr(number=4, author="alice", age=timedelta(days=1))

    assert _classify(pr, [], now) is Category.OTHER


def test_changes_requested_beats_approvals(make_pr, make_review, now) -> None:
    """Test one outstanding change request wins over any number of approvals."""
    pr = make_pr(age=timedelta(days=30))
    reviews = [
        make_review("bob", APPROVED, 1),
        make_review("carol", APPROVED, 2),
        make_review("dave", APPROVED, 3),
        make_review("erin", CHANGES, 4),
    ]

    assert _classify(pr, reviews, now) is Category.CHANGES_REQUESTED


def test_approved_beats_old(make_pr, make_review, now) -> None:
    pr = make_pr(age=timedelta(days=30))
    reviews = [make_review("bob", APPROVED, 1), make_review("carol", APPROVED, 2)]

    assert _classify(pr, reviews, now) is Category.APPROVED


def test_withdrawn_approval_not_counted(make_pr, make_review, now) -> None:
    """Test an approval superseded by a comment no longer counts."""
    pr = make_pr()
    reviews = [
        make_review("bob", APPROVED, 1),
        make_review("carol", APPROVED, 2),
        make_review("bob", COMMENTED, 3),
    ]

    assert _classify(pr, reviews, now) is Category.OTHER


def test_repeated_approvals_count_once(make_pr, make_review, now) -> None:
    """Test re-approvals by the same reviewer are not double-counted."""
    pr = make_pr()
    reviews = [make_review("bob", APPROVED, 1), make_review("bob", APPROVED, 2)]

    assert _classify(pr, reviews, now) is Category.OTHER


def test_resolved_change_request(make_pr, make_review, now) -> None:
    """Test a reviewer who requested changes and later approved counts as approved."""
    pr = make_pr()
    reviews = [make_review("bob", CHANGES, 1), make_review("bob", APPROVED, 2)]

    assert _classify(pr, reviews, now, approvals=1) is Category.APPROVED


def test_zero_approval_threshold(make_pr, make_review, now) -> None:
    """Test threshold 0 approves any reviewed PR unless changes are requested."""
    fresh = make_pr(number=1)
    stale = make_pr(number=2, age=timedelta(days=60))

    assert _classify(fresh, [make_review("bob", COMMENTED)], now, approvals=0) is Category.APPROVED
    assert _classify(stale, [make_review("bob", COMMENTED)], now, approvals=0) is Category.APPROVED
    assert (
        _classify(fresh, [make_review("bob", CHANGES)], now, approvals=0)
        is Category.CHANGES_REQUESTED
    )


def test_zero_approval_threshold_without_reviews(make_pr, now) -> None:
    """Test an unreviewed PR falls through to the age check even with threshold 0."""
    assert _classify(make_pr(age=timedelta(days=1)), [], now, approvals=0) is Category.OTHER
    assert _classify(make_pr(age=timedelta(days=10)), [], now, approvals=0) is Category.OLD


def test_age_boundary_is_inclusive(make_pr, now) -> None:
    """Test a PR exactly at the age threshold is old."""
    assert _classify(make_pr(age=WEEK), [], now) is Category.OLD
    assert _classify(make_pr(age=WEEK - timedelta(seconds=1)), [], now) is Category.OTHER


@pytest.mark.parametrize("approvals", [0, 1, 2])
@pytest.mark.parametrize("age_days", [0, 1, 6, 7, 100])
def test_no_reviews_is_old_or_other(make_pr, now, age_days, approvals) -> None:
    """Test a PR with no reviews can never be approved or changes-requested."""
    category = _classify(make_pr(age=timedelta(days=age_days)), [], now, approvals=approvals)

    assert category in {Category.OLD, Category.OTHER}


@pytest.mark.parametrize(
    "approvals, age",
    [
        (-1, WEEK),
        (1.5, WEEK),
        (True, WEEK),
        (2, timedelta(days=-1)),
        (2, 7),
    ],
)
def test_classify_rejects_invalid_thresholds(make_pr, now, approvals, age) -> None:
    """Test classify fails fast instead of picking a category."""
    with pytest.raises(InvalidInputError):
        _classify(make_pr(), [], now, approvals=approvals, age=age)


def test_classify_rejects_naive_now(make_pr) -> None:
    with pytest.raises(InvalidInputError, match="timezone-aware"):
        _classify(make_pr(), [], datetime(2025, 11, 27))


def test_dismissed_and_comment_reviews_do_not_change_category(make_pr, make_review, now) -> None:
    pr = make_pr()
    reviews = [make_review("bob", ReviewState.OTHER, 1), make_review("carol", COMMENTED, 2)]

    assert _classify(pr, reviews, now) is Category.OTHER


def test_rules_are_total_and_in_precedence_order() -> None:
    """Test the rule table covers every category once, ending with a catch-all."""
    assert SUMMARY_ORDER == (
        Category.CHANGES_REQUESTED,
        Category.APPROVED,
        Category.OLD,
        Category.OTHER,
    )
    assert set(SUMMARY_ORDER) == set(Category)
    assert CATEGORY_RULES[-1].applies(None) is True
