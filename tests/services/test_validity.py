"""Tests for the report validity window."""

from datetime import UTC, datetime, timedelta

import pytest

from frostwatch.services.validity import (
    DEFAULT_POLICY,
    ValidityPolicy,
    compute_expiry,
    initial_expiry,
    is_expired,
    remaining_progress,
    seconds_remaining,
    vote_probability,
)

T = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


def minutes(n: float) -> timedelta:
    return timedelta(minutes=n)


def test_no_votes_gives_base_window() -> None:
    assert compute_expiry(T, 0, 0, now=T) == T + minutes(60)


def test_single_upvote_gives_capped_bonus() -> None:
    assert compute_expiry(T, 1, 0, now=T) == T + minutes(70)


@pytest.mark.parametrize("upvotes", [1, 2, 5, 100])
def test_upvote_bonus_never_exceeds_cap(upvotes: int) -> None:
    assert compute_expiry(T, upvotes, 0, now=T) == T + minutes(70)


@pytest.mark.parametrize(
    "downvotes, penalty",
    [(4, 0), (5, 2), (9, 2), (10, 4), (14, 4), (15, 6)],
)
def test_downvotes_penalise_in_batches(downvotes: int, penalty: int) -> None:
    assert compute_expiry(T, 0, downvotes, now=T) == T + minutes(60 - penalty)


def test_bonus_and_penalty_combine() -> None:
    assert compute_expiry(T, 3, 10, now=T) == T + minutes(60 + 10 - 4)


def test_expiry_never_before_now() -> None:
    now = T + minutes(55)
    # 60 - 2 * (100 // 5) = 20 minutes after creation, already in the past.
    assert compute_expiry(T, 0, 100, now=now) == now


def test_expiry_can_equal_now_for_extreme_penalties() -> None:
    assert compute_expiry(T, 0, 10_000, now=T) == T


def test_ceiling_applies_with_custom_policy() -> None:
    generous = ValidityPolicy(upvote_bonus_cap_minutes=60, max_cap_minutes=70)
    assert compute_expiry(T, 5, 0, now=T, policy=generous) == T + minutes(70)


def test_policy_helpers() -> None:
    assert DEFAULT_POLICY.upvote_bonus(0) == 0
    assert DEFAULT_POLICY.upvote_bonus(1) == 10
    assert DEFAULT_POLICY.downvote_penalty(9) == 2
    assert DEFAULT_POLICY.downvote_penalty(-3) == 0


def test_initial_expiry() -> None:
    assert initial_expiry(T) == T + minutes(60)


def test_is_expired_at_the_boundary() -> None:
    expires = T + minutes(60)
    assert not is_expired(expires, expires - timedelta(seconds=1))
    assert is_expired(expires, expires)
    assert is_expired(expires, expires + timedelta(seconds=1))


def test_seconds_remaining_and_progress() -> None:
    expires = T + minutes(35)
    assert seconds_remaining(expires, T) == 35 * 60
    assert seconds_remaining(expires, T + minutes(40)) == 0
    assert remaining_progress(expires, T) == pytest.approx(50.0)
    assert remaining_progress(expires, T + minutes(40)) == 0.0


@pytest.mark.parametrize(
    "up, down, expected",
    [(0, 0, 50), (3, 0, 100), (0, 2, 0), (2, 1, 67), (1, 3, 25)],
)
def test_vote_probability(up: int, down: int, expected: int) -> None:
    assert vote_probability(up, down) == expected
