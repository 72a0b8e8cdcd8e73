"""Report validity window calculations.

A report lives for a base window after creation. Upvotes add a bonus that is
capped; every full batch of downvotes removes a fixed number of minutes. The
result is clamped to the overall cap and never lies before the moment of
recomputation.

Note on the upvote bonus: the per-upvote extension (20 min) is larger than the
bonus cap (10 min), so any positive upvote count yields exactly the 10 minute
cap. Clients rely on exactly that window.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from frostwatch.db.time import utcnow

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from frostwatch.core.settings import Settings


@dataclass(frozen=True)
class ValidityPolicy:
    """Constants driving the validity window, all in minutes except the batch size."""

    base_minutes: int = 60
    upvote_extension_minutes: int = 20
    upvote_bonus_cap_minutes: int = 10
    max_cap_minutes: int = 70
    downvotes_per_batch: int = 5
    minutes_per_batch: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> ValidityPolicy:
        return cls(
            base_minutes=settings.base_validity_minutes,
            upvote_extension_minutes=settings.upvote_extension_minutes,
            upvote_bonus_cap_minutes=settings.upvote_bonus_cap_minutes,
            max_cap_minutes=settings.max_validity_cap_minutes,
            downvotes_per_batch=settings.downvotes_per_batch,
            minutes_per_batch=settings.minutes_per_downvote_batch,
        )

    def upvote_bonus(self, upvote_count: int) -> int:
        return min(max(upvote_count, 0) * self.upvote_extension_minutes,
                   self.upvote_bonus_cap_minutes)

    def downvote_penalty(self, downvote_count: int) -> int:
        if self.downvotes_per_batch <= 0:
            return 0
        return (max(downvote_count, 0) // self.downvotes_per_batch) * self.minutes_per_batch


DEFAULT_POLICY = ValidityPolicy()


def compute_expiry(
    created_at: datetime,
    upvote_count: int,
    downvote_count: int,
    *,
    now: datetime | None = None,
    policy: ValidityPolicy = DEFAULT_POLICY,
) -> datetime:
    """Return the expiry timestamp for a report with the given tally.

    Args:
        created_at: Report creation time
        upvote_count: Live number of upvotes
        downvote_count: Live number of downvotes
        now: Moment of recomputation; defaults to the current UTC time
        policy: Validity constants

    Returns:
        ``created_at + base + bonus - penalty``, clamped to
        ``created_at + max_cap`` and never earlier than ``now``.
    """
    current = now if now is not None else utcnow()
    minutes = (
        policy.base_minutes
        + policy.upvote_bonus(upvote_count)
        - policy.downvote_penalty(downvote_count)
    )
    expires_at = created_at + timedelta(minutes=minutes)
    ceiling = created_at + timedelta(minutes=policy.max_cap_minutes)
    expires_at = min(expires_at, ceiling)
    return max(expires_at, current)


def initial_expiry(created_at: datetime, *, policy: ValidityPolicy = DEFAULT_POLICY) -> datetime:
    """Expiry of a freshly created report (no votes yet)."""
    return compute_expiry(created_at, 0, 0, now=created_at, policy=policy)


def is_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    """A report is dead once ``now`` has reached its expiry."""
    current = now if now is not None else utcnow()
    return expires_at <= current


def seconds_remaining(expires_at: datetime, now: datetime | None = None) -> int:
    current = now if now is not None else utcnow()
    return max(0, int((expires_at - current).total_seconds()))


def remaining_progress(
    expires_at: datetime,
    now: datetime | None = None,
    *,
    policy: ValidityPolicy = DEFAULT_POLICY,
) -> float:
    """Remaining lifetime as a 0-100 share of the maximum validity cap."""
    minutes_left = seconds_remaining(expires_at, now) // 60
    if policy.max_cap_minutes <= 0:
        return 0.0
    progress = minutes_left / policy.max_cap_minutes * 100
    return min(100.0, max(0.0, progress))


def vote_probability(upvote_count: int, downvote_count: int) -> int:
    """Community confidence in a report as a rounded percentage (50 when unvoted)."""
    total = upvote_count + downvote_count
    if total <= 0:
        return 50
    return round(upvote_count / total * 100)
