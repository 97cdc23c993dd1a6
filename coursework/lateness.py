"""Deadline, late window and late penalty rules.

The functions here are pure: they take timestamps and a :class:`LatePolicy`
and never touch the database, so every caller (submission, grading, the
student assignment view and the serializers) shares the same rules.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from hallmark.exceptions import ValidationError

DEFAULT_CUTOFF_DAYS = 7

_ONE_HOUR = timedelta(hours=1)
_ZERO = Decimal("0")


@dataclass(frozen=True)
class LatePolicy:
    accept_late: bool = False
    cutoff_days: int | None = DEFAULT_CUTOFF_DAYS
    penalty_percent: Decimal = _ZERO

    @property
    def effective_cutoff_days(self) -> int:
        """Cutoff in days; an unset or zero cutoff falls back to the default."""
        return self.cutoff_days or DEFAULT_CUTOFF_DAYS

    def as_dict(self) -> dict:
        return {
            "accept_late": self.accept_late,
            "cutoff_days": self.effective_cutoff_days,
            "penalty_percent": self.penalty_percent,
        }


@dataclass(frozen=True)
class Lateness:
    is_late: bool
    hours_late: int


class WindowOutcome(str, enum.Enum):
    ALLOWED = "allowed"
    REJECTED_PAST_DEADLINE = "rejected_past_deadline"
    REJECTED_CLOSED = "rejected_closed"


@dataclass(frozen=True)
class SubmissionWindow:
    outcome: WindowOutcome
    lateness: Lateness
    cutoff_days: int

    @property
    def allowed(self) -> bool:
        return self.outcome is WindowOutcome.ALLOWED


@dataclass(frozen=True)
class Penalty:
    penalty_applied: Decimal
    final_score: Decimal


def compute_lateness(now: datetime, deadline: datetime) -> Lateness:
    if now <= deadline:
        return Lateness(is_late=False, hours_late=0)
    return Lateness(is_late=True, hours_late=math.floor((now - deadline) / _ONE_HOUR))


def evaluate_submission_window(
    now: datetime, deadline: datetime, policy: LatePolicy
) -> SubmissionWindow:
    lateness = compute_lateness(now, deadline)
    cutoff_days = policy.effective_cutoff_days
    if not lateness.is_late:
        outcome = WindowOutcome.ALLOWED
    elif not policy.accept_late:
        outcome = WindowOutcome.REJECTED_PAST_DEADLINE
    elif lateness.hours_late > cutoff_days * 24:
        outcome = WindowOutcome.REJECTED_CLOSED
    else:
        outcome = WindowOutcome.ALLOWED
    return SubmissionWindow(outcome=outcome, lateness=lateness, cutoff_days=cutoff_days)


def apply_late_penalty(
    raw_score,
    total_marks,
    is_late: bool,
    hours_late: int,
    policy: LatePolicy,
) -> Penalty:
    """Deduct ``penalty_percent`` points for every started day past the deadline.

    The deduction is a flat number of points per day, not a share of the
    score or of ``total_marks``.  The final score never drops below zero.
    """
    raw_score = Decimal(str(raw_score))
    if not is_late or not policy.accept_late:
        return Penalty(penalty_applied=_ZERO, final_score=raw_score)

    days_late = math.ceil(max(hours_late, 0) / 24)
    penalty_applied = Decimal(days_late) * Decimal(str(policy.penalty_percent or 0))
    final_score = max(_ZERO, raw_score - penalty_applied)
    return Penalty(penalty_applied=penalty_applied, final_score=final_score)


def validate_score(score, total_marks) -> Decimal:
    """Return ``score`` as a Decimal, rejecting values outside ``[0, total_marks]``."""
    message = f"Score must be between 0 and {total_marks}"
    try:
        value = Decimal(str(score))
    except (ArithmeticError, ValueError, TypeError) as exc:
        raise ValidationError(message) from exc
    if not value.is_finite() or value < 0 or value > Decimal(str(total_marks)):
        raise ValidationError(message)
    return value
