from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from .timeline import ActivitySummary, as_utc


SECONDS_PER_DAY = 24 * 60 * 60

REASON_STOP_SIGNAL = "stop_signal"
REASON_BELOW_THRESHOLD = "below_threshold"
REASON_NO_PRIOR_REMINDER = "no_prior_reminder"
REASON_HUMAN_AFTER_REMINDER = "human_after_reminder"
REASON_ALREADY_REMINDED = "already_reminded"


@dataclass(frozen=True)
class NoAction:
    reason: str = ""


@dataclass(frozen=True)
class ApplyLabel:
    label: str
    reason: str = REASON_STOP_SIGNAL


@dataclass(frozen=True)
class PostComment:
    body: str = ""
    reason: str = ""


Decision = Union[NoAction, ApplyLabel, PostComment]


def days_since(summary: ActivitySummary, now: datetime) -> float:
    elapsed = as_utc(now) - as_utc(summary.last_human_activity)
    return elapsed.total_seconds() / SECONDS_PER_DAY


def decide(
    summary: ActivitySummary,
    now: datetime,
    threshold_days: float,
    stop_label: str,
) -> Decision:
    """Pick the action for one item.

    A stop signal always wins. Otherwise the item must have been quiet for at
    least ``threshold_days`` and the last human activity must be strictly newer
    than the bot's last comment. The returned PostComment has an empty body;
    the caller renders the reminder.
    """
    if summary.has_stop_signal:
        return ApplyLabel(label=stop_label, reason=REASON_STOP_SIGNAL)

    if days_since(summary, now) < threshold_days:
        return NoAction(reason=REASON_BELOW_THRESHOLD)

    if summary.last_bot_activity is None:
        return PostComment(reason=REASON_NO_PRIOR_REMINDER)
    if as_utc(summary.last_human_activity) > as_utc(summary.last_bot_activity):
        return PostComment(reason=REASON_HUMAN_AFTER_REMINDER)
    return NoAction(reason=REASON_ALREADY_REMINDED)
