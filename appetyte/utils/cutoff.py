"""
Ordering-window rules.

All functions take an explicit `now` in provider-local time (naive, or aware in
the service timezone) so they stay pure and testable.

- Orderable: strictly before the cutoff, zero grace, and (by default) only for
  today's meals.
- Visible to customers: until cutoff + 15 minutes.
- Cancelable: while more than 15 minutes remain before the cutoff.
"""

from datetime import date, datetime, time, timedelta
from typing import NamedTuple, Optional, Union

VISIBILITY_GRACE = timedelta(minutes=15)
CANCELLATION_LOCKOUT = timedelta(minutes=15)
WARNING_THRESHOLD = timedelta(minutes=30)
URGENT_THRESHOLD = timedelta(minutes=15)

# Default cutoffs used for the "next meal" hint
DEFAULT_CUTOFFS = (
    ("breakfast", time(8, 30)),
    ("lunch", time(11, 0)),
    ("dinner", time(17, 0)),
)

TimeLike = Union[time, str]


class MealTimeStatus(NamedTuple):
    status: str      # open | closing_soon | closed
    time_left: str
    urgency: str     # normal | warning | urgent


def parse_cutoff(value: TimeLike) -> time:
    """Accept a time or an "HH:MM" / "HH:MM:SS" string"""
    if isinstance(value, time):
        return value
    parts = [int(p) for p in str(value).strip().split(":")]
    if len(parts) < 2 or len(parts) > 3:
        raise ValueError(f"Invalid cutoff time: {value!r}")
    return time(*parts)


def cutoff_at(meal_date: date, cutoff_time: TimeLike, now: Optional[datetime] = None) -> datetime:
    """Timestamp of the cutoff, in the same timezone flavour as `now`"""
    tzinfo = now.tzinfo if now is not None else None
    return datetime.combine(meal_date, parse_cutoff(cutoff_time), tzinfo=tzinfo)


def time_until_cutoff(meal_date: date, cutoff_time: TimeLike, now: datetime) -> timedelta:
    return cutoff_at(meal_date, cutoff_time, now) - now


def is_before_cutoff(meal_date: date, cutoff_time: TimeLike, now: datetime) -> bool:
    return now < cutoff_at(meal_date, cutoff_time, now)


def can_order(meal_date: date, cutoff_time: TimeLike, now: datetime, same_day_only: bool = True) -> bool:
    if same_day_only and meal_date != now.date():
        return False
    return is_before_cutoff(meal_date, cutoff_time, now)


def is_meal_editable(meal_date: date, cutoff_time: TimeLike, now: datetime) -> bool:
    return is_before_cutoff(meal_date, cutoff_time, now)


def is_visible_to_customer(meal_date: date, cutoff_time: TimeLike, now: datetime) -> bool:
    return now < cutoff_at(meal_date, cutoff_time, now) + VISIBILITY_GRACE


def can_cancel(meal_date: date, cutoff_time: TimeLike, now: datetime) -> bool:
    return time_until_cutoff(meal_date, cutoff_time, now) > CANCELLATION_LOCKOUT


def format_time_left(remaining: timedelta) -> str:
    total_minutes = int(remaining.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m left"
    return f"{minutes}m left"


def meal_time_status(meal_date: date, cutoff_time: TimeLike, now: datetime) -> MealTimeStatus:
    """Urgency buckets for display; they never change what is allowed"""
    today = now.date()
    if meal_date != today:
        return MealTimeStatus("closed", "Past date" if meal_date < today else "Future date", "normal")

    remaining = time_until_cutoff(meal_date, cutoff_time, now)
    if remaining <= timedelta(0):
        return MealTimeStatus("closed", "Ordering closed", "normal")

    if remaining <= URGENT_THRESHOLD:
        urgency = "urgent"
    elif remaining <= WARNING_THRESHOLD:
        urgency = "warning"
    else:
        urgency = "normal"

    status = "closing_soon" if urgency == "urgent" else "open"
    return MealTimeStatus(status, format_time_left(remaining), urgency)


def next_meal_cutoff(now: datetime) -> tuple:
    """(meal_type, cutoff) of the next default cutoff; wraps to tomorrow's breakfast"""
    current = now.time()
    for meal_type, cutoff in DEFAULT_CUTOFFS:
        if current < cutoff:
            return meal_type, cutoff
    return DEFAULT_CUTOFFS[0]
