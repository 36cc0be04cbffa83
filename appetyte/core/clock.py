"""
Service clock.

Meal dates and cutoff times are provider-local wall-clock values; "now" and
"today" are always taken in the configured service timezone (IST by default).
"""

from datetime import date, datetime, timedelta, timezone

from ..config.settings import settings


def service_tz() -> timezone:
    return timezone(timedelta(minutes=settings.service_utc_offset_minutes))


def service_now() -> datetime:
    return datetime.now(service_tz())


def service_today() -> date:
    return service_now().date()
