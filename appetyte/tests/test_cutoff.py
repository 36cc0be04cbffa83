"""
Ordering-window rule tests
"""

from datetime import date, datetime, time, timedelta

import pytest

from ..utils.cutoff import (
    can_cancel,
    can_order,
    format_time_left,
    is_meal_editable,
    is_visible_to_customer,
    meal_time_status,
    next_meal_cutoff,
    parse_cutoff,
)

D = date(2024, 1, 15)


def at(hour, minute, second=0, day=D):
    return datetime(day.year, day.month, day.day, hour, minute, second)


class TestCanOrder:
    """Orderable strictly before the cutoff, same day only"""

    def test_allowed_one_minute_before_cutoff(self):
        assert can_order(D, "11:00", at(10, 59))

    def test_rejected_at_cutoff(self):
        assert not can_order(D, "11:00", at(11, 0))

    def test_rejected_after_cutoff(self):
        assert not can_order(D, "11:00", at(11, 0, 1))
        assert not can_order(D, "11:00", at(15, 30))

    def test_rejected_on_other_dates(self):
        assert not can_order(D, "11:00", at(9, 0, day=D - timedelta(days=1)))
        assert not can_order(D, "11:00", at(9, 0, day=D + timedelta(days=1)))

    def test_future_date_allowed_without_same_day_restriction(self):
        assert can_order(D, "11:00", at(20, 0, day=D - timedelta(days=1)), same_day_only=False)

    def test_order_form_closes_while_open(self):
        """Breakfast cutoff 08:30: enabled at 08:15, rejected once the clock passes 08:30"""
        assert can_order(D, "08:30", at(8, 15))
        assert not can_order(D, "08:30", at(8, 30, 1))

    def test_aware_now_in_service_timezone(self):
        from datetime import timezone
        ist = timezone(timedelta(hours=5, minutes=30))
        assert can_order(D, time(11, 0), datetime(2024, 1, 15, 10, 59, tzinfo=ist))
        assert not can_order(D, time(11, 0), datetime(2024, 1, 15, 11, 0, tzinfo=ist))


class TestCancellationWindow:
    """Cancelable while more than 15 minutes remain"""

    def test_allowed_sixteen_minutes_before(self):
        assert can_cancel(D, "11:00", at(10, 44))

    def test_rejected_fourteen_minutes_before(self):
        assert not can_cancel(D, "11:00", at(10, 46))

    def test_rejected_exactly_fifteen_minutes_before(self):
        assert not can_cancel(D, "11:00", at(10, 45))

    def test_rejected_after_cutoff(self):
        assert not can_cancel(D, "11:00", at(12, 0))


class TestVisibility:

    def test_visible_during_grace_period(self):
        assert is_visible_to_customer(D, "11:00", at(11, 14))
        assert not can_order(D, "11:00", at(11, 14))

    def test_hidden_after_grace_period(self):
        assert not is_visible_to_customer(D, "11:00", at(11, 15))

    def test_editable_only_before_cutoff(self):
        assert is_meal_editable(D, "11:00", at(10, 59))
        assert not is_meal_editable(D, "11:00", at(11, 0))


class TestMealTimeStatus:

    @pytest.mark.parametrize("now, expected", [
        (at(9, 0), ("open", "2h 0m left", "normal")),
        (at(10, 35), ("open", "25m left", "warning")),
        (at(10, 50), ("closing_soon", "10m left", "urgent")),
        (at(11, 0), ("closed", "Ordering closed", "normal")),
    ])
    def test_urgency_buckets(self, now, expected):
        assert tuple(meal_time_status(D, "11:00", now)) == expected

    def test_other_dates(self):
        assert meal_time_status(D, "11:00", at(9, 0, day=D + timedelta(days=1))).time_left == "Past date"
        assert meal_time_status(D, "11:00", at(9, 0, day=D - timedelta(days=1))).time_left == "Future date"


class TestHelpers:

    def test_parse_cutoff(self):
        assert parse_cutoff("08:30") == time(8, 30)
        assert parse_cutoff("17:00:00") == time(17, 0)
        assert parse_cutoff(time(11, 0)) == time(11, 0)

    def test_parse_cutoff_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_cutoff("11")

    def test_format_time_left(self):
        assert format_time_left(timedelta(hours=1, minutes=5)) == "1h 5m left"
        assert format_time_left(timedelta(minutes=7, seconds=59)) == "7m left"

    def test_next_meal_cutoff(self):
        assert next_meal_cutoff(at(7, 0)) == ("breakfast", time(8, 30))
        assert next_meal_cutoff(at(9, 0)) == ("lunch", time(11, 0))
        assert next_meal_cutoff(at(12, 0)) == ("dinner", time(17, 0))
        assert next_meal_cutoff(at(18, 0)) == ("breakfast", time(8, 30))
