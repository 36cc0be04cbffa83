"""
Meal service tests
"""

from datetime import datetime, time

import pytest

from ..core.exceptions import BusinessRuleError, MealLockedError, MealNotFoundError, ValidationError
from ..services.meal_service import MealService
from ..services.order_service import OrderService
from .helpers import BEFORE_CUTOFF, MEAL_DATE


def at(hour, minute):
    return datetime(2024, 1, 15, hour, minute)


class TestMealManagement:

    def test_create_meal(self, lunch):
        assert lunch.options == ["Dal Rice", "Roti Sabzi"]
        assert lunch.default_option == "Dal Rice"
        assert lunch.cut_off_time == time(11, 0)
        assert lunch.price_rupees == 50

    def test_one_meal_per_type_and_day(self, test_db, provider, lunch):
        with pytest.raises(BusinessRuleError):
            MealService(test_db).create_meal(provider.id, MEAL_DATE, "lunch", "Khichdi", 4000, "11:00",
                                             now=at(7, 0))

    def test_cannot_create_after_cutoff(self, test_db, provider):
        with pytest.raises(MealLockedError):
            MealService(test_db).create_meal(provider.id, MEAL_DATE, "breakfast", "Poha", 3000, "08:30",
                                             now=at(9, 0))

    def test_options_must_differ(self, test_db, provider):
        with pytest.raises(ValidationError):
            MealService(test_db).create_meal(provider.id, MEAL_DATE, "dinner", "Thali", 3000, "17:00",
                                             option_2="Thali", now=at(7, 0))

    def test_update_before_cutoff(self, test_db, provider, lunch):
        updated = MealService(test_db).update_meal(lunch.id, provider.id, price_paise=5500,
                                                   cut_off_time="11:30", now=BEFORE_CUTOFF)
        assert updated.price_paise == 5500
        assert updated.cut_off_time == time(11, 30)
        assert updated.option_1 == "Dal Rice"

    def test_locked_after_cutoff(self, test_db, provider, lunch):
        service = MealService(test_db)
        with pytest.raises(MealLockedError):
            service.update_meal(lunch.id, provider.id, option_1="Khichdi", now=at(11, 0))
        with pytest.raises(MealLockedError):
            service.delete_meal(lunch.id, provider.id, now=at(11, 5))

    def test_delete_blocked_by_live_orders(self, test_db, provider, customer, lunch):
        OrderService(test_db).place_order(customer.id, lunch.id, "Dal Rice", now=BEFORE_CUTOFF)
        with pytest.raises(BusinessRuleError):
            MealService(test_db).delete_meal(lunch.id, provider.id, now=BEFORE_CUTOFF)

    def test_delete(self, test_db, provider, lunch):
        service = MealService(test_db)
        service.delete_meal(lunch.id, provider.id, now=BEFORE_CUTOFF)
        with pytest.raises(MealNotFoundError):
            service.get_meal(lunch.id)

    def test_other_provider_cannot_edit(self, test_db, provider, lunch):
        with pytest.raises(MealNotFoundError):
            MealService(test_db).update_meal(lunch.id, provider.id + 1, price_paise=1, now=BEFORE_CUTOFF)


class TestCustomerMeals:

    def test_visible_meals_with_status(self, test_db, provider, lunch, dinner):
        views = MealService(test_db).list_customer_meals(provider.id, at(10, 50))
        by_type = {v.meal.meal_type.value: v for v in views}

        assert by_type["lunch"].orderable is True
        assert by_type["lunch"].status == "closing_soon"
        assert by_type["lunch"].urgency == "urgent"
        assert by_type["dinner"].status == "open"

    def test_grace_period_keeps_meal_visible_but_closed(self, test_db, provider, lunch):
        views = MealService(test_db).list_customer_meals(provider.id, at(11, 10))
        assert len(views) == 1
        assert views[0].orderable is False
        assert views[0].time_left == "Ordering closed"

        assert MealService(test_db).list_customer_meals(provider.id, at(11, 15)) == []

    def test_list_meals_in_order(self, test_db, provider, lunch, dinner):
        meals = MealService(test_db).list_meals(provider.id, MEAL_DATE, MEAL_DATE)
        assert [m.meal_type.value for m in meals] == ["lunch", "dinner"]
