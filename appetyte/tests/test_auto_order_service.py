"""
Auto-order batch tests
"""

from datetime import date, timedelta

import pytest

from ..services.auto_order_service import AUTO_ORDER_NOTE, AutoOrderService
from ..services.customer_service import CustomerService
from ..services.order_service import BalancePolicy
from ..services.provider_service import ProviderService
from ..services.subscription_service import SubscriptionService
from .helpers import MEAL_DATE, balance_of, count_rows


@pytest.fixture
def addresses(test_db, provider):
    providers = ProviderService(test_db)
    return {
        "lunch": providers.add_address(provider.id, "Office", "Tech Park, Gate 2"),
        "dinner": providers.add_address(provider.id, "Home", "12 MG Road"),
    }


def subscribe(db, customer, provider, addresses, meal_types=("lunch", "dinner"),
              start=MEAL_DATE - timedelta(days=5), end=MEAL_DATE + timedelta(days=20)):
    subscriptions = SubscriptionService(db)
    request = subscriptions.request_subscription(customer.id)
    return subscriptions.approve_request(
        request.id,
        provider.id,
        meal_types=list(meal_types),
        start_date=start,
        end_date=end,
        delivery_address_ids={t: addresses[t].id for t in meal_types},
    )


class TestAutoOrder:

    def test_places_one_order_per_meal_type(self, test_db, provider, customer, addresses, lunch, dinner):
        subscribe(test_db, customer, provider, addresses)

        summary = AutoOrderService(test_db).run(MEAL_DATE)

        assert summary.orders_created == 2
        assert summary.errors == []
        orders = test_db.fetch_all("SELECT * FROM orders ORDER BY meal_id")
        assert [o["selected_option"] for o in orders] == ["Dal Rice", "Paneer Thali"]
        assert [o["delivery_address"] for o in orders] == ["Tech Park, Gate 2", "12 MG Road"]
        assert {o["notes"] for o in orders} == {AUTO_ORDER_NOTE}
        assert {o["status"] for o in orders} == {"pending"}
        assert balance_of(test_db, customer.id) == -12000

    def test_skipped_meal_type_not_ordered(self, test_db, provider, customer, addresses, lunch, dinner):
        subscription = subscribe(test_db, customer, provider, addresses)
        SubscriptionService(test_db).skip_meal(subscription.id, customer.id, MEAL_DATE, "lunch", today=MEAL_DATE)

        summary = AutoOrderService(test_db).run(MEAL_DATE)

        assert summary.orders_created == 1
        assert summary.skipped == 1
        assert summary.errors == []
        assert [o["meal_id"] for o in test_db.fetch_all("SELECT meal_id FROM orders")] == [dinner.id]

    def test_second_run_same_day_charges_nobody_twice(self, test_db, provider, customer, addresses, lunch, dinner):
        subscribe(test_db, customer, provider, addresses)
        service = AutoOrderService(test_db)

        first = service.run(MEAL_DATE)
        second = service.run(MEAL_DATE)

        assert first.orders_created == 2
        assert second.orders_created == 0
        assert second.skipped == 2
        assert second.errors == []
        assert count_rows(test_db, "orders") == 2
        assert balance_of(test_db, customer.id) == -12000

    def test_canceled_order_is_placed_again(self, test_db, provider, customer, addresses, lunch):
        subscribe(test_db, customer, provider, addresses, meal_types=("lunch",))
        service = AutoOrderService(test_db)
        service.run(MEAL_DATE)
        test_db.execute("UPDATE orders SET status = 'canceled'")

        assert service.run(MEAL_DATE).orders_created == 1

    def test_missing_address_recorded_and_run_continues(self, test_db, provider, customer, addresses, lunch, dinner):
        broken = subscribe(test_db, customer, provider, addresses)
        ProviderService(test_db).delete_address(provider.id, addresses["dinner"].id)
        other = CustomerService(test_db).create_customer(provider.id, "Bina", "9898989898")
        subscribe(test_db, other, provider, {"lunch": addresses["lunch"], "dinner": addresses["lunch"]})

        summary = AutoOrderService(test_db).run(MEAL_DATE)

        assert summary.errors == [f"No delivery address for dinner in subscription {broken.id}"]
        assert summary.orders_created == 3
        assert count_rows(test_db, "orders", "customer_id = ? AND meal_id = ?", [customer.id, dinner.id]) == 0
        assert count_rows(test_db, "orders", "customer_id = ?", [other.id]) == 2

    def test_insufficient_balance_recorded(self, test_db, provider, customer, addresses, lunch):
        subscription = subscribe(test_db, customer, provider, addresses, meal_types=("lunch",))

        summary = AutoOrderService(test_db, BalancePolicy(floor_paise=0)).run(MEAL_DATE)

        assert summary.orders_created == 0
        assert summary.errors == [
            f"Failed to create order for subscription {subscription.id}, meal lunch: Insufficient balance"
        ]
        assert balance_of(test_db, customer.id) == 0

    def test_meal_not_configured_is_silent(self, test_db, provider, customer, addresses, lunch):
        subscribe(test_db, customer, provider, addresses)

        summary = AutoOrderService(test_db).run(MEAL_DATE)

        assert summary.orders_created == 1
        assert summary.errors == []

    def test_out_of_range_and_inactive_subscriptions_ignored(self, test_db, provider, customer, addresses, lunch):
        subscription = subscribe(test_db, customer, provider, addresses, meal_types=("lunch",),
                                 start=MEAL_DATE + timedelta(days=1))
        other = CustomerService(test_db).create_customer(provider.id, "Bina", "9898989898")
        paused = subscribe(test_db, other, provider, addresses, meal_types=("lunch",))
        SubscriptionService(test_db).set_auto_order(paused.id, False)

        summary = AutoOrderService(test_db).run(MEAL_DATE)

        assert summary.orders_created == 0
        assert subscription.start_date > MEAL_DATE

    def test_no_subscriptions(self, test_db):
        summary = AutoOrderService(test_db).run(date(2024, 2, 1))
        assert summary == (date(2024, 2, 1), 0, 0, [], "No active subscriptions found")

    def test_response_shape(self, test_db):
        body = AutoOrderService(test_db).run(MEAL_DATE).to_response()
        assert body == {
            "success": True,
            "message": "No active subscriptions found",
            "date": "2024-01-15",
            "ordersCreated": 0,
            "skipped": 0,
            "errors": [],
        }

    def test_completed_message(self, test_db, provider, customer, addresses, lunch):
        subscribe(test_db, customer, provider, addresses, meal_types=("lunch",))
        body = AutoOrderService(test_db).run(MEAL_DATE).to_response()
        assert body["message"] == "Auto-order processing completed"
        assert body["ordersCreated"] == 1

    def test_unexpected_error_does_not_stop_the_run(self, test_db, provider, customer, addresses, lunch, dinner,
                                                    monkeypatch):
        subscription = subscribe(test_db, customer, provider, addresses)
        service = AutoOrderService(test_db)
        place = service.orders.place_order_atomic

        def flaky(**kwargs):
            if kwargs["meal_id"] == lunch.id:
                raise RuntimeError("connection reset")
            return place(**kwargs)

        monkeypatch.setattr(service.orders, "place_order_atomic", flaky)

        summary = service.run(MEAL_DATE)

        assert summary.orders_created == 1
        assert summary.errors == [
            f"Failed to create order for subscription {subscription.id}, meal lunch: connection reset"
        ]
        assert count_rows(test_db, "orders", "meal_id = ?", [dinner.id]) == 1
