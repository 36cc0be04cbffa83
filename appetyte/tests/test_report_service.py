"""
Provider report tests
"""

from datetime import date, timedelta

import pytest

from ..services.customer_service import CustomerService
from ..services.order_service import OrderService
from ..services.payment_service import PaymentService
from ..services.report_service import NO_ADDRESS, ReportService, subscription_status
from ..services.subscription_service import SubscriptionService
from .helpers import BEFORE_CUTOFF, MEAL_DATE, set_balance


@pytest.fixture
def neighbours(test_db, provider):
    customers = CustomerService(test_db)
    return (
        customers.create_customer(provider.id, "bina", "9898989898", address="12 MG Road"),
        customers.create_customer(provider.id, "Chetan", "9797979797", address="Tech Park, Gate 2"),
    )


class TestCustomerDues:

    def test_only_pay_per_meal_customers_in_debt(self, test_db, provider, customer, neighbours):
        bina, chetan = neighbours
        set_balance(test_db, customer.id, -8000)
        set_balance(test_db, bina.id, -2000)
        set_balance(test_db, chetan.id, 1500)
        subscriber = CustomerService(test_db).create_customer(provider.id, "Dev", "9696969696")
        set_balance(test_db, subscriber.id, -50000)
        test_db.execute("UPDATE customers SET has_subscription = TRUE WHERE id = ?", [subscriber.id])

        report = ReportService(test_db).customer_dues(provider.id)

        assert [d["name"] for d in report["dues"]] == ["Asha", "bina"]
        assert [d["amount_due_paise"] for d in report["dues"]] == [8000, 2000]
        assert report["total_due_paise"] == 10000

    def test_last_payment(self, test_db, provider, customer):
        set_balance(test_db, customer.id, -8000)
        PaymentService(test_db).record_payment(customer.id, 3000, status="paid")

        due = ReportService(test_db).customer_dues(provider.id)["dues"][0]

        assert due["amount_due_paise"] == 5000
        assert due["last_payment_at"] is not None

    def test_dues_csv(self, test_db, provider, customer):
        set_balance(test_db, customer.id, -8050)
        lines = ReportService(test_db).customer_dues_csv(provider.id).splitlines()
        assert lines[0] == "Customer Name,Contact,Amount Due,Last Payment"
        assert lines[1] == "Asha,9876543210,80.50,Never"


class TestDeliverySheet:

    def test_grouped_by_address_and_sorted(self, test_db, provider, customer, neighbours, lunch, dinner):
        bina, chetan = neighbours
        orders = OrderService(test_db)
        orders.place_order(customer.id, lunch.id, "Dal Rice", now=BEFORE_CUTOFF)
        orders.place_order(bina.id, lunch.id, "Roti Sabzi", notes="Less oil", now=BEFORE_CUTOFF)
        orders.place_order(chetan.id, dinner.id, "Paneer Thali", now=BEFORE_CUTOFF)
        canceled = orders.place_order(chetan.id, lunch.id, "Dal Rice", now=BEFORE_CUTOFF)
        orders.cancel_order(canceled.order.id, customer_id=chetan.id, now=BEFORE_CUTOFF)

        sheet = ReportService(test_db).daily_delivery_sheet(provider.id, MEAL_DATE)

        assert list(sheet) == ["12 MG Road", "Tech Park, Gate 2"]
        assert [e["customer_name"] for e in sheet["12 MG Road"]] == ["Asha", "bina"]
        assert [e["meal_type"] for e in sheet["Tech Park, Gate 2"]] == ["dinner"]

    def test_filter_by_meal_type(self, test_db, provider, customer, neighbours, lunch, dinner):
        orders = OrderService(test_db)
        orders.place_order(customer.id, lunch.id, "Dal Rice", now=BEFORE_CUTOFF)
        orders.place_order(neighbours[1].id, dinner.id, "Paneer Thali", now=BEFORE_CUTOFF)

        sheet = ReportService(test_db).daily_delivery_sheet(provider.id, MEAL_DATE, "dinner")

        assert list(sheet) == ["Tech Park, Gate 2"]

    def test_missing_address_bucket(self, test_db, provider, customer, lunch):
        OrderService(test_db).place_order(customer.id, lunch.id, "Dal Rice", now=BEFORE_CUTOFF)
        test_db.execute("UPDATE orders SET delivery_address = NULL")

        sheet = ReportService(test_db).daily_delivery_sheet(provider.id, MEAL_DATE)

        assert list(sheet) == [NO_ADDRESS]

    def test_sheet_csv(self, test_db, provider, customer, lunch):
        OrderService(test_db).place_order(customer.id, lunch.id, "Dal Rice", notes="No onion", now=BEFORE_CUTOFF)

        lines = ReportService(test_db).daily_delivery_sheet_csv(provider.id, MEAL_DATE).splitlines()

        assert lines[0] == "Delivery Address,Customer Name,Contact Number,Meal Type,Meal Items,Notes"
        assert lines[1] == "12 MG Road,Asha,9876543210,lunch,Dal Rice,No onion"


class TestBusinessSummary:

    def test_figures_skip_canceled_orders(self, test_db, provider, customer, neighbours, lunch, dinner):
        bina, chetan = neighbours
        CustomerService(test_db).create_customer(provider.id, "Dev", "9696969696")
        orders = OrderService(test_db)
        orders.place_order(customer.id, lunch.id, "Dal Rice", now=BEFORE_CUTOFF)
        orders.place_order(customer.id, dinner.id, "Paneer Thali", now=BEFORE_CUTOFF)
        orders.place_order(bina.id, lunch.id, "Roti Sabzi", now=BEFORE_CUTOFF)
        orders.place_order(chetan.id, dinner.id, "Paneer Thali", now=BEFORE_CUTOFF)
        canceled = orders.place_order(chetan.id, lunch.id, "Dal Rice", now=BEFORE_CUTOFF)
        orders.cancel_order(canceled.order.id, customer_id=chetan.id, now=BEFORE_CUTOFF)

        summary = ReportService(test_db).business_summary(provider.id, MEAL_DATE)

        assert summary["today"] == {"date": MEAL_DATE, "revenue_paise": 24000, "order_count": 4}
        assert summary["total"] == {"revenue_paise": 24000, "order_count": 4}
        assert summary["average_order_paise"] == 6000
        assert summary["customers"] == {"active": 3, "total": 4}
        assert summary["by_meal_type"] == [
            {"meal_type": "lunch", "order_count": 2, "revenue_paise": 10000},
            {"meal_type": "dinner", "order_count": 2, "revenue_paise": 14000},
        ]
        assert summary["most_ordered"] == {"option": "Paneer Thali", "order_count": 2}
        assert summary["least_ordered"] == {"option": "Roti Sabzi", "order_count": 1}

    def test_today_counts_only_todays_meals(self, test_db, provider, customer, lunch):
        OrderService(test_db).place_order(customer.id, lunch.id, "Dal Rice", now=BEFORE_CUTOFF)

        summary = ReportService(test_db).business_summary(provider.id, MEAL_DATE + timedelta(days=1))

        assert summary["today"]["order_count"] == 0
        assert summary["today"]["revenue_paise"] == 0
        assert summary["total"]["order_count"] == 1

    def test_no_orders(self, test_db, provider, customer):
        summary = ReportService(test_db).business_summary(provider.id, MEAL_DATE)

        assert summary["total"] == {"revenue_paise": 0, "order_count": 0}
        assert summary["average_order_paise"] == 0
        assert summary["customers"] == {"active": 0, "total": 1}
        assert summary["by_meal_type"] == []
        assert summary["most_ordered"] is None
        assert summary["least_ordered"] is None


TODAY = date(2024, 1, 15)


def subscribe(db, provider, customer, end_date, meal_types=("lunch",)):
    service = SubscriptionService(db)
    request = service.request_subscription(customer.id)
    return service.approve_request(request.id, provider.id, list(meal_types), date(2024, 1, 1), end_date)


class TestSubscriptionTracker:

    def test_status_boundaries(self):
        assert subscription_status(TODAY - timedelta(days=1), TODAY) == "expired"
        assert subscription_status(TODAY, TODAY) == "ending-soon"
        assert subscription_status(TODAY + timedelta(days=7), TODAY) == "ending-soon"
        assert subscription_status(TODAY + timedelta(days=8), TODAY) == "active"

    def test_tracker_rows(self, test_db, provider, customer, neighbours):
        bina, chetan = neighbours
        dev = CustomerService(test_db).create_customer(provider.id, "Dev", "9696969696", email="dev@example.com")
        subscribe(test_db, provider, customer, TODAY + timedelta(days=7), ("dinner", "lunch"))
        subscribe(test_db, provider, bina, TODAY + timedelta(days=8))
        subscribe(test_db, provider, chetan, TODAY - timedelta(days=1))
        subscribe(test_db, provider, dev, TODAY)
        PaymentService(test_db).record_payment(customer.id, 3000)

        tracker = ReportService(test_db).subscription_tracker(provider.id, TODAY)

        assert [t["customer_name"] for t in tracker] == ["Chetan", "Dev", "Asha", "bina"]
        assert [t["status"] for t in tracker] == ["expired", "ending-soon", "ending-soon", "active"]
        asha = tracker[2]
        assert asha["meal_types"] == ["lunch", "dinner"]
        assert asha["start_date"] == date(2024, 1, 1)
        assert asha["last_payment_at"] is not None
        assert tracker[1]["customer_email"] == "dev@example.com"
        assert tracker[1]["last_payment_at"] is None

    def test_tracker_csv(self, test_db, provider):
        dev = CustomerService(test_db).create_customer(provider.id, "Dev", "9696969696", email="dev@example.com")
        subscribe(test_db, provider, dev, TODAY)

        lines = ReportService(test_db).subscription_tracker_csv(provider.id, TODAY).splitlines()

        assert lines[0] == "Customer Name,Email,Meal Types,Start Date,End Date,Status,Last Payment"
        assert lines[1] == "Dev,dev@example.com,lunch,2024-01-01,2024-01-15,ending-soon,Never"
