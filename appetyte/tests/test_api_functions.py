"""
Scheduled auto-order endpoint tests
"""

import pytest

from ..config.settings import settings
from ..services.auto_order_service import AutoOrderService
from ..services.provider_service import ProviderService
from ..services.subscription_service import SubscriptionService
from .helpers import MEAL_DATE

URL = "/api/v1/functions/auto-order-subscriptions"


@pytest.fixture
def subscribed(test_db, provider, customer):
    office = ProviderService(test_db).add_address(provider.id, "Office", "Tech Park, Gate 2")
    subscriptions = SubscriptionService(test_db)
    request = subscriptions.request_subscription(customer.id)
    return subscriptions.approve_request(request.id, provider.id, ["lunch"], MEAL_DATE, MEAL_DATE,
                                         {"lunch": office.id})


class TestAutoOrderFunction:

    def test_preflight(self, client):
        response = client.options(URL)
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "apikey" in response.headers["access-control-allow-headers"]

    def test_run(self, client, subscribed, lunch, frozen_now):
        response = client.post(URL)

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.json() == {
            "success": True,
            "message": "Auto-order processing completed",
            "date": "2024-01-15",
            "ordersCreated": 1,
            "skipped": 0,
            "errors": [],
        }

    def test_failure_reported(self, client, monkeypatch):
        def boom(self, today=None):
            raise RuntimeError("database is gone")

        monkeypatch.setattr(AutoOrderService, "run", boom)

        response = client.post(URL)

        assert response.status_code == 500
        assert response.json() == {"error": "database is gone"}

    def test_shared_secret(self, client, frozen_now, monkeypatch):
        monkeypatch.setattr(settings, "auto_order_secret", "s3cret")

        assert client.post(URL).status_code == 401
        assert client.post(URL, headers={"Authorization": "Bearer wrong"}).json() == {"error": "Unauthorized"}
        assert client.post(URL, headers={"Authorization": "Bearer s3cret"}).status_code == 200
