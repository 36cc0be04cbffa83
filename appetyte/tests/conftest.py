"""
Test fixtures
In-memory database per test, seeded provider/customer/meal, and an API client
wired to the same database.
"""

from datetime import datetime, time

import pytest
from fastapi.testclient import TestClient

from ..app import create_app
from ..core.clock import service_tz
from ..core.database import DatabaseManager, get_db
from ..core.security import create_access_token
from ..services.customer_service import CustomerService
from ..services.meal_service import MealService
from ..services.provider_service import ProviderService
from .helpers import BEFORE_CUTOFF, LUNCH_CUTOFF, MEAL_DATE


@pytest.fixture
def test_db():
    db = DatabaseManager(":memory:")
    db.init_database()
    yield db
    db.close()


@pytest.fixture
def provider(test_db):
    return ProviderService(test_db).signup(
        business_name="Annapurna Tiffins",
        owner_name="Meera",
        contact_number="9811111111",
        email="meera@example.com",
        service_area="Koramangala",
    )


@pytest.fixture
def customer(test_db, provider):
    return CustomerService(test_db).create_customer(
        provider.id, "Asha", "9876543210", address="12 MG Road"
    )


@pytest.fixture
def lunch(test_db, provider):
    """Lunch on MEAL_DATE, cutoff 11:00, Rs 50"""
    return MealService(test_db).create_meal(
        provider_id=provider.id,
        meal_date=MEAL_DATE,
        meal_type="lunch",
        option_1="Dal Rice",
        option_2="Roti Sabzi",
        price_paise=5000,
        cut_off_time=LUNCH_CUTOFF,
        now=datetime(2024, 1, 15, 7, 0),
    )


@pytest.fixture
def dinner(test_db, provider):
    return MealService(test_db).create_meal(
        provider_id=provider.id,
        meal_date=MEAL_DATE,
        meal_type="dinner",
        option_1="Paneer Thali",
        price_paise=7000,
        cut_off_time=time(17, 0),
        now=datetime(2024, 1, 15, 7, 0),
    )


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the service clock to 2024-01-15 09:00 IST"""
    now = BEFORE_CUTOFF.replace(tzinfo=service_tz())
    for module in (
        "appetyte.services.order_service",
        "appetyte.services.meal_service",
        "appetyte.api.v1.meals",
    ):
        monkeypatch.setattr(f"{module}.service_now", lambda: now)
    for module in (
        "appetyte.services.auto_order_service",
        "appetyte.services.subscription_service",
        "appetyte.api.v1.reports",
    ):
        monkeypatch.setattr(f"{module}.service_today", lambda: now.date())
    return now


@pytest.fixture
def app_instance(test_db):
    app = create_app()
    app.dependency_overrides[get_db] = lambda: test_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app_instance):
    return TestClient(app_instance)


@pytest.fixture
def provider_headers(provider):
    return {"Authorization": f"Bearer {create_access_token(provider.id, 'provider', provider.id)}"}


@pytest.fixture
def customer_headers(customer):
    return {"Authorization": f"Bearer {create_access_token(customer.id, 'customer', customer.provider_id)}"}
