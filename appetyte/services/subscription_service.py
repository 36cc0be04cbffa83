"""
Subscription service

Workflow:
1. Customer requests a subscription (one pending request at a time, none while
   subscribed).
2. Provider approves it with meal types, a date range and per-meal-type
   delivery addresses; the subscription starts active with auto-order on.
3. Customers skip individual date + meal type pairs; the nightly batch honours
   them.
4. Subscriptions past their end date are deactivated by expire_subscriptions.
"""

import json
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..core.clock import service_today
from ..core.database import DatabaseManager, db_manager, row_as_dict
from ..core.exceptions import (
    BusinessRuleError,
    NotFoundError,
    SubscriptionNotFoundError,
    ValidationError,
)
from ..models.meal import MealType
from ..models.subscription import RequestStatus, Subscription, SubscriptionRequest, SubscriptionSkip
from .customer_service import CustomerService
from .provider_service import ProviderService

logger = logging.getLogger(__name__)


def subscription_from_row(row: dict) -> Subscription:
    data = dict(row)
    data["meal_types"] = json.loads(data.pop("meal_types_json") or "[]")
    data["delivery_address_ids"] = json.loads(data.pop("delivery_address_ids_json") or "{}")
    return Subscription(**data)


class SubscriptionService:
    """Subscription requests, subscriptions and skips"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    # Requests

    def request_subscription(self, customer_id: int) -> SubscriptionRequest:
        customer = CustomerService(self.db).get_customer(customer_id)
        if self.get_active_subscription(customer.id, customer.provider_id):
            raise BusinessRuleError("You already have an active subscription")

        with self.db.transaction() as conn:
            pending = conn.execute(
                "SELECT 1 FROM subscription_requests WHERE customer_id = ? AND provider_id = ? AND status = 'pending'",
                [customer.id, customer.provider_id],
            ).fetchone()
            if pending:
                raise BusinessRuleError("A subscription request is already pending")
            row = conn.execute(
                "INSERT INTO subscription_requests (customer_id, provider_id, status) "
                "VALUES (?, ?, 'pending') RETURNING id",
                [customer.id, customer.provider_id],
            ).fetchone()
        return self.get_request(row[0])

    def approve_request(self, request_id: int, provider_id: int, meal_types: Iterable[str],
                        start_date: date, end_date: date,
                        delivery_address_ids: Optional[Dict[str, int]] = None) -> Subscription:
        """Create the subscription and close the request in one transaction"""
        request = self.get_request(request_id, provider_id)
        if request.status != RequestStatus.PENDING:
            raise BusinessRuleError("This request has already been processed")

        types = self._clean_meal_types(meal_types)
        if end_date < start_date:
            raise ValidationError("End date must not be before the start date")
        addresses = self._clean_addresses(provider_id, types, delivery_address_ids or {})

        with self.db.transaction() as conn:
            row = conn.execute(
                """
                INSERT INTO subscriptions (customer_id, provider_id, meal_types_json, delivery_address_ids_json,
                                           start_date, end_date, active, auto_order)
                VALUES (?, ?, ?, ?, ?, ?, TRUE, TRUE)
                RETURNING id
                """,
                [request.customer_id, provider_id, json.dumps(types), json.dumps(addresses),
                 start_date, end_date],
            ).fetchone()
            conn.execute("UPDATE subscription_requests SET status = 'approved' WHERE id = ?", [request_id])
            conn.execute("UPDATE customers SET has_subscription = TRUE WHERE id = ?", [request.customer_id])

        logger.info("Subscription %s approved for customer %s: %s", row[0], request.customer_id, types)
        return self.get_subscription(row[0])

    def reject_request(self, request_id: int, provider_id: int) -> SubscriptionRequest:
        request = self.get_request(request_id, provider_id)
        if request.status != RequestStatus.PENDING:
            raise BusinessRuleError("This request has already been processed")
        self.db.execute("UPDATE subscription_requests SET status = 'rejected' WHERE id = ?", [request_id])
        return self.get_request(request_id)

    def get_request(self, request_id: int, provider_id: Optional[int] = None) -> SubscriptionRequest:
        row = self.db.fetch_one("SELECT * FROM subscription_requests WHERE id = ?", [request_id])
        if not row or (provider_id is not None and row["provider_id"] != provider_id):
            raise NotFoundError("Subscription request not found")
        return SubscriptionRequest(**row)

    def list_requests(self, provider_id: int, status: Optional[str] = None) -> List[SubscriptionRequest]:
        query = "SELECT * FROM subscription_requests WHERE provider_id = ?"
        params: list = [provider_id]
        if status:
            query += " AND status = ?"
            params.append(RequestStatus(status).value)
        query += " ORDER BY created_at DESC, id DESC"
        return [SubscriptionRequest(**r) for r in self.db.fetch_all(query, params)]

    # Subscriptions

    def get_subscription(self, subscription_id: int, provider_id: Optional[int] = None) -> Subscription:
        row = self.db.fetch_one("SELECT * FROM subscriptions WHERE id = ?", [subscription_id])
        if not row or (provider_id is not None and row["provider_id"] != provider_id):
            raise SubscriptionNotFoundError()
        return subscription_from_row(row)

    def get_active_subscription(self, customer_id: int, provider_id: int) -> Optional[Subscription]:
        row = self.db.fetch_one(
            """
            SELECT * FROM subscriptions
            WHERE customer_id = ? AND provider_id = ? AND active = TRUE
            ORDER BY end_date DESC LIMIT 1
            """,
            [customer_id, provider_id],
        )
        return subscription_from_row(row) if row else None

    def days_left(self, subscription_id: int, today: Optional[date] = None) -> int:
        return self.get_subscription(subscription_id).days_left(today or service_today())

    def list_subscriptions(self, provider_id: int, active: Optional[bool] = None) -> List[Subscription]:
        query = "SELECT * FROM subscriptions WHERE provider_id = ?"
        params: list = [provider_id]
        if active is not None:
            query += " AND active = ?"
            params.append(active)
        query += " ORDER BY end_date"
        return [subscription_from_row(r) for r in self.db.fetch_all(query, params)]

    def list_due_subscriptions(self, today: date) -> List[Subscription]:
        """Active, auto-ordering and in range on `today`, across all providers"""
        rows = self.db.fetch_all(
            """
            SELECT * FROM subscriptions
            WHERE active = TRUE AND auto_order = TRUE AND start_date <= ? AND end_date >= ?
            ORDER BY id
            """,
            [today, today],
        )
        return [subscription_from_row(r) for r in rows]

    def renew(self, subscription_id: int, new_end_date: date, provider_id: Optional[int] = None) -> Subscription:
        subscription = self.get_subscription(subscription_id, provider_id)
        if new_end_date <= subscription.end_date:
            raise ValidationError("The new end date must be after the current end date")
        with self.db.transaction() as conn:
            conn.execute(
                "UPDATE subscriptions SET end_date = ?, active = TRUE WHERE id = ?",
                [new_end_date, subscription_id],
            )
            conn.execute("UPDATE customers SET has_subscription = TRUE WHERE id = ?", [subscription.customer_id])
        return self.get_subscription(subscription_id)

    def deactivate(self, subscription_id: int, provider_id: Optional[int] = None) -> Subscription:
        subscription = self.get_subscription(subscription_id, provider_id)
        with self.db.transaction() as conn:
            conn.execute("UPDATE subscriptions SET active = FALSE WHERE id = ?", [subscription_id])
            self._sync_has_subscription(conn, subscription.customer_id)
        return self.get_subscription(subscription_id)

    def set_auto_order(self, subscription_id: int, enabled: bool, provider_id: Optional[int] = None) -> Subscription:
        self.get_subscription(subscription_id, provider_id)
        self.db.execute("UPDATE subscriptions SET auto_order = ? WHERE id = ?", [enabled, subscription_id])
        return self.get_subscription(subscription_id)

    def expire_subscriptions(self, today: Optional[date] = None) -> int:
        """Deactivate every subscription whose end date is before `today`"""
        today = today or service_today()
        with self.db.transaction() as conn:
            expired = conn.execute(
                "UPDATE subscriptions SET active = FALSE WHERE active = TRUE AND end_date < ? RETURNING customer_id",
                [today],
            ).fetchall()
            for customer_id in {r[0] for r in expired}:
                self._sync_has_subscription(conn, customer_id)
        if expired:
            logger.info("Expired %d subscriptions before %s", len(expired), today)
        return len(expired)

    def set_delivery_address(self, subscription_id: int, meal_type: str, address_id: int,
                             provider_id: Optional[int] = None) -> Subscription:
        subscription = self.get_subscription(subscription_id, provider_id)
        meal_type = MealType(meal_type).value
        if meal_type not in [MealType(t).value for t in subscription.meal_types]:
            raise ValidationError(f"The subscription does not include {meal_type}")
        ProviderService(self.db).get_address(subscription.provider_id, address_id)

        addresses = dict(subscription.delivery_address_ids)
        addresses[meal_type] = address_id
        self.db.execute(
            "UPDATE subscriptions SET delivery_address_ids_json = ? WHERE id = ?",
            [json.dumps(addresses), subscription_id],
        )
        return self.get_subscription(subscription_id)

    # Skips

    def skip_meal(self, subscription_id: int, customer_id: int, skip_date: date, meal_type: str,
                  today: Optional[date] = None) -> SubscriptionSkip:
        """Skip one subscribed meal on a date from today onward"""
        subscription = self.get_subscription(subscription_id)
        if subscription.customer_id != customer_id:
            raise SubscriptionNotFoundError()
        meal_type = MealType(meal_type).value
        if meal_type not in [MealType(t).value for t in subscription.meal_types]:
            raise ValidationError(f"The subscription does not include {meal_type}")
        if not subscription.covers(skip_date):
            raise ValidationError("The date is outside the subscription period")
        if skip_date < (today or service_today()):
            raise ValidationError("Cannot skip a meal on a past date")

        with self.db.transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM subscription_skips WHERE subscription_id = ? AND skip_date = ? AND meal_type = ?",
                [subscription_id, skip_date, meal_type],
            ).fetchone()
            if exists:
                raise BusinessRuleError("This meal is already skipped")
            row = row_as_dict(conn.execute(
                """
                INSERT INTO subscription_skips (subscription_id, customer_id, skip_date, meal_type)
                VALUES (?, ?, ?, ?)
                RETURNING *
                """,
                [subscription_id, customer_id, skip_date, meal_type],
            ))
        return SubscriptionSkip(**row)

    def unskip(self, skip_id: int, customer_id: int):
        row = self.db.fetch_one(
            "SELECT 1 FROM subscription_skips WHERE id = ? AND customer_id = ?",
            [skip_id, customer_id],
        )
        if not row:
            raise NotFoundError("Skip not found")
        self.db.execute("DELETE FROM subscription_skips WHERE id = ?", [skip_id])

    def list_skips(self, customer_id: int) -> List[SubscriptionSkip]:
        rows = self.db.fetch_all(
            "SELECT * FROM subscription_skips WHERE customer_id = ? ORDER BY skip_date, meal_type",
            [customer_id],
        )
        return [SubscriptionSkip(**r) for r in rows]

    def skips_on(self, skip_date: date) -> Dict[int, set]:
        """subscription id -> meal types skipped on `skip_date`"""
        skipped: Dict[int, set] = {}
        for r in self.db.fetch_all("SELECT * FROM subscription_skips WHERE skip_date = ?", [skip_date]):
            skipped.setdefault(r["subscription_id"], set()).add(r["meal_type"])
        return skipped

    # Helpers

    @staticmethod
    def _clean_meal_types(meal_types: Iterable[str]) -> List[str]:
        types = []
        for t in meal_types or []:
            value = MealType(t).value
            if value not in types:
                types.append(value)
        if not types:
            raise ValidationError("Choose at least one meal type")
        return types

    def _clean_addresses(self, provider_id: int, meal_types: List[str],
                         delivery_address_ids: Dict[str, int]) -> Dict[str, int]:
        providers = ProviderService(self.db)
        addresses = {}
        for meal_type, address_id in delivery_address_ids.items():
            meal_type = MealType(meal_type).value
            if meal_type not in meal_types:
                raise ValidationError(f"The subscription does not include {meal_type}")
            providers.get_address(provider_id, address_id)
            addresses[meal_type] = int(address_id)
        return addresses

    @staticmethod
    def _sync_has_subscription(conn, customer_id: int):
        conn.execute(
            """
            UPDATE customers SET has_subscription = EXISTS (
                SELECT 1 FROM subscriptions WHERE customer_id = ? AND active = TRUE
            )
            WHERE id = ?
            """,
            [customer_id, customer_id],
        )
