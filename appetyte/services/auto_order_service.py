"""
Subscription auto-order batch

Once a day, for every active auto-ordering subscription covering today, place
one order per subscribed meal type unless the customer skipped it.

Each subscription / meal type pair is independent: a failure, expected or
not, is recorded in the error list and the run moves on. Orders placed
earlier in the run are kept. A pair that already has a live order for
today's meal is counted as skipped, so re-running the batch on the same day
charges nobody twice.
"""

import logging
from datetime import date
from typing import Dict, List, NamedTuple, Optional

from ..core.clock import service_today
from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import BaseApplicationError, DuplicateOrderError
from ..models.meal import Meal, MealType
from .order_service import BalancePolicy, OrderService
from .subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

AUTO_ORDER_NOTE = "Auto-order from subscription"
COMPLETED_MESSAGE = "Auto-order processing completed"
NO_SUBSCRIPTIONS_MESSAGE = "No active subscriptions found"


class AutoOrderSummary(NamedTuple):
    date: date
    orders_created: int
    skipped: int
    errors: List[str]
    message: str = COMPLETED_MESSAGE

    def to_response(self) -> dict:
        return {
            "success": True,
            "message": self.message,
            "date": self.date.isoformat(),
            "ordersCreated": self.orders_created,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


class AutoOrderService:
    """Nightly subscription order placement"""

    def __init__(self, db: Optional[DatabaseManager] = None, policy: Optional[BalancePolicy] = None):
        self.db = db or db_manager
        self.orders = OrderService(self.db, policy)
        self.subscriptions = SubscriptionService(self.db)

    def run(self, today: Optional[date] = None) -> AutoOrderSummary:
        today = today or service_today()
        logger.info("Running auto-order for date: %s", today)

        subscriptions = self.subscriptions.list_due_subscriptions(today)
        if not subscriptions:
            logger.info("No active subscriptions found for %s", today)
            return AutoOrderSummary(today, 0, 0, [], NO_SUBSCRIPTIONS_MESSAGE)

        skip_map = self.subscriptions.skips_on(today)
        meal_map = self._meals_by_provider(today)
        address_map = self._addresses_by_id()

        orders_created = 0
        skipped = 0
        errors: List[str] = []

        for subscription in subscriptions:
            skipped_types = skip_map.get(subscription.id, set())
            provider_meals = meal_map.get(subscription.provider_id)
            if not provider_meals:
                logger.info("No meals found for provider %s on %s", subscription.provider_id, today)
                continue

            for meal_type in subscription.meal_types:
                meal_type = MealType(meal_type).value
                if meal_type in skipped_types:
                    logger.info("Skipping %s for subscription %s", meal_type, subscription.id)
                    skipped += 1
                    continue

                meal = provider_meals.get(meal_type)
                if meal is None:
                    logger.info("No %s meal found for provider %s on %s", meal_type, subscription.provider_id, today)
                    continue

                address_id = subscription.delivery_address_ids.get(meal_type)
                delivery_address = address_map.get(address_id) if address_id is not None else None
                if not delivery_address:
                    errors.append(f"No delivery address for {meal_type} in subscription {subscription.id}")
                    continue

                try:
                    self.orders.place_order_atomic(
                        customer_id=subscription.customer_id,
                        provider_id=subscription.provider_id,
                        meal_id=meal.id,
                        selected_option=meal.option_1,
                        delivery_address=delivery_address,
                        amount_paise=meal.price_paise,
                        notes=AUTO_ORDER_NOTE,
                        prevent_duplicate=True,
                    )
                except DuplicateOrderError:
                    logger.info("Order already exists for subscription %s, meal %s", subscription.id, meal_type)
                    skipped += 1
                except BaseApplicationError as e:
                    logger.warning("Auto-order failed for subscription %s, meal %s: %s",
                                   subscription.id, meal_type, e.message)
                    errors.append(
                        f"Failed to create order for subscription {subscription.id}, meal {meal_type}: {e.message}"
                    )
                except Exception as e:
                    logger.exception("Unexpected auto-order failure for subscription %s, meal %s",
                                     subscription.id, meal_type)
                    errors.append(
                        f"Failed to create order for subscription {subscription.id}, meal {meal_type}: "
                        f"{str(e) or type(e).__name__}"
                    )
                else:
                    orders_created += 1
                    logger.info("Created auto-order for subscription %s, meal type %s", subscription.id, meal_type)

        logger.info(
            "Auto-order for %s done: created=%d skipped=%d errors=%d",
            today, orders_created, skipped, len(errors),
        )
        return AutoOrderSummary(today, orders_created, skipped, errors)

    def _meals_by_provider(self, day: date) -> Dict[int, Dict[str, Meal]]:
        meal_map: Dict[int, Dict[str, Meal]] = {}
        for row in self.db.fetch_all("SELECT * FROM meals WHERE date = ?", [day]):
            meal = Meal(**row)
            meal_map.setdefault(meal.provider_id, {})[MealType(meal.meal_type).value] = meal
        return meal_map

    def _addresses_by_id(self) -> Dict[int, str]:
        rows = self.db.fetch_all("SELECT id, address FROM delivery_addresses")
        return {r["id"]: r["address"] for r in rows}
