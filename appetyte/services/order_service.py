"""
Order service
Order placement, cancellation and provider status updates.

Business rules:
- Placement debits the customer balance and inserts the order in ONE
  transaction; nothing is left behind when either step fails.
- Cancellation flips the status, credits the balance and writes the refund
  ledger row in ONE transaction.
- Balance policy: unlimited overdraft unless a floor is configured, in which
  case the balance after the debit must stay at or above the floor.
- Status moves forward one step at a time; canceled and delivered are terminal.
"""

import logging
from datetime import date, datetime
from typing import List, NamedTuple, Optional

from ..config.settings import settings
from ..core.clock import service_now
from ..core.database import DatabaseManager, db_manager, row_as_dict
from ..core.exceptions import (
    CancellationWindowClosedError,
    CustomerNotFoundError,
    DuplicateOrderError,
    InsufficientBalanceError,
    InvalidStatusTransitionError,
    MealNotFoundError,
    OrderingClosedError,
    OrderNotCancelableError,
    OrderNotFoundError,
    ValidationError,
)
from ..models.customer import Customer
from ..models.order import (
    CANCELABLE_STATUSES,
    CanceledOrder,
    Order,
    OrderDetail,
    OrderStatus,
    PlacedOrder,
    can_transition,
)
from ..models.provider import FixedDelivery
from ..utils.cutoff import can_cancel, can_order
from .customer_service import CustomerService
from .meal_service import MealService
from .provider_service import ProviderService

logger = logging.getLogger(__name__)

_CANCELABLE_SQL = ", ".join(f"'{s.value}'" for s in CANCELABLE_STATUSES)

_DETAIL_SELECT = """
SELECT o.*, m.date AS meal_date, m.meal_type, c.name AS customer_name, c.mobile_number AS customer_mobile
FROM orders o
JOIN meals m ON m.id = o.meal_id
LEFT JOIN customers c ON c.id = o.customer_id
"""


class BalancePolicy(NamedTuple):
    """floor_paise=None allows the balance to go negative without limit"""
    floor_paise: Optional[int] = None

    @classmethod
    def from_settings(cls) -> "BalancePolicy":
        return cls(settings.balance_floor_paise)

    def allows(self, balance_paise: int, amount_paise: int) -> bool:
        return self.floor_paise is None or balance_paise - amount_paise >= self.floor_paise


class OrderService:
    """Order placement and lifecycle"""

    def __init__(self, db: Optional[DatabaseManager] = None, policy: Optional[BalancePolicy] = None):
        self.db = db or db_manager
        self.policy = policy or BalancePolicy.from_settings()

    def place_order(self, customer_id: int, meal_id: int, selected_option: str,
                    delivery_address: Optional[str] = None,
                    delivery_address_id: Optional[int] = None,
                    notes: Optional[str] = None,
                    now: Optional[datetime] = None) -> PlacedOrder:
        """
        Customer-initiated order.

        Checks the ordering window, the chosen option and the delivery address
        against the provider's delivery mode, then charges the meal's current
        price through place_order_atomic.

        Raises:
            MealNotFoundError: meal missing or belongs to another provider
            OrderingClosedError: cutoff passed or meal is not for today
            ValidationError: unknown option or no usable delivery address
            InsufficientBalanceError: balance policy rejected the debit
        """
        customer = CustomerService(self.db).get_customer(customer_id)
        meal = MealService(self.db).get_meal(meal_id)
        if meal.provider_id != customer.provider_id:
            raise MealNotFoundError()

        now = now or service_now()
        if not can_order(meal.date, meal.cut_off_time, now):
            raise OrderingClosedError()

        if selected_option not in meal.options:
            raise ValidationError(
                "Please choose one of the meal's options",
                details={"options": meal.options},
            )

        address = self.resolve_delivery_address(customer, delivery_address, delivery_address_id)
        return self.place_order_atomic(
            customer_id=customer.id,
            provider_id=customer.provider_id,
            meal_id=meal.id,
            selected_option=selected_option,
            delivery_address=address,
            amount_paise=meal.price_paise,
            notes=(notes or "").strip() or None,
        )

    def resolve_delivery_address(self, customer: Customer, delivery_address: Optional[str],
                                 delivery_address_id: Optional[int]) -> str:
        """Free text (or the saved address) in custom mode; a listed address in fixed mode"""
        mode = ProviderService(self.db).get_delivery_mode(customer.provider_id)
        if isinstance(mode, FixedDelivery):
            if delivery_address_id is None:
                raise ValidationError("Please choose a delivery location")
            chosen = mode.find(delivery_address_id)
            if chosen is None:
                raise ValidationError("Please choose one of the listed delivery locations")
            return chosen.address

        address = (delivery_address or customer.address or "").strip()
        if not address:
            raise ValidationError("Please enter a delivery address")
        return address

    def place_order_atomic(self, customer_id: int, provider_id: int, meal_id: int,
                           selected_option: str, delivery_address: str, amount_paise: int,
                           notes: Optional[str] = None,
                           prevent_duplicate: bool = False) -> PlacedOrder:
        """
        Debit the balance and insert a pending order as one unit.

        The option and address are trusted as given; callers validate them.
        With prevent_duplicate, an existing non-canceled order for the same
        customer and meal aborts the placement.
        """
        if amount_paise is None or amount_paise <= 0:
            raise ValidationError("Order amount must be greater than zero")

        with self.db.transaction() as conn:
            if prevent_duplicate:
                existing = conn.execute(
                    "SELECT id FROM orders WHERE customer_id = ? AND meal_id = ? AND status <> 'canceled'",
                    [customer_id, meal_id],
                ).fetchone()
                if existing:
                    raise DuplicateOrderError(details={"order_id": existing[0]})

            # Guarded debit: the policy check and the write are one statement
            debit_sql = (
                "UPDATE customers SET current_balance_paise = current_balance_paise - ? "
                "WHERE id = ? AND provider_id = ?"
            )
            params = [amount_paise, customer_id, provider_id]
            if self.policy.floor_paise is not None:
                debit_sql += " AND current_balance_paise - ? >= ?"
                params += [amount_paise, self.policy.floor_paise]
            debit_sql += " RETURNING current_balance_paise"

            debited = conn.execute(debit_sql, params).fetchone()
            if debited is None:
                found = conn.execute(
                    "SELECT 1 FROM customers WHERE id = ? AND provider_id = ?",
                    [customer_id, provider_id],
                ).fetchone()
                if not found:
                    raise CustomerNotFoundError()
                raise InsufficientBalanceError(details={"amount_paise": amount_paise})
            balance_after = debited[0]

            order_row = row_as_dict(conn.execute(
                """
                INSERT INTO orders (customer_id, provider_id, meal_id, selected_option,
                                    delivery_address, status, amount_paise, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                RETURNING *
                """,
                [customer_id, provider_id, meal_id, selected_option, delivery_address,
                 OrderStatus.PENDING.value, amount_paise, notes],
            ))
            conn.execute(
                """
                INSERT INTO transactions (customer_id, provider_id, type, amount_paise, order_id, description)
                VALUES (?, ?, 'debit', ?, ?, ?)
                """,
                [customer_id, provider_id, amount_paise, order_row["id"], "Order placed"],
            )

        logger.info(
            "Order %s placed: customer=%s meal=%s amount=%s balance=%s",
            order_row["id"], customer_id, meal_id, amount_paise, balance_after,
        )
        return PlacedOrder(order=Order(**order_row), balance_paise=balance_after)

    def cancel_order(self, order_id: int, customer_id: Optional[int] = None,
                     provider_id: Optional[int] = None, now: Optional[datetime] = None,
                     enforce_window: bool = True) -> CanceledOrder:
        """
        Cancel an order and refund its amount.

        Customers cancel with enforce_window=True: the last 15 minutes before
        the meal's cutoff are a lockout. Providers cancel administratively
        without the window. Status, refund credit and refund ledger row are
        written in one transaction.
        """
        order = self.get_order(order_id)
        if customer_id is not None and order.customer_id != customer_id:
            raise OrderNotFoundError()
        if provider_id is not None and order.provider_id != provider_id:
            raise OrderNotFoundError()
        if not order.is_cancelable:
            raise OrderNotCancelableError(details={"status": OrderStatus(order.status).value})

        if enforce_window:
            meal = MealService(self.db).get_meal(order.meal_id)
            if not can_cancel(meal.date, meal.cut_off_time, now or service_now()):
                raise CancellationWindowClosedError()

        with self.db.transaction() as conn:
            canceled = row_as_dict(conn.execute(
                f"""
                UPDATE orders SET status = 'canceled', canceled_at = current_timestamp
                WHERE id = ? AND status IN ({_CANCELABLE_SQL})
                RETURNING *
                """,
                [order_id],
            ))
            if canceled is None:
                raise OrderNotCancelableError()

            credited = conn.execute(
                "UPDATE customers SET current_balance_paise = current_balance_paise + ? "
                "WHERE id = ? RETURNING current_balance_paise",
                [canceled["amount_paise"], canceled["customer_id"]],
            ).fetchone()
            if credited is None:
                raise CustomerNotFoundError()

            conn.execute(
                """
                INSERT INTO transactions (customer_id, provider_id, type, amount_paise, order_id, description)
                VALUES (?, ?, 'refund', ?, ?, ?)
                """,
                [canceled["customer_id"], canceled["provider_id"], canceled["amount_paise"],
                 order_id, "Refund for canceled order"],
            )

        logger.info(
            "Order %s canceled: refunded=%s balance=%s",
            order_id, canceled["amount_paise"], credited[0],
        )
        return CanceledOrder(
            order=Order(**canceled),
            refunded_paise=canceled["amount_paise"],
            balance_paise=credited[0],
        )

    def advance_status(self, order_id: int, provider_id: int, new_status: str) -> Order:
        """Provider moves an order one step forward, or cancels it administratively"""
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown order status: {new_status}")

        order = self.get_order(order_id)
        if order.provider_id != provider_id:
            raise OrderNotFoundError()

        if target == OrderStatus.CANCELED:
            return self.cancel_order(order_id, provider_id=provider_id, enforce_window=False).order

        current = OrderStatus(order.status)
        if not can_transition(current, target):
            raise InvalidStatusTransitionError(
                f"Cannot change an order from {current.value} to {target.value}",
                details={"from": current.value, "to": target.value},
            )

        row = self.db.fetch_one(
            "UPDATE orders SET status = ? WHERE id = ? AND status = ? RETURNING *",
            [target.value, order_id, current.value],
        )
        if row is None:
            raise InvalidStatusTransitionError("The order was changed by someone else, please refresh")
        return Order(**row)

    def get_order(self, order_id: int) -> Order:
        row = self.db.fetch_one("SELECT * FROM orders WHERE id = ?", [order_id])
        if not row:
            raise OrderNotFoundError()
        return Order(**row)

    def list_customer_orders(self, customer_id: int, limit: int = 50) -> List[OrderDetail]:
        rows = self.db.fetch_all(
            _DETAIL_SELECT + " WHERE o.customer_id = ? ORDER BY o.created_at DESC, o.id DESC LIMIT ?",
            [customer_id, limit],
        )
        return [OrderDetail(**r) for r in rows]

    def list_provider_orders(self, provider_id: int, meal_date: Optional[date] = None,
                             status: Optional[str] = None) -> List[OrderDetail]:
        where_conditions = ["o.provider_id = ?"]
        params: list = [provider_id]
        if meal_date:
            where_conditions.append("m.date = ?")
            params.append(meal_date)
        if status:
            where_conditions.append("o.status = ?")
            params.append(OrderStatus(status).value)

        rows = self.db.fetch_all(
            _DETAIL_SELECT + f" WHERE {' AND '.join(where_conditions)} ORDER BY o.created_at DESC, o.id DESC",
            params,
        )
        return [OrderDetail(**r) for r in rows]

    def list_canceled_orders(self, provider_id: int) -> List[OrderDetail]:
        rows = self.db.fetch_all(
            _DETAIL_SELECT + " WHERE o.provider_id = ? AND o.status = 'canceled' ORDER BY o.canceled_at DESC",
            [provider_id],
        )
        return [OrderDetail(**r) for r in rows]
