"""
Payment service
Manual top-ups: a payment is recorded as pending or paid, and settling it
credits the customer balance together with a `payment` ledger row.
"""

import logging
import secrets
import string
import time
from typing import List, Optional

from ..core.database import DatabaseManager, db_manager, row_as_dict
from ..core.exceptions import BusinessRuleError, PaymentNotFoundError, ValidationError
from ..models.payment import Payment, PaymentStatus
from .customer_service import CustomerService

logger = logging.getLogger(__name__)

_REFERENCE_ALPHABET = string.ascii_lowercase + string.digits


def generate_reference() -> str:
    """pay_<epoch millis><9 random chars>"""
    suffix = "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(9))
    return f"pay_{int(time.time() * 1000)}{suffix}"


class PaymentService:
    """Customer payments"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    def record_payment(self, customer_id: int, amount_paise: int, status: str = "pending",
                       reference: Optional[str] = None,
                       provider_id: Optional[int] = None) -> Payment:
        """Record a top-up; one recorded as paid credits the balance in the same transaction"""
        if amount_paise is None or amount_paise <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        status = PaymentStatus(status)
        customer = CustomerService(self.db).get_customer(customer_id, provider_id)

        with self.db.transaction() as conn:
            row = row_as_dict(conn.execute(
                """
                INSERT INTO payments (customer_id, provider_id, amount_paise, reference, status, settled_at)
                VALUES (?, ?, ?, ?, ?, CASE WHEN CAST(? AS BOOLEAN) THEN current_timestamp END)
                RETURNING *
                """,
                [customer.id, customer.provider_id, amount_paise, reference or generate_reference(),
                 status.value, status == PaymentStatus.PAID],
            ))
            if status == PaymentStatus.PAID:
                self._credit(conn, row)
        return Payment(**row)

    def mark_paid(self, payment_id: int, provider_id: Optional[int] = None) -> Payment:
        """pending -> paid with the balance credit and ledger row"""
        self.get_payment(payment_id, provider_id)
        with self.db.transaction() as conn:
            row = row_as_dict(conn.execute(
                """
                UPDATE payments SET status = 'paid', settled_at = current_timestamp
                WHERE id = ? AND status = 'pending'
                RETURNING *
                """,
                [payment_id],
            ))
            if row is None:
                raise BusinessRuleError("Only pending payments can be marked as paid")
            self._credit(conn, row)
        return Payment(**row)

    def mark_failed(self, payment_id: int, provider_id: Optional[int] = None) -> Payment:
        self.get_payment(payment_id, provider_id)
        row = self.db.fetch_one(
            "UPDATE payments SET status = 'failed' WHERE id = ? AND status = 'pending' RETURNING *",
            [payment_id],
        )
        if row is None:
            raise BusinessRuleError("Only pending payments can be marked as failed")
        return Payment(**row)

    @staticmethod
    def _credit(conn, payment: dict):
        balance = conn.execute(
            "UPDATE customers SET current_balance_paise = current_balance_paise + ? "
            "WHERE id = ? RETURNING current_balance_paise",
            [payment["amount_paise"], payment["customer_id"]],
        ).fetchone()
        conn.execute(
            """
            INSERT INTO transactions (customer_id, provider_id, type, amount_paise, payment_id, description)
            VALUES (?, ?, 'payment', ?, ?, ?)
            """,
            [payment["customer_id"], payment["provider_id"], payment["amount_paise"], payment["id"],
             f"Payment {payment['reference']}"],
        )
        logger.info(
            "Payment %s settled: customer=%s amount=%s balance=%s",
            payment["id"], payment["customer_id"], payment["amount_paise"], balance[0] if balance else None,
        )

    def get_payment(self, payment_id: int, provider_id: Optional[int] = None) -> Payment:
        row = self.db.fetch_one("SELECT * FROM payments WHERE id = ?", [payment_id])
        if not row or (provider_id is not None and row["provider_id"] != provider_id):
            raise PaymentNotFoundError()
        return Payment(**row)

    def list_payments(self, customer_id: int) -> List[Payment]:
        rows = self.db.fetch_all(
            "SELECT * FROM payments WHERE customer_id = ? ORDER BY created_at DESC, id DESC",
            [customer_id],
        )
        return [Payment(**r) for r in rows]

    def list_provider_payments(self, provider_id: int, status: Optional[str] = None) -> List[Payment]:
        query = "SELECT * FROM payments WHERE provider_id = ?"
        params: list = [provider_id]
        if status:
            query += " AND status = ?"
            params.append(PaymentStatus(status).value)
        query += " ORDER BY created_at DESC, id DESC"
        return [Payment(**r) for r in self.db.fetch_all(query, params)]
