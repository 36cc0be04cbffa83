"""
Customer service
Customer records, balances and the transaction ledger view.

Balances are never written here: only order placement, cancellation and
payment settlement move money.
"""

import re
from typing import List, Optional

from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import AuthenticationError, CustomerNotFoundError, ValidationError
from ..core.security import hash_password, verify_password
from ..models.customer import Customer, Transaction

MOBILE_RE = re.compile(r"^[6-9]\d{9}$")


def normalize_mobile(mobile_number: str) -> str:
    """Strip spaces, dashes and a leading +91 / 0"""
    digits = re.sub(r"[\s\-()]", "", mobile_number or "")
    if digits.startswith("+91"):
        digits = digits[3:]
    elif digits.startswith("0") and len(digits) == 11:
        digits = digits[1:]
    return digits


class CustomerService:
    """Customer accounts of a provider"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    def create_customer(self, provider_id: int, name: str, mobile_number: str,
                        email: Optional[str] = None, address: Optional[str] = None,
                        password: Optional[str] = None) -> Customer:
        """Without a password (provider-added customers) the account cannot use password login"""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        mobile = normalize_mobile(mobile_number)
        if not MOBILE_RE.match(mobile):
            raise ValidationError("Please enter a valid 10-digit mobile number")
        password_hash = hash_password(password) if password is not None else None

        with self.db.transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM customers WHERE provider_id = ? AND mobile_number = ?",
                [provider_id, mobile],
            ).fetchone()
            if exists:
                raise ValidationError("This mobile number is already registered")
            row = conn.execute(
                """
                INSERT INTO customers (provider_id, name, mobile_number, email, address, password_hash)
                VALUES (?, ?, ?, ?, ?, ?)
                RETURNING id
                """,
                [provider_id, name, mobile, email, address, password_hash],
            ).fetchone()
        return self.get_customer(row[0])

    def get_customer(self, customer_id: int, provider_id: Optional[int] = None) -> Customer:
        row = self.db.fetch_one("SELECT * FROM customers WHERE id = ?", [customer_id])
        if not row or (provider_id is not None and row["provider_id"] != provider_id):
            raise CustomerNotFoundError()
        return Customer(**row)

    def get_by_mobile(self, provider_id: int, mobile_number: str) -> Customer:
        row = self.db.fetch_one(
            "SELECT * FROM customers WHERE provider_id = ? AND mobile_number = ?",
            [provider_id, normalize_mobile(mobile_number)],
        )
        if not row:
            raise CustomerNotFoundError()
        return Customer(**row)

    def authenticate(self, provider_id: int, mobile_number: str, password: str) -> Customer:
        row = self.db.fetch_one(
            "SELECT * FROM customers WHERE provider_id = ? AND mobile_number = ?",
            [provider_id, normalize_mobile(mobile_number)],
        )
        if not row or not verify_password(password, row["password_hash"]):
            raise AuthenticationError("Invalid mobile number or password")
        return Customer(**row)

    def list_customers(self, provider_id: int, search: Optional[str] = None) -> List[Customer]:
        query = "SELECT * FROM customers WHERE provider_id = ?"
        params: list = [provider_id]
        if search:
            query += " AND (lower(name) LIKE ? OR mobile_number LIKE ?)"
            params += [f"%{search.lower()}%", f"%{search}%"]
        query += " ORDER BY name"
        return [Customer(**r) for r in self.db.fetch_all(query, params)]

    def update_customer(self, customer_id: int, provider_id: Optional[int] = None,
                        name: Optional[str] = None, email: Optional[str] = None,
                        address: Optional[str] = None) -> Customer:
        self.get_customer(customer_id, provider_id)

        update_fields = []
        params = []
        if name is not None:
            if not name.strip():
                raise ValidationError("Name is required")
            update_fields.append("name = ?")
            params.append(name.strip())
        if email is not None:
            update_fields.append("email = ?")
            params.append(email)
        if address is not None:
            update_fields.append("address = ?")
            params.append(address)

        if update_fields:
            params.append(customer_id)
            self.db.execute(f"UPDATE customers SET {', '.join(update_fields)} WHERE id = ?", params)
        return self.get_customer(customer_id)

    def get_balance(self, customer_id: int) -> int:
        return self.get_customer(customer_id).current_balance_paise

    def list_transactions(self, customer_id: int, limit: int = 100) -> List[Transaction]:
        rows = self.db.fetch_all(
            "SELECT * FROM transactions WHERE customer_id = ? ORDER BY created_at DESC, id DESC LIMIT ?",
            [customer_id, limit],
        )
        return [Transaction(**r) for r in rows]
