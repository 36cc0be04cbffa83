"""Shared test helpers"""

from datetime import date, datetime, time

from ..core.database import DatabaseManager

MEAL_DATE = date(2024, 1, 15)
LUNCH_CUTOFF = time(11, 0)
BEFORE_CUTOFF = datetime(2024, 1, 15, 9, 0)


def set_balance(db: DatabaseManager, customer_id: int, balance_paise: int):
    db.execute("UPDATE customers SET current_balance_paise = ? WHERE id = ?", [balance_paise, customer_id])


def balance_of(db: DatabaseManager, customer_id: int) -> int:
    return db.fetch_one("SELECT current_balance_paise FROM customers WHERE id = ?", [customer_id])[
        "current_balance_paise"
    ]


def count_rows(db: DatabaseManager, table: str, where: str = "TRUE", params=None) -> int:
    return db.fetch_one(f"SELECT COUNT(*) AS n FROM {table} WHERE {where}", params or [])["n"]
