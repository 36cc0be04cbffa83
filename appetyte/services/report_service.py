"""
Report service
Provider reports: outstanding dues of pay-per-meal customers, the daily
delivery sheet, the business summary and the subscription tracker, with CSV
export through pandas.
"""

import json
from collections import OrderedDict
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import pandas as pd

from ..core.database import DatabaseManager, db_manager
from ..models.base import paise_to_rupees
from ..models.meal import MealType

NO_ADDRESS = "No Address Provided"
ENDING_SOON_WINDOW = timedelta(days=7)
MEAL_TYPE_ORDER = [t.value for t in MealType]


def subscription_status(end_date: date, today: date) -> str:
    """expired, ending-soon (within a week, today included) or active"""
    if end_date < today:
        return "expired"
    if end_date <= today + ENDING_SOON_WINDOW:
        return "ending-soon"
    return "active"


class ReportService:
    """Provider-facing reports"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    def customer_dues(self, provider_id: int) -> Dict[str, Any]:
        """Non-subscription customers with a negative balance"""
        rows = self.db.fetch_all(
            """
            SELECT c.id AS customer_id, c.name, c.mobile_number, c.current_balance_paise,
                   (SELECT max(p.created_at) FROM payments p WHERE p.customer_id = c.id) AS last_payment_at
            FROM customers c
            WHERE c.provider_id = ? AND c.has_subscription = FALSE AND c.current_balance_paise < 0
            ORDER BY c.current_balance_paise, c.name
            """,
            [provider_id],
        )
        dues = []
        for r in rows:
            dues.append({
                "customer_id": r["customer_id"],
                "name": r["name"],
                "mobile_number": r["mobile_number"],
                "amount_due_paise": -r["current_balance_paise"],
                "last_payment_at": r["last_payment_at"],
            })
        return {
            "dues": dues,
            "total_due_paise": sum(d["amount_due_paise"] for d in dues),
        }

    def daily_delivery_sheet(self, provider_id: int, meal_date: date,
                             meal_type: Optional[str] = None) -> "OrderedDict[str, List[Dict[str, Any]]]":
        """Live orders grouped by delivery address; addresses and names sorted"""
        query = """
            SELECT o.id AS order_id, o.delivery_address, o.selected_option, o.notes,
                   c.name AS customer_name, c.mobile_number AS contact_number, m.meal_type
            FROM orders o
            JOIN customers c ON c.id = o.customer_id
            JOIN meals m ON m.id = o.meal_id
            WHERE o.provider_id = ? AND m.date = ? AND o.status <> 'canceled'
        """
        params: list = [provider_id, meal_date]
        if meal_type:
            query += " AND m.meal_type = ?"
            params.append(MealType(meal_type).value)

        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for r in self.db.fetch_all(query, params):
            address = r["delivery_address"] or NO_ADDRESS
            grouped.setdefault(address, []).append({**r, "delivery_address": address})

        sheet = OrderedDict()
        for address in sorted(grouped):
            sheet[address] = sorted(grouped[address], key=lambda e: e["customer_name"].lower())
        return sheet

    def business_summary(self, provider_id: int, today: date) -> Dict[str, Any]:
        """
        Revenue and order figures over non-canceled orders.

        "Today" counts orders for meals served on `today`. Active customers
        are those with at least one such order ever.
        """
        rows = self.db.fetch_all(
            """
            SELECT o.customer_id, o.amount_paise, o.selected_option, m.meal_type, m.date AS meal_date
            FROM orders o
            JOIN meals m ON m.id = o.meal_id
            WHERE o.provider_id = ? AND o.status <> 'canceled'
            """,
            [provider_id],
        )
        total_customers = self.db.fetch_one(
            "SELECT COUNT(*) AS n FROM customers WHERE provider_id = ?", [provider_id]
        )["n"]

        df = pd.DataFrame(rows, columns=["customer_id", "amount_paise", "selected_option", "meal_type", "meal_date"])
        todays = df[df["meal_date"] == today]
        total_revenue = int(df["amount_paise"].sum())

        by_meal_type = []
        if not df.empty:
            grouped = df.groupby("meal_type")["amount_paise"].agg(["count", "sum"])
            for meal_type in MEAL_TYPE_ORDER:
                if meal_type in grouped.index:
                    stats = grouped.loc[meal_type]
                    by_meal_type.append({
                        "meal_type": meal_type,
                        "order_count": int(stats["count"]),
                        "revenue_paise": int(stats["sum"]),
                    })

        popular = []
        if not df.empty:
            counts = df.groupby("selected_option").size().reset_index(name="order_count")
            counts = counts.sort_values(["order_count", "selected_option"], ascending=[False, True])
            popular = [
                {"option": r.selected_option, "order_count": int(r.order_count)}
                for r in counts.itertuples(index=False)
            ]

        return {
            "today": {
                "date": today,
                "revenue_paise": int(todays["amount_paise"].sum()),
                "order_count": len(todays),
            },
            "total": {"revenue_paise": total_revenue, "order_count": len(df)},
            "average_order_paise": round(total_revenue / len(df)) if len(df) else 0,
            "customers": {"active": int(df["customer_id"].nunique()), "total": total_customers},
            "by_meal_type": by_meal_type,
            "most_ordered": popular[0] if popular else None,
            "least_ordered": popular[-1] if popular else None,
        }

    def subscription_tracker(self, provider_id: int, today: date) -> List[Dict[str, Any]]:
        """Every subscription with its renewal status, soonest ending first"""
        rows = self.db.fetch_all(
            """
            SELECT s.id AS subscription_id, s.customer_id, c.name AS customer_name, c.email AS customer_email,
                   s.start_date, s.end_date, s.active, s.meal_types_json,
                   (SELECT max(p.created_at) FROM payments p WHERE p.customer_id = s.customer_id) AS last_payment_at
            FROM subscriptions s
            JOIN customers c ON c.id = s.customer_id
            WHERE s.provider_id = ?
            ORDER BY s.end_date, s.id
            """,
            [provider_id],
        )
        tracker = []
        for r in rows:
            meal_types = json.loads(r.pop("meal_types_json") or "[]")
            tracker.append({
                **r,
                "meal_types": [t for t in MEAL_TYPE_ORDER if t in meal_types],
                "status": subscription_status(r["end_date"], today),
            })
        return tracker

    # CSV export

    def customer_dues_csv(self, provider_id: int) -> str:
        dues = self.customer_dues(provider_id)["dues"]
        df = pd.DataFrame(
            [{
                "Customer Name": d["name"],
                "Contact": d["mobile_number"],
                "Amount Due": f"{paise_to_rupees(d['amount_due_paise']):.2f}",
                "Last Payment": d["last_payment_at"].date().isoformat() if d["last_payment_at"] else "Never",
            } for d in dues],
            columns=["Customer Name", "Contact", "Amount Due", "Last Payment"],
        )
        return df.to_csv(index=False)

    def daily_delivery_sheet_csv(self, provider_id: int, meal_date: date,
                                 meal_type: Optional[str] = None) -> str:
        sheet = self.daily_delivery_sheet(provider_id, meal_date, meal_type)
        df = pd.DataFrame(
            [{
                "Delivery Address": address,
                "Customer Name": e["customer_name"],
                "Contact Number": e["contact_number"],
                "Meal Type": e["meal_type"],
                "Meal Items": e["selected_option"],
                "Notes": e["notes"] or "",
            } for address, entries in sheet.items() for e in entries],
            columns=["Delivery Address", "Customer Name", "Contact Number", "Meal Type", "Meal Items", "Notes"],
        )
        return df.to_csv(index=False)

    def subscription_tracker_csv(self, provider_id: int, today: date) -> str:
        tracker = self.subscription_tracker(provider_id, today)
        df = pd.DataFrame(
            [{
                "Customer Name": s["customer_name"],
                "Email": s["customer_email"] or "",
                "Meal Types": ", ".join(s["meal_types"]),
                "Start Date": s["start_date"].isoformat(),
                "End Date": s["end_date"].isoformat(),
                "Status": s["status"],
                "Last Payment": s["last_payment_at"].date().isoformat() if s["last_payment_at"] else "Never",
            } for s in tracker],
            columns=["Customer Name", "Email", "Meal Types", "Start Date", "End Date", "Status", "Last Payment"],
        )
        return df.to_csv(index=False)
