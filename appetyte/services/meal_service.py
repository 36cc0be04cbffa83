"""
Meal service
Providers manage a daily menu; a meal stays editable only until its cutoff,
after which it is an immutable historical record.
"""

from datetime import date, datetime
from typing import List, Optional

from ..core.clock import service_now
from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import BusinessRuleError, MealLockedError, MealNotFoundError, ValidationError
from ..models.meal import CustomerMealView, Meal, MealType
from ..utils.cutoff import can_order, is_meal_editable, is_visible_to_customer, meal_time_status, parse_cutoff


class MealService:
    """Daily menu management"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    def create_meal(self, provider_id: int, meal_date: date, meal_type: str, option_1: str,
                    price_paise: int, cut_off_time, option_2: Optional[str] = None,
                    now: Optional[datetime] = None) -> Meal:
        """Publish a meal; rejected once its cutoff has passed"""
        meal_type = MealType(meal_type).value
        option_1, option_2 = self._clean_options(option_1, option_2)
        self._validate_price(price_paise)
        cutoff = parse_cutoff(cut_off_time)

        now = now or service_now()
        if not is_meal_editable(meal_date, cutoff, now):
            raise MealLockedError("The cutoff time for this meal has already passed")

        with self.db.transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM meals WHERE provider_id = ? AND date = ? AND meal_type = ?",
                [provider_id, meal_date, meal_type],
            ).fetchone()
            if exists:
                raise BusinessRuleError(f"A {meal_type} meal already exists for {meal_date.isoformat()}")
            row = conn.execute(
                """
                INSERT INTO meals (provider_id, date, meal_type, option_1, option_2, price_paise, cut_off_time)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                RETURNING id
                """,
                [provider_id, meal_date, meal_type, option_1, option_2, price_paise, cutoff],
            ).fetchone()
        return self.get_meal(row[0])

    def update_meal(self, meal_id: int, provider_id: int, option_1: Optional[str] = None,
                    option_2: Optional[str] = None, price_paise: Optional[int] = None,
                    cut_off_time=None, now: Optional[datetime] = None) -> Meal:
        meal = self.get_meal(meal_id, provider_id)
        now = now or service_now()
        self._ensure_editable(meal, now)

        new_option_1, new_option_2 = self._clean_options(
            option_1 if option_1 is not None else meal.option_1,
            option_2 if option_2 is not None else meal.option_2,
        )
        new_price = price_paise if price_paise is not None else meal.price_paise
        self._validate_price(new_price)
        new_cutoff = parse_cutoff(cut_off_time) if cut_off_time is not None else meal.cut_off_time
        if not is_meal_editable(meal.date, new_cutoff, now):
            raise ValidationError("The new cutoff time has already passed")

        self.db.execute(
            "UPDATE meals SET option_1 = ?, option_2 = ?, price_paise = ?, cut_off_time = ? WHERE id = ?",
            [new_option_1, new_option_2, new_price, new_cutoff, meal_id],
        )
        return self.get_meal(meal_id)

    def delete_meal(self, meal_id: int, provider_id: int, now: Optional[datetime] = None):
        meal = self.get_meal(meal_id, provider_id)
        self._ensure_editable(meal, now or service_now())

        with self.db.transaction() as conn:
            live = conn.execute(
                "SELECT COUNT(*) FROM orders WHERE meal_id = ? AND status <> 'canceled'",
                [meal_id],
            ).fetchone()[0]
            if live:
                raise BusinessRuleError("This meal already has orders and cannot be deleted")
            conn.execute("DELETE FROM meals WHERE id = ?", [meal_id])

    def get_meal(self, meal_id: int, provider_id: Optional[int] = None) -> Meal:
        row = self.db.fetch_one("SELECT * FROM meals WHERE id = ?", [meal_id])
        if not row or (provider_id is not None and row["provider_id"] != provider_id):
            raise MealNotFoundError()
        return Meal(**row)

    def list_meals(self, provider_id: int, start_date: Optional[date] = None,
                   end_date: Optional[date] = None) -> List[Meal]:
        """Provider's meals, optionally limited to a date range (inclusive)"""
        where_conditions = ["provider_id = ?"]
        params: list = [provider_id]
        if start_date:
            where_conditions.append("date >= ?")
            params.append(start_date)
        if end_date:
            where_conditions.append("date <= ?")
            params.append(end_date)

        rows = self.db.fetch_all(
            f"""
            SELECT * FROM meals
            WHERE {' AND '.join(where_conditions)}
            ORDER BY date, CASE meal_type WHEN 'breakfast' THEN 1 WHEN 'lunch' THEN 2 ELSE 3 END
            """,
            params,
        )
        return [Meal(**r) for r in rows]

    def list_customer_meals(self, provider_id: int, now: Optional[datetime] = None) -> List[CustomerMealView]:
        """Today's meals still visible to customers (cutoff + grace), with ordering status"""
        now = now or service_now()
        views = []
        for meal in self.list_meals(provider_id, now.date(), now.date()):
            if not is_visible_to_customer(meal.date, meal.cut_off_time, now):
                continue
            status = meal_time_status(meal.date, meal.cut_off_time, now)
            views.append(CustomerMealView(
                meal=meal,
                orderable=can_order(meal.date, meal.cut_off_time, now),
                status=status.status,
                time_left=status.time_left,
                urgency=status.urgency,
            ))
        return views

    def _ensure_editable(self, meal: Meal, now: datetime):
        if not is_meal_editable(meal.date, meal.cut_off_time, now):
            raise MealLockedError()

    @staticmethod
    def _clean_options(option_1: Optional[str], option_2: Optional[str]):
        option_1 = (option_1 or "").strip()
        option_2 = (option_2 or "").strip() or None
        if not option_1:
            raise ValidationError("At least one meal option is required")
        if option_2 == option_1:
            raise ValidationError("Meal options must be different")
        return option_1, option_2

    @staticmethod
    def _validate_price(price_paise: int):
        if price_paise is None or price_paise <= 0:
            raise ValidationError("Price must be greater than zero")
