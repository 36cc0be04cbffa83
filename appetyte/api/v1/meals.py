"""
Meal routes
Providers manage the daily menu until each meal's cutoff; customers see
today's meals with the live ordering window.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from ...core.clock import service_now
from ...core.database import DatabaseManager, get_db
from ...core.error_handler import create_success_response
from ...core.security import Principal, get_principal, require_provider
from ...schemas.meal import MealCreateRequest, MealUpdateRequest
from ...services.meal_service import MealService
from ...utils.cutoff import next_meal_cutoff

router = APIRouter()


@router.get("/today")
def list_today_meals(principal: Principal = Depends(get_principal), db: DatabaseManager = Depends(get_db)):
    """Today's meals still visible to customers, with status and time left"""
    now = service_now()
    meals = MealService(db).list_customer_meals(principal.provider_id, now)
    meal_type, cutoff = next_meal_cutoff(now)
    return create_success_response({
        "meals": meals,
        "next_meal": {"meal_type": meal_type, "cut_off_time": cutoff.strftime("%H:%M")},
    })


@router.get("")
def list_meals(start_date: Optional[date] = None, end_date: Optional[date] = None,
               principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    return create_success_response(MealService(db).list_meals(principal.provider_id, start_date, end_date))


@router.post("")
def create_meal(req: MealCreateRequest, principal: Principal = Depends(require_provider),
                db: DatabaseManager = Depends(get_db)):
    meal = MealService(db).create_meal(
        provider_id=principal.provider_id,
        meal_date=req.date,
        meal_type=req.meal_type,
        option_1=req.option_1,
        option_2=req.option_2,
        price_paise=req.price_paise,
        cut_off_time=req.cut_off_time,
    )
    return create_success_response(meal, "Meal created")


@router.get("/{meal_id}")
def get_meal(meal_id: int, principal: Principal = Depends(get_principal), db: DatabaseManager = Depends(get_db)):
    return create_success_response(MealService(db).get_meal(meal_id, principal.provider_id))


@router.put("/{meal_id}")
def update_meal(meal_id: int, req: MealUpdateRequest, principal: Principal = Depends(require_provider),
                db: DatabaseManager = Depends(get_db)):
    meal = MealService(db).update_meal(
        meal_id,
        principal.provider_id,
        option_1=req.option_1,
        option_2=req.option_2,
        price_paise=req.price_paise,
        cut_off_time=req.cut_off_time,
    )
    return create_success_response(meal, "Meal updated")


@router.delete("/{meal_id}")
def delete_meal(meal_id: int, principal: Principal = Depends(require_provider),
                db: DatabaseManager = Depends(get_db)):
    MealService(db).delete_meal(meal_id, principal.provider_id)
    return create_success_response(message="Meal deleted")
