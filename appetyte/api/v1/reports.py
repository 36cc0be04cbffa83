"""
Report routes (provider only), as JSON or CSV downloads
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ...core.clock import service_today
from ...core.database import DatabaseManager, get_db
from ...core.error_handler import create_success_response
from ...core.security import Principal, require_provider
from ...models.meal import MealType
from ...services.report_service import ReportService

router = APIRouter()


def _csv(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/dues")
def customer_dues(principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    return create_success_response(ReportService(db).customer_dues(principal.provider_id))


@router.get("/dues.csv")
def customer_dues_csv(principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    return _csv(ReportService(db).customer_dues_csv(principal.provider_id), "customer-dues.csv")


@router.get("/delivery-sheet")
def delivery_sheet(meal_date: date = Query(..., alias="date"), meal_type: Optional[MealType] = None,
                   principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    sheet = ReportService(db).daily_delivery_sheet(
        principal.provider_id, meal_date, meal_type.value if meal_type else None
    )
    return create_success_response([
        {"delivery_address": address, "orders": entries} for address, entries in sheet.items()
    ])


@router.get("/delivery-sheet.csv")
def delivery_sheet_csv(meal_date: date = Query(..., alias="date"), meal_type: Optional[MealType] = None,
                       principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    content = ReportService(db).daily_delivery_sheet_csv(
        principal.provider_id, meal_date, meal_type.value if meal_type else None
    )
    return _csv(content, f"delivery-sheet-{meal_date.isoformat()}.csv")


@router.get("/summary")
def business_summary(principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    return create_success_response(ReportService(db).business_summary(principal.provider_id, service_today()))


@router.get("/subscriptions")
def subscription_tracker(principal: Principal = Depends(require_provider), db: DatabaseManager = Depends(get_db)):
    return create_success_response(ReportService(db).subscription_tracker(principal.provider_id, service_today()))


@router.get("/subscriptions.csv")
def subscription_tracker_csv(principal: Principal = Depends(require_provider),
                             db: DatabaseManager = Depends(get_db)):
    today = service_today()
    content = ReportService(db).subscription_tracker_csv(principal.provider_id, today)
    return _csv(content, f"subscription-tracker-{today.isoformat()}.csv")
