"""
Scheduled function endpoints

The external scheduler calls the auto-order batch once a day. The endpoint
answers CORS preflight with fixed permissive headers and never lets a
failure escape: a top-level error becomes a 500 with `{"error": message}`.
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse, Response

from ...config.settings import settings
from ...core.database import DatabaseManager, get_db
from ...services.auto_order_service import AutoOrderService

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _authorized(authorization: Optional[str]) -> bool:
    if not settings.auto_order_secret:
        return True
    expected = f"Bearer {settings.auto_order_secret}"
    return hmac.compare_digest((authorization or "").encode(), expected.encode())


@router.options("/auto-order-subscriptions")
def auto_order_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/auto-order-subscriptions")
def auto_order_subscriptions(authorization: Optional[str] = Header(default=None),
                             db: DatabaseManager = Depends(get_db)):
    if not _authorized(authorization):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"}, headers=CORS_HEADERS)

    try:
        summary = AutoOrderService(db).run()
    except Exception as e:
        logger.exception("Auto-order function error")
        return JSONResponse(status_code=500, content={"error": str(e) or "Unknown error occurred"},
                            headers=CORS_HEADERS)
    return JSONResponse(content=summary.to_response(), headers=CORS_HEADERS)
