# app/routers/internal.py
"""
Internal settlement endpoints for cron triggers.

Protected by SERVICE_KEY; disabled when it is unset.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.errors import DOMAIN_ERRORS, to_http_exception
from app.security import require_service_key
from betting.scheduler import run_settlement_pass
from betting.service import settle_bet

router = APIRouter(
    prefix="/internal",
    tags=["internal"],
    dependencies=[Depends(require_service_key)],
)


@router.post("/settlement/run")
async def run_settlement(limit: int = 100):
    """Settle every due bet once (what the scheduler does each interval)."""
    report = run_settlement_pass(limit=max(1, min(limit, 1000)))
    return report.to_dict()


@router.post("/bets/{bet_id}/settle")
async def settle_one(bet_id: str):
    """Settle a single bet if it is due."""
    try:
        result = settle_bet(bet_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return {"success": True, "result": result.to_dict()}
