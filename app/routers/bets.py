# app/routers/bets.py
"""
Market and bet endpoints.

Bets are placed against the live quote window and settled later by the
settlement scheduler; placing a bet only takes the stake.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from app.correlation import get_request_id
from app.errors import DOMAIN_ERRORS, to_http_exception
from app.security import CurrentUser, get_current_user
from betting.service import get_bet, list_bets, place_bet
from markets.indices import is_market_open, list_indices
from markets.quotes import get_quote_provider

router = APIRouter(prefix="/api", tags=["bets"])


# =============================================================================
# Request/Response Schemas
# =============================================================================

class PlaceBetRequest(BaseModel):
    index_name: str = Field(..., min_length=1, max_length=64)
    bet_type: str = Field(..., description="andar, bahar or pair")
    bet_number: int
    amount: Decimal


# =============================================================================
# Routes
# =============================================================================

@router.get("/markets")
async def get_markets():
    """List indices with a current quote and open/closed state."""
    provider = get_quote_provider()
    now = datetime.now(timezone.utc)

    markets = []
    for index in list_indices():
        entry = index.to_dict()
        entry["is_open"] = is_market_open(index, now)
        entry["quote"] = provider.get_quote(index.name).to_dict()
        markets.append(entry)

    return {"markets": markets, "count": len(markets)}


@router.post("/bets", status_code=201)
async def create_bet(
    body: PlaceBetRequest,
    raw_request: Request,
    user: CurrentUser = Depends(get_current_user),
):
    """Place a bet; the stake is debited immediately."""
    try:
        bet = place_bet(
            user_id=user.id,
            index_name=body.index_name,
            bet_type=body.bet_type,
            bet_number=body.bet_number,
            amount=body.amount,
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)

    return {
        "request_id": get_request_id(raw_request) or "unknown",
        "bet": bet.to_dict(),
    }


@router.get("/bets")
async def get_bets(limit: int = 50, user: CurrentUser = Depends(get_current_user)):
    """Bet history, newest first."""
    limit = max(1, min(limit, 200))
    bets = list_bets(user.id, limit=limit)
    return {
        "items": [bet.to_dict() for bet in bets],
        "count": len(bets),
    }


@router.get("/bets/{bet_id}")
async def get_bet_detail(bet_id: str, user: CurrentUser = Depends(get_current_user)):
    bet = get_bet(bet_id, user_id=user.id)
    if bet is None:
        raise HTTPException(status_code=404, detail=f"Bet {bet_id} not found")
    return {"bet": bet.to_dict()}
