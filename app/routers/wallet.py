# app/routers/wallet.py
"""
Wallet endpoints: balance and recent ledger entries.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.security import CurrentUser, get_current_user
from wallet.ledger import get_wallet, list_transactions

router = APIRouter(prefix="/api/wallet", tags=["wallet"])


@router.get("")
async def get_balance(user: CurrentUser = Depends(get_current_user)):
    wallet = get_wallet(user.id)
    if wallet is None:
        raise HTTPException(status_code=404, detail="Wallet not found for user")
    return {"wallet": wallet.to_dict()}


@router.get("/transactions")
async def get_transactions(limit: int = 10, user: CurrentUser = Depends(get_current_user)):
    """Recent transactions, newest first (default 10)."""
    limit = max(1, min(limit, 100))
    transactions = list_transactions(user.id, limit=limit)
    return {
        "items": [tx.to_dict() for tx in transactions],
        "count": len(transactions),
    }
