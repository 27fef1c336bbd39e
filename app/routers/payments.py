# app/routers/payments.py
"""
Payment endpoints: top-ups, bank details and withdrawals.
"""
from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.errors import DOMAIN_ERRORS, to_http_exception
from app.security import CurrentUser, get_current_user
from payments.bank_details import add_bank_detail, list_bank_details, update_bank_detail
from payments.topup import create_topup_order, verify_topup
from payments.withdrawals import create_withdrawal, list_withdrawals

router = APIRouter(prefix="/api", tags=["payments"])


# =============================================================================
# Request Schemas
# =============================================================================

class TopUpOrderRequest(BaseModel):
    amount: Decimal


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str = ""
    razorpay_payment_id: str = ""
    razorpay_signature: str = ""


class BankDetailRequest(BaseModel):
    account_number: str = ""
    bank_name: str = ""
    account_holder_name: str = ""
    ifsc_code: str = ""
    address: str = ""


class WithdrawalRequest(BaseModel):
    amount: Decimal
    bank_detail_id: str


# =============================================================================
# Top-up
# =============================================================================

@router.post("/payments/orders")
def create_order(body: TopUpOrderRequest, user: CurrentUser = Depends(get_current_user)):
    """Create a checkout order for a wallet top-up."""
    try:
        return create_topup_order(user.id, body.amount)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)


@router.post("/payments/verify")
def verify_payment(body: VerifyPaymentRequest, user: CurrentUser = Depends(get_current_user)):
    """Verify a completed checkout and credit the wallet."""
    try:
        return verify_topup(
            user.id,
            order_id=body.razorpay_order_id,
            payment_id=body.razorpay_payment_id,
            signature=body.razorpay_signature,
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)


# =============================================================================
# Bank details
# =============================================================================

@router.get("/bank-details")
async def get_bank_details(user: CurrentUser = Depends(get_current_user)):
    details = list_bank_details(user.id)
    return {"items": [d.to_dict() for d in details], "count": len(details)}


@router.post("/bank-details", status_code=201)
async def create_bank_detail(body: BankDetailRequest, user: CurrentUser = Depends(get_current_user)):
    try:
        detail = add_bank_detail(user.id, **body.model_dump())
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return {"bank_detail": detail.to_dict()}


@router.put("/bank-details/{detail_id}")
async def edit_bank_detail(
    detail_id: str,
    body: BankDetailRequest,
    user: CurrentUser = Depends(get_current_user),
):
    try:
        detail = update_bank_detail(user.id, detail_id, **body.model_dump())
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return {"bank_detail": detail.to_dict()}


# =============================================================================
# Withdrawals
# =============================================================================

@router.get("/withdrawals")
async def get_withdrawals(user: CurrentUser = Depends(get_current_user)):
    withdrawals = list_withdrawals(user.id)
    return {"items": [w.to_dict() for w in withdrawals], "count": len(withdrawals)}


@router.post("/withdrawals")
def request_withdrawal(body: WithdrawalRequest, user: CurrentUser = Depends(get_current_user)):
    try:
        withdrawal = create_withdrawal(
            user.id,
            amount=body.amount,
            bank_detail_id=body.bank_detail_id,
            email=user.email,
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)

    return {
        "success": withdrawal.status.value != "failed",
        "withdrawal_id": withdrawal.id,
        "payout_status": withdrawal.status.value,
        "amount": str(withdrawal.amount),
        "withdrawal": withdrawal.to_dict(),
    }
