# payments/withdrawals.py
"""
Wallet withdrawals to a saved bank account.

The wallet is debited before the gateway is called, so two concurrent
withdrawals can never both spend the same balance. If the payout is
rejected or the gateway call fails, the debit is reversed with a credit
and the withdrawal is marked failed.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from payments.bank_details import get_bank_detail
from payments.gateway import (
    GatewayError,
    PaymentsDisabledError,
    get_gateway,
    is_payments_enabled,
    require_field,
)
from payments.models import (
    ACCEPTED_PAYOUT_STATUSES,
    Withdrawal,
    WithdrawalStatus,
    mask_account_number,
)
from persistence.db import get_db, init_db, transaction, utcnow, to_db_time, from_db_time
from wallet.ledger import InvalidAmountError, update_wallet_balance
from wallet.models import Number, TransactionType, from_paise, to_money, to_paise

_logger = logging.getLogger(__name__)

MIN_WITHDRAWAL_AMOUNT = Decimal("100")


def create_withdrawal(
    user_id: str,
    amount: Number,
    bank_detail_id: str,
    email: Optional[str] = None,
) -> Withdrawal:
    """
    Withdraw from the wallet to a bank account.

    Args:
        user_id: Wallet owner
        amount: Rupees, at least 100
        bank_detail_id: One of the user's saved bank accounts
        email: Contact email passed to the gateway

    Returns:
        The Withdrawal (status failed if the payout was rejected)

    Raises:
        InvalidAmountError: Below minimum
        BankDetailNotFoundError: Bank account not found for this user
        PaymentsDisabledError: Gateway not configured
        InsufficientBalanceError: Amount exceeds balance
        GatewayError: Gateway call failed (debit already reversed)
    """
    init_db()

    try:
        rupees = to_money(amount)
    except ValueError:
        raise InvalidAmountError("Invalid amount")
    if rupees < MIN_WITHDRAWAL_AMOUNT:
        raise InvalidAmountError(f"Minimum withdrawal amount is ₹{MIN_WITHDRAWAL_AMOUNT}")

    bank_detail = get_bank_detail(user_id, bank_detail_id)

    if not is_payments_enabled():
        raise PaymentsDisabledError("Razorpay credentials not configured")

    withdrawal_id = str(uuid.uuid4())
    now = to_db_time(utcnow())

    with transaction() as conn:
        update_wallet_balance(
            user_id,
            rupees,
            TransactionType.DEBIT,
            description="Withdrawal to bank account",
            reference_id=withdrawal_id,
            conn=conn,
        )
        conn.execute(
            """
            INSERT INTO withdrawals
            (id, user_id, amount_paise, bank_detail_id, status, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                withdrawal_id,
                user_id,
                to_paise(rupees),
                bank_detail_id,
                WithdrawalStatus.PENDING.value,
                now,
            ),
        )

    gateway = get_gateway()
    fund_account_id = None
    try:
        fund_account = gateway.create_fund_account(
            name=bank_detail.account_holder_name,
            account_number=bank_detail.account_number,
            ifsc=bank_detail.ifsc_code,
            email=email,
        )
        fund_account_id = require_field(fund_account, "id")
        payout = gateway.create_payout(
            fund_account_id=fund_account_id,
            amount_paise=to_paise(rupees),
            reference_id=f"withdrawal_{withdrawal_id}",
        )
        payout_id = require_field(payout, "id")
    except GatewayError as e:
        _fail_withdrawal(withdrawal_id, user_id, rupees, str(e), fund_account_id)
        raise

    payout_status = payout.get("status", "")
    if payout_status not in ACCEPTED_PAYOUT_STATUSES:
        _fail_withdrawal(
            withdrawal_id,
            user_id,
            rupees,
            f"Payout {payout_status or 'rejected'}",
            fund_account_id,
            payout_id,
        )
        return get_withdrawal(user_id, withdrawal_id)

    processed_at = now if payout_status == WithdrawalStatus.PROCESSED.value else None
    with get_db() as conn:
        conn.execute(
            """
            UPDATE withdrawals
            SET razorpay_fund_account_id = ?, razorpay_payout_id = ?,
                status = ?, processed_at = ?
            WHERE id = ?
            """,
            (fund_account_id, payout_id, payout_status, processed_at, withdrawal_id),
        )

    _logger.info(
        f"Withdrawal of {rupees} for user {user_id}: payout {payout_status}",
        extra={"withdrawal_id": withdrawal_id, "payout_id": payout_id},
    )
    return get_withdrawal(user_id, withdrawal_id)


def _fail_withdrawal(
    withdrawal_id: str,
    user_id: str,
    amount: Decimal,
    reason: str,
    fund_account_id: Optional[str] = None,
    payout_id: Optional[str] = None,
) -> None:
    """Reverse the debit and mark the withdrawal failed."""
    with transaction() as conn:
        update_wallet_balance(
            user_id,
            amount,
            TransactionType.CREDIT,
            description="Withdrawal reversal",
            reference_id=f"reversal_{withdrawal_id}",
            conn=conn,
        )
        conn.execute(
            """
            UPDATE withdrawals
            SET status = ?, failure_reason = ?, processed_at = ?,
                razorpay_fund_account_id = ?, razorpay_payout_id = ?
            WHERE id = ?
            """,
            (
                WithdrawalStatus.FAILED.value,
                reason,
                to_db_time(utcnow()),
                fund_account_id,
                payout_id,
                withdrawal_id,
            ),
        )

    _logger.warning(
        f"Withdrawal {withdrawal_id} failed and was reversed: {reason}",
        extra={"user_id": user_id},
    )


_SELECT_WITH_BANK = """
    SELECT w.*, b.bank_name AS bank_name, b.account_number AS account_number
    FROM withdrawals w
    LEFT JOIN bank_details b ON b.id = w.bank_detail_id
"""


def get_withdrawal(user_id: str, withdrawal_id: str) -> Optional[Withdrawal]:
    init_db()

    with get_db() as conn:
        row = conn.execute(
            _SELECT_WITH_BANK + " WHERE w.id = ? AND w.user_id = ?",
            (withdrawal_id, user_id),
        ).fetchone()

    return _row_to_withdrawal(row) if row else None


def list_withdrawals(user_id: str) -> List[Withdrawal]:
    """A user's withdrawals with bank name and masked account, newest first."""
    init_db()

    with get_db() as conn:
        rows = conn.execute(
            _SELECT_WITH_BANK + " WHERE w.user_id = ? ORDER BY w.created_at DESC",
            (user_id,),
        ).fetchall()

    return [_row_to_withdrawal(row) for row in rows]


def _row_to_withdrawal(row) -> Withdrawal:
    account_number = row["account_number"]
    return Withdrawal(
        id=row["id"],
        user_id=row["user_id"],
        amount=from_paise(row["amount_paise"]),
        bank_detail_id=row["bank_detail_id"],
        status=WithdrawalStatus(row["status"]),
        created_at=from_db_time(row["created_at"]),
        razorpay_fund_account_id=row["razorpay_fund_account_id"],
        razorpay_payout_id=row["razorpay_payout_id"],
        failure_reason=row["failure_reason"],
        processed_at=from_db_time(row["processed_at"]),
        bank_name=row["bank_name"],
        account_number_masked=mask_account_number(account_number) if account_number else None,
    )
