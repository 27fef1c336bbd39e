# payments/bank_details.py
"""
Bank details (payout destinations).

Every query is scoped to the owning user; another user's row behaves
exactly like a missing one.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import List

from payments.gateway import PaymentError
from payments.models import BankDetail
from persistence.db import get_db, init_db, utcnow, to_db_time, from_db_time

_logger = logging.getLogger(__name__)

# 4 letters, a zero, then 6 alphanumerics (e.g. HDFC0001234)
IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
ACCOUNT_NUMBER_PATTERN = re.compile(r"^\d{9,18}$")

FIELDS = ("account_number", "bank_name", "account_holder_name", "ifsc_code", "address")


class InvalidBankDetailError(PaymentError):
    """Bank detail failed validation."""
    pass


class BankDetailNotFoundError(PaymentError):
    """No bank detail with this ID for the user."""
    pass


def validate_bank_detail(
    account_number: str,
    bank_name: str,
    account_holder_name: str,
    ifsc_code: str,
    address: str,
) -> dict:
    """
    Normalize and validate bank detail fields.

    Returns:
        Dict of cleaned values

    Raises:
        InvalidBankDetailError: With a user-facing message
    """
    values = {
        "account_number": account_number,
        "bank_name": bank_name,
        "account_holder_name": account_holder_name,
        "ifsc_code": ifsc_code,
        "address": address,
    }
    cleaned = {name: (value or "").strip() for name, value in values.items()}

    if not all(cleaned.values()):
        raise InvalidBankDetailError("Please fill in all fields")

    cleaned["ifsc_code"] = cleaned["ifsc_code"].upper()
    if not IFSC_PATTERN.match(cleaned["ifsc_code"]):
        raise InvalidBankDetailError("Please enter a valid IFSC code")

    cleaned["account_number"] = cleaned["account_number"].replace(" ", "")
    if not ACCOUNT_NUMBER_PATTERN.match(cleaned["account_number"]):
        raise InvalidBankDetailError("Please enter a valid account number")

    return cleaned


def add_bank_detail(
    user_id: str,
    account_number: str,
    bank_name: str,
    account_holder_name: str,
    ifsc_code: str,
    address: str,
) -> BankDetail:
    """Save a new bank account for a user."""
    init_db()
    cleaned = validate_bank_detail(
        account_number, bank_name, account_holder_name, ifsc_code, address
    )
    detail_id = str(uuid.uuid4())
    now = to_db_time(utcnow())

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO bank_details
            (id, user_id, account_number, bank_name, account_holder_name,
             ifsc_code, address, is_verified, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
            """,
            (detail_id, user_id, *(cleaned[f] for f in FIELDS), now, now),
        )

    _logger.info(f"Added bank details for user {user_id}", extra={"bank_detail_id": detail_id})
    return get_bank_detail(user_id, detail_id)


def update_bank_detail(
    user_id: str,
    detail_id: str,
    account_number: str,
    bank_name: str,
    account_holder_name: str,
    ifsc_code: str,
    address: str,
) -> BankDetail:
    """
    Replace a bank account's fields.

    Edited accounts go back to unverified.

    Raises:
        BankDetailNotFoundError: Not found for this user
        InvalidBankDetailError: Validation failed
    """
    init_db()
    cleaned = validate_bank_detail(
        account_number, bank_name, account_holder_name, ifsc_code, address
    )

    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE bank_details
            SET account_number = ?, bank_name = ?, account_holder_name = ?,
                ifsc_code = ?, address = ?, is_verified = 0, updated_at = ?
            WHERE id = ? AND user_id = ?
            """,
            (*(cleaned[f] for f in FIELDS), to_db_time(utcnow()), detail_id, user_id),
        )
        if cursor.rowcount == 0:
            raise BankDetailNotFoundError("Bank details not found")

    return get_bank_detail(user_id, detail_id)


def get_bank_detail(user_id: str, detail_id: str) -> BankDetail:
    """
    Raises:
        BankDetailNotFoundError: Not found for this user
    """
    init_db()

    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM bank_details WHERE id = ? AND user_id = ?",
            (detail_id, user_id),
        ).fetchone()

    if not row:
        raise BankDetailNotFoundError("Bank details not found")

    return _row_to_bank_detail(row)


def list_bank_details(user_id: str) -> List[BankDetail]:
    """A user's bank accounts, newest first."""
    init_db()

    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM bank_details
            WHERE user_id = ?
            ORDER BY created_at DESC
            """,
            (user_id,),
        ).fetchall()

    return [_row_to_bank_detail(row) for row in rows]


def _row_to_bank_detail(row) -> BankDetail:
    return BankDetail(
        id=row["id"],
        user_id=row["user_id"],
        account_number=row["account_number"],
        bank_name=row["bank_name"],
        account_holder_name=row["account_holder_name"],
        ifsc_code=row["ifsc_code"],
        address=row["address"],
        is_verified=bool(row["is_verified"]),
        created_at=from_db_time(row["created_at"]),
        updated_at=from_db_time(row["updated_at"]),
    )
