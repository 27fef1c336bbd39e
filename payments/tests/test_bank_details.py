# payments/tests/test_bank_details.py
"""Tests for bank detail storage and validation."""

import pytest

from payments.bank_details import (
    BankDetailNotFoundError,
    InvalidBankDetailError,
    add_bank_detail,
    get_bank_detail,
    list_bank_details,
    update_bank_detail,
    validate_bank_detail,
)
from payments.models import mask_account_number
from persistence.db import get_db

VALID = {
    "account_number": "1234 5678 9012",
    "bank_name": "HDFC Bank",
    "account_holder_name": "Asha Rao",
    "ifsc_code": "hdfc0001234",
    "address": "12 MG Road, Bengaluru",
}


class TestValidateBankDetail:
    """Test field validation."""

    def test_normalizes_fields(self):
        cleaned = validate_bank_detail(**VALID)
        assert cleaned["account_number"] == "123456789012"
        assert cleaned["ifsc_code"] == "HDFC0001234"

    def test_strips_whitespace(self):
        cleaned = validate_bank_detail(**{**VALID, "bank_name": "  HDFC Bank  "})
        assert cleaned["bank_name"] == "HDFC Bank"

    @pytest.mark.parametrize("field", list(VALID))
    def test_blank_field(self, field):
        with pytest.raises(InvalidBankDetailError) as exc_info:
            validate_bank_detail(**{**VALID, field: "   "})
        assert str(exc_info.value) == "Please fill in all fields"

    @pytest.mark.parametrize("ifsc", ["HDFC1001234", "HDF00001234", "HDFC000123", "HDFC0001234X"])
    def test_bad_ifsc(self, ifsc):
        with pytest.raises(InvalidBankDetailError) as exc_info:
            validate_bank_detail(**{**VALID, "ifsc_code": ifsc})
        assert str(exc_info.value) == "Please enter a valid IFSC code"

    @pytest.mark.parametrize("number", ["12345678", "1234567890123456789", "12345678A0"])
    def test_bad_account_number(self, number):
        with pytest.raises(InvalidBankDetailError) as exc_info:
            validate_bank_detail(**{**VALID, "account_number": number})
        assert str(exc_info.value) == "Please enter a valid account number"


class TestBankDetailStorage:
    """Test add / update / list."""

    def test_add_and_get(self):
        detail = add_bank_detail("user-1", **VALID)

        assert detail.account_number == "123456789012"
        assert detail.is_verified is False
        assert get_bank_detail("user-1", detail.id) == detail

    def test_other_user_cannot_see(self):
        detail = add_bank_detail("user-1", **VALID)

        with pytest.raises(BankDetailNotFoundError):
            get_bank_detail("user-2", detail.id)
        assert list_bank_details("user-2") == []

    def test_update_resets_verification(self):
        detail = add_bank_detail("user-1", **VALID)
        with get_db() as conn:
            conn.execute("UPDATE bank_details SET is_verified = 1 WHERE id = ?", (detail.id,))

        updated = update_bank_detail("user-1", detail.id, **{**VALID, "bank_name": "ICICI Bank"})

        assert updated.bank_name == "ICICI Bank"
        assert updated.is_verified is False

    def test_update_other_users_detail(self):
        detail = add_bank_detail("user-1", **VALID)

        with pytest.raises(BankDetailNotFoundError):
            update_bank_detail("user-2", detail.id, **VALID)
        assert get_bank_detail("user-1", detail.id).bank_name == "HDFC Bank"

    def test_invalid_add_stores_nothing(self):
        with pytest.raises(InvalidBankDetailError):
            add_bank_detail("user-1", **{**VALID, "ifsc_code": "bad"})
        assert list_bank_details("user-1") == []

    def test_list_newest_first(self):
        first = add_bank_detail("user-1", **VALID)
        second = add_bank_detail("user-1", **{**VALID, "bank_name": "SBI"})

        assert [d.id for d in list_bank_details("user-1")] == [second.id, first.id]


class TestMasking:
    def test_mask_shows_last_four(self):
        assert mask_account_number("123456789012") == "XXXXXXXX9012"

    def test_short_number_unchanged(self):
        assert mask_account_number("1234") == "1234"
