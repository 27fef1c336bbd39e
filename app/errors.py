# app/errors.py
"""
Domain error to HTTP status mapping for routers.

Usage:
    try:
        bet = place_bet(...)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
"""

from __future__ import annotations

import logging

from fastapi import HTTPException

from betting.rules import BettingError
from betting.service import BetNotFoundError, MarketClosedError
from payments.bank_details import BankDetailNotFoundError
from payments.gateway import GatewayError, PaymentError, PaymentsDisabledError
from wallet.ledger import WalletError, WalletNotFoundError

_logger = logging.getLogger(__name__)

DOMAIN_ERRORS = (WalletError, BettingError, PaymentError)

# First match wins, so subclasses come before their bases
_STATUS_BY_ERROR = (
    (BetNotFoundError, 404),
    (BankDetailNotFoundError, 404),
    (WalletNotFoundError, 404),
    (MarketClosedError, 409),
    (PaymentsDisabledError, 503),
    (GatewayError, 502),
)


def status_for(error: Exception) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def to_http_exception(error: Exception) -> HTTPException:
    status = status_for(error)
    if status >= 500:
        _logger.error(f"{type(error).__name__}: {error}")
    return HTTPException(status_code=status, detail=str(error))
