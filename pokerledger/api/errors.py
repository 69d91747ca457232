from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from pokerledger.domain import DomainValidationError, UnbalancedLedgerError


def api_error(
    *,
    code: str,
    message: str,
    details: Any | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "code": code,
            "message": message,
            "details": details,
        },
    )


def domain_error(exc: DomainValidationError) -> HTTPException:
    if isinstance(exc, UnbalancedLedgerError):
        return api_error(
            code="unbalanced_ledger",
            message=str(exc),
            details={
                "total_buy_in": exc.total_buy_in,
                "total_cash_out": exc.total_cash_out,
                "difference": exc.difference,
                "tolerance": exc.tolerance,
            },
            status_code=422,
        )
    return api_error(code="invalid_ledger", message=str(exc))
