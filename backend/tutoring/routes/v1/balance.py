# backend/tutoring/routes/v1/balance.py
"""
Balance routes - API v1

Endpoints:
    GET /balance → Caller's balance and ledger entries
"""

import asyncio
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from ...api.dependencies import get_balance_ledger_service, get_current_user_id
from ...core.exceptions import DomainException
from ...schemas.balance import BalanceResponse, BalanceTransactionResponse
from ...services.balance_ledger_service import BalanceLedgerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["balance-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    user_id: str = Depends(get_current_user_id),
    ledger: BalanceLedgerService = Depends(get_balance_ledger_service),
) -> BalanceResponse:
    try:
        balance = await asyncio.to_thread(ledger.get_balance, user_id)
        transactions = await asyncio.to_thread(ledger.get_transactions, user_id)
        return BalanceResponse(
            user_id=user_id,
            balance=balance,
            transactions=[BalanceTransactionResponse.model_validate(row) for row in transactions],
        )
    except DomainException as e:
        handle_domain_exception(e)
