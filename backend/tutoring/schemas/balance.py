"""
Balance schemas.
"""

from datetime import datetime
from typing import List, Optional

from .base import Money, StandardizedModel


class BalanceTransactionResponse(StandardizedModel):
    id: str
    amount: Money
    type: str
    description: str
    balance_before: Money
    balance_after: Money
    related_entity_id: Optional[str] = None
    created_at: Optional[datetime] = None


class BalanceResponse(StandardizedModel):
    user_id: str
    balance: Money
    transactions: List[BalanceTransactionResponse]
