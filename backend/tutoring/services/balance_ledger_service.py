# backend/tutoring/services/balance_ledger_service.py
"""
Balance Ledger Service

Records signed balance adjustments (fees, refunds, payout reductions) with
an audit description. Adjustments join the caller's transaction; the caller
commits.
"""

from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import TransactionType
from ..models.balance import BalanceTransaction
from ..repositories.balance_repository import BalanceRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class BalanceLedgerService(BaseService):
    def __init__(self, db: Session, repository: Optional[BalanceRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_balance_repository(db)

    def get_balance(self, user_id: str) -> Decimal:
        return self.repository.get_balance(user_id)

    def get_transactions(self, user_id: str) -> List[BalanceTransaction]:
        return self.repository.get_transactions(user_id)

    @BaseService.measure_operation("apply_adjustment")
    def apply_adjustment(
        self,
        user_id: str,
        amount: Decimal,
        transaction_type: TransactionType,
        description: str,
        related_entity_id: Optional[str] = None,
    ) -> Optional[BalanceTransaction]:
        """
        Append a signed adjustment to the user's ledger.

        Positive amounts credit the user, negative amounts debit them.
        Zero amounts are skipped and return None.
        """
        amount = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        if amount == 0:
            return None

        balance_before = self.repository.get_balance(user_id)
        entry = self.repository.create(
            user_id=user_id,
            amount=amount,
            type=transaction_type.value,
            description=description,
            balance_before=balance_before,
            balance_after=balance_before + amount,
            related_entity_id=related_entity_id,
        )
        self.logger.info(
            f"Ledger {transaction_type.value} for {user_id}: {amount} "
            f"({balance_before} -> {balance_before + amount})"
        )
        return entry
