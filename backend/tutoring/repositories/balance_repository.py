# backend/tutoring/repositories/balance_repository.py
"""
Balance Repository

Ledger persistence. The current balance of a user is the sum of their
signed ledger amounts (zero when they have none).
"""

from decimal import Decimal
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.balance import BalanceTransaction
from .base_repository import BaseRepository


class BalanceRepository(BaseRepository[BalanceTransaction]):
    def __init__(self, db: Session):
        super().__init__(db, BalanceTransaction)

    def get_transactions(self, user_id: str) -> List[BalanceTransaction]:
        """All ledger entries of a user, oldest first."""
        try:
            return (
                self.db.query(BalanceTransaction)
                .filter(BalanceTransaction.user_id == user_id)
                .order_by(BalanceTransaction.created_at, BalanceTransaction.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading ledger for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to load balance transactions: {str(e)}")

    def get_balance(self, user_id: str) -> Decimal:
        try:
            total = (
                self.db.query(func.coalesce(func.sum(BalanceTransaction.amount), 0))
                .filter(BalanceTransaction.user_id == user_id)
                .scalar()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error computing balance for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to compute balance: {str(e)}")
        return Decimal(str(total)).quantize(Decimal("0.01"))
