# backend/tutoring/models/balance.py
"""
Balance ledger entries.

Every fee, refund and payout reduction is recorded as a signed adjustment
with the balance before and after it, so a user's balance is always the
sum of their ledger amounts.
"""

from sqlalchemy import Column, Numeric, String, Text
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class BalanceTransaction(Base):
    __tablename__ = "balance_transactions"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    user_id = Column(String(64), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    type = Column(String(32), nullable=False)
    description = Column(Text, nullable=False)
    balance_before = Column(Numeric(12, 2), nullable=False)
    balance_after = Column(Numeric(12, 2), nullable=False)
    related_entity_id = Column(String(26), nullable=True, index=True)

    created_at = Column(UTCDateTime(), server_default=func.now())

    def __repr__(self) -> str:
        return f"<BalanceTransaction {self.user_id} {self.type} {self.amount}>"
