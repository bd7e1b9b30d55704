from __future__ import annotations

from decimal import Decimal

from tutoring.core.enums import TransactionType
from tutoring.services.balance_ledger_service import BalanceLedgerService

from helpers import STUDENT_ID, TUTOR_ID


def test_adjustments_track_running_balance(db) -> None:
    ledger = BalanceLedgerService(db)

    first = ledger.apply_adjustment(STUDENT_ID, Decimal("200"), TransactionType.REFUND, "Zwrot")
    second = ledger.apply_adjustment(
        STUDENT_ID, Decimal("-50.005"), TransactionType.CANCELLATION_FEE, "Opłata", related_entity_id="l-1"
    )
    db.commit()

    assert first.balance_before == Decimal("0.00")
    assert first.balance_after == Decimal("200.00")
    assert second.amount == Decimal("-50.01")
    assert second.balance_after == Decimal("149.99")
    assert ledger.get_balance(STUDENT_ID) == Decimal("149.99")
    assert ledger.get_balance(TUTOR_ID) == Decimal("0.00")


def test_zero_adjustment_is_skipped(db) -> None:
    ledger = BalanceLedgerService(db)

    assert ledger.apply_adjustment(TUTOR_ID, Decimal("0"), TransactionType.PAYOUT_REDUCTION, "-") is None
    assert ledger.get_transactions(TUTOR_ID) == []
