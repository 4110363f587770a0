"""Unit tests for the fee-ledger solvency check."""

import pytest

from src.mp_common.errors import SolvencyViolationError
from src.mp_settlement.domain.invariants import solvency_violations, verify_fee_solvency


@pytest.mark.parametrize(("ledger", "held"), [(0, 0), (25, 25), (25, 1000)])
def test_covered_ledger_passes(ledger: int, held: int) -> None:
    assert solvency_violations(ledger, held) == []
    verify_fee_solvency(ledger, held)


def test_ledger_above_escrow() -> None:
    violations = solvency_violations(26, 25)
    assert len(violations) == 1
    assert "exceeds" in violations[0]
    with pytest.raises(SolvencyViolationError) as exc_info:
        verify_fee_solvency(26, 25)
    assert exc_info.value.code == 5005


def test_negative_ledger() -> None:
    assert any("negative" in v for v in solvency_violations(-1, 0))
