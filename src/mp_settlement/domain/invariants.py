"""Fee-ledger solvency invariant.

The ledger may never exceed what escrow actually holds. Checked before every
withdrawal and after every purchase, independent of prior accounting.
"""

import logging

from src.mp_common.errors import SolvencyViolationError

logger = logging.getLogger(__name__)


def solvency_violations(fee_ledger: int, held_balance: int) -> list[str]:
    violations: list[str] = []
    if fee_ledger < 0:
        violations.append(f"fee ledger negative: {fee_ledger}")
    if fee_ledger > held_balance:
        violations.append(
            f"fee ledger {fee_ledger} exceeds escrow balance {held_balance}"
        )
    return violations


def verify_fee_solvency(fee_ledger: int, held_balance: int) -> None:
    """Raise SolvencyViolationError if the ledger is not covered by escrow."""
    violations = solvency_violations(fee_ledger, held_balance)
    if violations:
        for msg in violations:
            logger.error("Solvency violated: %s", msg)
        raise SolvencyViolationError(fee_ledger, held_balance)
    logger.debug("Solvency OK: ledger=%d, escrow=%d", fee_ledger, held_balance)
