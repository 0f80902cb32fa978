"""
Public Amount Reconciliation
============================

Check that a proof's public amount for one asset leg equals the net value
change implied by the external amount and fee. Public amounts live in Fr,
where a negative value v is encoded as r - |v|.

Version: 0.1.0
"""

from services.pool.errors import InvalidPublicAmount
from services.pool.models.transactions import I64_MIN
from shared.zk.field import FR_MODULUS, ZERO_BYTES32, fr_from_be_bytes


def expected_public_amount(ext_amount: int, fee: int) -> int | None:
    """
    Field encoding of the net amount for a leg, or None when the leg is
    invalid (i64 minimum, or a non-negative amount not exceeding the fee).
    """
    if ext_amount == I64_MIN:
        return None

    fee_fr = fee % FR_MODULUS
    amount_fr = abs(ext_amount) % FR_MODULUS

    if ext_amount >= 0:
        if amount_fr <= fee_fr:
            return None
        return amount_fr - fee_fr
    return (-(amount_fr + fee_fr)) % FR_MODULUS


def check_public_amount(ext_amount: int, fee: int, claimed: bytes) -> bool:
    expected = expected_public_amount(ext_amount, fee)
    return expected is not None and expected == fr_from_be_bytes(claimed)


def require_public_amount(ext_amount: int, fee: int, claimed: bytes) -> None:
    """
    Raises:
        InvalidPublicAmount: If the leg does not reconcile.
    """
    if not check_public_amount(ext_amount, fee, claimed):
        raise InvalidPublicAmount(
            f"Public amount does not reconcile with ext_amount={ext_amount}, fee={fee}"
        )


def require_zero_leg(claimed: bytes) -> None:
    """
    Raises:
        InvalidPublicAmount: Unless the unused leg is exactly 32 zero bytes.
    """
    if claimed != ZERO_BYTES32:
        raise InvalidPublicAmount("Unused asset leg must carry a zero public amount")
