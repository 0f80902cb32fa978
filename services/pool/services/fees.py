"""
Fee Policy
==========

Validate a provided fee against the basis-point rate for the transaction
direction, with a one-sided tolerance margin. Overpayment is always fine.

    expected = floor(|ext_amount| * rate / 10000)
    minimum  = floor(expected * (10000 - margin) / 10000)   (0 if expected == 0)

Arithmetic is checked against the u128 intermediate and u64 result widths
of the host; any overflow is an ArithmeticOverflow, never a wrap.

Version: 0.1.0
"""

from services.pool.errors import ArithmeticOverflow, FeeTooLow
from services.pool.models.state import BASIS_POINTS
from services.pool.models.transactions import I64_MAX, I64_MIN, U64_MAX
from shared.logging import get_logger


logger = get_logger(__name__)

U16_MAX = 2**16 - 1
U128_MAX = 2**128 - 1


def _checked(value: int, limit: int) -> int:
    if value < 0 or value > limit:
        raise ArithmeticOverflow(f"Intermediate {value} outside 0..{limit}")
    return value


def minimum_fee(amount: int, rate: int, error_margin: int) -> int:
    """
    Smallest acceptable fee for moving `amount` at `rate` basis points.

    Raises:
        ArithmeticOverflow: On any out-of-range intermediate, including an
            error margin above 10000.
    """
    expected = _checked(_checked(amount * rate, U128_MAX) // BASIS_POINTS, U64_MAX)
    if expected == 0:
        return 0

    multiplier = _checked(BASIS_POINTS - error_margin, U128_MAX)
    return _checked(_checked(expected * multiplier, U128_MAX) // BASIS_POINTS, U64_MAX)


def validate_fee(
    ext_amount: int,
    provided_fee: int,
    deposit_fee_rate: int,
    withdrawal_fee_rate: int,
    fee_error_margin: int,
) -> None:
    """
    Check a fee against the direction-specific policy minimum.

    Args:
        ext_amount: Signed external amount (positive deposits, negative withdrawals)
        provided_fee: Fee declared by the client
        deposit_fee_rate: Deposit rate in basis points
        withdrawal_fee_rate: Withdrawal rate in basis points
        fee_error_margin: Tolerance in basis points

    Raises:
        FeeTooLow: If the fee is under the minimum.
        ArithmeticOverflow: If an input is out of range or arithmetic overflows.
    """
    if not I64_MIN <= ext_amount <= I64_MAX or not 0 <= provided_fee <= U64_MAX:
        raise ArithmeticOverflow("Amount or fee outside i64/u64 range")
    if not all(0 <= r <= U16_MAX for r in (deposit_fee_rate, withdrawal_fee_rate, fee_error_margin)):
        raise ArithmeticOverflow("Fee rates must fit in u16")

    if ext_amount == 0:
        return

    if ext_amount > 0:
        amount, rate = ext_amount, deposit_fee_rate
    else:
        amount, rate = -ext_amount, withdrawal_fee_rate
        if amount > I64_MAX:
            raise ArithmeticOverflow("Withdrawal amount cannot be negated")

    minimum = minimum_fee(amount, rate, fee_error_margin)
    if provided_fee < minimum:
        logger.info(
            "fee_below_minimum",
            ext_amount=ext_amount,
            provided_fee=provided_fee,
            minimum_fee=minimum,
        )
        raise FeeTooLow(f"Fee {provided_fee} below minimum {minimum}")
