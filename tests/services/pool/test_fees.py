"""
Tests for fee policy validation.
"""

import pytest

from services.pool.errors import ArithmeticOverflow, FeeTooLow
from services.pool.models.transactions import I64_MAX, I64_MIN, U64_MAX
from services.pool.services.fees import minimum_fee, validate_fee


class TestMinimumFee:
    """Tests for the policy minimum."""

    def test_margin_applied_to_expected_fee(self) -> None:
        """1% of 10000 is 100; a 5% margin lowers the minimum to 95."""
        assert minimum_fee(10_000, 100, 500) == 95

    def test_dust_rounds_to_zero(self) -> None:
        """Floor division lets dust amounts through fee-free."""
        assert minimum_fee(99, 100, 500) == 0
        assert minimum_fee(1, 25, 0) == 0

    def test_zero_rate(self) -> None:
        """A zero rate never requires a fee."""
        assert minimum_fee(10**12, 0, 500) == 0

    def test_margin_above_basis_points_overflows(self) -> None:
        """A margin over 100% underflows the multiplier."""
        with pytest.raises(ArithmeticOverflow):
            minimum_fee(10_000, 100, 10_001)

    def test_margin_above_basis_points_with_zero_expected(self) -> None:
        """With nothing expected the margin is never applied."""
        assert minimum_fee(10, 100, 10_001) == 0


class TestValidateFee:
    """Tests for direction-aware fee checks."""

    def test_deposit_at_minimum_accepted(self) -> None:
        """95 meets the minimum for a 10000 deposit at 1%."""
        validate_fee(10_000, 95, 100, 0, 500)

    def test_deposit_below_minimum_rejected(self) -> None:
        """94 is one short."""
        with pytest.raises(FeeTooLow):
            validate_fee(10_000, 94, 100, 0, 500)

    def test_overpayment_accepted(self) -> None:
        """The margin is one-sided."""
        validate_fee(10_000, 10_000, 100, 0, 500)

    def test_withdrawal_uses_withdrawal_rate(self) -> None:
        """Negative amounts are charged the withdrawal rate."""
        validate_fee(-10_000, 95, 0, 100, 500)
        with pytest.raises(FeeTooLow):
            validate_fee(-10_000, 94, 0, 100, 500)
        validate_fee(10_000, 0, 0, 100, 500)

    def test_zero_amount_always_accepted(self) -> None:
        """Pure shielded transfers carry no policy fee."""
        validate_fee(0, 0, 10_000, 10_000, 0)

    def test_out_of_range_inputs_overflow(self) -> None:
        """Amounts and fees outside the host integer widths are rejected."""
        with pytest.raises(ArithmeticOverflow):
            validate_fee(I64_MAX + 1, 0, 0, 0, 0)
        with pytest.raises(ArithmeticOverflow):
            validate_fee(1, U64_MAX + 1, 0, 0, 0)
        with pytest.raises(ArithmeticOverflow):
            validate_fee(1, 0, 2**16, 0, 0)

    def test_i64_min_withdrawal_overflows(self) -> None:
        """The minimum i64 cannot be negated."""
        with pytest.raises(ArithmeticOverflow):
            validate_fee(I64_MIN, 0, 0, 100, 500)

    def test_largest_amount_at_full_rate(self) -> None:
        """i64 max at 100% stays within u64."""
        validate_fee(I64_MAX, I64_MAX, 10_000, 0, 0)
