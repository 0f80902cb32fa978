"""
Pool Errors
===========

Every rejection the pool can produce. Each error is a hard reject: nothing
is retried internally and nothing is partially applied by the core.

Version: 0.1.0
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable machine-readable rejection codes."""

    STALE_OR_UNKNOWN_ROOT = "stale_or_unknown_root"
    BINDING_MISMATCH = "binding_mismatch"
    INVALID_PUBLIC_AMOUNT = "invalid_public_amount"
    INVALID_PROOF = "invalid_proof"
    FEE_TOO_LOW = "fee_too_low"
    INVALID_DIRECTION = "invalid_direction"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    DOUBLE_SPEND = "double_spend"
    INSUFFICIENT_CUSTODY = "insufficient_custody"
    SLIPPAGE_VIOLATION = "slippage_violation"
    ARITHMETIC_OVERFLOW = "arithmetic_overflow"
    EXTERNAL_ADAPTER_FAILURE = "external_adapter_failure"
    UNAUTHORIZED = "unauthorized"
    INVALID_FEE_RATE = "invalid_fee_rate"
    NOT_INITIALIZED = "not_initialized"


class PoolError(Exception):
    """Base class for pool rejections."""

    code: ErrorCode

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.code.value
        super().__init__(self.message)


class StaleOrUnknownRoot(PoolError):
    """Claimed root is neither the current root nor in the root history."""

    code = ErrorCode.STALE_OR_UNKNOWN_ROOT


class BindingMismatch(PoolError):
    """External data hash does not match the hash bound in the proof."""

    code = ErrorCode.BINDING_MISMATCH


class InvalidPublicAmount(PoolError):
    """Public amount does not reconcile with the external amount and fee."""

    code = ErrorCode.INVALID_PUBLIC_AMOUNT


class InvalidProof(PoolError):
    """Proof failed decompression or the pairing check."""

    code = ErrorCode.INVALID_PROOF


class FeeTooLow(PoolError):
    """Fee is below the policy minimum."""

    code = ErrorCode.FEE_TOO_LOW


class InvalidDirection(PoolError):
    """External amount sign is not allowed for this transaction kind."""

    code = ErrorCode.INVALID_DIRECTION


class CapacityExceeded(PoolError):
    """Tree capacity or deposit limit exceeded."""

    code = ErrorCode.CAPACITY_EXCEEDED


class DoubleSpend(PoolError):
    """Nullifier already spent."""

    code = ErrorCode.DOUBLE_SPEND


class InsufficientCustody(PoolError):
    """Pool custody cannot cover the withdrawal."""

    code = ErrorCode.INSUFFICIENT_CUSTODY


class SlippageViolation(PoolError):
    """Swap returned less than the declared minimum."""

    code = ErrorCode.SLIPPAGE_VIOLATION


class ArithmeticOverflow(PoolError):
    """Checked arithmetic overflowed."""

    code = ErrorCode.ARITHMETIC_OVERFLOW


class ExternalAdapterFailure(PoolError):
    """Exchange or registry call failed."""

    code = ErrorCode.EXTERNAL_ADAPTER_FAILURE


class Unauthorized(PoolError):
    """Caller is not the pool authority."""

    code = ErrorCode.UNAUTHORIZED


class InvalidFeeRate(PoolError):
    """Fee rate outside 0..10000 basis points."""

    code = ErrorCode.INVALID_FEE_RATE


class NotInitialized(PoolError):
    """Pool has not been initialized."""

    code = ErrorCode.NOT_INITIALIZED
