"""
Pool Models
===========

Pydantic models for pool state, transaction requests and emitted events.

Version: 0.1.0
"""

from services.pool.models.events import (
    CommitmentAppended,
    DepositCompleted,
    PoolEvent,
    SwapCompleted,
    TransactionKind,
    TransactionReceipt,
    WithdrawCompleted,
)
from services.pool.models.state import BASIS_POINTS, GlobalConfig, TreeAccount
from services.pool.models.transactions import (
    I64_MAX,
    I64_MIN,
    U64_MAX,
    DepositRequest,
    ExtData,
    ExtDataMinified,
    SwapExtData,
    SwapExtDataMinified,
    SwapRequest,
    WithdrawRequest,
)


__all__ = [
    # State
    "TreeAccount",
    "GlobalConfig",
    "BASIS_POINTS",
    # Transactions
    "ExtData",
    "ExtDataMinified",
    "SwapExtData",
    "SwapExtDataMinified",
    "DepositRequest",
    "WithdrawRequest",
    "SwapRequest",
    "I64_MIN",
    "I64_MAX",
    "U64_MAX",
    # Events
    "TransactionKind",
    "TransactionReceipt",
    "PoolEvent",
    "CommitmentAppended",
    "DepositCompleted",
    "WithdrawCompleted",
    "SwapCompleted",
]
