"""
Pool Events
===========

Records emitted by completed transactions.

Version: 0.1.0
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from shared.zk.models import Bytes32, HexBytes


class TransactionKind(str, Enum):
    """Pool transaction kinds."""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    SWAP = "swap"


class CommitmentAppended(BaseModel):
    """Two output commitments appended starting at `index`."""

    event: Literal["commitment_appended"] = "commitment_appended"
    index: int
    commitment0: Bytes32
    commitment1: Bytes32
    encrypted_output: HexBytes


class DepositCompleted(BaseModel):
    event: Literal["deposit_completed"] = "deposit_completed"
    asset: Bytes32
    amount: int


class WithdrawCompleted(BaseModel):
    event: Literal["withdraw_completed"] = "withdraw_completed"
    asset: Bytes32
    amount: int


class SwapCompleted(BaseModel):
    event: Literal["swap_completed"] = "swap_completed"
    asset_in: Bytes32
    asset_out: Bytes32
    amount_in: int
    amount_out: int
    realized_fee: int


PoolEvent = Annotated[
    CommitmentAppended | DepositCompleted | WithdrawCompleted | SwapCompleted,
    Field(discriminator="event"),
]


class TransactionReceipt(BaseModel):
    """Outcome of a completed transaction."""

    kind: TransactionKind
    events: list[PoolEvent]
    next_index: int
    root: Bytes32
    completed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
