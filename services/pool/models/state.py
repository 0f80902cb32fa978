"""
Pool State Models
=================

Persisted records of the commitment tree and the global fee policy.

Version: 0.1.0
"""

from pydantic import BaseModel, Field, model_validator

from shared.zk.models import Bytes32


BASIS_POINTS = 10000


class TreeAccount(BaseModel):
    """Fixed-size host record of the commitment tree."""

    authority: Bytes32
    next_index: int = Field(..., ge=0)
    filled_subtrees: list[Bytes32]
    root: Bytes32
    root_history: list[Bytes32]
    root_index: int = Field(..., ge=0)
    max_deposit_amount: int = Field(..., ge=0, lt=2**64)
    height: int = Field(..., ge=1, le=32)
    bump: int = Field(default=255, ge=0, le=255)

    @model_validator(mode="after")
    def check_shape(self) -> "TreeAccount":
        if len(self.filled_subtrees) != self.height:
            raise ValueError("filled_subtrees must hold one node per level")
        if not self.root_history:
            raise ValueError("root_history must not be empty")
        if self.root_index >= len(self.root_history):
            raise ValueError("root_index outside root_history")
        if self.next_index > 2**self.height:
            raise ValueError("next_index beyond tree capacity")
        return self


class GlobalConfig(BaseModel):
    """Process-wide fee policy. Rates are basis points."""

    authority: Bytes32
    deposit_fee_rate: int = Field(default=0, ge=0, le=BASIS_POINTS)
    withdrawal_fee_rate: int = Field(default=25, ge=0, le=BASIS_POINTS)
    fee_error_margin: int = Field(default=500, ge=0, le=BASIS_POINTS)
    bump: int = Field(default=255, ge=0, le=255)
