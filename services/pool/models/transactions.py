"""
Transaction Models
==================

Wire forms of transaction intent, the full structures rebuilt from them,
and the request bodies of the three transaction kinds.

Clients only send amounts; every identity that has to match a ledger
account (recipient, fee recipient) comes from trusted request context.
The depositor is not part of any request body: it is the authenticated
signer the transport layer hands to the pool.

Version: 0.1.0
"""

from pydantic import BaseModel, ConfigDict, Field

from shared.zk.models import Bytes32, CompressedProof, HexBytes


I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
U64_MAX = 2**64 - 1


# ============================================================================
# External Data
# ============================================================================


class ExtDataMinified(BaseModel):
    """Amounts of a deposit or withdrawal as sent by the client."""

    ext_amount: int = Field(..., ge=I64_MIN, le=I64_MAX, description="Signed external amount")
    fee: int = Field(..., ge=0, le=U64_MAX)


class SwapExtDataMinified(BaseModel):
    """Amounts of a swap as sent by the client."""

    ext_amount: int = Field(..., ge=I64_MIN, le=I64_MAX)
    ext_min_amount_out: int = Field(..., ge=I64_MIN, le=I64_MAX)
    fee: int = Field(..., ge=0, le=U64_MAX)


class ExtData(BaseModel):
    """Full single-asset transaction intent."""

    model_config = ConfigDict(frozen=True)

    recipient: Bytes32
    ext_amount: int
    fee: int
    fee_recipient: Bytes32

    @classmethod
    def from_minified(
        cls,
        recipient: bytes,
        fee_recipient: bytes,
        minified: ExtDataMinified,
    ) -> "ExtData":
        return cls(
            recipient=recipient,
            ext_amount=minified.ext_amount,
            fee=minified.fee,
            fee_recipient=fee_recipient,
        )


class SwapExtData(BaseModel):
    """Full swap intent."""

    model_config = ConfigDict(frozen=True)

    ext_amount: int
    ext_min_amount_out: int
    fee: int
    fee_recipient: Bytes32

    @classmethod
    def from_minified(
        cls,
        fee_recipient: bytes,
        minified: SwapExtDataMinified,
    ) -> "SwapExtData":
        return cls(
            ext_amount=minified.ext_amount,
            ext_min_amount_out=minified.ext_min_amount_out,
            fee=minified.fee,
            fee_recipient=fee_recipient,
        )


# ============================================================================
# Requests
# ============================================================================


class DepositRequest(BaseModel):
    """Deposit value from the signing account into the pool."""

    proof: CompressedProof
    ext_data: ExtDataMinified
    encrypted_output: HexBytes
    mint: Bytes32 = Field(..., description="Asset being deposited")
    fee_recipient: Bytes32


class WithdrawRequest(BaseModel):
    """Withdraw value from the pool to a recipient account."""

    proof: CompressedProof
    ext_data: ExtDataMinified
    encrypted_output: HexBytes
    mint: Bytes32 = Field(..., description="Asset being withdrawn")
    recipient: Bytes32
    fee_recipient: Bytes32


class SwapRequest(BaseModel):
    """Swap pooled value of one asset into another through the exchange."""

    proof: CompressedProof
    ext_data: SwapExtDataMinified
    encrypted_output: HexBytes
    mint_in: Bytes32
    mint_out: Bytes32
    fee_recipient: Bytes32
    exchange_program: Bytes32
    exchange_payload: HexBytes = Field(..., description="Opaque exchange instruction")
