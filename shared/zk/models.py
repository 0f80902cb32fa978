"""
ZK-SNARK Data Models
====================

Pydantic models for Groth16 proof artifacts and verifying keys.

Fixed-width byte fields accept hex strings (with or without 0x), raw bytes
or lists of ints, and serialize to lowercase hex in JSON.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    WithJsonSchema,
)


def _coerce_bytes(length: int | None):
    def validate(value: Any) -> bytes:
        if isinstance(value, str):
            text = value.lower().removeprefix("0x")
            try:
                value = bytes.fromhex(text)
            except ValueError as e:
                raise ValueError("expected a hex string") from e
        elif isinstance(value, list):
            if not all(isinstance(b, int) and 0 <= b <= 255 for b in value):
                raise ValueError("expected a list of byte values")
            value = bytes(value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            value = bytes(value)
        else:
            raise ValueError("expected hex, bytes or a list of ints")

        if length is not None and len(value) != length:
            raise ValueError(f"expected {length} bytes, got {len(value)}")
        return value

    return validate


def _hex_bytes(length: int | None) -> Any:
    description = f"{length} bytes, hex encoded" if length else "hex encoded bytes"
    return Annotated[
        bytes,
        PlainValidator(_coerce_bytes(length)),
        PlainSerializer(lambda v: v.hex(), return_type=str, when_used="json"),
        WithJsonSchema({"type": "string", "format": "hex", "description": description}),
    ]


Bytes32 = _hex_bytes(32)
G1Compressed = _hex_bytes(32)
G2Compressed = _hex_bytes(64)
G1Uncompressed = _hex_bytes(64)
G2Uncompressed = _hex_bytes(128)
HexBytes = _hex_bytes(None)


class CompressedProof(BaseModel):
    """
    A Groth16 proof with its public signals, as submitted by a client.

    proof_a is expected pre-negated so that the pairing product is checked
    against the identity.
    """

    model_config = ConfigDict(frozen=True)

    root: Bytes32
    public_amount0: Bytes32
    public_amount1: Bytes32
    ext_data_hash: Bytes32
    input_nullifiers: list[Bytes32] = Field(..., min_length=2, max_length=2)
    output_commitments: list[Bytes32] = Field(..., min_length=2, max_length=2)

    proof_a: G1Compressed
    proof_b: G2Compressed
    proof_c: G1Compressed

    def public_inputs(self, mint_a: bytes, mint_b: bytes) -> list[bytes]:
        """Public signals in circuit order."""
        return [
            self.root,
            self.public_amount0,
            self.public_amount1,
            self.ext_data_hash,
            mint_a,
            mint_b,
            self.input_nullifiers[0],
            self.input_nullifiers[1],
            self.output_commitments[0],
            self.output_commitments[1],
        ]


class Groth16VerifyingKey(BaseModel):
    """Verifying key with uncompressed big-endian curve points."""

    model_config = ConfigDict(frozen=True)

    alpha_g1: G1Uncompressed
    beta_g2: G2Uncompressed
    gamma_g2: G2Uncompressed
    delta_g2: G2Uncompressed
    ic: list[G1Uncompressed] = Field(..., min_length=1)

    @property
    def n_public(self) -> int:
        return len(self.ic) - 1


class VerificationResult(BaseModel):
    """Result of proof verification."""

    valid: bool
    verified_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    verification_time_ms: int = Field(..., ge=0)

    # Error info
    error: str | None = None
