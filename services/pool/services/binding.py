"""
External Data Binding
=====================

Recompute the hash of a transaction's external data and check it against
the hash bound into the proof's public inputs, so a proof cannot be
replayed with a different recipient, fee or asset.

Encoding is Borsh: 32-byte identities raw, i64/u64 little-endian, byte
vectors prefixed with a u32 little-endian length. The SHA-256 digest is
reduced into Fr little-endian; the proof's claimed hash is reduced
big-endian.

Version: 0.1.0
"""

import hashlib

from services.pool.errors import BindingMismatch
from services.pool.models.transactions import ExtData, SwapExtData
from shared.logging import get_logger
from shared.zk.field import fr_from_be_bytes, fr_from_le_bytes


logger = get_logger(__name__)


# =============================================================================
# Borsh Encoding
# =============================================================================


def _i64(value: int) -> bytes:
    return value.to_bytes(8, "little", signed=True)


def _u64(value: int) -> bytes:
    return value.to_bytes(8, "little", signed=False)


def _pubkey(value: bytes) -> bytes:
    if len(value) != 32:
        raise ValueError("Identity must be 32 bytes")
    return value


def _vec_u8(value: bytes) -> bytes:
    return len(value).to_bytes(4, "little") + value


def encode_ext_data(
    ext_data: ExtData,
    encrypted_output: bytes,
    mint_a: bytes,
    mint_b: bytes,
) -> bytes:
    """Canonical encoding of (recipient, ext_amount, encrypted_output, fee, fee_recipient, mint_a, mint_b)."""
    return b"".join(
        [
            _pubkey(ext_data.recipient),
            _i64(ext_data.ext_amount),
            _vec_u8(encrypted_output),
            _u64(ext_data.fee),
            _pubkey(ext_data.fee_recipient),
            _pubkey(mint_a),
            _pubkey(mint_b),
        ]
    )


def encode_swap_ext_data(
    ext_data: SwapExtData,
    encrypted_output: bytes,
    mint_a: bytes,
    mint_b: bytes,
) -> bytes:
    """Canonical encoding of (ext_amount, ext_min_amount_out, encrypted_output, fee, fee_recipient, mint_a, mint_b)."""
    return b"".join(
        [
            _i64(ext_data.ext_amount),
            _i64(ext_data.ext_min_amount_out),
            _vec_u8(encrypted_output),
            _u64(ext_data.fee),
            _pubkey(ext_data.fee_recipient),
            _pubkey(mint_a),
            _pubkey(mint_b),
        ]
    )


# =============================================================================
# Hashing and Verification
# =============================================================================


def calculate_ext_data_hash(
    ext_data: ExtData,
    encrypted_output: bytes,
    mint_a: bytes,
    mint_b: bytes,
) -> bytes:
    return hashlib.sha256(encode_ext_data(ext_data, encrypted_output, mint_a, mint_b)).digest()


def calculate_swap_ext_data_hash(
    ext_data: SwapExtData,
    encrypted_output: bytes,
    mint_a: bytes,
    mint_b: bytes,
) -> bytes:
    return hashlib.sha256(
        encode_swap_ext_data(ext_data, encrypted_output, mint_a, mint_b)
    ).digest()


def ext_data_hash_matches(digest: bytes, claimed: bytes) -> bool:
    return fr_from_le_bytes(digest) == fr_from_be_bytes(claimed)


def verify_ext_data_binding(digest: bytes, claimed: bytes) -> None:
    """
    Raises:
        BindingMismatch: If the digest and the claimed hash differ in Fr.
    """
    if not ext_data_hash_matches(digest, claimed):
        logger.info("ext_data_binding_mismatch", digest=digest, claimed=claimed)
        raise BindingMismatch()
