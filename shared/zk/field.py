"""
BN254 Field Helpers
===================

Scalar field (Fr) conversions used by the proof pipeline.

Values travel as 32-byte strings; these helpers reduce them into the
scalar field the circuit works in, following arkworks'
`from_be_bytes_mod_order` / `from_le_bytes_mod_order` semantics.

Version: 0.1.0
"""

from py_ecc.optimized_bn128 import curve_order, field_modulus

# Scalar field modulus r (the circuit's native field)
FR_MODULUS: int = curve_order

# Base field modulus q (curve coordinates)
FQ_MODULUS: int = field_modulus

FIELD_BYTES = 32
ZERO_BYTES32 = bytes(FIELD_BYTES)


def fr_from_be_bytes(data: bytes) -> int:
    """Interpret big-endian bytes as an integer reduced mod r."""
    return int.from_bytes(data, "big") % FR_MODULUS


def fr_from_le_bytes(data: bytes) -> int:
    """Interpret little-endian bytes as an integer reduced mod r."""
    return int.from_bytes(data, "little") % FR_MODULUS


def fr_to_be_bytes(value: int) -> bytes:
    """Encode a field element as 32 big-endian bytes."""
    return (value % FR_MODULUS).to_bytes(FIELD_BYTES, "big")


def fr_neg(value: int) -> int:
    """Additive inverse in Fr."""
    return (-value) % FR_MODULUS


def is_canonical(data: bytes) -> bool:
    """True if 32 big-endian bytes encode an integer strictly below r."""
    return len(data) == FIELD_BYTES and int.from_bytes(data, "big") < FR_MODULUS


def truncate_to_field(digest: bytes) -> bytes:
    """Zero the most significant byte so a 32-byte digest fits below r."""
    return b"\x00" + digest[1:FIELD_BYTES]
