"""
Curve Point Encoding
====================

Byte encodings of BN254 points as they travel in proofs and verifying keys.

Uncompressed (big-endian, EIP-197 ordering):
    G1: x || y                           (64 bytes)
    G2: x.c1 || x.c0 || y.c1 || y.c0     (128 bytes)

Compressed (big-endian x, flags in the top bits of byte 0):
    G1: x                                (32 bytes)
    G2: x.c1 || x.c0                     (64 bytes)
    bit 7 set: y is the larger of the two roots
    bit 6 set: point at infinity

"Larger" follows arkworks: y > -y, comparing Fq2 elements from c1 first.

Version: 0.1.0
"""

from typing import Any

from py_ecc import optimized_bn128 as bn128

from shared.zk.field import FQ_MODULUS

P = FQ_MODULUS

FLAG_Y_LARGEST = 0x80
FLAG_INFINITY = 0x40
FLAG_MASK = FLAG_Y_LARGEST | FLAG_INFINITY


class PointDecodingError(ValueError):
    """Bytes do not encode a valid curve point."""


# =============================================================================
# Square roots
# =============================================================================


def _fq_int(value: Any) -> int:
    return (value.n if hasattr(value, "n") else int(value)) % P


def _fq2_ints(value: bn128.FQ2) -> tuple[int, int]:
    c0, c1 = value.coeffs
    return _fq_int(c0), _fq_int(c1)


def _fq2_sqrt(a: bn128.FQ2) -> bn128.FQ2 | None:
    """Square root in Fq2 for q = 3 mod 4 (Adj & Rodriguez-Henriquez, alg. 9)."""
    minus_one = -bn128.FQ2.one()
    a1 = a ** ((P - 3) // 4)
    alpha = a1 * a1 * a
    if alpha**P * alpha == minus_one:
        return None

    x0 = a1 * a
    if alpha == minus_one:
        root = bn128.FQ2([0, 1]) * x0
    else:
        root = (bn128.FQ2.one() + alpha) ** ((P - 1) // 2) * x0

    if root * root != a:
        return None
    return root


def _fq2_is_larger(y: bn128.FQ2) -> bool:
    c0, c1 = _fq2_ints(y)
    n0, n1 = _fq2_ints(-y)
    return (c1, c0) > (n1, n0)


def _fq_sqrt(a: int) -> int | None:
    root = pow(a, (P + 1) // 4, P)
    return root if root * root % P == a % P else None


# =============================================================================
# Point construction and validation
# =============================================================================


def g1_infinity() -> tuple[Any, Any, Any]:
    return (bn128.FQ.one(), bn128.FQ.one(), bn128.FQ.zero())


def g2_infinity() -> tuple[Any, Any, Any]:
    return (bn128.FQ2.one(), bn128.FQ2.one(), bn128.FQ2.zero())


def g1_point(x: int, y: int) -> tuple[Any, Any, Any]:
    """Build a validated G1 point from affine coordinates."""
    if x >= P or y >= P:
        raise PointDecodingError("G1 coordinate not below the base field modulus")
    if x == 0 and y == 0:
        return g1_infinity()
    point = (bn128.FQ(x), bn128.FQ(y), bn128.FQ.one())
    if not bn128.is_on_curve(point, bn128.b):
        raise PointDecodingError("G1 point is not on the curve")
    return point


def g2_point(x: tuple[int, int], y: tuple[int, int]) -> tuple[Any, Any, Any]:
    """Build a validated G2 point (on the twist and in the r-torsion subgroup)."""
    if any(c >= P for c in (*x, *y)):
        raise PointDecodingError("G2 coordinate not below the base field modulus")
    if x == (0, 0) and y == (0, 0):
        return g2_infinity()
    point = (bn128.FQ2([x[0], x[1]]), bn128.FQ2([y[0], y[1]]), bn128.FQ2.one())
    if not bn128.is_on_curve(point, bn128.b2):
        raise PointDecodingError("G2 point is not on the twist")
    if not bn128.is_inf(bn128.multiply(point, bn128.curve_order)):
        raise PointDecodingError("G2 point is outside the prime-order subgroup")
    return point


def g1_affine(point: tuple[Any, Any, Any]) -> tuple[int, int] | None:
    """Affine integer coordinates of a G1 point, None at infinity."""
    if bn128.is_inf(point):
        return None
    x, y = bn128.normalize(point)
    return _fq_int(x), _fq_int(y)


def g2_affine(
    point: tuple[Any, Any, Any],
) -> tuple[tuple[int, int], tuple[int, int]] | None:
    """Affine (c0, c1) coordinates of a G2 point, None at infinity."""
    if bn128.is_inf(point):
        return None
    x, y = bn128.normalize(point)
    return _fq2_ints(x), _fq2_ints(y)


# =============================================================================
# Uncompressed encodings
# =============================================================================


def parse_g1(data: bytes) -> tuple[Any, Any, Any]:
    if len(data) != 64:
        raise PointDecodingError("G1 encoding must be 64 bytes")
    return g1_point(int.from_bytes(data[:32], "big"), int.from_bytes(data[32:], "big"))


def parse_g2(data: bytes) -> tuple[Any, Any, Any]:
    if len(data) != 128:
        raise PointDecodingError("G2 encoding must be 128 bytes")
    words = [int.from_bytes(data[i : i + 32], "big") for i in range(0, 128, 32)]
    x = (words[1], words[0])
    y = (words[3], words[2])
    return g2_point(x, y)


def serialize_g1(point: tuple[Any, Any, Any]) -> bytes:
    affine = g1_affine(point)
    if affine is None:
        return bytes(64)
    return affine[0].to_bytes(32, "big") + affine[1].to_bytes(32, "big")


def serialize_g2(point: tuple[Any, Any, Any]) -> bytes:
    affine = g2_affine(point)
    if affine is None:
        return bytes(128)
    (x0, x1), (y0, y1) = affine
    return b"".join(v.to_bytes(32, "big") for v in (x1, x0, y1, y0))


# =============================================================================
# Compressed encodings
# =============================================================================


def decompress_g1(data: bytes) -> tuple[Any, Any, Any]:
    """
    Decompress a 32-byte G1 point.

    Raises:
        PointDecodingError: On malformed flags, x >= q or x not on the curve.
    """
    if len(data) != 32:
        raise PointDecodingError("Compressed G1 must be 32 bytes")

    flags = data[0] & FLAG_MASK
    if flags == FLAG_MASK:
        raise PointDecodingError("Conflicting G1 flags")
    if flags & FLAG_INFINITY:
        return g1_infinity()

    x = int.from_bytes(bytes([data[0] & ~FLAG_MASK & 0xFF]) + data[1:], "big")
    if x >= P:
        raise PointDecodingError("G1 x not below the base field modulus")

    y = _fq_sqrt((pow(x, 3, P) + 3) % P)
    if y is None:
        raise PointDecodingError("G1 x has no point on the curve")
    if (y > P - y) != bool(flags & FLAG_Y_LARGEST):
        y = (P - y) % P
    return g1_point(x, y)


def decompress_g2(data: bytes) -> tuple[Any, Any, Any]:
    """
    Decompress a 64-byte G2 point.

    Raises:
        PointDecodingError: On malformed flags or x not on the twist.
    """
    if len(data) != 64:
        raise PointDecodingError("Compressed G2 must be 64 bytes")

    flags = data[0] & FLAG_MASK
    if flags == FLAG_MASK:
        raise PointDecodingError("Conflicting G2 flags")
    if flags & FLAG_INFINITY:
        return g2_infinity()

    x1 = int.from_bytes(bytes([data[0] & ~FLAG_MASK & 0xFF]) + data[1:32], "big")
    x0 = int.from_bytes(data[32:], "big")
    if x0 >= P or x1 >= P:
        raise PointDecodingError("G2 x not below the base field modulus")
    x = bn128.FQ2([x0, x1])

    y = _fq2_sqrt(x * x * x + bn128.b2)
    if y is None:
        raise PointDecodingError("G2 x has no point on the twist")
    if _fq2_is_larger(y) != bool(flags & FLAG_Y_LARGEST):
        y = -y
    return g2_point((x0, x1), _fq2_ints(y))


def compress_g1(point: tuple[Any, Any, Any]) -> bytes:
    affine = g1_affine(point)
    if affine is None:
        return bytes([FLAG_INFINITY]) + bytes(31)
    x, y = affine
    encoded = bytearray(x.to_bytes(32, "big"))
    if y > P - y:
        encoded[0] |= FLAG_Y_LARGEST
    return bytes(encoded)


def compress_g2(point: tuple[Any, Any, Any]) -> bytes:
    affine = g2_affine(point)
    if affine is None:
        return bytes([FLAG_INFINITY]) + bytes(63)
    (x0, x1), (y0, y1) = affine
    encoded = bytearray(x1.to_bytes(32, "big") + x0.to_bytes(32, "big"))
    if _fq2_is_larger(bn128.FQ2([y0, y1])):
        encoded[0] |= FLAG_Y_LARGEST
    return bytes(encoded)
