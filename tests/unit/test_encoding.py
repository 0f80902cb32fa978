"""
Tests for BN254 point encodings.
"""

import pytest
from py_ecc import optimized_bn128 as bn128

from shared.zk.encoding import (
    FLAG_INFINITY,
    FLAG_Y_LARGEST,
    PointDecodingError,
    compress_g1,
    compress_g2,
    decompress_g1,
    decompress_g2,
    g1_affine,
    parse_g1,
    parse_g2,
    serialize_g1,
    serialize_g2,
)
from shared.zk.field import FQ_MODULUS


class TestCompressedG1:
    """Tests for 32-byte G1 compression."""

    @pytest.mark.parametrize("scalar", [1, 2, 987654321])
    def test_round_trip(self, scalar: int) -> None:
        """Decompressing a compressed point gives the same point."""
        point = bn128.multiply(bn128.G1, scalar)
        assert bn128.eq(decompress_g1(compress_g1(point)), point)

    def test_negation_flips_only_the_flag(self) -> None:
        """P and -P share x and differ in the y-largest bit."""
        point = bn128.multiply(bn128.G1, 7)
        a, b = compress_g1(point), compress_g1(bn128.neg(point))
        assert a[1:] == b[1:]
        assert (a[0] ^ b[0]) == FLAG_Y_LARGEST
        assert bn128.eq(decompress_g1(b), bn128.neg(point))

    def test_infinity(self) -> None:
        """The identity is encoded by the infinity flag alone."""
        encoded = compress_g1(bn128.Z1)
        assert encoded == bytes([FLAG_INFINITY]) + bytes(31)
        assert bn128.is_inf(decompress_g1(encoded))

    def test_conflicting_flags_rejected(self) -> None:
        """Both flags set is malformed."""
        with pytest.raises(PointDecodingError):
            decompress_g1(bytes([FLAG_INFINITY | FLAG_Y_LARGEST]) + bytes(31))

    def test_x_not_below_modulus_rejected(self) -> None:
        """x = q is out of range."""
        with pytest.raises(PointDecodingError):
            decompress_g1(FQ_MODULUS.to_bytes(32, "big"))

    def test_x_without_curve_point_rejected(self) -> None:
        """An x whose x^3 + 3 is a non-residue has no point."""
        x = next(
            x for x in range(1, 100)
            if pow((x**3 + 3) % FQ_MODULUS, (FQ_MODULUS - 1) // 2, FQ_MODULUS) != 1
        )
        with pytest.raises(PointDecodingError):
            decompress_g1(x.to_bytes(32, "big"))

    def test_wrong_length_rejected(self) -> None:
        """Compressed G1 is exactly 32 bytes."""
        with pytest.raises(PointDecodingError):
            decompress_g1(bytes(33))


class TestCompressedG2:
    """Tests for 64-byte G2 compression."""

    @pytest.mark.parametrize("scalar", [1, 31337])
    def test_round_trip(self, scalar: int) -> None:
        """Decompressing a compressed point gives the same point."""
        point = bn128.multiply(bn128.G2, scalar)
        assert bn128.eq(decompress_g2(compress_g2(point)), point)

    def test_negated_point_round_trip(self) -> None:
        """The y-largest flag selects between y and -y."""
        point = bn128.neg(bn128.G2)
        encoded = compress_g2(point)
        assert encoded[1:] == compress_g2(bn128.G2)[1:]
        assert bn128.eq(decompress_g2(encoded), point)

    def test_infinity(self) -> None:
        """The identity is encoded by the infinity flag alone."""
        encoded = compress_g2(bn128.Z2)
        assert encoded == bytes([FLAG_INFINITY]) + bytes(63)
        assert bn128.is_inf(decompress_g2(encoded))

    def test_coordinate_not_below_modulus_rejected(self) -> None:
        """x.c0 = q is out of range."""
        with pytest.raises(PointDecodingError):
            decompress_g2(bytes(32) + FQ_MODULUS.to_bytes(32, "big"))

    def test_x_without_twist_point_rejected(self) -> None:
        """An x whose x^3 + b2 has no square root in Fq2 is rejected."""
        x0 = 1
        while True:
            rhs = bn128.FQ2([x0, 0]) ** 3 + bn128.b2
            c0, c1 = (int(c) for c in rhs.coeffs)
            norm = (c0 * c0 + c1 * c1) % FQ_MODULUS
            if pow(norm, (FQ_MODULUS - 1) // 2, FQ_MODULUS) != 1:
                break
            x0 += 1

        with pytest.raises(PointDecodingError):
            decompress_g2(bytes(32) + x0.to_bytes(32, "big"))

    def test_wrong_length_rejected(self) -> None:
        """Compressed G2 is exactly 64 bytes."""
        with pytest.raises(PointDecodingError):
            decompress_g2(bytes(32))


class TestUncompressed:
    """Tests for the 64/128-byte verifying key encodings."""

    def test_g1_round_trip(self) -> None:
        """x || y big-endian."""
        point = bn128.multiply(bn128.G1, 5)
        encoded = serialize_g1(point)
        assert len(encoded) == 64
        assert bn128.eq(parse_g1(encoded), point)
        x, y = g1_affine(point)
        assert encoded == x.to_bytes(32, "big") + y.to_bytes(32, "big")

    def test_g1_zero_is_infinity(self) -> None:
        """All-zero coordinates encode the identity."""
        assert bn128.is_inf(parse_g1(bytes(64)))
        assert serialize_g1(bn128.Z1) == bytes(64)

    def test_g1_off_curve_rejected(self) -> None:
        """(1, 1) does not satisfy y^2 = x^3 + 3."""
        data = (1).to_bytes(32, "big") + (1).to_bytes(32, "big")
        with pytest.raises(PointDecodingError):
            parse_g1(data)

    def test_g2_round_trip(self) -> None:
        """c1 precedes c0 in each coordinate."""
        point = bn128.multiply(bn128.G2, 3)
        encoded = serialize_g2(point)
        assert len(encoded) == 128
        assert bn128.eq(parse_g2(encoded), point)

    def test_g2_generator_layout(self) -> None:
        """The first word is the imaginary part of x."""
        encoded = serialize_g2(bn128.G2)
        x_c1 = bn128.G2[0].coeffs[1]
        assert int.from_bytes(encoded[:32], "big") == int(x_c1)

    def test_g2_off_twist_rejected(self) -> None:
        """Coordinates (1, 1) are not a twist point."""
        data = b"".join((1).to_bytes(32, "big") for _ in range(4))
        with pytest.raises(PointDecodingError):
            parse_g2(data)
