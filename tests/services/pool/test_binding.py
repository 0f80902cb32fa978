"""
Tests for external data binding.
"""

import pytest

from services.pool.errors import BindingMismatch
from services.pool.models.transactions import ExtData, SwapExtData
from services.pool.services.binding import (
    calculate_ext_data_hash,
    calculate_swap_ext_data_hash,
    encode_ext_data,
    encode_swap_ext_data,
    ext_data_hash_matches,
    verify_ext_data_binding,
)
from shared.zk.field import FR_MODULUS
from tests.helpers import FEE_RECIPIENT, MINT_A, MINT_B, RECIPIENT, bound_hash


EXT_DATA = ExtData(recipient=RECIPIENT, ext_amount=-500, fee=5, fee_recipient=FEE_RECIPIENT)
SWAP_EXT_DATA = SwapExtData(
    ext_amount=-1000, ext_min_amount_out=950, fee=0, fee_recipient=FEE_RECIPIENT
)
OUTPUT = b"ciphertext"


class TestEncoding:
    """Tests for the Borsh layout."""

    def test_ext_data_layout(self) -> None:
        """recipient | i64 | u32 len + bytes | u64 | fee recipient | mints."""
        encoded = encode_ext_data(EXT_DATA, OUTPUT, MINT_A, MINT_B)

        assert encoded[:32] == RECIPIENT
        assert encoded[32:40] == (-500).to_bytes(8, "little", signed=True)
        assert encoded[40:44] == len(OUTPUT).to_bytes(4, "little")
        assert encoded[44 : 44 + len(OUTPUT)] == OUTPUT
        rest = encoded[44 + len(OUTPUT) :]
        assert rest[:8] == (5).to_bytes(8, "little")
        assert rest[8:] == FEE_RECIPIENT + MINT_A + MINT_B

    def test_swap_layout_starts_with_amounts(self) -> None:
        """Swap intent has no recipient; both amounts lead."""
        encoded = encode_swap_ext_data(SWAP_EXT_DATA, OUTPUT, MINT_A, MINT_B)
        assert encoded[:8] == (-1000).to_bytes(8, "little", signed=True)
        assert encoded[8:16] == (950).to_bytes(8, "little", signed=True)
        assert encoded.endswith(FEE_RECIPIENT + MINT_A + MINT_B)


class TestBinding:
    """Tests for hash comparison in Fr."""

    def test_client_hash_matches(self) -> None:
        """A client reducing the digest little-endian produces a matching hash."""
        digest = calculate_ext_data_hash(EXT_DATA, OUTPUT, MINT_A, MINT_A)
        verify_ext_data_binding(digest, bound_hash(digest))

    def test_claimed_hash_compared_modulo_r(self) -> None:
        """A claimed hash of value + r is the same field element."""
        digest = calculate_ext_data_hash(EXT_DATA, OUTPUT, MINT_A, MINT_A)
        value = int.from_bytes(bound_hash(digest), "big")
        assert ext_data_hash_matches(digest, (value + FR_MODULUS).to_bytes(32, "big"))

    @pytest.mark.parametrize("field", ["recipient", "ext_amount", "fee", "fee_recipient"])
    def test_field_mutation_rejected(self, field: str) -> None:
        """Changing any bound field breaks the binding."""
        digest = calculate_ext_data_hash(EXT_DATA, OUTPUT, MINT_A, MINT_A)
        mutated_values = {
            "recipient": MINT_B,
            "ext_amount": -501,
            "fee": 6,
            "fee_recipient": RECIPIENT,
        }
        mutated = EXT_DATA.model_copy(update={field: mutated_values[field]})
        other = calculate_ext_data_hash(mutated, OUTPUT, MINT_A, MINT_A)

        with pytest.raises(BindingMismatch):
            verify_ext_data_binding(other, bound_hash(digest))

    def test_encrypted_output_byte_flip_rejected(self) -> None:
        """A single flipped ciphertext byte breaks the binding."""
        digest = calculate_ext_data_hash(EXT_DATA, OUTPUT, MINT_A, MINT_A)
        flipped = bytes([OUTPUT[0] ^ 1]) + OUTPUT[1:]
        other = calculate_ext_data_hash(EXT_DATA, flipped, MINT_A, MINT_A)

        with pytest.raises(BindingMismatch):
            verify_ext_data_binding(other, bound_hash(digest))

    def test_mint_substitution_rejected(self) -> None:
        """Asset identities are part of the binding."""
        digest = calculate_swap_ext_data_hash(SWAP_EXT_DATA, OUTPUT, MINT_A, MINT_B)
        other = calculate_swap_ext_data_hash(SWAP_EXT_DATA, OUTPUT, MINT_B, MINT_A)

        with pytest.raises(BindingMismatch):
            verify_ext_data_binding(other, bound_hash(digest))
