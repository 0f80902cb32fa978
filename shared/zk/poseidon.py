"""
Poseidon Hash
=============

Poseidon permutation over the BN254 scalar field (x^5 S-box, 8 full rounds,
width-dependent partial rounds), as used for the commitment tree.

Round constants and the Cauchy MDS matrix are derived with the Grain LFSR
procedure from the Poseidon reference parameter script, so no constant
tables are shipped.

Version: 0.1.0
"""

from collections import deque
from functools import lru_cache

from shared.zk.field import FIELD_BYTES, FR_MODULUS, is_canonical

ALPHA = 5
FULL_ROUNDS = 8
FIELD_BITS = 254

# Partial rounds per state width (inputs + 1)
PARTIAL_ROUNDS = {2: 56, 3: 57, 4: 56, 5: 60}


class GrainLFSR:
    """80-bit self-shrinking Grain LFSR used to sample Poseidon parameters."""

    def __init__(self, width: int, full_rounds: int, partial_rounds: int) -> None:
        # field=1 (prime field), sbox=0 (x^alpha)
        seed = (
            _bits(1, 2)
            + _bits(0, 4)
            + _bits(FIELD_BITS, 12)
            + _bits(width, 12)
            + _bits(full_rounds, 10)
            + _bits(partial_rounds, 10)
            + [1] * 30
        )
        self._state: deque[int] = deque(seed, maxlen=80)
        for _ in range(160):
            self._clock()

    def _clock(self) -> int:
        s = self._state
        bit = s[62] ^ s[51] ^ s[38] ^ s[23] ^ s[13] ^ s[0]
        s.append(bit)
        return bit

    def next_bit(self) -> int:
        while True:
            keep = self._clock()
            bit = self._clock()
            if keep:
                return bit

    def next_int(self, bits: int = FIELD_BITS) -> int:
        value = 0
        for _ in range(bits):
            value = (value << 1) | self.next_bit()
        return value

    def next_field_element(self) -> int:
        """Sample by rejection so the result is uniform below r."""
        value = self.next_int()
        while value >= FR_MODULUS:
            value = self.next_int()
        return value


def _bits(value: int, width: int) -> list[int]:
    return [int(b) for b in format(value, f"0{width}b")]


@lru_cache(maxsize=8)
def poseidon_parameters(width: int) -> tuple[tuple[int, ...], tuple[tuple[int, ...], ...]]:
    """
    Derive (round_constants, mds) for a state of the given width.

    Returns:
        Flat tuple of (R_F + R_P) * width round constants and a width x width
        Cauchy matrix.
    """
    if width not in PARTIAL_ROUNDS:
        raise ValueError(f"Unsupported Poseidon width: {width}")

    partial_rounds = PARTIAL_ROUNDS[width]
    lfsr = GrainLFSR(width, FULL_ROUNDS, partial_rounds)

    constants = tuple(
        lfsr.next_field_element()
        for _ in range((FULL_ROUNDS + partial_rounds) * width)
    )

    while True:
        samples = [lfsr.next_int() % FR_MODULUS for _ in range(2 * width)]
        if len(set(samples)) != len(samples):
            continue
        xs, ys = samples[:width], samples[width:]
        if any((x + y) % FR_MODULUS == 0 for x in xs for y in ys):
            continue
        mds = tuple(
            tuple(pow(x + y, -1, FR_MODULUS) for y in ys)
            for x in xs
        )
        return constants, mds


def poseidon_permutation(state: list[int]) -> list[int]:
    """Apply the Poseidon permutation to a full state."""
    width = len(state)
    constants, mds = poseidon_parameters(width)
    partial_rounds = PARTIAL_ROUNDS[width]
    half_full = FULL_ROUNDS // 2
    p = FR_MODULUS

    state = [s % p for s in state]
    for rnd in range(FULL_ROUNDS + partial_rounds):
        offset = rnd * width
        state = [(s + constants[offset + i]) % p for i, s in enumerate(state)]

        if rnd < half_full or rnd >= half_full + partial_rounds:
            state = [pow(s, ALPHA, p) for s in state]
        else:
            state[0] = pow(state[0], ALPHA, p)

        state = [
            sum(row[j] * state[j] for j in range(width)) % p
            for row in mds
        ]
    return state


def poseidon_hash(*inputs: int) -> int:
    """
    Hash field elements with a capacity-first sponge of width len(inputs) + 1.

    Raises:
        ValueError: If an input is not a canonical field element.
    """
    for value in inputs:
        if not 0 <= value < FR_MODULUS:
            raise ValueError("Poseidon input is not a canonical field element")
    return poseidon_permutation([0, *inputs])[0]


class PoseidonHasher:
    """Two-to-one Poseidon compression over 32-byte big-endian nodes."""

    name = "poseidon-bn254-x5-3"

    def hash_pair(self, left: bytes, right: bytes) -> bytes:
        if not (is_canonical(left) and is_canonical(right)):
            raise ValueError("Tree node is not a canonical field element")
        digest = poseidon_hash(int.from_bytes(left, "big"), int.from_bytes(right, "big"))
        return digest.to_bytes(FIELD_BYTES, "big")
