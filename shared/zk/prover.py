"""
Development Proof Generation
============================

Trapdoor prover for local development and tests.

A real deployment proves with the transaction circuit in the wallet. Here
the verifying key is generated from known scalars, which makes it possible
to produce proofs that satisfy the pairing equation for any public inputs
without a circuit. Never use a trapdoor key outside mock mode.

Usage:
    setup = TrapdoorSetup.generate()
    verifier = Groth16Verifier(setup.verifying_key())
    proof = setup.prove(root=..., public_amount0=..., ...)
    assert verifier.verify_compressed_proof(proof, mint_a, mint_b)

Version: 0.1.0
"""

import random
import secrets
from dataclasses import dataclass, field

from py_ecc import optimized_bn128 as bn128

from shared.logging import get_logger
from shared.zk.encoding import compress_g1, compress_g2, serialize_g1, serialize_g2
from shared.zk.field import FR_MODULUS
from shared.zk.models import CompressedProof, Groth16VerifyingKey
from shared.zk.verifying_key import N_PUBLIC_INPUTS


logger = get_logger(__name__)


def _random_scalar(rng: random.Random | None) -> int:
    if rng is None:
        return secrets.randbelow(FR_MODULUS - 1) + 1
    return rng.randrange(1, FR_MODULUS)


@dataclass
class TrapdoorSetup:
    """Verifying key scalars: alpha, beta, gamma, delta and one per IC point."""

    alpha: int
    beta: int
    gamma: int
    delta: int
    ic: list[int] = field(default_factory=list)
    _rng: random.Random | None = field(default=None, repr=False)

    @classmethod
    def generate(
        cls,
        n_public: int = N_PUBLIC_INPUTS,
        seed: int | None = None,
    ) -> "TrapdoorSetup":
        """
        Sample a fresh trapdoor.

        Args:
            n_public: Number of public inputs the key accepts
            seed: Seed for reproducible keys (tests); None uses the OS RNG
        """
        rng = random.Random(seed) if seed is not None else None
        setup = cls(
            alpha=_random_scalar(rng),
            beta=_random_scalar(rng),
            gamma=_random_scalar(rng),
            delta=_random_scalar(rng),
            ic=[_random_scalar(rng) for _ in range(n_public + 1)],
            _rng=rng,
        )
        logger.debug("trapdoor_setup_generated", n_public=n_public, seeded=seed is not None)
        return setup

    def verifying_key(self) -> Groth16VerifyingKey:
        return Groth16VerifyingKey(
            alpha_g1=serialize_g1(bn128.multiply(bn128.G1, self.alpha)),
            beta_g2=serialize_g2(bn128.multiply(bn128.G2, self.beta)),
            gamma_g2=serialize_g2(bn128.multiply(bn128.G2, self.gamma)),
            delta_g2=serialize_g2(bn128.multiply(bn128.G2, self.delta)),
            ic=[serialize_g1(bn128.multiply(bn128.G1, u)) for u in self.ic],
        )

    def forge(self, public_inputs: list[bytes]) -> tuple[bytes, bytes, bytes]:
        """
        Produce compressed (A', B, C) satisfying the pairing equation.

        A' is already negated, as a client would submit it.
        """
        if len(public_inputs) != len(self.ic) - 1:
            raise ValueError(
                f"Expected {len(self.ic) - 1} public inputs, got {len(public_inputs)}"
            )

        x = self.ic[0]
        for value, u in zip(public_inputs, self.ic[1:], strict=True):
            x += u * (int.from_bytes(value, "big") % FR_MODULUS)
        x %= FR_MODULUS

        r = _random_scalar(self._rng)
        s = _random_scalar(self._rng)
        # r*s = alpha*beta + gamma*x + delta*c
        c = (r * s - self.gamma * x - self.alpha * self.beta) * pow(self.delta, -1, FR_MODULUS)
        c %= FR_MODULUS

        proof_a = bn128.neg(bn128.multiply(bn128.G1, r))
        proof_b = bn128.multiply(bn128.G2, s)
        proof_c = bn128.multiply(bn128.G1, c)
        return compress_g1(proof_a), compress_g2(proof_b), compress_g1(proof_c)

    def prove(
        self,
        *,
        root: bytes,
        public_amount0: bytes,
        public_amount1: bytes,
        ext_data_hash: bytes,
        input_nullifiers: list[bytes],
        output_commitments: list[bytes],
        mint_a: bytes,
        mint_b: bytes,
    ) -> CompressedProof:
        """Build a transaction proof bound to the given public signals."""
        public_inputs = [
            root,
            public_amount0,
            public_amount1,
            ext_data_hash,
            mint_a,
            mint_b,
            *input_nullifiers,
            *output_commitments,
        ]
        proof_a, proof_b, proof_c = self.forge(public_inputs)
        return CompressedProof(
            root=root,
            public_amount0=public_amount0,
            public_amount1=public_amount1,
            ext_data_hash=ext_data_hash,
            input_nullifiers=input_nullifiers,
            output_commitments=output_commitments,
            proof_a=proof_a,
            proof_b=proof_b,
            proof_c=proof_c,
        )
