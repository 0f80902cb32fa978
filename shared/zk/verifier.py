"""
Groth16 Proof Verification
==========================

Verify transaction proofs against the circuit verifying key with a BN254
pairing check.

The check follows the convention where the client negates proof A, so the
equation becomes a product of four pairings equal to one:

    e(A', B) * e(vk_x, gamma) * e(C, delta) * e(alpha, beta) == 1
    vk_x = IC[0] + sum(input_i * IC[i + 1])

Version: 0.1.0
"""

import asyncio
import time
from functools import lru_cache
from typing import Any

from py_ecc import optimized_bn128 as bn128

from shared.logging import get_logger
from shared.zk.encoding import (
    PointDecodingError,
    decompress_g1,
    decompress_g2,
    parse_g1,
    parse_g2,
)
from shared.zk.field import FR_MODULUS
from shared.zk.models import CompressedProof, Groth16VerifyingKey, VerificationResult
from shared.zk.verifying_key import VERIFYING_KEY


logger = get_logger(__name__)


class Groth16Verifier:
    """
    Pairing-based Groth16 verifier for a fixed verifying key.

    Key points are decoded and validated once at construction; a malformed
    key raises PointDecodingError there rather than at verification time.
    """

    def __init__(self, verifying_key: Groth16VerifyingKey = VERIFYING_KEY):
        self.verifying_key = verifying_key
        self._alpha = parse_g1(verifying_key.alpha_g1)
        self._beta = parse_g2(verifying_key.beta_g2)
        self._gamma = parse_g2(verifying_key.gamma_g2)
        self._delta = parse_g2(verifying_key.delta_g2)
        self._ic = [parse_g1(point) for point in verifying_key.ic]

    @property
    def n_public(self) -> int:
        return len(self._ic) - 1

    def verify(
        self,
        proof_a: tuple[Any, Any, Any],
        proof_b: tuple[Any, Any, Any],
        proof_c: tuple[Any, Any, Any],
        public_inputs: list[bytes],
    ) -> bool:
        """Verify, rejecting any public input that is not below r."""
        return self._verify(proof_a, proof_b, proof_c, public_inputs, checked=True)

    def verify_unchecked(
        self,
        proof_a: tuple[Any, Any, Any],
        proof_b: tuple[Any, Any, Any],
        proof_c: tuple[Any, Any, Any],
        public_inputs: list[bytes],
    ) -> bool:
        """Verify, reducing out-of-range public inputs modulo r."""
        return self._verify(proof_a, proof_b, proof_c, public_inputs, checked=False)

    def _verify(
        self,
        proof_a: tuple[Any, Any, Any],
        proof_b: tuple[Any, Any, Any],
        proof_c: tuple[Any, Any, Any],
        public_inputs: list[bytes],
        checked: bool,
    ) -> bool:
        if len(public_inputs) != self.n_public:
            logger.warning(
                "groth16_public_input_count_mismatch",
                expected=self.n_public,
                received=len(public_inputs),
            )
            return False

        scalars = [int.from_bytes(value, "big") for value in public_inputs]
        if checked and any(s >= FR_MODULUS for s in scalars):
            return False

        try:
            vk_x = self._ic[0]
            for scalar, point in zip(scalars, self._ic[1:], strict=True):
                vk_x = bn128.add(vk_x, bn128.multiply(point, scalar % FR_MODULUS))

            product = (
                bn128.pairing(proof_b, proof_a, final_exponentiate=False)
                * bn128.pairing(self._gamma, vk_x, final_exponentiate=False)
                * bn128.pairing(self._delta, proof_c, final_exponentiate=False)
                * bn128.pairing(self._beta, self._alpha, final_exponentiate=False)
            )
            return bn128.final_exponentiate(product) == bn128.FQ12.one()
        except (AssertionError, ValueError, TypeError) as e:
            logger.warning("groth16_pairing_failed", error=str(e))
            return False

    def verify_compressed_proof(
        self,
        proof: CompressedProof,
        mint_a: bytes,
        mint_b: bytes,
    ) -> bool:
        """
        Decompress the proof points and verify against the public signals.

        Decompression failures reject the proof. Public inputs are checked in
        unchecked mode, so non-canonical identities are reduced rather than
        rejected.
        """
        try:
            proof_a = decompress_g1(proof.proof_a)
            proof_b = decompress_g2(proof.proof_b)
            proof_c = decompress_g1(proof.proof_c)
        except PointDecodingError as e:
            logger.info("proof_decompression_failed", error=str(e))
            return False

        return self.verify_unchecked(
            proof_a, proof_b, proof_c, proof.public_inputs(mint_a, mint_b)
        )

    async def verify_async(
        self,
        proof: CompressedProof,
        mint_a: bytes,
        mint_b: bytes,
    ) -> VerificationResult:
        """
        Verify a compressed proof in a worker thread.

        Args:
            proof: The proof to verify
            mint_a: Input asset identity
            mint_b: Output asset identity

        Returns:
            VerificationResult with verification status and timing
        """
        start_time = time.time()
        is_valid = await asyncio.to_thread(
            self.verify_compressed_proof, proof, mint_a, mint_b
        )
        verification_time_ms = int((time.time() - start_time) * 1000)

        logger.info(
            "zk_proof_verified",
            valid=is_valid,
            verification_time_ms=verification_time_ms,
        )

        return VerificationResult(
            valid=is_valid,
            verification_time_ms=verification_time_ms,
            error=None if is_valid else "Pairing check failed",
        )


@lru_cache
def get_verifier() -> Groth16Verifier:
    """Verifier for the embedded transaction circuit key."""
    return Groth16Verifier(VERIFYING_KEY)


def verify_compressed_proof(
    proof: CompressedProof,
    verifying_key: Groth16VerifyingKey,
    mint_a: bytes,
    mint_b: bytes,
) -> bool:
    """Verify a compressed proof against an arbitrary verifying key."""
    if verifying_key is VERIFYING_KEY:
        return get_verifier().verify_compressed_proof(proof, mint_a, mint_b)
    return Groth16Verifier(verifying_key).verify_compressed_proof(proof, mint_a, mint_b)
