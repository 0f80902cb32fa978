"""
ZK-SNARK Integration Module
===========================

BN254 field helpers, Poseidon hashing, curve point encoding and Groth16
verification for shielded transaction proofs.

Usage:
    from shared.zk import CompressedProof, get_verifier

    proof = CompressedProof.model_validate(payload)
    is_valid = get_verifier().verify_compressed_proof(proof, mint_a, mint_b)

Version: 0.1.0
"""

from shared.zk.encoding import PointDecodingError
from shared.zk.field import (
    FR_MODULUS,
    ZERO_BYTES32,
    fr_from_be_bytes,
    fr_from_le_bytes,
    fr_to_be_bytes,
    is_canonical,
)
from shared.zk.models import (
    Bytes32,
    CompressedProof,
    Groth16VerifyingKey,
    HexBytes,
    VerificationResult,
)
from shared.zk.poseidon import PoseidonHasher, poseidon_hash
from shared.zk.prover import TrapdoorSetup
from shared.zk.verifier import (
    Groth16Verifier,
    get_verifier,
    verify_compressed_proof,
)
from shared.zk.verifying_key import VERIFYING_KEY


__all__ = [
    # Field
    "FR_MODULUS",
    "ZERO_BYTES32",
    "fr_from_be_bytes",
    "fr_from_le_bytes",
    "fr_to_be_bytes",
    "is_canonical",
    # Hashing
    "PoseidonHasher",
    "poseidon_hash",
    # Verifier
    "Groth16Verifier",
    "get_verifier",
    "verify_compressed_proof",
    "VERIFYING_KEY",
    "PointDecodingError",
    # Prover
    "TrapdoorSetup",
    # Models
    "Bytes32",
    "HexBytes",
    "CompressedProof",
    "Groth16VerifyingKey",
    "VerificationResult",
]
