"""
Test Helpers
============

Builders for well-formed transaction requests against a pool whose
verifier trusts a trapdoor key.
"""

import hashlib
import itertools
import json

from services.pool.models.transactions import (
    DepositRequest,
    ExtData,
    ExtDataMinified,
    SwapExtData,
    SwapExtDataMinified,
    SwapRequest,
    WithdrawRequest,
)
from services.pool.services.amounts import expected_public_amount
from services.pool.services.binding import (
    calculate_ext_data_hash,
    calculate_swap_ext_data_hash,
)
from services.pool.services.orchestrator import ShieldedPool
from shared.auth import create_access_token
from shared.zk.field import ZERO_BYTES32, fr_from_le_bytes, fr_to_be_bytes, truncate_to_field
from shared.zk.models import CompressedProof
from shared.zk.prover import TrapdoorSetup


def account(label: str) -> bytes:
    """Deterministic 32-byte identity for a test account."""
    return hashlib.sha256(label.encode()).digest()


def field_element(label: str) -> bytes:
    """Deterministic canonical field element."""
    return truncate_to_field(account(label))


def bound_hash(digest: bytes) -> bytes:
    """The ext data hash a client puts in the proof for a SHA-256 digest."""
    return fr_to_be_bytes(fr_from_le_bytes(digest))


def public_amount(ext_amount: int, fee: int) -> bytes:
    expected = expected_public_amount(ext_amount, fee)
    return ZERO_BYTES32 if expected is None else fr_to_be_bytes(expected)


def auth_headers(owner: bytes, roles: list[str] | None = None) -> dict[str, str]:
    """Bearer token signing for `owner`."""
    token = create_access_token({"sub": owner.hex(), "roles": roles or []})
    return {"Authorization": f"Bearer {token}"}


ADMIN = account("admin")
DEPOSITOR = account("depositor")
RECIPIENT = account("recipient")
FEE_RECIPIENT = account("fee-recipient")
EXCHANGE_PROGRAM = account("exchange-program")
MINT_A = account("mint-a")
MINT_B = account("mint-b")
ENCRYPTED_OUTPUT = b"\x01\x02\x03 encrypted notes"
DEPOSITOR_FUNDS = 10_000_000


class TransactionFactory:
    """Produces requests whose proofs verify under `setup`'s key."""

    def __init__(self, setup: TrapdoorSetup, pool: ShieldedPool):
        self.setup = setup
        self.pool = pool
        self._counter = itertools.count()

    def nullifiers(self) -> list[bytes]:
        n = next(self._counter)
        return [field_element(f"nullifier-{n}-0"), field_element(f"nullifier-{n}-1")]

    def commitments(self) -> list[bytes]:
        n = next(self._counter)
        return [field_element(f"commitment-{n}-0"), field_element(f"commitment-{n}-1")]

    def _proof(
        self,
        *,
        root: bytes | None,
        public_amount0: bytes,
        public_amount1: bytes,
        ext_data_hash: bytes,
        nullifiers: list[bytes] | None,
        commitments: list[bytes] | None,
        mint_a: bytes,
        mint_b: bytes,
    ) -> CompressedProof:
        return self.setup.prove(
            root=root if root is not None else self.pool.tree.root,
            public_amount0=public_amount0,
            public_amount1=public_amount1,
            ext_data_hash=ext_data_hash,
            input_nullifiers=nullifiers or self.nullifiers(),
            output_commitments=commitments or self.commitments(),
            mint_a=mint_a,
            mint_b=mint_b,
        )

    def deposit(
        self,
        amount: int,
        fee: int = 0,
        *,
        mint: bytes = MINT_A,
        root: bytes | None = None,
        nullifiers: list[bytes] | None = None,
        commitments: list[bytes] | None = None,
        public_amount0: bytes | None = None,
        public_amount1: bytes = ZERO_BYTES32,
    ) -> DepositRequest:
        minified = ExtDataMinified(ext_amount=amount, fee=fee)
        ext_data = ExtData.from_minified(self.pool.custody_account(mint), FEE_RECIPIENT, minified)
        digest = calculate_ext_data_hash(ext_data, ENCRYPTED_OUTPUT, mint, mint)
        proof = self._proof(
            root=root,
            public_amount0=public_amount0 or public_amount(amount, fee),
            public_amount1=public_amount1,
            ext_data_hash=bound_hash(digest),
            nullifiers=nullifiers,
            commitments=commitments,
            mint_a=mint,
            mint_b=mint,
        )
        return DepositRequest(
            proof=proof,
            ext_data=minified,
            encrypted_output=ENCRYPTED_OUTPUT,
            mint=mint,
            fee_recipient=FEE_RECIPIENT,
        )

    def withdraw(
        self,
        amount: int,
        fee: int = 0,
        *,
        mint: bytes = MINT_A,
        recipient: bytes = RECIPIENT,
        root: bytes | None = None,
        nullifiers: list[bytes] | None = None,
    ) -> WithdrawRequest:
        """Withdraw `amount` (positive); the ext amount is its negation."""
        minified = ExtDataMinified(ext_amount=-amount, fee=fee)
        ext_data = ExtData.from_minified(recipient, FEE_RECIPIENT, minified)
        digest = calculate_ext_data_hash(ext_data, ENCRYPTED_OUTPUT, mint, mint)
        proof = self._proof(
            root=root,
            public_amount0=public_amount(-amount, fee),
            public_amount1=ZERO_BYTES32,
            ext_data_hash=bound_hash(digest),
            nullifiers=nullifiers,
            commitments=None,
            mint_a=mint,
            mint_b=mint,
        )
        return WithdrawRequest(
            proof=proof,
            ext_data=minified,
            encrypted_output=ENCRYPTED_OUTPUT,
            mint=mint,
            recipient=recipient,
            fee_recipient=FEE_RECIPIENT,
        )

    def swap(
        self,
        amount_in: int,
        min_amount_out: int,
        amount_out: int,
        *,
        mint_in: bytes = MINT_A,
        mint_out: bytes = MINT_B,
        payload: bytes | None = None,
        nullifiers: list[bytes] | None = None,
    ) -> SwapRequest:
        """Swap `amount_in` for at least `min_amount_out`; the mock exchange pays `amount_out`."""
        minified = SwapExtDataMinified(
            ext_amount=-amount_in, ext_min_amount_out=min_amount_out, fee=0
        )
        ext_data = SwapExtData.from_minified(FEE_RECIPIENT, minified)
        digest = calculate_swap_ext_data_hash(ext_data, ENCRYPTED_OUTPUT, mint_in, mint_out)
        proof = self._proof(
            root=None,
            public_amount0=public_amount(-amount_in, 0),
            public_amount1=public_amount(min_amount_out, 0),
            ext_data_hash=bound_hash(digest),
            nullifiers=nullifiers,
            commitments=None,
            mint_a=mint_in,
            mint_b=mint_out,
        )
        if payload is None:
            payload = json.dumps({"amount_in": amount_in, "amount_out": amount_out}).encode()
        return SwapRequest(
            proof=proof,
            ext_data=minified,
            encrypted_output=ENCRYPTED_OUTPUT,
            mint_in=mint_in,
            mint_out=mint_out,
            fee_recipient=FEE_RECIPIENT,
            exchange_program=EXCHANGE_PROGRAM,
            exchange_payload=payload,
        )
