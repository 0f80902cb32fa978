"""
Host Ledger Interfaces
======================

Abstract base classes and models for the collaborators the pool depends on:
the nullifier registry, the token ledger and the exchange adapter.

Version: 0.1.0
"""

import hashlib
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shared.config import LedgerMode, settings
from shared.logging import get_logger
from shared.zk.field import truncate_to_field

logger = get_logger(__name__)

PDA_MARKER = b"ProgramDerivedAddress"
NULLIFIER_SEED = b"nullifier"


class LedgerError(Exception):
    """A host ledger call failed."""


class RegistrationStatus(str, Enum):
    """Outcome of a nullifier registration."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    ERROR = "error"


class AccountMeta(BaseModel):
    """Account reference passed to an external program."""

    model_config = ConfigDict(frozen=True)

    address: bytes = Field(..., min_length=32, max_length=32)
    mint: bytes | None = Field(default=None, min_length=32, max_length=32)
    is_signer: bool = False
    is_writable: bool = False


# =============================================================================
# Address Derivation
# =============================================================================


def create_program_address(seeds: list[bytes], program_id: bytes) -> bytes:
    """
    Derive a program-owned address from seeds.

    Args:
        seeds: Seed byte strings, each at most 32 bytes
        program_id: Owning program identity

    Returns:
        32-byte address
    """
    if any(len(seed) > 32 for seed in seeds):
        raise ValueError("Seeds are limited to 32 bytes")
    hasher = hashlib.sha256()
    for seed in seeds:
        hasher.update(seed)
    hasher.update(program_id)
    hasher.update(PDA_MARKER)
    return hasher.digest()


def derive_nullifier_address(
    nullifier: bytes,
    namespace: bytes,
    program_id: bytes,
) -> bytes:
    """
    Registry identity for a nullifier.

    The seed ("nullifier", nullifier) is hashed to a field element salted by
    the program identity, then hashed again under the registry namespace, so
    the same nullifier maps to distinct identities across deployments.
    """
    seed = truncate_to_field(
        hashlib.sha256(program_id + NULLIFIER_SEED + nullifier).digest()
    )
    return truncate_to_field(hashlib.sha256(namespace + seed).digest())


def config_authority(program_id: bytes, bump: int) -> bytes:
    """Identity of the global config, which signs for pool custody."""
    return create_program_address([b"global_config", bytes([bump])], program_id)


# =============================================================================
# Collaborator Interfaces
# =============================================================================


class NullifierRegistry(ABC):
    """
    Durable at-most-once registry of nullifier identities.

    Registration is the sole double-spend guard: a second registration of
    the same identity must report ALREADY_EXISTS.
    """

    @property
    @abstractmethod
    def mode(self) -> LedgerMode:
        """Get the ledger mode."""
        ...

    @abstractmethod
    async def register(self, identity: bytes) -> RegistrationStatus:
        """
        Insert an identity if absent.

        Args:
            identity: Derived nullifier address

        Returns:
            CREATED on first registration, ALREADY_EXISTS afterwards
        """
        ...

    @abstractmethod
    async def register_all(self, identities: list[bytes]) -> RegistrationStatus:
        """
        Register several identities atomically.

        Either every identity is created, or none is and the status explains
        why.
        """
        ...

    @abstractmethod
    async def release_all(self, identities: list[bytes]) -> None:
        """
        Remove identities registered by a transaction that did not commit.

        Raises:
            LedgerError: If the registry cannot be reached
        """
        ...

    @abstractmethod
    async def exists(self, identity: bytes) -> bool:
        ...

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        ...


class TokenLedger(ABC):
    """Balances and transfers of fungible assets."""

    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager[None]:
        """
        Group transfers into one unit of work.

        Every balance change made inside the block, including those made by
        an exchange settling through this ledger, is undone if the block
        raises.

        Usage:
            async with ledger.atomic():
                await ledger.transfer(...)
        """
        ...

    @abstractmethod
    async def balance_of(self, account: bytes, mint: bytes) -> int:
        """
        Get the balance an account holds of an asset.

        Returns:
            Balance in base units (0 for unknown accounts)
        """
        ...

    @abstractmethod
    async def transfer(
        self,
        mint: bytes,
        source: bytes,
        destination: bytes,
        amount: int,
        authority: bytes,
    ) -> str:
        """
        Move value between accounts.

        Args:
            mint: Asset identity
            source: Debited account
            destination: Credited account
            amount: Amount in base units
            authority: Signer that must own the source account

        Returns:
            Transaction reference

        Raises:
            LedgerError: On insufficient funds or a wrong authority
        """
        ...


class ExchangeAdapter(ABC):
    """External exchange invoked during swaps."""

    @abstractmethod
    async def execute(
        self,
        program_id: bytes,
        payload: bytes,
        accounts: list[AccountMeta],
        signer: bytes,
    ) -> None:
        """
        Execute an exchange instruction.

        Returns once custody balances reflect the exchange.

        Raises:
            LedgerError: If the exchange fails
        """
        ...


@dataclass
class LedgerCollaborators:
    """Collaborators the pool is wired to."""

    registry: NullifierRegistry
    ledger: TokenLedger
    exchange: ExchangeAdapter


# Global collaborator instance
_collaborators: LedgerCollaborators | None = None


def get_ledger_collaborators() -> LedgerCollaborators:
    """
    Get the configured collaborators.

    Returns:
        LedgerCollaborators based on settings
    """
    global _collaborators

    if _collaborators is None:
        mode = settings.ledger.mode

        if mode == LedgerMode.MOCK:
            from shared.blockchain.mock import (
                MockExchangeAdapter,
                MockNullifierRegistry,
                MockTokenLedger,
            )

            ledger = MockTokenLedger()
            _collaborators = LedgerCollaborators(
                registry=MockNullifierRegistry(),
                ledger=ledger,
                exchange=MockExchangeAdapter(ledger),
            )
        elif mode in (LedgerMode.DEVNET, LedgerMode.MAINNET):
            raise NotImplementedError(
                f"Ledger mode '{mode.value}' has no client in this package. "
                "Use LEDGER_MODE=mock or inject collaborators with "
                "set_ledger_collaborators()."
            )
        else:
            raise ValueError(f"Unknown ledger mode: {mode}")

        logger.info("ledger_collaborators_initialized", mode=mode.value)

    return _collaborators


def set_ledger_collaborators(collaborators: LedgerCollaborators) -> None:
    """
    Set custom collaborators.

    Args:
        collaborators: Registry, ledger and exchange to use
    """
    global _collaborators
    _collaborators = collaborators
    logger.info("ledger_collaborators_set", mode=collaborators.registry.mode.value)


def reset_ledger_collaborators() -> None:
    """Reset the collaborators to be re-initialized."""
    global _collaborators
    _collaborators = None
