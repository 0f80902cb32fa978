"""
Mock Host Ledger
================

In-memory mock collaborators for development and testing.

Version: 0.1.0
"""

import hashlib
import json
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from shared.blockchain.client import (
    AccountMeta,
    ExchangeAdapter,
    LedgerError,
    NullifierRegistry,
    RegistrationStatus,
    TokenLedger,
)
from shared.config import LedgerMode
from shared.logging import get_logger

logger = get_logger(__name__)

MOCK_EXCHANGE_RESERVE = hashlib.sha256(b"mock-exchange-reserve").digest()


class MockNullifierRegistry(NullifierRegistry):
    """
    In-memory nullifier registry.

    Check and insert happen without yielding to the event loop, so of two
    concurrent registrations of one identity exactly one is CREATED.
    """

    def __init__(self) -> None:
        self._identities: set[bytes] = set()
        self._available = True
        logger.debug("mock_registry_initialized")

    @property
    def mode(self) -> LedgerMode:
        return LedgerMode.MOCK

    async def register(self, identity: bytes) -> RegistrationStatus:
        return await self.register_all([identity])

    async def register_all(self, identities: list[bytes]) -> RegistrationStatus:
        if not self._available:
            logger.warning("mock_registry_unavailable", count=len(identities))
            return RegistrationStatus.ERROR

        if len(set(identities)) != len(identities) or any(
            i in self._identities for i in identities
        ):
            logger.debug("mock_registry_conflict", identities=identities)
            return RegistrationStatus.ALREADY_EXISTS

        self._identities.update(identities)
        logger.debug("mock_registry_created", identities=identities)
        return RegistrationStatus.CREATED

    async def release_all(self, identities: list[bytes]) -> None:
        if not self._available:
            raise LedgerError("Nullifier registry unavailable")
        self._identities.difference_update(identities)
        logger.debug("mock_registry_released", identities=identities)

    async def exists(self, identity: bytes) -> bool:
        return identity in self._identities

    async def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy" if self._available else "unavailable",
            "mode": self.mode.value,
            "nullifiers": len(self._identities),
        }

    # =========================================================================
    # Test Utilities
    # =========================================================================

    def set_available(self, available: bool) -> None:
        """Simulate registry outages (registrations return ERROR)."""
        self._available = available

    def clear_all(self) -> None:
        """Clear all mock data (for testing)."""
        self._identities.clear()
        self._available = True
        logger.debug("mock_registry_cleared")

    def get_stats(self) -> dict[str, int]:
        """Get storage statistics."""
        return {"nullifiers": len(self._identities)}


class MockTokenLedger(TokenLedger):
    """
    In-memory token ledger.

    Balances are keyed by (account, mint). Accounts with a registered owner
    only accept transfers signed by that owner. `atomic()` snapshots the
    balances and restores them if its block raises.
    """

    def __init__(self) -> None:
        self._balances: dict[tuple[bytes, bytes], int] = {}
        self._owners: dict[bytes, bytes] = {}
        self._transfers: list[dict[str, Any]] = []
        logger.debug("mock_ledger_initialized")

    async def balance_of(self, account: bytes, mint: bytes) -> int:
        return self._balances.get((account, mint), 0)

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        balances = dict(self._balances)
        transfers = list(self._transfers)
        try:
            yield
        except Exception:
            self._balances = balances
            self._transfers = transfers
            logger.debug("mock_ledger_rolled_back")
            raise

    async def transfer(
        self,
        mint: bytes,
        source: bytes,
        destination: bytes,
        amount: int,
        authority: bytes,
    ) -> str:
        if amount < 0:
            raise LedgerError(f"Negative transfer amount: {amount}")

        owner = self._owners.get(source)
        if owner is not None and authority != owner:
            raise LedgerError("Transfer not signed by the source account owner")

        available = self._balances.get((source, mint), 0)
        if available < amount:
            raise LedgerError(f"Insufficient funds: {available} < {amount}")

        self._balances[(source, mint)] = available - amount
        self._balances[(destination, mint)] = (
            self._balances.get((destination, mint), 0) + amount
        )

        tx_id = hashlib.sha256(uuid.uuid4().bytes).hexdigest()
        self._transfers.append(
            {
                "tx_id": tx_id,
                "mint": mint,
                "source": source,
                "destination": destination,
                "amount": amount,
            }
        )
        logger.debug(
            "mock_transfer",
            mint=mint,
            source=source,
            destination=destination,
            amount=amount,
        )
        return tx_id

    # =========================================================================
    # Test Utilities
    # =========================================================================

    def credit(self, account: bytes, mint: bytes, amount: int) -> None:
        """Mint value into an account."""
        self._balances[(account, mint)] = self._balances.get((account, mint), 0) + amount

    def set_owner(self, account: bytes, owner: bytes) -> None:
        """Require `owner` to sign transfers out of `account`."""
        self._owners[account] = owner

    @property
    def transfers(self) -> list[dict[str, Any]]:
        return list(self._transfers)

    def clear_all(self) -> None:
        """Clear all mock data (for testing)."""
        self._balances.clear()
        self._owners.clear()
        self._transfers.clear()
        logger.debug("mock_ledger_cleared")

    def get_stats(self) -> dict[str, int]:
        """Get storage statistics."""
        return {
            "accounts": len({account for account, _ in self._balances}),
            "transfers": len(self._transfers),
        }


class MockExchangeAdapter(ExchangeAdapter):
    """
    Exchange against an unlimited in-memory reserve.

    The payload is JSON: {"amount_in": int, "amount_out": int}. Accounts are
    [input custody, output custody], each carrying its mint.
    """

    def __init__(
        self,
        ledger: MockTokenLedger,
        reserve: bytes = MOCK_EXCHANGE_RESERVE,
    ) -> None:
        self._ledger = ledger
        self._reserve = reserve
        self._executions: list[dict[str, Any]] = []
        self._failure: str | None = None

    async def execute(
        self,
        program_id: bytes,
        payload: bytes,
        accounts: list[AccountMeta],
        signer: bytes,
    ) -> None:
        if self._failure:
            raise LedgerError(self._failure)
        if len(accounts) < 2 or accounts[0].mint is None or accounts[1].mint is None:
            raise LedgerError("Exchange needs input and output custody accounts")

        try:
            instruction = json.loads(payload)
            amount_in = int(instruction["amount_in"])
            amount_out = int(instruction["amount_out"])
        except (ValueError, KeyError, TypeError) as e:
            raise LedgerError(f"Malformed exchange payload: {e}") from e

        source, destination = accounts[0], accounts[1]
        await self._ledger.transfer(
            source.mint, source.address, self._reserve, amount_in, signer
        )
        self._ledger.credit(self._reserve, destination.mint, amount_out)
        await self._ledger.transfer(
            destination.mint, self._reserve, destination.address, amount_out, self._reserve
        )

        self._executions.append(
            {
                "program_id": program_id,
                "amount_in": amount_in,
                "amount_out": amount_out,
            }
        )
        logger.debug("mock_exchange_executed", amount_in=amount_in, amount_out=amount_out)

    # =========================================================================
    # Test Utilities
    # =========================================================================

    def fail_with(self, reason: str | None) -> None:
        """Make subsequent executions raise LedgerError (None to recover)."""
        self._failure = reason

    @property
    def executions(self) -> list[dict[str, Any]]:
        return list(self._executions)

    def clear_all(self) -> None:
        """Clear all mock data (for testing)."""
        self._executions.clear()
        self._failure = None
