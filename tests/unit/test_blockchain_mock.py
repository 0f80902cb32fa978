"""
Unit tests for the mock host ledger.
"""

import asyncio
import json

import pytest

from shared.blockchain import (
    AccountMeta,
    LedgerError,
    MockExchangeAdapter,
    MockNullifierRegistry,
    MockTokenLedger,
    RegistrationStatus,
    config_authority,
    create_program_address,
    derive_nullifier_address,
)
from shared.config import LedgerMode
from shared.zk.field import is_canonical
from tests.helpers import MINT_A, MINT_B, account


PROGRAM_ID = account("program")
NAMESPACE = account("namespace")


class TestAddressDerivation:
    """Tests for program address derivation."""

    def test_program_address_is_deterministic(self) -> None:
        """Same seeds and program, same address."""
        a = create_program_address([b"reserve", MINT_A], PROGRAM_ID)
        assert a == create_program_address([b"reserve", MINT_A], PROGRAM_ID)
        assert a != create_program_address([b"reserve", MINT_B], PROGRAM_ID)
        assert len(a) == 32

    def test_seed_length_limit(self) -> None:
        """Seeds longer than 32 bytes are rejected."""
        with pytest.raises(ValueError):
            create_program_address([bytes(33)], PROGRAM_ID)

    def test_config_authority_depends_on_bump(self) -> None:
        """Different bumps give different authorities."""
        assert config_authority(PROGRAM_ID, 255) != config_authority(PROGRAM_ID, 254)

    def test_nullifier_address_is_namespaced(self) -> None:
        """The same nullifier maps to distinct identities per namespace and program."""
        nullifier = account("nullifier")
        base = derive_nullifier_address(nullifier, NAMESPACE, PROGRAM_ID)
        assert is_canonical(base)
        assert base != derive_nullifier_address(nullifier, account("other"), PROGRAM_ID)
        assert base != derive_nullifier_address(nullifier, NAMESPACE, account("other"))


class TestMockNullifierRegistry:
    """Tests for MockNullifierRegistry."""

    @pytest.fixture
    def registry(self) -> MockNullifierRegistry:
        """Create a fresh mock registry for each test."""
        registry = MockNullifierRegistry()
        registry.clear_all()
        return registry

    def test_registry_mode(self, registry: MockNullifierRegistry) -> None:
        """Test that registry reports mock mode."""
        assert registry.mode == LedgerMode.MOCK

    @pytest.mark.asyncio
    async def test_register_once(self, registry: MockNullifierRegistry) -> None:
        """Test that an identity can be registered exactly once."""
        identity = account("id")
        assert await registry.register(identity) == RegistrationStatus.CREATED
        assert await registry.register(identity) == RegistrationStatus.ALREADY_EXISTS
        assert await registry.exists(identity)

    @pytest.mark.asyncio
    async def test_register_all_is_atomic(self, registry: MockNullifierRegistry) -> None:
        """Test that a batch with one known identity registers nothing."""
        known, fresh = account("known"), account("fresh")
        await registry.register(known)

        status = await registry.register_all([fresh, known])

        assert status == RegistrationStatus.ALREADY_EXISTS
        assert not await registry.exists(fresh)

    @pytest.mark.asyncio
    async def test_register_all_rejects_duplicates(self, registry: MockNullifierRegistry) -> None:
        """Test that a batch repeating an identity is a conflict."""
        identity = account("dup")
        status = await registry.register_all([identity, identity])
        assert status == RegistrationStatus.ALREADY_EXISTS
        assert registry.get_stats()["nullifiers"] == 0

    @pytest.mark.asyncio
    async def test_concurrent_registration(self, registry: MockNullifierRegistry) -> None:
        """Test that exactly one of many concurrent registrations wins."""
        identity = account("race")
        results = await asyncio.gather(
            *(registry.register_all([identity, account(f"other-{i}")]) for i in range(10))
        )
        assert results.count(RegistrationStatus.CREATED) == 1
        assert results.count(RegistrationStatus.ALREADY_EXISTS) == 9

    @pytest.mark.asyncio
    async def test_unavailable_registry(self, registry: MockNullifierRegistry) -> None:
        """Test that outages surface as ERROR and show in health."""
        registry.set_available(False)

        assert await registry.register(account("x")) == RegistrationStatus.ERROR
        health = await registry.health_check()
        assert health["status"] == "unavailable"

    @pytest.mark.asyncio
    async def test_release_all(self, registry: MockNullifierRegistry) -> None:
        """Test that released identities can be registered again."""
        kept, released = account("kept"), account("released")
        await registry.register(kept)
        await registry.register(released)

        await registry.release_all([released])

        assert await registry.exists(kept)
        assert await registry.register(released) == RegistrationStatus.CREATED

    @pytest.mark.asyncio
    async def test_release_while_unavailable(self, registry: MockNullifierRegistry) -> None:
        """Test that a release during an outage raises and keeps the identity."""
        identity = account("stuck")
        await registry.register(identity)
        registry.set_available(False)

        with pytest.raises(LedgerError):
            await registry.release_all([identity])
        assert await registry.exists(identity)


class TestMockTokenLedger:
    """Tests for MockTokenLedger."""

    @pytest.fixture
    def ledger(self) -> MockTokenLedger:
        """Create a fresh mock ledger for each test."""
        ledger = MockTokenLedger()
        ledger.clear_all()
        return ledger

    @pytest.mark.asyncio
    async def test_transfer_moves_balance(self, ledger: MockTokenLedger) -> None:
        """Test a plain transfer between accounts."""
        alice, bob = account("alice"), account("bob")
        ledger.credit(alice, MINT_A, 100)

        tx_id = await ledger.transfer(MINT_A, alice, bob, 40, alice)

        assert await ledger.balance_of(alice, MINT_A) == 60
        assert await ledger.balance_of(bob, MINT_A) == 40
        assert await ledger.balance_of(bob, MINT_B) == 0
        assert ledger.transfers[0]["tx_id"] == tx_id

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, ledger: MockTokenLedger) -> None:
        """Test that overdrafts are refused."""
        alice = account("alice")
        ledger.credit(alice, MINT_A, 10)

        with pytest.raises(LedgerError):
            await ledger.transfer(MINT_A, alice, account("bob"), 11, alice)
        assert await ledger.balance_of(alice, MINT_A) == 10

    @pytest.mark.asyncio
    async def test_owner_must_sign(self, ledger: MockTokenLedger) -> None:
        """Test that owned accounts only move funds on the owner's signature."""
        custody, owner = account("custody"), account("owner")
        ledger.credit(custody, MINT_A, 100)
        ledger.set_owner(custody, owner)

        with pytest.raises(LedgerError):
            await ledger.transfer(MINT_A, custody, account("thief"), 1, account("thief"))
        await ledger.transfer(MINT_A, custody, account("payee"), 1, owner)
        assert await ledger.balance_of(custody, MINT_A) == 99

    @pytest.mark.asyncio
    async def test_negative_amount_rejected(self, ledger: MockTokenLedger) -> None:
        """Test that transfers cannot run backwards."""
        alice = account("alice")
        with pytest.raises(LedgerError):
            await ledger.transfer(MINT_A, alice, account("bob"), -1, alice)

    @pytest.mark.asyncio
    async def test_atomic_commits_on_success(self, ledger: MockTokenLedger) -> None:
        """Test that a clean block keeps its transfers."""
        alice, bob = account("alice"), account("bob")
        ledger.credit(alice, MINT_A, 100)

        async with ledger.atomic():
            await ledger.transfer(MINT_A, alice, bob, 40, alice)

        assert await ledger.balance_of(bob, MINT_A) == 40
        assert len(ledger.transfers) == 1

    @pytest.mark.asyncio
    async def test_atomic_rolls_back_on_error(self, ledger: MockTokenLedger) -> None:
        """Test that a failing block restores every balance it touched."""
        alice, bob, carol = account("alice"), account("bob"), account("carol")
        ledger.credit(alice, MINT_A, 100)

        with pytest.raises(LedgerError):
            async with ledger.atomic():
                await ledger.transfer(MINT_A, alice, bob, 40, alice)
                await ledger.transfer(MINT_A, alice, carol, 80, alice)

        assert await ledger.balance_of(alice, MINT_A) == 100
        assert await ledger.balance_of(bob, MINT_A) == 0
        assert ledger.transfers == []


class TestMockExchangeAdapter:
    """Tests for MockExchangeAdapter."""

    @pytest.fixture
    def ledger(self) -> MockTokenLedger:
        return MockTokenLedger()

    @pytest.fixture
    def exchange(self, ledger: MockTokenLedger) -> MockExchangeAdapter:
        return MockExchangeAdapter(ledger)

    @pytest.mark.asyncio
    async def test_execute_swaps_balances(
        self, ledger: MockTokenLedger, exchange: MockExchangeAdapter
    ) -> None:
        """Test that amount_in leaves the input account and amount_out arrives."""
        signer = account("signer")
        src, dst = account("src"), account("dst")
        ledger.credit(src, MINT_A, 1000)
        ledger.set_owner(src, signer)
        accounts = [
            AccountMeta(address=src, mint=MINT_A, is_writable=True),
            AccountMeta(address=dst, mint=MINT_B, is_writable=True),
        ]
        payload = json.dumps({"amount_in": 1000, "amount_out": 880}).encode()

        await exchange.execute(account("dex"), payload, accounts, signer)

        assert await ledger.balance_of(src, MINT_A) == 0
        assert await ledger.balance_of(dst, MINT_B) == 880
        assert exchange.executions[0]["amount_out"] == 880

    @pytest.mark.asyncio
    async def test_malformed_payload(
        self, ledger: MockTokenLedger, exchange: MockExchangeAdapter
    ) -> None:
        """Test that unparseable instructions fail as LedgerError."""
        accounts = [
            AccountMeta(address=account("src"), mint=MINT_A),
            AccountMeta(address=account("dst"), mint=MINT_B),
        ]
        with pytest.raises(LedgerError):
            await exchange.execute(account("dex"), b"not json", accounts, account("signer"))

    @pytest.mark.asyncio
    async def test_forced_failure(self, exchange: MockExchangeAdapter) -> None:
        """Test that fail_with makes execution raise."""
        exchange.fail_with("pool drained")
        with pytest.raises(LedgerError, match="pool drained"):
            await exchange.execute(account("dex"), b"{}", [], account("signer"))
