"""
Test Configuration
==================

Pytest fixtures for shielded pool tests.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["LEDGER_MODE"] = "mock"

from services.pool.services.orchestrator import ShieldedPool  # noqa: E402
from shared.blockchain import (  # noqa: E402
    LedgerCollaborators,
    MockExchangeAdapter,
    MockNullifierRegistry,
    MockTokenLedger,
)
from shared.config import PoolSettings  # noqa: E402
from shared.zk.prover import TrapdoorSetup  # noqa: E402
from shared.zk.verifier import Groth16Verifier  # noqa: E402
from tests.helpers import (  # noqa: E402
    ADMIN,
    DEPOSITOR,
    DEPOSITOR_FUNDS,
    MINT_A,
    MINT_B,
    TransactionFactory,
)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture(scope="session")
def trapdoor() -> TrapdoorSetup:
    """Reproducible trapdoor key shared by the whole run."""
    return TrapdoorSetup.generate(seed=20240611)


@pytest.fixture(scope="session")
def trapdoor_verifier(trapdoor: TrapdoorSetup) -> Groth16Verifier:
    """Verifier accepting proofs forged with the trapdoor."""
    return Groth16Verifier(trapdoor.verifying_key())


@pytest.fixture
def pool_settings() -> PoolSettings:
    """Small tree and fixed fee policy."""
    return PoolSettings(
        tree_height=4,
        root_history_size=4,
        max_deposit_amount=1_000_000,
        deposit_fee_rate=0,
        withdrawal_fee_rate=25,
        fee_error_margin=500,
    )


@pytest.fixture
def collaborators() -> LedgerCollaborators:
    """Fresh in-memory registry, ledger and exchange."""
    ledger = MockTokenLedger()
    return LedgerCollaborators(
        registry=MockNullifierRegistry(),
        ledger=ledger,
        exchange=MockExchangeAdapter(ledger),
    )


@pytest_asyncio.fixture
async def pool(
    collaborators: LedgerCollaborators,
    pool_settings: PoolSettings,
    trapdoor_verifier: Groth16Verifier,
) -> ShieldedPool:
    """Initialized pool with owned custody accounts and a funded depositor."""
    pool = ShieldedPool(collaborators, pool_settings, verifier=trapdoor_verifier)
    await pool.initialize(ADMIN)

    ledger = collaborators.ledger
    for mint in (MINT_A, MINT_B):
        ledger.set_owner(pool.custody_account(mint), pool.authority_address)
    ledger.credit(DEPOSITOR, MINT_A, DEPOSITOR_FUNDS)
    return pool


@pytest.fixture
def factory(trapdoor: TrapdoorSetup, pool: ShieldedPool) -> TransactionFactory:
    """Request builder bound to the pool's current root."""
    return TransactionFactory(trapdoor, pool)


@pytest_asyncio.fixture
async def pool_client(pool: ShieldedPool) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Shielded Pool Service."""
    from services.pool.dependencies import reset_pool, set_pool
    from services.pool.main import app

    set_pool(pool)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    reset_pool()
