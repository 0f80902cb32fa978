"""
Blockchain Module
=================

Abstraction layer for the host ledger the pool runs against.

Supports:
- Mock (development/testing)

Features:
- Nullifier registry (double-spend guard)
- Token ledger (custody balances and transfers)
- Exchange adapter (swaps)
- Program address derivation

Usage:
    from shared.blockchain import get_ledger_collaborators

    collaborators = get_ledger_collaborators()
    status = await collaborators.registry.register_all([id0, id1])
"""

from shared.blockchain.client import (
    AccountMeta,
    ExchangeAdapter,
    LedgerCollaborators,
    LedgerError,
    NullifierRegistry,
    RegistrationStatus,
    TokenLedger,
    config_authority,
    create_program_address,
    derive_nullifier_address,
    get_ledger_collaborators,
    reset_ledger_collaborators,
    set_ledger_collaborators,
)
from shared.blockchain.mock import (
    MockExchangeAdapter,
    MockNullifierRegistry,
    MockTokenLedger,
)

__all__ = [
    # Interfaces
    "NullifierRegistry",
    "TokenLedger",
    "ExchangeAdapter",
    "LedgerCollaborators",
    "get_ledger_collaborators",
    "set_ledger_collaborators",
    "reset_ledger_collaborators",
    # Models
    "AccountMeta",
    "RegistrationStatus",
    "LedgerError",
    # Addresses
    "create_program_address",
    "derive_nullifier_address",
    "config_authority",
    # Implementations
    "MockNullifierRegistry",
    "MockTokenLedger",
    "MockExchangeAdapter",
]
