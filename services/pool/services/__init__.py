"""
Shielded Pool Services
======================

Business logic of the pool verification core.

Services:
- CommitmentTree: Append-only commitment accumulator
- Binding: External data hash recomputation
- Amounts: Public amount reconciliation
- Fees: Fee policy validation
- ShieldedPool: Transaction orchestration

Version: 0.1.0
"""

from services.pool.services.amounts import (
    check_public_amount,
    expected_public_amount,
)
from services.pool.services.binding import (
    calculate_ext_data_hash,
    calculate_swap_ext_data_hash,
    verify_ext_data_binding,
)
from services.pool.services.fees import minimum_fee, validate_fee
from services.pool.services.merkle_tree import (
    CommitmentTree,
    TreeHasher,
    zero_root,
)
from services.pool.services.orchestrator import ShieldedPool


__all__ = [
    # Accumulator
    "CommitmentTree",
    "TreeHasher",
    "zero_root",
    # Binding
    "calculate_ext_data_hash",
    "calculate_swap_ext_data_hash",
    "verify_ext_data_binding",
    # Amounts
    "check_public_amount",
    "expected_public_amount",
    # Fees
    "validate_fee",
    "minimum_fee",
    # Orchestrator
    "ShieldedPool",
]
