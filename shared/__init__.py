"""
Shielded Pool Shared Library
============================

Common utilities shared by the pool service.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - zk: BN254 field arithmetic, Poseidon, Groth16 proof verification
    - blockchain: Host ledger, nullifier registry and exchange interfaces
    - models: Shared Pydantic models

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "Shielded Pool Team"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
