"""
Pool Dependencies
=================

Process-wide pool instance for the HTTP layer.

Version: 0.1.0
"""

from services.pool.services.orchestrator import ShieldedPool
from shared.blockchain import get_ledger_collaborators
from shared.logging import get_logger


logger = get_logger(__name__)

# Global pool instance
_pool: ShieldedPool | None = None


def get_pool() -> ShieldedPool:
    """
    Get the configured pool, wired to the configured ledger collaborators.

    Returns:
        ShieldedPool instance
    """
    global _pool

    if _pool is None:
        _pool = ShieldedPool(get_ledger_collaborators())
        logger.info("pool_created", program_id=_pool.program_id)

    return _pool


def set_pool(pool: ShieldedPool) -> None:
    """
    Set a custom pool instance.

    Args:
        pool: Pool to serve
    """
    global _pool
    _pool = pool


def reset_pool() -> None:
    """Reset the pool to be re-created."""
    global _pool
    _pool = None
