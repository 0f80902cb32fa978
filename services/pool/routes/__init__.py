"""
Shielded Pool Routes
====================

API route modules for the pool service.
"""

from services.pool.routes import policy, transactions, tree

__all__ = ["policy", "transactions", "tree"]
