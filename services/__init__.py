"""
Shielded Pool Services
======================

Services:
- pool: Proof verification and settlement for shielded transactions
"""

__all__ = [
    "pool",
]
