"""
Shielded Pool Service
=====================

Verification core for shielded deposits, withdrawals and swaps.

Features:
- Poseidon commitment tree with bounded root history
- External data binding checks
- Groth16 proof verification
- Fee policy and public amount reconciliation
- Deposit / withdraw / swap orchestration

Port: 8010
"""

__version__ = "0.1.0"
