"""
Shielded Pool Test Suite
========================

Test organization:
- tests/unit/           - Field, hashing, encoding, verifier and mock ledger
- tests/services/pool/  - Tree, binding, fees, orchestration and HTTP API

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=shared --cov=services
"""
