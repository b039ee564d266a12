"""
Regulatory Feed Test Suite
==========================

Test organization:
- tests/unit/                      - Shared library tests (no database)
- tests/services/regulatory_feed/  - Service tests against SQLite via aiosqlite

Run tests:
    pytest                                  # All tests
    pytest tests/unit                       # Unit tests only
    pytest tests/services/regulatory_feed   # Service tests only
"""
