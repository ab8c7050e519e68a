"""
Integration tests package.

Covers the SQL repositories on SQLite in-memory, the write-conflict retry
helper and the health endpoints.

To run only these:
    pytest tests/integration/
"""
