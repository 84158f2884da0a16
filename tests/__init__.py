"""Test package for ragdesk.

Unit tests cover isolated logic; integration tests drive the clients
against a fake backend over real HTTP semantics.

Structure:
    - unit/: Individual function and class tests
    - integration/: Client and application workflow tests
    - helpers.py: SSE builders and MockTransport backends

Leverages pytest with pytest-check for soft assertions.
"""
