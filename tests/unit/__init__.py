"""Unit tests for individual components in isolation.

Ensures fast execution with no network access.

Coverage:
    - chat/: SSE decoding, stream sessions, message store
    - models/: Pydantic validation and serialization
    - intake/: Carbon data validation rules
    - config: Environment loading and bounds
    - ui/: Pure helpers of the NiceGUI pages

Follows single responsibility per test function. Leverages pytest-check for
multiple assertions per test.
"""
