"""Integration tests for components working together.

The remote backend is replaced by httpx.MockTransport handlers, so requests
and streamed responses pass through real httpx machinery.

Coverage:
    - Streaming chat from send to completion, error and stop
    - REST client envelopes, uploads, polling and downloads
    - Host FastAPI application endpoints
"""
