"""Integration tests for the relay working as a system.

Coverage:
    - POST /api/chat in JSON and event stream modes
    - Rate limiting, validation and vendor failure responses
    - Health check and CORS

Requests go through the real app via ASGITransport; only the vendor is
stubbed.
"""
