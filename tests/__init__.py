"""Test package for the Outcome Coach relay.

Unit tests cover each relay component in isolation; integration tests drive
the FastAPI app end to end.

Structure:
    - unit/: Individual function and class tests
    - integration/: HTTP-level tests of the chat endpoint

The vendor API is always an httpx MockTransport stub, so no API key or
network access is needed. Leverages pytest with pytest-check for soft
assertions.
"""
