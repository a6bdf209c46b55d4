"""Unit tests for individual components in isolation.

Coverage:
    - config: Environment loading and validation bounds
    - rate_limiter: Fixed-window counting and client identity
    - normalizer: Message filtering and role merging
    - stream: Vendor SSE decoding and caller event framing
    - vendor: Request building, reply handling and error mapping

Uses a fake clock for time and a MockTransport for HTTP. Leverages
pytest-check for multiple assertions per test.
"""
