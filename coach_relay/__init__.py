"""Outcome Coach relay - chat relay between a browser UI and an LLM vendor.

Combines FastAPI for HTTP streaming, httpx for the outbound vendor calls,
and Pydantic for data validation and configuration.

Components:
    - api: HTTP endpoints and streaming responses
    - relay: rate limiting, validation, vendor calls and stream re-emission
    - models: Request/response schemas
"""

__version__ = "0.1.0"
