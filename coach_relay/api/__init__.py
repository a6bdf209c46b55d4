"""FastAPI endpoints for the Outcome Coach relay.

HTTP and streaming routes with async request handling.
Supports Server-Sent Events for real-time reply streaming.

Endpoints:
    - GET /health: Service health status
    - POST /api/chat: Relay a conversation to the vendor
"""

from coach_relay.api.app import app, create_app

__all__ = ["app", "create_app"]
