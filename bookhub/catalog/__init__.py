"""
Catalog package for the book management API.

This package holds the in-memory catalogue store, the fan-out channel
that pushes catalogue changes to connected clients, the pydantic
schemas shared by both, and the route definitions that expose them
over REST and WebSocket. The store is the only writer; routes call it
first and publish the resulting event second.
"""

from .router import router as catalog_router  # noqa: F401
