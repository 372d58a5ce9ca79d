"""ASGI middleware for the gateway."""
