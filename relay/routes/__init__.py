"""API routes package."""

from relay.routes.transfer_routes import router as transfer_router

__all__ = ["transfer_router"]
