"""API routers for StudentBox."""

from studentbox.routers import auth, import_router

__all__ = ["auth", "import_router"]
