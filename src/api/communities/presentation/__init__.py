"""Communities presentation layer."""

from communities.presentation.routes import router

__all__ = ["router"]
