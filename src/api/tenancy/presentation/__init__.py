"""Tenancy presentation layer."""

from tenancy.presentation.errors import register_exception_handlers
from tenancy.presentation.routes import router

__all__ = ["register_exception_handlers", "router"]
