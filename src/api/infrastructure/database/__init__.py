"""Database infrastructure - sessions, models and tenant enforcement."""

from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
)

__all__ = [
    "DatabaseConnectionError",
    "DatabaseError",
]
