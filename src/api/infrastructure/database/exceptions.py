"""Database-specific exceptions.

These describe transient or technical storage failures. They are kept
separate from the tenant isolation taxonomy so a timeout or dropped
connection is never mistaken for an ownership violation.
"""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""

    pass

