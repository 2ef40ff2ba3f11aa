"""Communities bounded context: tenant-owned chat rooms and messages."""
