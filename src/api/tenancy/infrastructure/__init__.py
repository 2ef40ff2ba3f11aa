"""Tenancy infrastructure: persistence, directory cache and audit sinks."""
