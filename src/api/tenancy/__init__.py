"""Tenancy bounded context.

Resolves the tenant a request runs under from a verified claim set, validates
the caller's membership, and administers tenants and memberships.
"""
