"""Typed parsing of the verified claim set.

Claims arrive from the external identity provider as an already verified,
string-keyed mapping. They are parsed exactly once, at the resolver boundary,
into ``VerifiedClaims``; nothing downstream looks at raw claims again.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from shared_kernel.tenancy.value_objects import PrincipalId, TenantId


@dataclass(frozen=True)
class VerifiedClaims:
    """The parts of a verified claim set the tenancy pipeline relies on.

    Attributes:
        principal_id: The subject, or None if no subject claim was usable.
        tenant_id: The tenant, or None if the tenant claim was absent or
            malformed.
        raw_tenant_claim: The tenant claim as received, kept for diagnostics.
    """

    principal_id: PrincipalId | None
    tenant_id: TenantId | None
    raw_tenant_claim: str | None = None


def _first_present(raw: Mapping[str, Any], names: Sequence[str]) -> Any:
    for name in names:
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return None


def _parse_tenant(value: Any) -> TenantId | None:
    if isinstance(value, UUID):
        value = str(value)
    if not isinstance(value, str):
        return None
    try:
        return TenantId.from_string(value)
    except ValueError:
        return None


def _parse_principal(value: Any) -> PrincipalId | None:
    if not isinstance(value, str):
        return None
    try:
        return PrincipalId(value.strip())
    except ValueError:
        return None


def parse_claims(
    raw: Mapping[str, Any],
    tenant_claim_names: Sequence[str],
    subject_claim_names: Sequence[str],
) -> VerifiedClaims:
    """Parse a verified claim set.

    The first non-empty claim among ``tenant_claim_names`` is the tenant
    claim; likewise for the subject. A malformed value yields None rather
    than an exception so the resolver decides how to reject it.

    Args:
        raw: Claims as produced by the identity provider
        tenant_claim_names: Claim names to search for the tenant id, in order
        subject_claim_names: Claim names to search for the principal id, in order

    Returns:
        Parsed claims
    """
    tenant_value = _first_present(raw, tenant_claim_names)
    subject_value = _first_present(raw, subject_claim_names)
    return VerifiedClaims(
        principal_id=_parse_principal(subject_value),
        tenant_id=_parse_tenant(tenant_value),
        raw_tenant_claim=None if tenant_value is None else str(tenant_value),
    )
