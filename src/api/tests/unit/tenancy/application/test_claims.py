"""Unit tests for verified claim parsing."""

from uuid import UUID

import pytest

from tenancy.application.claims import parse_claims

TENANT = "7d9f4c8e-0a51-4f5b-9d7e-2b1f6c3a8e10"
TENANT_CLAIMS = ("tenantId", "extension_TenantId")
SUBJECT_CLAIMS = ("sub", "oid")


def _parse(raw):
    return parse_claims(raw, TENANT_CLAIMS, SUBJECT_CLAIMS)


class TestParseClaims:
    """Tests for parse_claims()."""

    def test_parses_tenant_and_subject(self):
        claims = _parse({"tenantId": TENANT, "sub": "alice"})

        assert str(claims.tenant_id) == TENANT
        assert claims.principal_id.value == "alice"
        assert claims.raw_tenant_claim == TENANT

    def test_first_non_empty_claim_wins(self):
        other = "0b7e4a2c-61f3-4d8a-9c5e-3f2d1a0b9c8d"
        claims = _parse({"tenantId": "", "extension_TenantId": other, "oid": "bob"})

        assert str(claims.tenant_id) == other
        assert claims.principal_id.value == "bob"

    def test_missing_tenant_claim(self):
        claims = _parse({"sub": "alice"})

        assert claims.tenant_id is None
        assert claims.raw_tenant_claim is None

    @pytest.mark.parametrize("value", ["acme", 42, "00000000-0000-0000-0000-000000000000"])
    def test_malformed_tenant_claim_yields_none(self, value):
        claims = _parse({"tenantId": value, "sub": "alice"})

        assert claims.tenant_id is None
        assert claims.raw_tenant_claim == str(value)

    def test_accepts_uuid_objects(self):
        claims = _parse({"tenantId": UUID(TENANT), "sub": "alice"})
        assert str(claims.tenant_id) == TENANT

    @pytest.mark.parametrize("subject", [None, "", "   ", 7])
    def test_unusable_subject_yields_none(self, subject):
        claims = _parse({"tenantId": TENANT, "sub": subject})
        assert claims.principal_id is None
