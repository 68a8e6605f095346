"""Tests for PermissionSet wildcard-aware membership."""

import pytest

from authz_engine.domain.value_objects import PermissionSet, PermissionToken


def test_exact_match() -> None:
    perms = PermissionSet.of(["reports:read"])
    assert perms.contains("reports:read")
    assert not perms.contains("reports:write")


def test_prefix_wildcard_matches_at_segment_boundary_only() -> None:
    perms = PermissionSet.of(["services:clients:*"])
    assert perms.contains("services:clients:read")
    assert perms.contains("services:clients:notes:delete")
    assert not perms.contains("services:clientsRead")
    assert not perms.contains("services:other:read")


def test_namespace_wildcard_covers_nested_tokens() -> None:
    perms = PermissionSet.of(["services:*"])
    assert perms.contains("services:clients:read")
    assert not perms.contains("reports:read")


@pytest.mark.parametrize("grant", ["*", "super:*", "admin:*"])
def test_global_wildcards_grant_everything(grant: str) -> None:
    perms = PermissionSet.of([grant])
    assert perms.contains("reports:read")
    assert perms.contains("billing:invoices:export")


def test_matching_is_case_sensitive() -> None:
    perms = PermissionSet.of(["Reports:read"])
    assert not perms.contains("reports:read")


def test_empty_set_and_empty_query() -> None:
    assert not PermissionSet.empty().contains("reports:read")
    assert not PermissionSet.of(["*"]).contains("")


def test_union_keeps_specific_and_wildcard_tokens() -> None:
    merged = PermissionSet.of(["reports:read"]) | PermissionSet.of(["reports:*"])
    assert merged.to_list() == ["reports:*", "reports:read"]
    assert len(merged) == 2


def test_of_rejects_malformed_tokens() -> None:
    with pytest.raises(ValueError):
        PermissionSet.of(["reports:read", "not-a-token"])


def test_membership_operator_accepts_tokens_and_ignores_other_types() -> None:
    perms = PermissionSet.of(["reports:read"])
    assert PermissionToken("reports:read") in perms
    assert "reports:read" in perms
    assert 42 not in perms
    assert list(perms) == ["reports:read"]


def test_other_namespace_wildcards_stay_scoped() -> None:
    perms = PermissionSet.of(["billing:*"])
    assert perms.contains("billing:invoices:export")
    assert not perms.contains("admin:users:read")
