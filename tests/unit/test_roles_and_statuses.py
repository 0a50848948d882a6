import pytest

from timeline.utils.roles import (
    ALLOWED_ROLES,
    MANAGE_ROLES,
    WRITE_ROLES,
    OrgRole,
    parse_role,
    role_allows_manage,
    role_allows_write,
)
from timeline.utils.statuses import (
    OrganizationStatus,
    can_transition,
    grants_membership,
)


def test_role_groups():
    assert WRITE_ROLES == {OrgRole.org_admin, OrgRole.org_editor}
    assert MANAGE_ROLES == {OrgRole.org_admin}
    assert ALLOWED_ROLES == {"org_admin", "org_editor", "org_viewer"}


def test_parse_role_accepts_strings_and_enums():
    assert parse_role("org_editor") is OrgRole.org_editor
    assert parse_role(OrgRole.org_viewer) is OrgRole.org_viewer


@pytest.mark.parametrize("bad", ["owner", "admin", "", None])
def test_parse_role_rejects_unknown(bad):
    with pytest.raises(ValueError) as exc:
        parse_role(bad)
    assert "Allowed roles" in str(exc.value)


def test_role_predicates():
    assert role_allows_write(OrgRole.org_editor)
    assert not role_allows_write(OrgRole.org_viewer)
    assert role_allows_manage(OrgRole.org_admin)
    assert not role_allows_manage(OrgRole.org_editor)
    # String values compare equal to the str-enum members
    assert role_allows_write("org_admin")


def test_status_values():
    assert {s.value for s in OrganizationStatus} == {"pending", "approved", "rejected"}
    with pytest.raises(ValueError):
        OrganizationStatus("archived")


@pytest.mark.parametrize(
    "current,target,expected",
    [
        ("pending", "approved", True),
        ("pending", "rejected", True),
        ("approved", "rejected", False),
        ("approved", "approved", False),
        ("rejected", "approved", False),
        ("pending", "pending", False),
        ("pending", "archived", False),
        ("unknown", "approved", False),
    ],
)
def test_transitions(current, target, expected):
    assert can_transition(current, target) is expected


def test_only_approved_grants_membership():
    assert grants_membership(OrganizationStatus.approved)
    assert grants_membership("approved")
    assert not grants_membership(OrganizationStatus.pending)
    assert not grants_membership(OrganizationStatus.rejected)
