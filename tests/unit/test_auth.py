import uuid
from types import SimpleNamespace

from timeline.api.auth import (
    fetch_membership_snapshot,
    get_or_create_user,
    resolve_identity_from_headers,
    resolve_principal,
)
from timeline.utils.roles import OrgRole


def test_resolve_identity_prefers_auth_request_headers():
    name, email = resolve_identity_from_headers(
        x_auth_request_user="alice",
        x_auth_request_email="  Alice@Example.COM ",
        x_forwarded_user="bob",
        x_forwarded_email="bob@example.com",
    )
    assert name == "alice"
    assert email == "alice@example.com"


def test_resolve_identity_falls_back_to_forwarded_headers():
    name, email = resolve_identity_from_headers(None, None, "bob", "Bob@Example.com")
    assert (name, email) == ("bob", "bob@example.com")


def test_resolve_identity_without_headers():
    assert resolve_identity_from_headers(None, None, None, None) == (None, None)
    assert resolve_identity_from_headers(None, "   ", None, None) == (None, None)


def test_resolve_principal():
    anon = resolve_principal(None)
    assert anon.user_id is None and anon.is_superadmin is False
    assert not anon.is_authenticated

    uid = uuid.uuid4()
    p = resolve_principal(SimpleNamespace(id=uid, is_superadmin=True))
    assert p.user_id == uid
    assert p.is_superadmin is True
    assert p.is_authenticated


def test_get_or_create_user_creates_once(db_session):
    first = get_or_create_user(db_session, "New@Example.com", display_name=None)
    again = get_or_create_user(db_session, "new@example.com")
    assert first.id == again.id
    assert first.email == "new@example.com"
    assert first.display_name == "new"
    assert first.is_superadmin is False


def test_admin_emails_promote_new_and_existing_users(db_session, monkeypatch, user_factory):
    existing = user_factory("boss@example.com")
    assert existing.is_superadmin is False
    monkeypatch.setenv("ADMIN_EMAILS", "boss@example.com, 'root@example.com'")

    promoted = get_or_create_user(db_session, "boss@example.com")
    assert promoted.is_superadmin is True

    created = get_or_create_user(db_session, "root@example.com", display_name="Root")
    assert created.is_superadmin is True
    assert created.display_name == "Root"


def test_snapshot_contains_only_approved_organizations(
    db_session, user_factory, organization_factory, membership_factory
):
    user = user_factory("member@example.com")
    approved = organization_factory("Approved Org", status="approved")
    pending = organization_factory("Pending Org", status="pending")
    rejected = organization_factory("Rejected Org", status="rejected")
    membership_factory(approved, user, role="org_editor")
    membership_factory(pending, user, role="org_admin")
    membership_factory(rejected, user, role="org_admin")

    snap = fetch_membership_snapshot(db_session, user.id)
    assert snap.user_id == user.id
    assert snap.organization_ids() == frozenset({approved.id})
    assert snap.role_for(approved.id) is OrgRole.org_editor
    assert snap.role_for(pending.id) is None
    assert snap.role_for(rejected.id) is None


def test_snapshot_for_anonymous_is_empty(db_session):
    snap = fetch_membership_snapshot(db_session, None)
    assert snap.user_id is None
    assert snap.organization_ids() == frozenset()
