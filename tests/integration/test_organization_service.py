import uuid

import pytest

from timeline.api.permissions import MembershipSnapshot, Principal
from timeline.audit import AuditAction, AuditStatus
from timeline.db import models
from timeline.db.repositories import audits as audit_repo
from timeline.db.repositories import organizations as org_repo
from timeline.services.errors import Conflict, InvalidState, NotAuthenticated, NotAuthorized, NotFound
from timeline.services.organization_service import OrganizationService
from timeline.utils.roles import OrgRole

pytestmark = pytest.mark.integration


@pytest.fixture
def service(db_session):
    return OrganizationService(db_session)


@pytest.fixture
def superadmin(user_factory):
    return user_factory("root@example.com", is_superadmin=True)


@pytest.fixture
def creator(user_factory):
    return user_factory("creator@example.com", display_name="Creator")


@pytest.fixture
def pending_org(organization_factory, creator):
    return organization_factory("Pending Org", status="pending", created_by=creator)


class TestLifecycle:
    def test_register_creates_pending_organization(self, service, db_session, creator, context_for):
        principal, _ = context_for(creator)
        org = service.register_organization("History Club", "history-club", "Old things", principal)
        assert org.status == "pending"
        assert org.created_by == creator.id
        # Registration does not grant membership until approval
        assert org_repo.get_organization_member(db_session, org.id, creator.id) is None
        actions = [a.action_type for a in audit_repo.get_audit_logs(db_session, organization_id=org.id)]
        assert actions == ["organization_register"]

    def test_register_duplicate_slug_conflicts(self, service, creator, context_for):
        principal, _ = context_for(creator)
        service.register_organization("One", "same-slug", None, principal)
        with pytest.raises(Conflict):
            service.register_organization("Two", "same-slug", None, principal)

    def test_register_requires_authentication(self, service):
        with pytest.raises(NotAuthenticated):
            service.register_organization("Anon", "anon", None, Principal.anonymous())

    def test_approve_is_one_shot_and_grants_admin(self, service, db_session, superadmin, pending_org, creator, context_for):
        principal, snapshot = context_for(superadmin)
        approved = service.approve_organization(pending_org.id, principal, snapshot)
        assert approved.status == "approved"

        membership = org_repo.get_organization_member(db_session, pending_org.id, creator.id)
        assert membership is not None
        assert membership.role == OrgRole.org_admin.value

        with pytest.raises(InvalidState):
            service.approve_organization(pending_org.id, principal, snapshot)
        with pytest.raises(InvalidState):
            service.reject_organization(pending_org.id, principal, snapshot)

        count = (
            db_session.query(models.OrganizationMembership)
            .filter(models.OrganizationMembership.organization_id == pending_org.id)
            .count()
        )
        assert count == 1
        actions = [a.action_type for a in audit_repo.get_audit_logs(db_session, organization_id=pending_org.id)]
        assert actions == ["organization_approve"]

    def test_creator_snapshot_after_approval(self, service, superadmin, pending_org, creator, context_for):
        _, before = context_for(creator)
        assert before.role_for(pending_org.id) is None
        service.approve_organization(pending_org.id, *context_for(superadmin))
        _, after = context_for(creator)
        assert after.role_for(pending_org.id) is OrgRole.org_admin

    def test_approve_keeps_existing_membership(self, service, db_session, superadmin, pending_org, creator, membership_factory, context_for):
        membership_factory(pending_org, creator, role="org_editor")
        service.approve_organization(pending_org.id, *context_for(superadmin))
        membership = org_repo.get_organization_member(db_session, pending_org.id, creator.id)
        assert membership.role == "org_editor"

    def test_reject_leaves_no_membership(self, service, db_session, superadmin, pending_org, creator, context_for):
        rejected = service.reject_organization(pending_org.id, *context_for(superadmin))
        assert rejected.status == "rejected"
        assert org_repo.get_organization_member(db_session, pending_org.id, creator.id) is None
        with pytest.raises(InvalidState):
            service.approve_organization(pending_org.id, *context_for(superadmin))

    def test_non_superadmin_can_not_approve(self, service, db_session, pending_org, creator, context_for):
        with pytest.raises(NotAuthorized) as exc:
            service.approve_organization(pending_org.id, *context_for(creator))
        assert exc.value.detail == "Access denied"
        assert exc.value.reason == "organization lifecycle changes require a super-admin"
        db_session.refresh(pending_org)
        assert pending_org.status == "pending"

    def test_denied_transition_is_audited_as_failure(self, service, db_session, pending_org, creator, context_for):
        with pytest.raises(NotAuthorized):
            service.reject_organization(pending_org.id, *context_for(creator))

        rows = audit_repo.get_audit_logs(db_session, target_type="organization", target_id=pending_org.id)
        assert len(rows) == 1
        assert rows[0].action_type == AuditAction.ORGANIZATION_REJECT.value
        assert rows[0].status == AuditStatus.FAILURE.value
        assert rows[0].actor_user_id == creator.id
        assert rows[0].reason == "organization lifecycle changes require a super-admin"
        # Failures are not attached to the organization's own trail
        assert audit_repo.get_audit_logs(db_session, organization_id=pending_org.id) == []

    def test_non_superadmin_denied_before_existence_is_revealed(self, service, creator, context_for):
        with pytest.raises(NotAuthorized):
            service.approve_organization(uuid.uuid4(), *context_for(creator))

    def test_missing_organization_for_superadmin(self, service, superadmin, context_for):
        with pytest.raises(NotFound):
            service.approve_organization(uuid.uuid4(), *context_for(superadmin))

    def test_list_pending_for_superadmin_only(self, service, superadmin, creator, organization_factory, context_for):
        older = organization_factory("Older", status="pending", created_by=creator)
        newer = organization_factory("Newer", status="pending", created_by=creator)
        organization_factory("Live", status="approved")
        newer.created_at = older.created_at.replace(year=older.created_at.year + 1)
        service.db.commit()

        principal, _ = context_for(superadmin)
        pending = service.list_pending_organizations(principal)
        assert [p.id for p in pending] == [newer.id, older.id]
        assert pending[0].creator_email == "creator@example.com"
        assert pending[0].creator_name == "Creator"

        principal, _ = context_for(creator)
        assert service.list_pending_organizations(principal) == []
        assert service.list_pending_organizations(Principal.anonymous()) == []

    def test_creator_can_read_own_pending_organization(self, service, pending_org, creator, user_factory, context_for):
        assert service.get_organization(pending_org.id, *context_for(creator)).id == pending_org.id
        stranger = user_factory("stranger@example.com")
        with pytest.raises(NotAuthorized):
            service.get_organization(pending_org.id, *context_for(stranger))

    def test_list_my_organizations(self, service, creator, pending_org, organization_factory, membership_factory, context_for):
        live = organization_factory("Live Org", status="approved")
        membership_factory(live, creator, role="org_viewer")
        principal, _ = context_for(creator)
        mine = {o.id: o for o in service.list_my_organizations(principal)}
        assert set(mine) == {live.id, pending_org.id}
        assert mine[live.id].role is OrgRole.org_viewer
        assert mine[pending_org.id].role is None

        with pytest.raises(NotAuthenticated):
            service.list_my_organizations(Principal.anonymous())


class TestMemberships:
    @pytest.fixture
    def org(self, organization_factory):
        return organization_factory("Team", status="approved")

    @pytest.fixture
    def admin(self, user_factory, org, membership_factory):
        user = user_factory("admin@example.com")
        membership_factory(org, user, role="org_admin")
        return user

    @pytest.fixture
    def viewer(self, user_factory, org, membership_factory):
        user = user_factory("viewer@example.com")
        membership_factory(org, user, role="org_viewer")
        return user

    def _membership(self, db_session, org, user):
        return org_repo.get_organization_member(db_session, org.id, user.id)

    def test_admin_adds_member_creating_user(self, service, db_session, org, admin, context_for):
        member = service.add_member(org.id, "Fresh@Example.com", "org_editor", *context_for(admin))
        assert member.email == "fresh@example.com"
        assert member.role is OrgRole.org_editor
        user = db_session.query(models.User).filter(models.User.email == "fresh@example.com").one()
        assert member.user_id == user.id
        actions = [a.action_type for a in audit_repo.get_audit_logs(db_session, organization_id=org.id)]
        assert actions == ["member_add"]

    def test_add_duplicate_member_conflicts(self, service, org, admin, viewer, context_for):
        with pytest.raises(Conflict):
            service.add_member(org.id, viewer.email, "org_viewer", *context_for(admin))

    def test_add_member_to_pending_org_is_invalid(self, service, organization_factory, superadmin, context_for):
        pending = organization_factory("Waiting", status="pending")
        with pytest.raises(InvalidState):
            service.add_member(pending.id, "x@example.com", "org_viewer", *context_for(superadmin))

    def test_add_member_invalid_role(self, service, org, admin, context_for):
        with pytest.raises(ValueError):
            service.add_member(org.id, "x@example.com", "owner", *context_for(admin))

    def test_viewer_can_not_add_members(self, service, org, viewer, context_for):
        with pytest.raises(NotAuthorized):
            service.add_member(org.id, "x@example.com", "org_viewer", *context_for(viewer))

    def test_admin_changes_role(self, service, db_session, org, admin, viewer, context_for):
        membership = self._membership(db_session, org, viewer)
        updated = service.update_member_role(membership.id, OrgRole.org_editor, *context_for(admin))
        assert updated.role is OrgRole.org_editor
        assert updated.email == viewer.email
        _, snap = context_for(viewer)
        assert snap.role_for(org.id) is OrgRole.org_editor
        log_row = audit_repo.get_audit_logs(db_session, action=AuditAction.MEMBER_ROLE_CHANGE)[0]
        assert log_row.metadata_json == {"old_role": "org_viewer", "new_role": "org_editor"}

    def test_update_role_rejects_unknown_role(self, service, db_session, org, admin, viewer, context_for):
        membership = self._membership(db_session, org, viewer)
        with pytest.raises(ValueError):
            service.update_member_role(membership.id, "owner", *context_for(admin))
        db_session.refresh(membership)
        assert membership.role == "org_viewer"

    def test_viewer_can_not_change_roles(self, service, db_session, org, admin, viewer, context_for):
        membership = self._membership(db_session, org, admin)
        with pytest.raises(NotAuthorized):
            service.update_member_role(membership.id, "org_viewer", *context_for(viewer))

    def test_update_missing_membership(self, service, admin, context_for):
        with pytest.raises(NotFound):
            service.update_member_role(uuid.uuid4(), "org_viewer", *context_for(admin))

    def test_member_can_leave(self, service, db_session, org, viewer, context_for):
        membership = self._membership(db_session, org, viewer)
        service.remove_member(membership.id, *context_for(viewer))
        assert self._membership(db_session, org, viewer) is None

    def test_viewer_can_not_remove_others(self, service, db_session, org, admin, viewer, context_for):
        membership = self._membership(db_session, org, admin)
        with pytest.raises(NotAuthorized):
            service.remove_member(membership.id, *context_for(viewer))
        assert self._membership(db_session, org, admin) is not None

    def test_admin_removes_member(self, service, db_session, org, admin, viewer, context_for):
        membership = self._membership(db_session, org, viewer)
        service.remove_member(membership.id, *context_for(admin))
        assert self._membership(db_session, org, viewer) is None
        actions = [a.action_type for a in audit_repo.get_audit_logs(db_session, organization_id=org.id)]
        assert actions == ["member_remove"]

    def test_remove_missing_membership(self, service, admin, context_for):
        with pytest.raises(NotFound):
            service.remove_member(uuid.uuid4(), *context_for(admin))

    def test_list_members(self, service, org, admin, viewer, user_factory, context_for):
        members = service.list_members(org.id, *context_for(viewer))
        assert {m.email for m in members} == {admin.email, viewer.email}
        outsider = user_factory("outsider@example.com")
        with pytest.raises(NotAuthorized):
            service.list_members(org.id, *context_for(outsider))

    def test_memberships_in_rejected_org_do_not_authorize(self, service, db_session, organization_factory, user_factory, membership_factory, context_for):
        org = organization_factory("Gone", status="rejected")
        admin = user_factory("ghost@example.com")
        membership_factory(org, admin, role="org_admin")
        with pytest.raises(NotAuthorized):
            service.list_members(org.id, *context_for(admin))
        snapshot = MembershipSnapshot.empty(admin.id)
        with pytest.raises(NotAuthorized):
            service.add_member(org.id, "x@example.com", "org_viewer", Principal(user_id=admin.id), snapshot)
