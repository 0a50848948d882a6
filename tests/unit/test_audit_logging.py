from timeline.audit import AuditAction, AuditStatus, log
from timeline.db.repositories import audits as audit_repo


def test_log_persists_plain_string_values(db_session, user_factory, organization_factory):
    actor = user_factory("auditor@example.com")
    org = organization_factory("Audited Org")

    row = log(
        db_session,
        action=AuditAction.ORGANIZATION_APPROVE,
        status=AuditStatus.SUCCESS,
        target_type="organization",
        target_id=org.id,
        actor_user_id=actor.id,
        organization_id=org.id,
        metadata={"note": "ok"},
    )
    db_session.commit()

    assert row.action_type == "organization_approve"
    assert row.status == "success"
    assert row.metadata_json == {"note": "ok"}

    logs = audit_repo.get_audit_logs(db_session, organization_id=org.id)
    assert [entry.id for entry in logs] == [row.id]
    assert audit_repo.get_audit_logs(db_session, action="member_add") == []


def test_log_accepts_raw_strings(db_session, user_factory):
    actor = user_factory("raw@example.com")
    row = log(db_session, action="custom_action", status="failure", target_type="topic", actor_user_id=actor.id)
    db_session.commit()
    assert row.action_type == "custom_action"
    assert row.status == "failure"
    assert row.metadata_json == {}
