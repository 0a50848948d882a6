"""
Visibility filtering for topic queries.

`apply_topic_visibility_filter` narrows a query to the topics the Read rule of
`timeline.api.permissions.decide` would allow, so list endpoints never load rows
a caller can not see.
"""
from sqlalchemy import or_, and_

from . import models


def apply_topic_visibility_filter(query, principal, snapshot):
    """
    Apply topic Read visibility to a SQLAlchemy query.

    Args:
        query: SQLAlchemy query over models.Topic
        principal: timeline.api.permissions.Principal
        snapshot: timeline.api.permissions.MembershipSnapshot for the principal

    Returns:
        Filtered query
    """
    if principal.is_superadmin:
        return query

    org_ids = list(snapshot.organization_ids())
    clauses = [models.Topic.is_public.is_(True)]
    if org_ids:
        clauses.append(models.Topic.organization_id.in_(org_ids))
    if principal.user_id is not None:
        clauses.append(
            and_(
                models.Topic.organization_id.is_(None),
                models.Topic.created_by == principal.user_id,
            )
        )
    return query.filter(or_(*clauses))
