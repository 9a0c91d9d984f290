"""Role permissions for governance actions.

Residents hold the base set (voting and viewing). Committee members and
admins hold the base set plus their management permissions.
"""

from __future__ import annotations

from enum import Enum


class GovernanceRole(str, Enum):
    RESIDENT = "resident"
    COMMITTEE_MEMBER = "committee_member"
    ADMIN = "admin"


class GovernanceAction(str, Enum):
    VOTE = "vote"
    VIEW_CAMPAIGNS = "view_campaigns"
    VIEW_EMERGENCIES = "view_emergencies"
    PROPOSE_POLICY = "propose_policy"
    VOTE_POLICY = "vote_policy"
    CREATE_CAMPAIGN = "create_campaign"
    EDIT_CAMPAIGN = "edit_campaign"
    DELETE_CAMPAIGN = "delete_campaign"
    CREATE_EMERGENCY = "create_emergency"
    ACKNOWLEDGE_EMERGENCY = "acknowledge_emergency"
    RESOLVE_EMERGENCY = "resolve_emergency"
    CREATE_SUCCESSION_PLAN = "create_succession_plan"
    TRIGGER_SUCCESSION = "trigger_succession"
    CREATE_POLICY = "create_policy"
    APPROVE_POLICY = "approve_policy"
    VIEW_ANALYTICS = "view_analytics"
    EXPORT_DATA = "export_data"


_BASE: frozenset[GovernanceAction] = frozenset(
    {
        GovernanceAction.VOTE,
        GovernanceAction.VIEW_CAMPAIGNS,
        GovernanceAction.VIEW_EMERGENCIES,
        GovernanceAction.PROPOSE_POLICY,
        GovernanceAction.VOTE_POLICY,
    }
)

_COMMITTEE: frozenset[GovernanceAction] = _BASE | {
    GovernanceAction.CREATE_CAMPAIGN,
    GovernanceAction.EDIT_CAMPAIGN,
    GovernanceAction.CREATE_EMERGENCY,
    GovernanceAction.ACKNOWLEDGE_EMERGENCY,
    GovernanceAction.RESOLVE_EMERGENCY,
    GovernanceAction.CREATE_POLICY,
    GovernanceAction.VIEW_ANALYTICS,
}

ROLE_PERMISSIONS: dict[GovernanceRole, frozenset[GovernanceAction]] = {
    GovernanceRole.RESIDENT: _BASE,
    GovernanceRole.COMMITTEE_MEMBER: _COMMITTEE,
    GovernanceRole.ADMIN: _COMMITTEE
    | {
        GovernanceAction.DELETE_CAMPAIGN,
        GovernanceAction.CREATE_SUCCESSION_PLAN,
        GovernanceAction.TRIGGER_SUCCESSION,
        GovernanceAction.APPROVE_POLICY,
        GovernanceAction.EXPORT_DATA,
    },
}


def permissions_for(role: GovernanceRole) -> frozenset[GovernanceAction]:
    return ROLE_PERMISSIONS[role]


def can_perform(role: GovernanceRole, action: GovernanceAction) -> bool:
    return action in ROLE_PERMISSIONS[role]
