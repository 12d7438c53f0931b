"""
Team capability checks.

Roles are ranked; each action needs a minimum rank. The team owner holds the
implicit `owner` role regardless of their membership row.
"""
from enum import StrEnum

from db.document_store import DocumentStore
from services.exceptions import PermissionDeniedError

OWNER_ROLE = "owner"

ROLE_LEVELS: dict[str, int] = {
    OWNER_ROLE: 100,
    "admin": 80,
    "editor": 50,
    "viewer": 10,
}


class TeamAction(StrEnum):
    """Actions gated by team role."""

    VIEW_TEAM = "view_team"
    EDIT_BOOKMARKS = "edit_bookmarks"
    UPDATE_TEAM = "update_team"
    MANAGE_MEMBERS = "manage_members"
    DELETE_TEAM = "delete_team"


REQUIRED_LEVEL: dict[TeamAction, int] = {
    TeamAction.VIEW_TEAM: ROLE_LEVELS["viewer"],
    TeamAction.EDIT_BOOKMARKS: ROLE_LEVELS["editor"],
    TeamAction.UPDATE_TEAM: ROLE_LEVELS["admin"],
    TeamAction.MANAGE_MEMBERS: ROLE_LEVELS["admin"],
    TeamAction.DELETE_TEAM: ROLE_LEVELS[OWNER_ROLE],
}


def can(role: str | None, action: TeamAction) -> bool:
    """Return whether a role may perform an action. `None` (not a member) may do nothing."""
    if role is None:
        return False
    return ROLE_LEVELS.get(role, 0) >= REQUIRED_LEVEL[action]


def require(role: str | None, action: TeamAction, actor_id: str) -> None:
    """
    Enforce a capability.

    Raises:
        PermissionDeniedError: If the role does not allow the action.
    """
    if not can(role, action):
        raise PermissionDeniedError(actor_id, action.value)


async def resolve_team_role(
    documents: DocumentStore,
    team_id: str,
    uid: str,
) -> str | None:
    """
    Look up an identity's effective role in a team.

    Returns:
        `owner` for the team owner, the membership row's role for members,
        or None if the team does not exist or the identity is not a member.
    """
    team = await documents.get("teams", team_id)
    if team is None:
        return None
    if team.get("ownerId") == uid:
        return OWNER_ROLE
    rows = await documents.query("team_members", teamId=team_id, userId=uid)
    if not rows:
        return None
    return rows[0].get("role")
