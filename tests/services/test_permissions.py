"""Tests for team capability checks."""
import pytest

from db.document_store import DocumentStore
from services.exceptions import PermissionDeniedError
from services.permissions import OWNER_ROLE, TeamAction, can, require, resolve_team_role


@pytest.mark.parametrize(
    ("role", "action", "allowed"),
    [
        (OWNER_ROLE, TeamAction.DELETE_TEAM, True),
        ("admin", TeamAction.DELETE_TEAM, False),
        ("admin", TeamAction.MANAGE_MEMBERS, True),
        ("admin", TeamAction.UPDATE_TEAM, True),
        ("editor", TeamAction.MANAGE_MEMBERS, False),
        ("editor", TeamAction.EDIT_BOOKMARKS, True),
        ("viewer", TeamAction.EDIT_BOOKMARKS, False),
        ("viewer", TeamAction.VIEW_TEAM, True),
        (None, TeamAction.VIEW_TEAM, False),
        ("unknown-role", TeamAction.VIEW_TEAM, False),
    ],
)
def test__can__role_matrix(role: str | None, action: TeamAction, allowed: bool) -> None:
    """Each action needs a minimum role rank."""
    assert can(role, action) is allowed


def test__require__raises_with_actor_and_action() -> None:
    """A denied capability names the actor and the action."""
    with pytest.raises(PermissionDeniedError) as exc_info:
        require("viewer", TeamAction.MANAGE_MEMBERS, "u9")

    assert exc_info.value.actor_id == "u9"
    assert exc_info.value.action == "manage_members"
    assert "manage members" in str(exc_info.value)


def test__require__allowed_returns_none() -> None:
    """An allowed capability passes silently."""
    require("admin", TeamAction.MANAGE_MEMBERS, "u1")


async def test__resolve_team_role__owner_member_and_stranger(documents: DocumentStore) -> None:
    """Owner wins over the membership row; strangers and missing teams have no role."""
    team_id = await documents.add("teams", {"name": "Eng", "ownerId": "owner"})
    await documents.add("team_members", {"teamId": team_id, "userId": "owner", "role": "admin"})
    await documents.add("team_members", {"teamId": team_id, "userId": "ed", "role": "editor"})

    assert await resolve_team_role(documents, team_id, "owner") == OWNER_ROLE
    assert await resolve_team_role(documents, team_id, "ed") == "editor"
    assert await resolve_team_role(documents, team_id, "stranger") is None
    assert await resolve_team_role(documents, "no-such-team", "owner") is None
