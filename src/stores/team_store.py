"""Team store: teams the identity owns or belongs to, with their rosters."""
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from db.document_store import SERVER_TIMESTAMP, DocumentSnapshot, DocumentStore
from schemas.team import MemberRole, Team, TeamCreate, TeamMember, TeamUpdate
from services.exceptions import TeamDeletionIncompleteError
from services.identity_provider import IdentityProvider
from services.permissions import TeamAction, require, resolve_team_role
from stores.base import BaseStore

logger = logging.getLogger(__name__)

TEAMS = "teams"
TEAM_MEMBERS = "team_members"


def team_from_document(snapshot: DocumentSnapshot, members: list[TeamMember]) -> Team:
    """Build a Team from its document and an already-loaded roster."""
    data = snapshot.data
    return Team.model_validate({
        **data,
        "id": snapshot.id,
        "createdAt": data.get("createdAt") or datetime.now(UTC),
        "members": members,
    })


def member_from_document(snapshot: DocumentSnapshot) -> TeamMember:
    """Build a TeamMember from a membership row."""
    return TeamMember.model_validate(snapshot.data)


class TeamStore(BaseStore):
    """
    In-memory teams for the current identity.

    Membership rows live in their own collection keyed by (teamId, userId);
    each loaded team carries its full roster.
    """

    def __init__(self, documents: DocumentStore, identity: IdentityProvider) -> None:
        super().__init__(documents, identity)
        self._teams: list[Team] = []

    @property
    def teams(self) -> list[Team]:
        """Snapshot of the loaded teams."""
        return list(self._teams)

    def get_team(self, team_id: str) -> Team | None:
        """Return a loaded team by id."""
        return next((t for t in self._teams if t.id == team_id), None)

    async def fetch_all(self) -> None:
        """
        Replace the local teams with those the identity owns or is a member of.

        Owned teams come first, then teams reached through membership rows,
        de-duplicated by id. Membership rows pointing at a deleted team are
        skipped. Each team's roster is then loaded, one query per team.
        """
        user = self._current_user()
        if user is None:
            return

        async with self._track("Failed to fetch teams"):
            team_docs: dict[str, DocumentSnapshot] = {}
            for snapshot in await self._documents.query(TEAMS, ownerId=user.uid):
                team_docs[snapshot.id] = snapshot

            for row in await self._documents.query(TEAM_MEMBERS, userId=user.uid):
                team_id = row.get("teamId")
                if team_id in team_docs:
                    continue
                snapshot = await self._documents.get(TEAMS, team_id)
                if snapshot is None:
                    logger.warning("Membership row %s points at missing team %s", row.id, team_id)
                    continue
                team_docs[team_id] = snapshot

            teams = []
            for team_id, snapshot in team_docs.items():
                rows = await self._documents.query(TEAM_MEMBERS, teamId=team_id)
                teams.append(team_from_document(snapshot, [member_from_document(r) for r in rows]))
            self._teams = teams

    async def create(self, draft: TeamCreate) -> str:
        """
        Create a team owned by the current identity.

        The owner is added as the first member with the admin role.

        Returns:
            The new team's id.

        Raises:
            AuthRequiredError: If nobody is signed in.
        """
        user = self._require_user()

        async with self._track("Failed to create team"):
            fields = draft.to_document()
            team_id = await self._documents.add(
                TEAMS,
                {**fields, "ownerId": user.uid, "createdAt": SERVER_TIMESTAMP},
            )
            owner = TeamMember(
                user_id=user.uid,
                role=MemberRole.ADMIN,
                email=user.email,
                name=user.display_name or user.email.split("@")[0],
            )
            await self._documents.add(
                TEAM_MEMBERS,
                {"teamId": team_id, **owner.to_document(), "createdAt": SERVER_TIMESTAMP},
            )
            self._teams.append(
                Team(
                    id=team_id,
                    name=draft.name,
                    description=draft.description,
                    owner_id=user.uid,
                    created_at=datetime.now(UTC),
                    members=[owner],
                ),
            )
            return team_id

    async def update(self, team_id: str, patch: TeamUpdate) -> None:
        """
        Patch a team's name or description. Requires the admin role.

        Raises:
            AuthRequiredError: If nobody is signed in.
            PermissionDeniedError: If the identity is not an admin or the owner.
        """
        user = self._require_user()

        async with self._track("Failed to update team"):
            role = await resolve_team_role(self._documents, team_id, user.uid)
            require(role, TeamAction.UPDATE_TEAM, user.uid)
            await self._documents.update(TEAMS, team_id, patch.to_document(exclude_unset=True))
            changes = patch.model_dump(exclude_unset=True)
            self._replace_team(team_id, lambda team: team.model_copy(update=changes))

    async def delete(self, team_id: str) -> None:
        """
        Delete a team and its membership rows. Owner only.

        Membership rows are removed first. If any of them cannot be removed,
        the team document is kept, the local roster reflects the rows that
        remain, and TeamDeletionIncompleteError is raised so the deletion can
        be retried. Bookmarks shared to the team keep their team id.

        Raises:
            AuthRequiredError: If nobody is signed in.
            PermissionDeniedError: If the identity does not own the team.
            TeamDeletionIncompleteError: If some membership rows survived.
        """
        user = self._require_user()

        async with self._track("Failed to delete team"):
            role = await resolve_team_role(self._documents, team_id, user.uid)
            require(role, TeamAction.DELETE_TEAM, user.uid)

            rows = await self._documents.query(TEAM_MEMBERS, teamId=team_id)
            failed: list[DocumentSnapshot] = []
            for row in rows:
                try:
                    await self._documents.delete(TEAM_MEMBERS, row.id)
                except Exception:
                    logger.exception("Could not delete membership row %s of team %s", row.id, team_id)
                    failed.append(row)

            if failed:
                remaining = {row.get("userId") for row in failed}
                self._replace_team(
                    team_id,
                    lambda team: team.model_copy(
                        update={"members": [m for m in team.members if m.user_id in remaining]},
                    ),
                )
                raise TeamDeletionIncompleteError(team_id, [row.id for row in failed])

            await self._documents.delete(TEAMS, team_id)
            self._teams = [t for t in self._teams if t.id != team_id]

    async def add_member(self, team_id: str, member: TeamMember) -> None:
        """
        Add an identity to a team. Requires the admin role.

        If the identity is already a member, only its role is changed; no
        duplicate row is created.

        Raises:
            AuthRequiredError: If nobody is signed in.
            PermissionDeniedError: If the identity is not an admin or the owner.
        """
        user = self._require_user()

        async with self._track("Failed to add team member"):
            role = await resolve_team_role(self._documents, team_id, user.uid)
            require(role, TeamAction.MANAGE_MEMBERS, user.uid)

            existing = await self._find_membership(team_id, member.user_id)
            if existing is None:
                await self._documents.add(
                    TEAM_MEMBERS,
                    {"teamId": team_id, **member.to_document(), "createdAt": SERVER_TIMESTAMP},
                )
                self._replace_team(
                    team_id,
                    lambda team: team.model_copy(update={"members": [*team.members, member]}),
                )
            else:
                await self._documents.update(TEAM_MEMBERS, existing.id, {"role": member.role.value})
                self._set_local_role(team_id, member.user_id, member.role)

    async def remove_member(self, team_id: str, user_id: str) -> None:
        """
        Remove an identity from a team.

        Anyone may remove themselves (leaving), the owner included; removing
        someone else requires the admin role. Removing a non-member is a
        silent no-op.

        Raises:
            AuthRequiredError: If nobody is signed in.
            PermissionDeniedError: If removing someone else without the admin role.
        """
        user = self._require_user()

        async with self._track("Failed to remove team member"):
            if user_id != user.uid:
                role = await resolve_team_role(self._documents, team_id, user.uid)
                require(role, TeamAction.MANAGE_MEMBERS, user.uid)

            existing = await self._find_membership(team_id, user_id)
            if existing is None:
                return
            await self._documents.delete(TEAM_MEMBERS, existing.id)
            self._replace_team(
                team_id,
                lambda team: team.model_copy(
                    update={"members": [m for m in team.members if m.user_id != user_id]},
                ),
            )

    async def leave(self, team_id: str) -> None:
        """Remove the current identity from a team."""
        user = self._require_user()
        await self.remove_member(team_id, user.uid)

    async def update_member_role(self, team_id: str, user_id: str, role: MemberRole) -> None:
        """
        Change a member's role. Requires the admin role; a non-member is a silent no-op.

        Raises:
            AuthRequiredError: If nobody is signed in.
            PermissionDeniedError: If the identity is not an admin or the owner.
        """
        user = self._require_user()

        async with self._track("Failed to update team member role"):
            actor_role = await resolve_team_role(self._documents, team_id, user.uid)
            require(actor_role, TeamAction.MANAGE_MEMBERS, user.uid)

            existing = await self._find_membership(team_id, user_id)
            if existing is None:
                return
            await self._documents.update(TEAM_MEMBERS, existing.id, {"role": MemberRole(role).value})
            self._set_local_role(team_id, user_id, MemberRole(role))

    async def _find_membership(self, team_id: str, user_id: str) -> DocumentSnapshot | None:
        rows = await self._documents.query(TEAM_MEMBERS, teamId=team_id, userId=user_id)
        return rows[0] if rows else None

    def _replace_team(self, team_id: str, change: Callable[[Team], Team]) -> None:
        self._teams = [change(team) if team.id == team_id else team for team in self._teams]

    def _set_local_role(self, team_id: str, user_id: str, role: MemberRole) -> None:
        self._replace_team(
            team_id,
            lambda team: team.model_copy(
                update={
                    "members": [
                        m.model_copy(update={"role": role}) if m.user_id == user_id else m
                        for m in team.members
                    ],
                },
            ),
        )
