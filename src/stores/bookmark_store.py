"""Bookmark store: the signed-in identity's bookmarks and categories."""
import logging
from datetime import UTC, datetime

from core.config import get_settings
from db.document_store import SERVER_TIMESTAMP, DocumentSnapshot, DocumentStore
from schemas.bookmark import Bookmark, BookmarkCreate, BookmarkUpdate
from schemas.category import Category, CategoryCreate, CategoryUpdate
from schemas.user import Identity
from services.exceptions import PermissionDeniedError
from services.identity_provider import IdentityProvider
from services.permissions import TeamAction, require, resolve_team_role
from stores.base import BaseStore

logger = logging.getLogger(__name__)

BOOKMARKS = "bookmarks"
CATEGORIES = "categories"


def bookmark_from_document(snapshot: DocumentSnapshot, default_category: str) -> Bookmark:
    """
    Build a Bookmark from a stored document, filling defaults for absent fields.

    Documents written without a category belong to `default_category`; missing
    tags read as an empty list and missing timestamps as "now".
    """
    data = snapshot.data
    now = datetime.now(UTC)
    return Bookmark.model_validate({
        **data,
        "id": snapshot.id,
        "tags": data.get("tags") or [],
        "isPublic": data.get("isPublic") or False,
        "category": data.get("category") or default_category,
        "createdAt": data.get("createdAt") or now,
        "updatedAt": data.get("updatedAt") or now,
    })


def category_from_document(snapshot: DocumentSnapshot) -> Category:
    """Build a Category from a stored document."""
    data = snapshot.data
    return Category.model_validate({
        **data,
        "id": snapshot.id,
        "bookmarkIds": data.get("bookmarkIds") or [],
    })


class BookmarkStore(BaseStore):
    """
    In-memory bookmarks and categories for the current identity.

    Reads load the whole owner-scoped collection; writes go to the document
    store first and are then mirrored into the local collection.
    """

    def __init__(self, documents: DocumentStore, identity: IdentityProvider) -> None:
        super().__init__(documents, identity)
        self._bookmarks: list[Bookmark] = []
        self._categories: list[Category] = []
        self._default_category = get_settings().default_category

    @property
    def bookmarks(self) -> list[Bookmark]:
        """Snapshot of the loaded bookmarks."""
        return list(self._bookmarks)

    @property
    def categories(self) -> list[Category]:
        """Snapshot of the loaded categories."""
        return list(self._categories)

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    async def fetch_all(self) -> None:
        """
        Replace the local collection with every bookmark the identity owns.

        Does nothing when nobody is signed in. On failure the previous
        collection is kept.
        """
        user = self._current_user()
        if user is None:
            return

        async with self._track("Failed to fetch bookmarks"):
            snapshots = await self._documents.query(BOOKMARKS, userId=user.uid)
            self._bookmarks = [
                bookmark_from_document(snapshot, self._default_category)
                for snapshot in snapshots
            ]
            logger.debug("Loaded %d bookmarks for %s", len(self._bookmarks), user.uid)

    async def add(self, draft: BookmarkCreate) -> str:
        """
        Save a new bookmark owned by the current identity.

        Returns:
            The new bookmark's id.

        Raises:
            AuthRequiredError: If nobody is signed in.
        """
        user = self._require_user()

        async with self._track("Failed to add bookmark"):
            fields = draft.to_document()
            bookmark_id = await self._documents.add(
                BOOKMARKS,
                {
                    **fields,
                    "userId": user.uid,
                    "createdAt": SERVER_TIMESTAMP,
                    "updatedAt": SERVER_TIMESTAMP,
                },
            )
            # Client-side estimate of the server timestamps until the next fetch
            now = datetime.now(UTC)
            self._bookmarks.append(
                Bookmark.model_validate({
                    **fields,
                    "id": bookmark_id,
                    "userId": user.uid,
                    "category": fields.get("category") or self._default_category,
                    "createdAt": now,
                    "updatedAt": now,
                }),
            )
            return bookmark_id

    async def update(self, bookmark_id: str, patch: BookmarkUpdate) -> None:
        """
        Patch the supplied fields of a bookmark and stamp a fresh `updatedAt`.

        The local entry is merged if loaded; a bookmark that is not loaded is
        still patched remotely.

        Raises:
            AuthRequiredError: If nobody is signed in.
            PermissionDeniedError: If the identity neither owns the bookmark nor
                edits its team's bookmarks.
            DocumentNotFoundError: If the bookmark does not exist.
        """
        user = self._require_user()

        async with self._track("Failed to update bookmark"):
            await self._authorize_write(user, bookmark_id)
            await self._documents.update(
                BOOKMARKS,
                bookmark_id,
                {**patch.to_document(exclude_unset=True), "updatedAt": SERVER_TIMESTAMP},
            )
            changes = patch.model_dump(exclude_unset=True)
            now = datetime.now(UTC)
            self._bookmarks = [
                bookmark.model_copy(update={**changes, "updated_at": now})
                if bookmark.id == bookmark_id
                else bookmark
                for bookmark in self._bookmarks
            ]

    async def delete(self, bookmark_id: str) -> None:
        """
        Delete a bookmark permanently. Deleting a missing bookmark is not an error.

        Raises:
            AuthRequiredError: If nobody is signed in.
            PermissionDeniedError: If the identity neither owns the bookmark nor
                edits its team's bookmarks.
        """
        user = self._require_user()

        async with self._track("Failed to delete bookmark"):
            await self._authorize_write(user, bookmark_id)
            await self._documents.delete(BOOKMARKS, bookmark_id)
            self._bookmarks = [b for b in self._bookmarks if b.id != bookmark_id]

    def get_by_category(self, category: str) -> list[Bookmark]:
        """Loaded bookmarks in a category. Never fetches; may be stale."""
        return [b for b in self._bookmarks if b.category == category]

    def get_by_team(self, team_id: str) -> list[Bookmark]:
        """Loaded bookmarks shared to a team. Never fetches; may be stale."""
        return [b for b in self._bookmarks if b.team_id == team_id]

    async def _authorize_write(self, user: Identity, bookmark_id: str) -> None:
        """Allow the owner, or an editor/admin of the bookmark's team."""
        snapshot = await self._documents.get(BOOKMARKS, bookmark_id)
        if snapshot is None or snapshot.get("userId") == user.uid:
            return
        team_id = snapshot.get("teamId")
        role = await resolve_team_role(self._documents, team_id, user.uid) if team_id else None
        require(role, TeamAction.EDIT_BOOKMARKS, user.uid)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def fetch_categories(self) -> None:
        """Replace the local categories with every category the identity owns."""
        user = self._current_user()
        if user is None:
            return

        async with self._track("Failed to fetch categories"):
            snapshots = await self._documents.query(CATEGORIES, userId=user.uid)
            self._categories = [category_from_document(s) for s in snapshots]

    async def add_category(self, draft: CategoryCreate) -> str:
        """Create a category owned by the current identity and return its id."""
        user = self._require_user()

        async with self._track("Failed to add category"):
            fields = {**draft.to_document(), "userId": user.uid}
            category_id = await self._documents.add(CATEGORIES, fields)
            self._categories.append(Category.model_validate({**fields, "id": category_id}))
            return category_id

    async def update_category(self, category_id: str, patch: CategoryUpdate) -> None:
        """Patch a category the current identity owns."""
        user = self._require_user()

        async with self._track("Failed to update category"):
            await self._authorize_category(user, category_id)
            await self._documents.update(
                CATEGORIES, category_id, patch.to_document(exclude_unset=True),
            )
            changes = patch.model_dump(exclude_unset=True)
            self._categories = [
                category.model_copy(update=changes) if category.id == category_id else category
                for category in self._categories
            ]

    async def delete_category(self, category_id: str) -> None:
        """Delete a category. Bookmarks filed under its name keep that category string."""
        user = self._require_user()

        async with self._track("Failed to delete category"):
            await self._authorize_category(user, category_id)
            await self._documents.delete(CATEGORIES, category_id)
            self._categories = [c for c in self._categories if c.id != category_id]

    async def _authorize_category(self, user: Identity, category_id: str) -> None:
        snapshot = await self._documents.get(CATEGORIES, category_id)
        if snapshot is not None and snapshot.get("userId") != user.uid:
            raise PermissionDeniedError(user.uid, "edit_category")
