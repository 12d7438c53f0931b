"""Identity store: session lifecycle and the signed-in user's profile."""
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from db.document_store import DocumentStore
from schemas.user import Identity, ProfileUpdate, UserProfile
from services.exceptions import AuthRequiredError
from services.identity_provider import IdentityProvider
from stores.base import BaseStore

logger = logging.getLogger(__name__)

USERS = "users"

PROFILE_FETCH_FAILED = "Failed to fetch user profile"


class UserStore(BaseStore):
    """
    Current identity and profile.

    `initialize()` subscribes to the identity provider once; from then on the
    subscription is what publishes `user` and `profile`, except that
    `sign_up` sets the profile and `logout` clears both eagerly.

    Identity events that arrive while one of this store's actions is in
    flight belong to that action: a profile read failure is reported when the
    action settles. Events arriving on their own are tracked as their own
    request.
    """

    def __init__(self, documents: DocumentStore, identity: IdentityProvider) -> None:
        super().__init__(documents, identity)
        self.user: Identity | None = None
        self.profile: UserProfile | None = None
        self.is_initialized = False
        self._unsubscribe: Callable[[], None] | None = None
        self._profile_error: str | None = None

    async def initialize(self) -> None:
        """Subscribe to identity changes. Repeated calls are no-ops."""
        if self._unsubscribe is not None:
            return
        async with self._track(PROFILE_FETCH_FAILED):
            self._unsubscribe = await self._identity.on_identity_changed(self._on_identity_changed)

    def close(self) -> None:
        """Drop the identity subscription."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @asynccontextmanager
    async def _track(self, failure_message: str) -> AsyncIterator[int]:
        """Track an action and settle it with any profile failure seen while it ran."""
        async with super()._track(failure_message) as request_id:
            self._profile_error = None
            yield request_id
            if self._profile_error is not None:
                self._status.fail(request_id, self._profile_error)
                self._profile_error = None

    async def _on_identity_changed(self, identity: Identity | None) -> None:
        if self._status.loading:
            await self._apply_identity(identity)
            return
        async with self._track(PROFILE_FETCH_FAILED):
            await self._apply_identity(identity)

    async def _apply_identity(self, identity: Identity | None) -> None:
        if identity is None:
            self.user = None
            self.profile = None
        else:
            try:
                # A valid identity may legitimately have no profile document
                self.profile = await self._load_profile(identity.uid)
            except Exception:
                logger.exception("Failed to fetch profile for %s", identity.uid)
                self.profile = None
                self._profile_error = PROFILE_FETCH_FAILED
            self.user = identity
        self.is_initialized = True

    async def _load_profile(self, uid: str) -> UserProfile | None:
        snapshot = await self._documents.get(USERS, uid)
        if snapshot is None:
            return None
        now = datetime.now(UTC)
        data = snapshot.data
        return UserProfile.model_validate({
            **data,
            "userId": uid,
            "createdAt": data.get("createdAt") or now,
            "lastLogin": data.get("lastLogin") or now,
        })

    async def sign_in(self, email: str, password: str) -> None:
        """
        Sign in and record the login time on the profile.

        `user` is published by the identity subscription, not by this call.
        """
        async with self._track("Failed to sign in. Please check your email and password."):
            identity = await self._identity.sign_in(email, password)
            await self._documents.update(USERS, identity.uid, {"lastLogin": datetime.now(UTC)})
            if self.profile is not None and self.profile.user_id == identity.uid:
                self.profile = self.profile.model_copy(update={"last_login": datetime.now(UTC)})

    async def sign_up(self, email: str, password: str) -> None:
        """Create an account and its profile; the profile is set locally right away."""
        async with self._track("Failed to create account. This email might already be in use."):
            identity = await self._identity.create_user(email, password)
            now = datetime.now(UTC)
            profile = UserProfile(
                user_id=identity.uid,
                email=identity.email,
                display_name=identity.email.split("@")[0],
                created_at=now,
                last_login=now,
            )
            await self._documents.set(USERS, identity.uid, profile.to_document())
            self.profile = profile

    async def logout(self) -> None:
        """Sign out and clear the local identity and profile without waiting for the event."""
        async with self._track("Failed to sign out"):
            await self._identity.sign_out()
            self.user = None
            self.profile = None

    async def update_profile(self, patch: ProfileUpdate) -> None:
        """
        Patch the signed-in user's profile.

        Raises:
            AuthRequiredError: If no user is set.
        """
        user = self.user
        if user is None:
            raise AuthRequiredError()

        async with self._track("Failed to update profile"):
            await self._documents.update(USERS, user.uid, patch.to_document(exclude_unset=True))
            if self.profile is not None:
                self.profile = self.profile.model_copy(update=patch.model_dump(exclude_unset=True))
