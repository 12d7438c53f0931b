"""Tests for the identity store: subscription, sign-up/in/out and profile edits."""
from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest

from db.document_store import DocumentStore
from schemas.user import ProfileUpdate
from services.exceptions import (
    AuthRequiredError,
    EmailAlreadyInUseError,
    InvalidCredentialsError,
)
from services.identity_provider import IdentityProvider
from stores.user_store import UserStore

PASSWORD = "correct-horse-battery"


async def test__initialize__signed_out(user_store: UserStore) -> None:
    """With nobody signed in the store settles immediately with no user."""
    await user_store.initialize()

    assert user_store.is_initialized is True
    assert user_store.loading is False
    assert user_store.user is None
    assert user_store.profile is None


async def test__initialize__subscribes_once(
    identity: IdentityProvider,
    user_store: UserStore,
) -> None:
    """Repeated initialization does not add a second subscription."""
    with patch.object(
        identity, "on_identity_changed", AsyncMock(return_value=lambda: None),
    ) as mock_subscribe:
        await user_store.initialize()
        await user_store.initialize()

    mock_subscribe.assert_awaited_once()


async def test__sign_up__creates_profile_and_publishes_user(
    documents: DocumentStore,
    user_store: UserStore,
) -> None:
    """The new identity is published and its profile is stored and set locally."""
    await user_store.initialize()

    await user_store.sign_up("New@Example.com", PASSWORD)

    assert user_store.user is not None
    assert user_store.user.email == "new@example.com"
    assert user_store.profile.user_id == user_store.user.uid
    assert user_store.profile.display_name == "new"

    stored = await documents.get("users", user_store.user.uid)
    assert stored.get("email") == "new@example.com"
    assert stored.get("createdAt") is not None
    assert stored.get("lastLogin") is not None


async def test__sign_up__duplicate_email_reports_failure(user_store: UserStore) -> None:
    """Signing up twice with one email fails with a readable message."""
    await user_store.initialize()
    await user_store.sign_up("dup@example.com", PASSWORD)

    with pytest.raises(EmailAlreadyInUseError):
        await user_store.sign_up("dup@example.com", PASSWORD)

    assert user_store.error == "Failed to create account. This email might already be in use."
    assert user_store.loading is False


async def test__sign_in__loads_profile_and_records_login(
    documents: DocumentStore,
    user_store: UserStore,
) -> None:
    """Signing back in restores the user and profile and bumps lastLogin."""
    await user_store.initialize()
    await user_store.sign_up("a@example.com", PASSWORD)
    uid = user_store.user.uid
    first_login = datetime.fromisoformat((await documents.get("users", uid)).get("lastLogin"))
    await user_store.logout()

    await user_store.sign_in("a@example.com", PASSWORD)

    assert user_store.user.uid == uid
    assert user_store.profile is not None
    assert user_store.profile.email == "a@example.com"
    last_login = datetime.fromisoformat((await documents.get("users", uid)).get("lastLogin"))
    assert last_login >= first_login
    assert user_store.error is None


async def test__sign_in__bad_password_reports_failure(user_store: UserStore) -> None:
    """A wrong password leaves the store signed out with the sign-in message."""
    await user_store.initialize()
    await user_store.sign_up("a@example.com", PASSWORD)
    await user_store.logout()

    with pytest.raises(InvalidCredentialsError):
        await user_store.sign_in("a@example.com", "wrong")

    assert user_store.user is None
    assert user_store.error == "Failed to sign in. Please check your email and password."


async def test__logout__clears_user_and_profile(
    identity: IdentityProvider,
    user_store: UserStore,
) -> None:
    """Logging out clears the local state and the provider session."""
    await user_store.initialize()
    await user_store.sign_up("a@example.com", PASSWORD)

    await user_store.logout()

    assert user_store.user is None
    assert user_store.profile is None
    assert identity.current_user is None


async def test__identity_change__profile_load_failure(
    identity: IdentityProvider,
    documents: DocumentStore,
    user_store: UserStore,
) -> None:
    """A failed profile read still publishes the user, with no profile and an error."""
    await user_store.initialize()
    await user_store.sign_up("a@example.com", PASSWORD)
    await user_store.logout()

    with patch.object(documents, "get", AsyncMock(side_effect=RuntimeError("offline"))):
        await identity.sign_in("a@example.com", PASSWORD)

    assert user_store.user is not None
    assert user_store.profile is None
    assert user_store.error == "Failed to fetch user profile"
    assert user_store.is_initialized is True


async def test__identity_change__account_without_profile(
    identity: IdentityProvider,
    user_store: UserStore,
) -> None:
    """An identity with no profile document is a valid signed-in state."""
    await user_store.initialize()

    await identity.create_user("bare@example.com", PASSWORD)

    assert user_store.user.email == "bare@example.com"
    assert user_store.profile is None
    assert user_store.error is None


async def test__update_profile__patches_remote_and_local(
    documents: DocumentStore,
    user_store: UserStore,
) -> None:
    """Only the supplied fields change."""
    await user_store.initialize()
    await user_store.sign_up("a@example.com", PASSWORD)

    await user_store.update_profile(ProfileUpdate(display_name="Ada"))

    assert user_store.profile.display_name == "Ada"
    assert user_store.profile.email == "a@example.com"
    stored = await documents.get("users", user_store.user.uid)
    assert stored.get("displayName") == "Ada"
    assert stored.get("email") == "a@example.com"


async def test__update_profile__without_user_raises(user_store: UserStore) -> None:
    """Profile edits need a user; no request is started."""
    await user_store.initialize()

    with pytest.raises(AuthRequiredError):
        await user_store.update_profile(ProfileUpdate(display_name="Ada"))

    assert user_store.error is None
    assert user_store.loading is False


async def test__close__stops_following_identity(
    identity: IdentityProvider,
    user_store: UserStore,
) -> None:
    """After close, sign-ins are no longer reflected."""
    await user_store.initialize()
    user_store.close()

    await identity.create_user("a@example.com", PASSWORD)

    assert user_store.user is None


async def test__sign_in__loading_held_until_login_recorded(
    documents: DocumentStore,
    user_store: UserStore,
) -> None:
    """The identity event fired mid sign-in does not settle the sign-in request."""
    await user_store.initialize()
    await user_store.sign_up("a@example.com", PASSWORD)
    await user_store.logout()

    seen: list[bool] = []
    original_update = documents.update

    async def recording_update(*args: object, **kwargs: object) -> None:
        seen.append(user_store.loading)
        await original_update(*args, **kwargs)

    with patch.object(documents, "update", recording_update):
        await user_store.sign_in("a@example.com", PASSWORD)

    assert seen == [True]
    assert user_store.loading is False
    assert user_store.user is not None


async def test__sign_in__profile_read_failure_reported_when_settled(
    documents: DocumentStore,
    user_store: UserStore,
) -> None:
    """A profile read failure during sign-in is the error once sign-in completes."""
    await user_store.initialize()
    await user_store.sign_up("a@example.com", PASSWORD)
    await user_store.logout()

    with patch.object(documents, "get", AsyncMock(side_effect=RuntimeError("offline"))):
        await user_store.sign_in("a@example.com", PASSWORD)

    assert user_store.user is not None
    assert user_store.profile is None
    assert user_store.error == "Failed to fetch user profile"
    assert user_store.loading is False


async def test__initialize__profile_read_failure(
    identity: IdentityProvider,
    documents: DocumentStore,
    user_store: UserStore,
) -> None:
    """Subscribing while signed in with an unreadable profile reports the failure."""
    await identity.create_user("a@example.com", PASSWORD)

    with patch.object(documents, "get", AsyncMock(side_effect=RuntimeError("offline"))):
        await user_store.initialize()

    assert user_store.is_initialized is True
    assert user_store.user is not None
    assert user_store.error == "Failed to fetch user profile"
    assert user_store.loading is False
