"""
Identity provider: credential verification and session state.

Owns the `accounts` table and the current session identity for this process.
Other components observe sign-in/sign-out through `on_identity_changed`.
"""
import logging
from collections.abc import Awaitable, Callable

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.session import session_scope
from models.account import Account
from schemas.user import Identity
from services.exceptions import EmailAlreadyInUseError, InvalidCredentialsError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

IdentityListener = Callable[[Identity | None], Awaitable[None]]


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _to_identity(account: Account) -> Identity:
    return Identity(uid=account.id, email=account.email, display_name=account.display_name)


class IdentityProvider:
    """
    Account store plus a single session slot.

    Listeners are awaited in subscription order before the call that changed
    the identity returns, so a caller that awaits `sign_in` observes the
    listeners' effects.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._current_user: Identity | None = None
        self._listeners: list[IdentityListener] = []

    @property
    def current_user(self) -> Identity | None:
        """The signed-in identity, or None."""
        return self._current_user

    async def on_identity_changed(self, listener: IdentityListener) -> Callable[[], None]:
        """
        Subscribe to identity changes.

        The listener is called immediately with the current identity, then on
        every sign-in, sign-up, sign-out and session restoration.

        Returns:
            A function that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        await listener(self._current_user)
        return unsubscribe

    async def create_user(self, email: str, password: str) -> Identity:
        """
        Create an account and sign it in.

        Raises:
            EmailAlreadyInUseError: If an account exists for the email.
        """
        normalized = _normalize_email(email)
        try:
            async with session_scope(self._session_factory) as session:
                if await self._find_account(session, normalized) is not None:
                    raise EmailAlreadyInUseError(normalized)
                account = Account(email=normalized, password_hash=hash_password(password))
                session.add(account)
                await session.flush()
                identity = _to_identity(account)
        except IntegrityError as e:
            # Lost a race with a concurrent sign-up for the same email
            raise EmailAlreadyInUseError(normalized) from e

        logger.info("Created account %s", identity.uid)
        await self._publish(identity)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        """
        Verify credentials and start a session.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong.
        """
        async with session_scope(self._session_factory) as session:
            account = await self._find_account(session, _normalize_email(email))
            if account is None or not verify_password(password, account.password_hash):
                raise InvalidCredentialsError()
            identity = _to_identity(account)

        await self._publish(identity)
        return identity

    async def sign_out(self) -> None:
        """End the current session."""
        await self._publish(None)

    async def restore_session(self, uid: str) -> Identity | None:
        """
        Resume a persisted session for an identity id.

        Publishes the identity if the account still exists, otherwise publishes
        the signed-out state.
        """
        async with session_scope(self._session_factory) as session:
            account = await session.get(Account, uid)
            identity = _to_identity(account) if account is not None else None

        if identity is None:
            logger.warning("Session restore for unknown account %s", uid)
        await self._publish(identity)
        return identity

    async def _publish(self, identity: Identity | None) -> None:
        self._current_user = identity
        # Copy: a listener may unsubscribe while being notified
        for listener in list(self._listeners):
            await listener(identity)

    @staticmethod
    async def _find_account(session: AsyncSession, email: str) -> Account | None:
        result = await session.execute(select(Account).where(Account.email == email))
        return result.scalar_one_or_none()
