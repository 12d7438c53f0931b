"""
Shared plumbing for the domain-state stores.

A store owns one in-memory collection, mediates every read and write against
the document store, and exposes `loading`/`error` for passive display.
"""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from db.document_store import DocumentStore
from schemas.user import Identity
from services.exceptions import AuthRequiredError
from services.identity_provider import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class StoreStatus:
    """
    Loading/error flags guarded by request ids.

    Each action takes a new request id on entry. Only the most recently issued
    request may settle the flags, so a fast action finishing after a slow one
    started cannot report `loading=False` while the slow one is in flight.
    """

    loading: bool = False
    error: str | None = None
    _latest_request: int = 0

    def begin(self) -> int:
        """Start a request: clear the error, raise the loading flag, return its id."""
        self._latest_request += 1
        self.loading = True
        self.error = None
        return self._latest_request

    def is_latest(self, request_id: int) -> bool:
        """Whether no newer request has started since this one."""
        return request_id == self._latest_request

    def succeed(self, request_id: int) -> None:
        """Settle a request successfully."""
        if self.is_latest(request_id):
            self.loading = False

    def fail(self, request_id: int, message: str) -> None:
        """Settle a request with a human-readable error."""
        if self.is_latest(request_id):
            self.error = message
            self.loading = False


class BaseStore:
    """Base class holding the injected collaborators and status tracking."""

    def __init__(self, documents: DocumentStore, identity: IdentityProvider) -> None:
        self._documents = documents
        self._identity = identity
        self._status = StoreStatus()

    @property
    def loading(self) -> bool:
        """Whether the most recent action is still in flight."""
        return self._status.loading

    @property
    def error(self) -> str | None:
        """Message from the most recent action if it failed."""
        return self._status.error

    def _current_user(self) -> Identity | None:
        return self._identity.current_user

    def _require_user(self) -> Identity:
        """
        Return the signed-in identity.

        Raises:
            AuthRequiredError: If nobody is signed in. Raised before any
                request starts, so status flags are untouched.
        """
        user = self._identity.current_user
        if user is None:
            raise AuthRequiredError()
        return user

    @asynccontextmanager
    async def _track(self, failure_message: str) -> AsyncIterator[int]:
        """
        Wrap one store action.

        On failure, logs, records `failure_message` as the store error and
        re-raises the original exception for the caller to handle.
        """
        request_id = self._status.begin()
        try:
            yield request_id
        except Exception:
            logger.exception("%s: %s", type(self).__name__, failure_message)
            self._status.fail(request_id, failure_message)
            raise
        self._status.succeed(request_id)
