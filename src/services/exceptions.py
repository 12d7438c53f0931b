"""Shared exceptions for the document store, identity provider and stores."""


class AuthRequiredError(Exception):
    """Raised when an action needs a signed-in identity and none is present."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


class PermissionDeniedError(Exception):
    """
    Raised when an actor's role does not grant the requested action.

    Carries the actor and action so callers can present a specific message.
    """

    def __init__(self, actor_id: str, action: str) -> None:
        self.actor_id = actor_id
        self.action = action
        super().__init__(f"User {actor_id} is not allowed to {action.replace('_', ' ')}")


class DocumentNotFoundError(Exception):
    """Raised when patching a document that does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"No document {document_id} in collection '{collection}'")


class InvalidCredentialsError(Exception):
    """Raised when sign-in is attempted with an unknown email or a wrong password."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class EmailAlreadyInUseError(Exception):
    """Raised when creating an account for an email that already has one."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"An account already exists for {email}")


class TeamDeletionIncompleteError(Exception):
    """
    Raised when deleting a team leaves membership rows behind.

    The team document is kept so the deletion can be retried; the rows that
    were deleted before the failure stay deleted.
    """

    def __init__(self, team_id: str, failed_member_ids: list[str]) -> None:
        self.team_id = team_id
        self.failed_member_ids = failed_member_ids
        super().__init__(
            f"Team {team_id} was not deleted: "
            f"{len(failed_member_ids)} membership record(s) could not be removed",
        )
