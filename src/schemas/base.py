"""Base schema for records stored as documents."""
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    """
    Base for schemas that round-trip through the document store.

    Python attributes are snake_case; stored document fields are camelCase
    (e.g., `team_id` <-> `teamId`).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self, *, exclude_unset: bool = False) -> dict[str, Any]:
        """Dump to a document field map, dropping fields that were never given a value."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=not exclude_unset,
            exclude_unset=exclude_unset,
        )
