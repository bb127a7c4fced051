"""Validated response envelopes for the practice-management API.

Collections come back as ``{code, description, error, data: [...], count,
page_info}`` and single resources as ``{data: {...}}``. Decoding happens once,
at the transport boundary, so mapping code never has to guess whether a
field is present.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from integrations.exceptions import PMSDataError


class PageInfo(BaseModel):
    """Cursor pagination block of a collection response."""

    model_config = ConfigDict(extra="ignore")

    has_previous_page: bool = False
    has_next_page: bool = False
    start_cursor: Optional[str] = None
    end_cursor: Optional[str] = None

    @field_validator("start_cursor", "end_cursor", mode="before")
    @classmethod
    def coerce_cursor(cls, v: Any) -> Optional[str]:
        """Cursors are opaque; numeric cursors are kept as strings."""
        if v is None or v == "":
            return None
        return str(v)

    @property
    def next_cursor(self) -> Optional[str]:
        """Cursor for the following page, or None when this is the last page."""
        if self.has_next_page and self.end_cursor:
            return self.end_cursor
        return None


class CollectionEnvelope(BaseModel):
    """Decoded collection (list) response."""

    model_config = ConfigDict(extra="ignore")

    data: list[dict[str, Any]] = []
    count: Optional[int] = None
    page_info: Optional[PageInfo] = None

    @field_validator("data", mode="before")
    @classmethod
    def extract_records(cls, v: Any) -> list:
        """Normalize ``data`` to a list of records.

        Current API versions return a flat list. Older responses and some
        webhook payloads nest the list one level down
        (``{"patients": [...]}``); the first list value is used.
        """
        return extract_data_array(v)

    @property
    def next_cursor(self) -> Optional[str]:
        if self.page_info is None:
            return None
        return self.page_info.next_cursor


class ResourceEnvelope(BaseModel):
    """Decoded single-resource response."""

    model_config = ConfigDict(extra="ignore")

    data: dict[str, Any]

    @property
    def resource_id(self) -> str:
        """Upstream identifier of the returned record, as a string."""
        value = self.data.get("id")
        if value is None:
            raise PMSDataError("Response record has no id")
        return str(value)


def extract_data_array(data: Any) -> list:
    """Return the record list held in a ``data`` field (see CollectionEnvelope)."""
    if isinstance(data, list):
        return data
    if data is None:
        return []
    if isinstance(data, dict):
        for value in data.values():
            if isinstance(value, list):
                return value
    return []


def decode_collection(payload: Any, tenant: str = "") -> CollectionEnvelope:
    """Validate a raw JSON body as a collection envelope.

    Raises:
        PMSDataError: If the body does not have the expected shape.
    """
    try:
        return CollectionEnvelope.model_validate(payload)
    except ValidationError as e:
        raise PMSDataError(f"Malformed collection response: {e}", tenant=tenant) from e


def decode_resource(payload: Any, tenant: str = "") -> ResourceEnvelope:
    """Validate a raw JSON body as a single-resource envelope.

    Raises:
        PMSDataError: If the body does not have the expected shape.
    """
    try:
        return ResourceEnvelope.model_validate(payload)
    except ValidationError as e:
        raise PMSDataError(f"Malformed resource response: {e}", tenant=tenant) from e
