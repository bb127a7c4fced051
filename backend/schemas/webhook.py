"""Pydantic schemas for inbound webhook deliveries."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class WebhookRequest(BaseModel):
    """Inbound webhook body.

    Accepts both the camelCase envelope (``eventId``, ``eventType``,
    ``resourceId``) and the bare ``id``/``type``/``resource_id`` spelling.
    """

    model_config = ConfigDict(extra="ignore")

    event_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("eventId", "event_id", "id"))
    event_type: str = Field(default="", validation_alias=AliasChoices("eventType", "event_type", "type"))
    subdomain: Optional[str] = None
    resource_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("resourceId", "resource_id")
    )
    data: Any = None

    @field_validator("event_id", "resource_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)


class WebhookResponse(BaseModel):
    received: bool
    success: bool
    event_id: Optional[str] = None
    error: Optional[str] = None
