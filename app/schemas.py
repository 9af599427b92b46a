from datetime import datetime, timezone

import validators
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LinkCreate(BaseModel):
    original_url: str
    short_code: str | None = None

    @field_validator("original_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        # single-label hosts (localhost, intranet) and bare query keys are valid URLs
        if not validators.url(v, simple_host=True, strict_query=False):
            raise ValueError("original_url must be a valid absolute URL")
        return v

class LinkCreated(BaseModel):
    id: str
    original_url: str
    short_code: str

    model_config = ConfigDict(from_attributes=True)

class LinkOut(LinkCreated):
    access_count: int
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive values; they are stored as UTC
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

class LinkPage(BaseModel):
    items: list[LinkOut]
    next_cursor: str | None = Field(default=None, serialization_alias="nextCursor")

class ExportOut(BaseModel):
    url: str
