from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from contacthub.schemas.common import WorkspaceScoped


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ContactBase(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool = False

    @field_validator("email", "avatar_url", mode="before")
    @classmethod
    def empty_string_is_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Full name is required")
        return cleaned


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    notes: str | None = None
    tags: list[str] | None = None
    is_favorite: bool | None = None

    @field_validator("email", "avatar_url", mode="before")
    @classmethod
    def empty_string_is_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class ChannelLinkCreate(BaseModel):
    channel_type: str = Field(min_length=1, max_length=64)
    channel_id: str = Field(min_length=1, max_length=255)
    display_name: str | None = None


class ChannelLinkRead(WorkspaceScoped):
    contact_id: UUID
    channel_type: str
    channel_id: str
    display_name: str | None = None
    is_primary: bool
    is_verified: bool
    message_count: int
    last_message_at: datetime | None = None


class ContactRead(WorkspaceScoped):
    full_name: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool
    last_interaction_at: datetime | None = None
    interaction_count: int
    created_by: UUID | None = None


class ContactWithChannels(ContactRead):
    channels: list[ChannelLinkRead] = Field(default_factory=list)


class ContactResolveRequest(BaseModel):
    channel_type: str = Field(min_length=1, max_length=64)
    sender_email: str | None = None
    sender_name: str | None = None
    channel_id: str | None = None


class ContactResolveResponse(BaseModel):
    contact_id: UUID
    is_new: bool


class ChannelContactRequest(BaseModel):
    channel_type: str = Field(min_length=1, max_length=64)
    channel_id: str = Field(min_length=1, max_length=255)
    display_name: str | None = None
