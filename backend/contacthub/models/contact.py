from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import JSON, Index, UniqueConstraint, text
from sqlmodel import Field, Relationship

from contacthub.models.base import TimestampedModel, UUIDModel


class Contact(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "contacts"
    __table_args__ = (
        UniqueConstraint("workspace_id", "email", name="uq_contacts_workspace_email"),
        # Collision-collapse key: two people sharing a display name in one
        # workspace end up as a single contact.
        UniqueConstraint("workspace_id", "full_name", name="uq_contacts_workspace_full_name"),
    )

    workspace_id: UUID = Field(foreign_key="workspaces.id", ondelete="CASCADE", index=True)
    created_by: UUID | None = Field(default=None)

    full_name: str = Field(max_length=255)
    first_name: str | None = Field(default=None, max_length=128)
    last_name: str | None = Field(default=None, max_length=128)
    email: str | None = Field(default=None, max_length=255)

    phone: str | None = Field(default=None, max_length=32)
    company: str | None = Field(default=None, max_length=128)
    job_title: str | None = Field(default=None, max_length=128)
    avatar_url: str | None = Field(default=None, max_length=512)
    bio: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    tags: list[str] = Field(default_factory=list, sa_type=JSON)
    is_favorite: bool = Field(default=False)

    last_interaction_at: datetime | None = Field(default=None, index=True)
    interaction_count: int = Field(default=0)

    channels: List["ChannelLink"] = Relationship(back_populates="contact")


class ChannelLink(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "contact_channels"
    __table_args__ = (
        UniqueConstraint(
            "contact_id",
            "workspace_id",
            "channel_type",
            "channel_id",
            name="uq_contact_channels_identity",
        ),
        Index("ix_contact_channels_lookup", "workspace_id", "channel_type", "channel_id"),
        Index(
            "uq_contact_channels_primary",
            "contact_id",
            unique=True,
            sqlite_where=text("is_primary"),
            postgresql_where=text("is_primary"),
        ),
    )

    contact_id: UUID = Field(foreign_key="contacts.id", ondelete="CASCADE", index=True)
    workspace_id: UUID = Field(foreign_key="workspaces.id", ondelete="CASCADE", index=True)

    channel_type: str = Field(max_length=64)
    channel_id: str = Field(max_length=255)
    display_name: str | None = Field(default=None, max_length=255)

    is_primary: bool = Field(default=False)
    is_verified: bool = Field(default=False)
    message_count: int = Field(default=0)
    last_message_at: datetime | None = Field(default=None)

    contact: Contact = Relationship(back_populates="channels")
