from enum import Enum
from typing import List
from uuid import UUID

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship

from contacthub.models.base import TimestampedModel, UUIDModel


class WorkspaceRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class Workspace(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "workspaces"

    name: str = Field(index=True)
    slug: str = Field(unique=True, index=True)
    is_active: bool = Field(default=True)

    members: List["WorkspaceMember"] = Relationship(back_populates="workspace")


class WorkspaceMember(UUIDModel, TimestampedModel, table=True):
    __tablename__ = "workspace_members"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_workspace_members_workspace_user"),
    )

    workspace_id: UUID = Field(foreign_key="workspaces.id", ondelete="CASCADE", index=True)
    # Users live in the identity provider; only their id is known here.
    user_id: UUID = Field(index=True)
    role: str = Field(default=WorkspaceRole.MEMBER.value)

    workspace: Workspace = Relationship(back_populates="members")
