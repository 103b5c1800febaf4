from __future__ import annotations

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from contacthub.core.logging_setup import logger
from contacthub.models.workspace import Workspace, WorkspaceMember, WorkspaceRole


class WorkspaceAccessError(PermissionError):
    """Raised when the caller is not a member of the workspace."""

    def __init__(self, caller_id: UUID | str, workspace_id: UUID | str) -> None:
        super().__init__("Not a workspace member")
        self.caller_id = caller_id
        self.workspace_id = workspace_id


class WorkspaceService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create_workspace(self, name: str, slug: str, owner_id: UUID | None = None) -> Workspace:
        workspace = Workspace(name=name.strip(), slug=slug.strip().lower())
        self.session.add(workspace)
        self.session.commit()
        self.session.refresh(workspace)
        if owner_id is not None:
            self.add_member(workspace.id, owner_id, role=WorkspaceRole.OWNER)
        return workspace

    def get_workspace(self, workspace_id: str | UUID) -> Workspace | None:
        return self.session.get(Workspace, UUID(str(workspace_id)))

    def get_member(self, caller_id: str | UUID, workspace_id: str | UUID) -> WorkspaceMember | None:
        statement = (
            select(WorkspaceMember)
            .where(WorkspaceMember.workspace_id == UUID(str(workspace_id)))
            .where(WorkspaceMember.user_id == UUID(str(caller_id)))
        )
        return self.session.exec(statement).first()

    def is_member(self, caller_id: str | UUID | None, workspace_id: str | UUID | None) -> bool:
        if not caller_id or not workspace_id:
            return False
        try:
            return self.get_member(caller_id, workspace_id) is not None
        except ValueError:
            # Malformed ids never belong to anyone.
            return False

    def require_member(self, caller_id: str | UUID | None, workspace_id: str | UUID | None) -> None:
        if not self.is_member(caller_id, workspace_id):
            logger.warning("Workspace access denied caller=%s workspace=%s", caller_id, workspace_id)
            raise WorkspaceAccessError(caller_id or "", workspace_id or "")

    def add_member(
        self,
        workspace_id: str | UUID,
        user_id: str | UUID,
        role: WorkspaceRole = WorkspaceRole.MEMBER,
    ) -> WorkspaceMember:
        existing = self.get_member(user_id, workspace_id)
        if existing:
            return existing
        member = WorkspaceMember(
            workspace_id=UUID(str(workspace_id)),
            user_id=UUID(str(user_id)),
            role=role.value,
        )
        self.session.add(member)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            concurrent = self.get_member(user_id, workspace_id)
            if concurrent is None:
                raise
            return concurrent
        self.session.refresh(member)
        return member
