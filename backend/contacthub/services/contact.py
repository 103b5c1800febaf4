from __future__ import annotations

from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from contacthub.core.config import settings
from contacthub.models.base import utcnow
from contacthub.models.contact import ChannelLink, Contact
from contacthub.schemas.contact import ChannelLinkCreate, ContactCreate, ContactUpdate
from contacthub.services.contact_resolver import ContactResolver
from contacthub.services.contact_store import ChannelLinkStore, ContactStore
from contacthub.services.identity_normalizer import normalize_email, split_name
from contacthub.services.workspace import WorkspaceService


class ContactService:
    """Workspace-scoped contact management. Every call checks membership first."""

    def __init__(self, session: Session, guard: WorkspaceService | None = None) -> None:
        self.session = session
        self.guard = guard or WorkspaceService(session)
        self.contacts = ContactStore(session)
        self.links = ChannelLinkStore(session)

    def list_contacts(
        self,
        workspace_id: UUID,
        caller_id: UUID,
        search: str = "",
        tags: Iterable[str] | None = None,
        is_favorite: bool | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Contact]:
        self.guard.require_member(caller_id, workspace_id)
        limit = min(max(limit or settings.contact_search_default_limit, 1), settings.contact_search_max_limit)
        offset = max(offset, 0)

        statement = select(Contact).where(Contact.workspace_id == workspace_id)
        if search:
            pattern = f"%{search.strip().lower()}%"
            statement = statement.where(
                func.lower(Contact.full_name).like(pattern)
                | func.lower(Contact.email).like(pattern)
                | func.lower(Contact.company).like(pattern)
            )
        if is_favorite is not None:
            statement = statement.where(Contact.is_favorite.is_(is_favorite))
        statement = statement.order_by(
            Contact.last_interaction_at.desc().nulls_last(),
            Contact.created_at.desc(),
        )

        wanted_tags = {tag.strip() for tag in tags or [] if tag and tag.strip()}
        if not wanted_tags:
            return list(self.session.exec(statement.offset(offset).limit(limit)).all())

        # Tags live in a JSON column; containment is checked here so the
        # query stays portable between SQLite and PostgreSQL.
        matching = [
            contact
            for contact in self.session.exec(statement).all()
            if wanted_tags.issubset(set(contact.tags or []))
        ]
        return matching[offset:offset + limit]

    def get_contact(self, workspace_id: UUID, caller_id: UUID, contact_id: UUID) -> Contact | None:
        self.guard.require_member(caller_id, workspace_id)
        return self.contacts.get(workspace_id, contact_id)

    def create_contact(self, workspace_id: UUID, caller_id: UUID, payload: ContactCreate) -> Contact:
        self.guard.require_member(caller_id, workspace_id)
        data = payload.model_dump()
        data["email"] = normalize_email(data.get("email"))
        if data.get("first_name") is None and data.get("last_name") is None:
            data["first_name"], data["last_name"] = split_name(data["full_name"])
        self._ensure_unique(workspace_id, data)

        contact = Contact(workspace_id=workspace_id, created_by=caller_id, **data)
        self.session.add(contact)
        self._commit_unique()
        self.session.refresh(contact)
        return contact

    def update_contact(
        self,
        workspace_id: UUID,
        caller_id: UUID,
        contact_id: UUID,
        payload: ContactUpdate,
    ) -> Contact | None:
        self.guard.require_member(caller_id, workspace_id)
        contact = self.contacts.get(workspace_id, contact_id)
        if not contact:
            return None

        update_data = payload.model_dump(exclude_unset=True)
        if "full_name" in update_data:
            full_name = (update_data["full_name"] or "").strip()
            if not full_name:
                raise ValueError("Full name is required")
            update_data["full_name"] = full_name
            if "first_name" not in update_data and "last_name" not in update_data:
                update_data["first_name"], update_data["last_name"] = split_name(full_name)
        if "email" in update_data:
            update_data["email"] = normalize_email(update_data["email"])
        if "tags" in update_data and update_data["tags"] is None:
            update_data["tags"] = []
        self._ensure_unique(workspace_id, update_data, exclude_id=contact.id)

        for field, value in update_data.items():
            setattr(contact, field, value)
        contact.updated_at = utcnow()
        self.session.add(contact)
        self._commit_unique()
        self.session.refresh(contact)
        return contact

    def delete_contact(self, workspace_id: UUID, caller_id: UUID, contact_id: UUID) -> bool:
        self.guard.require_member(caller_id, workspace_id)
        contact = self.contacts.get(workspace_id, contact_id)
        if not contact:
            return False
        for link in self.links.list_for_contact(contact.id, workspace_id):
            self.session.delete(link)
        self.session.delete(contact)
        self.session.commit()
        return True

    def toggle_favorite(self, workspace_id: UUID, caller_id: UUID, contact_id: UUID) -> Contact | None:
        self.guard.require_member(caller_id, workspace_id)
        contact = self.contacts.get(workspace_id, contact_id)
        if not contact:
            return None
        contact.is_favorite = not contact.is_favorite
        contact.updated_at = utcnow()
        self.session.add(contact)
        self.session.commit()
        self.session.refresh(contact)
        return contact

    def list_channels(self, workspace_id: UUID, caller_id: UUID, contact_id: UUID) -> list[ChannelLink] | None:
        self.guard.require_member(caller_id, workspace_id)
        if not self.contacts.get(workspace_id, contact_id):
            return None
        return self.links.list_for_contact(contact_id, workspace_id)

    def link_channel(
        self,
        workspace_id: UUID,
        caller_id: UUID,
        contact_id: UUID,
        payload: ChannelLinkCreate,
    ) -> tuple[ChannelLink, bool] | None:
        """Link a channel identity to a contact. Returns ``(link, created)``."""
        self.guard.require_member(caller_id, workspace_id)
        if not self.contacts.get(workspace_id, contact_id):
            return None

        channel_type = payload.channel_type.strip()
        channel_id = payload.channel_id.strip()
        if not channel_type or not channel_id:
            raise ValueError("Channel type and channel id are required")

        existing = self.links.get(contact_id, workspace_id, channel_type, channel_id)
        if existing:
            return existing, False

        is_primary = not self.links.has_links(contact_id, workspace_id)
        created = False
        for primary in ([True, False] if is_primary else [False]):
            link = ChannelLink(
                contact_id=contact_id,
                workspace_id=workspace_id,
                channel_type=channel_type,
                channel_id=channel_id,
                display_name=payload.display_name,
                is_primary=primary,
            )
            if self.links.insert_if_absent(link):
                created = True
                break

        stored = self.links.get(contact_id, workspace_id, channel_type, channel_id)
        if stored is None:
            raise ValueError("Channel could not be linked")
        return stored, created

    def delete_channel(self, workspace_id: UUID, caller_id: UUID, link_id: UUID) -> bool:
        self.guard.require_member(caller_id, workspace_id)
        link = self.session.get(ChannelLink, link_id)
        if not link or link.workspace_id != workspace_id:
            return False
        self.session.delete(link)
        self.session.commit()
        return True

    def find_or_create_from_channel(
        self,
        workspace_id: UUID,
        caller_id: UUID,
        channel_type: str,
        channel_id: str,
        display_name: str | None = None,
    ) -> tuple[Contact, bool]:
        """Resolve a sender known only by a channel handle."""
        resolved = ContactResolver(self.session, guard=self.guard).resolve(
            workspace_id,
            caller_id,
            channel_type,
            sender_name=display_name,
            channel_id=channel_id,
        )
        contact = self.contacts.get(workspace_id, resolved.contact_id)
        if contact is None:  # deleted between the two calls
            raise LookupError("Resolved contact no longer exists")
        return contact, resolved.is_new

    def _ensure_unique(self, workspace_id: UUID, data: dict[str, Any], exclude_id: UUID | None = None) -> None:
        email = data.get("email")
        if email:
            other = self.contacts.get_by_email(workspace_id, email)
            if other and other.id != exclude_id:
                raise ValueError("A contact with this email already exists")
        full_name = data.get("full_name")
        if full_name:
            other = self.contacts.get_by_full_name(workspace_id, full_name)
            if other and other.id != exclude_id:
                raise ValueError("A contact with this name already exists")

    def _commit_unique(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ValueError("Contact already exists") from exc
