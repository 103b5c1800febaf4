from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import case, func, or_, update
from sqlmodel import Session, select

from contacthub.db.upsert import conflict_insert, row_values
from contacthub.models.contact import ChannelLink, Contact


def _advance(column: Any, value: datetime) -> Any:
    """SQL expression keeping a timestamp column monotonic."""
    return case((or_(column.is_(None), column < value), value), else_=column)


class _Store:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _write(self, statement: Any, *, returning: bool = False) -> Any:
        """Run one write statement in its own transaction."""
        try:
            result = self.session.connection().execute(statement)
            value = result.scalar_one_or_none() if returning else result.rowcount
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return value


class ContactStore(_Store):
    def get(self, workspace_id: UUID, contact_id: UUID) -> Contact | None:
        contact = self.session.get(Contact, contact_id)
        if contact and contact.workspace_id == workspace_id:
            return contact
        return None

    def get_by_email(self, workspace_id: UUID, email: str) -> Contact | None:
        statement = (
            select(Contact)
            .where(Contact.workspace_id == workspace_id)
            .where(Contact.email == email)
        )
        return self.session.exec(statement).first()

    def get_by_full_name(self, workspace_id: UUID, full_name: str) -> Contact | None:
        statement = (
            select(Contact)
            .where(Contact.workspace_id == workspace_id)
            .where(Contact.full_name == full_name)
        )
        return self.session.exec(statement).first()

    def insert_or_collapse(self, contact: Contact) -> tuple[UUID | None, bool]:
        """Insert ``contact`` or return the row already holding its full name.

        Returns ``(contact_id, created)``. ``contact_id`` is ``None`` when the
        database reported no row at all. Violations of other constraints (the
        email one) raise ``IntegrityError``.
        """
        statement = (
            conflict_insert(self.session, Contact)
            .values(**row_values(contact))
            .on_conflict_do_update(
                index_elements=["workspace_id", "full_name"],
                set_={"updated_at": contact.created_at},
            )
            .returning(Contact.id)
        )
        returned = self._write(statement, returning=True)
        if returned is None:
            return None, False
        contact_id = UUID(str(returned))
        return contact_id, contact_id == contact.id

    def record_interaction(self, contact_id: UUID, seen_at: datetime) -> None:
        statement = (
            update(Contact)
            .where(Contact.id == contact_id)
            .values(
                interaction_count=Contact.interaction_count + 1,
                last_interaction_at=_advance(Contact.last_interaction_at, seen_at),
                updated_at=seen_at,
            )
        )
        self._write(statement)

    def rename(
        self,
        contact_id: UUID,
        full_name: str,
        first_name: str | None,
        last_name: str | None,
        at: datetime,
    ) -> bool:
        statement = (
            update(Contact)
            .where(Contact.id == contact_id)
            .where(Contact.full_name != full_name)
            .values(full_name=full_name, first_name=first_name, last_name=last_name, updated_at=at)
        )
        return self._write(statement) > 0

    def backfill_email(self, contact_id: UUID, email: str, at: datetime) -> bool:
        """Set the email only when the contact has none yet."""
        statement = (
            update(Contact)
            .where(Contact.id == contact_id)
            .where(Contact.email.is_(None))
            .values(email=email, updated_at=at)
        )
        return self._write(statement) > 0


class ChannelLinkStore(_Store):
    def get(self, contact_id: UUID, workspace_id: UUID, channel_type: str, channel_id: str) -> ChannelLink | None:
        statement = (
            select(ChannelLink)
            .where(ChannelLink.contact_id == contact_id)
            .where(ChannelLink.workspace_id == workspace_id)
            .where(ChannelLink.channel_type == channel_type)
            .where(ChannelLink.channel_id == channel_id)
        )
        return self.session.exec(statement).first()

    def find_by_channel(self, workspace_id: UUID, channel_type: str, channel_id: str) -> ChannelLink | None:
        """Oldest link for a channel identity whose contact lives in the workspace."""
        statement = (
            select(ChannelLink)
            .join(Contact, Contact.id == ChannelLink.contact_id)
            .where(Contact.workspace_id == workspace_id)
            .where(ChannelLink.workspace_id == workspace_id)
            .where(ChannelLink.channel_type == channel_type)
            .where(ChannelLink.channel_id == channel_id)
            .order_by(ChannelLink.created_at, ChannelLink.id)
        )
        return self.session.exec(statement).first()

    def has_links(self, contact_id: UUID, workspace_id: UUID) -> bool:
        statement = (
            select(func.count())
            .select_from(ChannelLink)
            .where(ChannelLink.contact_id == contact_id)
            .where(ChannelLink.workspace_id == workspace_id)
        )
        return self.session.exec(statement).one() > 0

    def list_for_contact(self, contact_id: UUID, workspace_id: UUID) -> list[ChannelLink]:
        statement = (
            select(ChannelLink)
            .where(ChannelLink.contact_id == contact_id)
            .where(ChannelLink.workspace_id == workspace_id)
            .order_by(ChannelLink.is_primary.desc(), ChannelLink.created_at, ChannelLink.id)
        )
        return list(self.session.exec(statement).all())

    def insert_if_absent(self, link: ChannelLink) -> bool:
        """Insert ``link``; a uniqueness violation is a silent no-op. True when inserted."""
        statement = (
            conflict_insert(self.session, ChannelLink)
            .values(**row_values(link))
            .on_conflict_do_nothing()
            .returning(ChannelLink.id)
        )
        return self._write(statement, returning=True) is not None

    def record_message(self, link_id: UUID, seen_at: datetime) -> None:
        statement = (
            update(ChannelLink)
            .where(ChannelLink.id == link_id)
            .values(
                message_count=ChannelLink.message_count + 1,
                last_message_at=_advance(ChannelLink.last_message_at, seen_at),
                updated_at=seen_at,
            )
        )
        self._write(statement)
