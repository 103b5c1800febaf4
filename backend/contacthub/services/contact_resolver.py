"""Contact identity resolution.

Attaches every inbound message to exactly one contact per workspace. The
matching cascade is, first hit wins:

1. contact with the same email,
2. contact owning a link for the same (channel type, channel key),
3. insert-or-collapse on the contact full name.

Afterwards the channel identity is linked to the contact. Linking is
bookkeeping: a failure there is logged and the resolution still succeeds.

There is no locking here. Concurrent callers resolving the same sender are
reconciled by the unique constraints on ``contacts`` and ``contact_channels``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from contacthub.models.base import utcnow
from contacthub.models.contact import ChannelLink, Contact
from contacthub.services.contact_store import ChannelLinkStore, ContactStore
from contacthub.services.identity_normalizer import NormalizedIdentity, normalize_identity
from contacthub.services.workspace import WorkspaceService

logger = logging.getLogger("contacthub.resolver")


class ContactCollapseError(RuntimeError):
    """The create path hit a conflict and no surviving contact could be found."""


@dataclass(frozen=True)
class ResolvedContact:
    contact_id: UUID
    is_new: bool


class ContactResolver:
    def __init__(self, session: Session, guard: WorkspaceService | None = None) -> None:
        self.session = session
        self.guard = guard or WorkspaceService(session)
        self.contacts = ContactStore(session)
        self.links = ChannelLinkStore(session)

    def resolve(
        self,
        workspace_id: UUID,
        caller_id: UUID,
        channel_type: str,
        sender_email: str | None = None,
        sender_name: str | None = None,
        channel_id: str | None = None,
    ) -> ResolvedContact:
        self.guard.require_member(caller_id, workspace_id)
        workspace_id = UUID(str(workspace_id))
        identity = normalize_identity(sender_email, sender_name, channel_id)
        seen_at = utcnow()

        contact_id, is_new, matched_by = self._match(workspace_id, channel_type, identity, seen_at)
        self._link_channel(contact_id, workspace_id, channel_type, identity, seen_at, first_link=is_new)

        logger.debug(
            "Resolved %s/%s to contact %s via %s (new=%s)",
            channel_type,
            identity.channel_key,
            contact_id,
            matched_by,
            is_new,
        )
        return ResolvedContact(contact_id=contact_id, is_new=is_new)

    def _match(
        self,
        workspace_id: UUID,
        channel_type: str,
        identity: NormalizedIdentity,
        seen_at: datetime,
    ) -> tuple[UUID, bool, str]:
        if identity.email:
            contact = self.contacts.get_by_email(workspace_id, identity.email)
            if contact:
                contact_id = contact.id
                self.contacts.record_interaction(contact_id, seen_at)
                if identity.has_name:
                    self._rename(contact_id, identity, seen_at)
                return contact_id, False, "email"

        link = self.links.find_by_channel(workspace_id, channel_type, identity.channel_key)
        if link:
            contact_id = link.contact_id
            self._refresh(contact_id, identity, seen_at)
            return contact_id, False, "channel"

        contact_id, created = self._create(workspace_id, identity, seen_at)
        if not created:
            self._refresh(contact_id, identity, seen_at)
            return contact_id, False, "name"
        return contact_id, True, "created"

    def _create(self, workspace_id: UUID, identity: NormalizedIdentity, seen_at: datetime) -> tuple[UUID, bool]:
        candidate = Contact(
            workspace_id=workspace_id,
            full_name=identity.display_name,
            first_name=identity.first_name,
            last_name=identity.last_name,
            email=identity.email,
            interaction_count=1,
            last_interaction_at=seen_at,
            created_at=seen_at,
        )
        try:
            contact_id, created = self.contacts.insert_or_collapse(candidate)
        except IntegrityError as exc:
            # Most likely a concurrent insert won the email constraint.
            survivor = self._find_survivor(workspace_id, identity)
            if survivor is None:
                raise ContactCollapseError(
                    f"Could not resolve conflicting contact '{identity.display_name}'"
                ) from exc
            logger.info("Contact insert conflicted, converged on %s", survivor)
            return survivor, False

        if contact_id is None:
            survivor = self._find_survivor(workspace_id, identity)
            if survivor is None:
                raise ContactCollapseError(f"Contact upsert returned no row for '{identity.display_name}'")
            return survivor, False
        return contact_id, created

    def _find_survivor(self, workspace_id: UUID, identity: NormalizedIdentity) -> UUID | None:
        contact = self.contacts.get_by_full_name(workspace_id, identity.display_name)
        if contact is None and identity.email:
            contact = self.contacts.get_by_email(workspace_id, identity.email)
        return contact.id if contact else None

    def _refresh(self, contact_id: UUID, identity: NormalizedIdentity, seen_at: datetime) -> None:
        self.contacts.record_interaction(contact_id, seen_at)
        if not identity.email:
            return
        try:
            self.contacts.backfill_email(contact_id, identity.email, seen_at)
        except IntegrityError:
            logger.warning(
                "Email %s already belongs to another contact; not backfilled on %s",
                identity.email,
                contact_id,
                exc_info=True,
            )

    def _rename(self, contact_id: UUID, identity: NormalizedIdentity, seen_at: datetime) -> None:
        # Most recent name wins, even when it is a worse one.
        try:
            self.contacts.rename(
                contact_id,
                identity.display_name,
                identity.first_name,
                identity.last_name,
                seen_at,
            )
        except IntegrityError:
            logger.warning(
                "Name '%s' is taken by another contact; kept current name on %s",
                identity.display_name,
                contact_id,
                exc_info=True,
            )

    def _link_channel(
        self,
        contact_id: UUID,
        workspace_id: UUID,
        channel_type: str,
        identity: NormalizedIdentity,
        seen_at: datetime,
        *,
        first_link: bool = False,
    ) -> None:
        try:
            existing = self.links.get(contact_id, workspace_id, channel_type, identity.channel_key)
            if existing:
                self.links.record_message(existing.id, seen_at)
                return

            is_primary = first_link or not self.links.has_links(contact_id, workspace_id)
            created = self.links.insert_if_absent(
                self._new_link(contact_id, workspace_id, channel_type, identity, seen_at, is_primary)
            )
            if not created and is_primary:
                # Another call took the primary slot first.
                created = self.links.insert_if_absent(
                    self._new_link(contact_id, workspace_id, channel_type, identity, seen_at, False)
                )
            if not created:
                concurrent = self.links.get(contact_id, workspace_id, channel_type, identity.channel_key)
                if concurrent:
                    self.links.record_message(concurrent.id, seen_at)
                else:
                    logger.warning(
                        "Channel link %s/%s for contact %s could not be stored",
                        channel_type,
                        identity.channel_key,
                        contact_id,
                    )
        except IntegrityError:
            logger.warning(
                "Channel link bookkeeping failed for contact %s (%s/%s)",
                contact_id,
                channel_type,
                identity.channel_key,
                exc_info=True,
            )

    @staticmethod
    def _new_link(
        contact_id: UUID,
        workspace_id: UUID,
        channel_type: str,
        identity: NormalizedIdentity,
        seen_at: datetime,
        is_primary: bool,
    ) -> ChannelLink:
        return ChannelLink(
            contact_id=contact_id,
            workspace_id=workspace_id,
            channel_type=channel_type,
            channel_id=identity.channel_key,
            display_name=identity.sender_name or identity.display_name,
            is_primary=is_primary,
            message_count=1,
            last_message_at=seen_at,
            created_at=seen_at,
        )
