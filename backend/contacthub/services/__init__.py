from contacthub.services.contact import ContactService
from contacthub.services.contact_resolver import ContactCollapseError, ContactResolver, ResolvedContact
from contacthub.services.contact_store import ChannelLinkStore, ContactStore
from contacthub.services.identity_normalizer import NormalizedIdentity, normalize_identity
from contacthub.services.workspace import WorkspaceAccessError, WorkspaceService

__all__ = [
    "ChannelLinkStore",
    "ContactCollapseError",
    "ContactResolver",
    "ContactService",
    "ContactStore",
    "NormalizedIdentity",
    "ResolvedContact",
    "WorkspaceAccessError",
    "WorkspaceService",
    "normalize_identity",
]
