# noqa: F401 to ensure models are imported for metadata
from contacthub.models.contact import ChannelLink, Contact
from contacthub.models.workspace import Workspace, WorkspaceMember

__all__ = [
    "ChannelLink",
    "Contact",
    "Workspace",
    "WorkspaceMember",
]
