from uuid import uuid4

import pytest
from sqlmodel import Session, select

from contacthub.models.contact import ChannelLink, Contact
from contacthub.schemas.contact import ChannelLinkCreate, ContactCreate, ContactUpdate
from contacthub.services.contact import ContactService
from contacthub.services.workspace import WorkspaceAccessError
from tests.conftest import seed_workspace  # type: ignore


def _service(session: Session) -> ContactService:
    return ContactService(session)


def test_create_contact_derives_names_and_normalizes_email(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]

    contact = _service(db_session).create_contact(
        ws,
        caller,
        ContactCreate(full_name="  Maria Clara Silva ", email="Maria@Example.com", tags=["vip"]),
    )

    assert contact.full_name == "Maria Clara Silva"
    assert contact.first_name == "Maria"
    assert contact.last_name == "Clara Silva"
    assert contact.email == "maria@example.com"
    assert contact.tags == ["vip"]
    assert contact.created_by == caller
    assert contact.interaction_count == 0


def test_create_contact_rejects_duplicates(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)
    service.create_contact(ws, caller, ContactCreate(full_name="Ana", email="ana@example.com"))

    with pytest.raises(ValueError):
        service.create_contact(ws, caller, ContactCreate(full_name="Ana Costa", email="ANA@example.com"))
    with pytest.raises(ValueError):
        service.create_contact(ws, caller, ContactCreate(full_name="Ana"))

    other_ws, other_caller = seed_workspace(db_session, name="Other")
    duplicate_elsewhere = service.create_contact(other_ws.id, other_caller, ContactCreate(full_name="Ana", email="ana@example.com"))
    assert duplicate_elsewhere.workspace_id == other_ws.id


def test_update_contact_is_partial(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)
    contact = service.create_contact(ws, caller, ContactCreate(full_name="Paulo Reis", company="Acme"))

    updated = service.update_contact(ws, caller, contact.id, ContactUpdate(full_name="Paulo Mendes Reis"))

    assert updated.full_name == "Paulo Mendes Reis"
    assert updated.first_name == "Paulo"
    assert updated.last_name == "Mendes Reis"
    assert updated.company == "Acme"
    assert updated.updated_at is not None


def test_update_contact_rejects_taken_email(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)
    service.create_contact(ws, caller, ContactCreate(full_name="Rita", email="rita@example.com"))
    other = service.create_contact(ws, caller, ContactCreate(full_name="Rui"))

    with pytest.raises(ValueError):
        service.update_contact(ws, caller, other.id, ContactUpdate(email="rita@example.com"))


def test_missing_contact_returns_none(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)

    assert service.get_contact(ws, caller, uuid4()) is None
    assert service.update_contact(ws, caller, uuid4(), ContactUpdate(notes="x")) is None
    assert service.toggle_favorite(ws, caller, uuid4()) is None
    assert service.list_channels(ws, caller, uuid4()) is None
    assert service.delete_contact(ws, caller, uuid4()) is False


def test_contacts_are_not_visible_across_workspaces(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    other_ws, other_caller = seed_workspace(db_session, name="Other")
    service = _service(db_session)
    contact = service.create_contact(ws, caller, ContactCreate(full_name="Lia"))

    assert service.get_contact(other_ws.id, other_caller, contact.id) is None
    assert service.list_contacts(other_ws.id, other_caller) == []


def test_list_contacts_filters(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)
    alpha = service.create_contact(ws, caller, ContactCreate(full_name="Alpha One", company="Globex", tags=["lead", "vip"]))
    beta = service.create_contact(ws, caller, ContactCreate(full_name="Beta Two", email="beta@initech.com", tags=["lead"]))
    service.create_contact(ws, caller, ContactCreate(full_name="Gamma Three"))
    service.toggle_favorite(ws, caller, beta.id)

    assert [c.id for c in service.list_contacts(ws, caller, search="GLOBEX")] == [alpha.id]
    assert [c.id for c in service.list_contacts(ws, caller, search="initech")] == [beta.id]
    assert {c.id for c in service.list_contacts(ws, caller, tags=["lead"])} == {alpha.id, beta.id}
    assert [c.id for c in service.list_contacts(ws, caller, tags=["lead", "vip"])] == [alpha.id]
    assert [c.id for c in service.list_contacts(ws, caller, is_favorite=True)] == [beta.id]
    assert len(service.list_contacts(ws, caller, is_favorite=False)) == 2
    assert len(service.list_contacts(ws, caller, limit=2)) == 2
    assert len(service.list_contacts(ws, caller, limit=2, offset=2)) == 1


def test_list_contacts_orders_by_recent_interaction(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)
    quiet = service.create_contact(ws, caller, ContactCreate(full_name="Quiet"))
    first, _ = service.find_or_create_from_channel(ws, caller, "slack", "U1", "First")
    second, _ = service.find_or_create_from_channel(ws, caller, "slack", "U2", "Second")

    ordered = [c.id for c in service.list_contacts(ws, caller)]

    assert ordered == [second.id, first.id, quiet.id]


def test_toggle_favorite_flips_flag(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)
    contact = service.create_contact(ws, caller, ContactCreate(full_name="Fabio"))

    assert service.toggle_favorite(ws, caller, contact.id).is_favorite is True
    assert service.toggle_favorite(ws, caller, contact.id).is_favorite is False


def test_link_channel_is_idempotent_and_first_is_primary(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)
    contact = service.create_contact(ws, caller, ContactCreate(full_name="Nina"))

    first, created = service.link_channel(ws, caller, contact.id, ChannelLinkCreate(channel_type="whatsapp", channel_id="+551100"))
    assert created is True
    assert first.is_primary is True

    again, created_again = service.link_channel(ws, caller, contact.id, ChannelLinkCreate(channel_type="whatsapp", channel_id="+551100"))
    assert created_again is False
    assert again.id == first.id

    second, _ = service.link_channel(ws, caller, contact.id, ChannelLinkCreate(channel_type="telegram", channel_id="nina_tg"))
    assert second.is_primary is False

    channels = service.list_channels(ws, caller, contact.id)
    assert [link.channel_type for link in channels] == ["whatsapp", "telegram"]


def test_link_channel_requires_identity(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)
    contact = service.create_contact(ws, caller, ContactCreate(full_name="Otto"))

    with pytest.raises(ValueError):
        service.link_channel(ws, caller, contact.id, ChannelLinkCreate(channel_type="sms", channel_id="   "))


def test_delete_channel_and_contact(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    other_ws, other_caller = seed_workspace(db_session, name="Other")
    service = _service(db_session)
    contact = service.create_contact(ws, caller, ContactCreate(full_name="Vera"))
    link, _ = service.link_channel(ws, caller, contact.id, ChannelLinkCreate(channel_type="sms", channel_id="555"))
    service.link_channel(ws, caller, contact.id, ChannelLinkCreate(channel_type="gmail", channel_id="vera@example.com"))

    assert service.delete_channel(other_ws.id, other_caller, link.id) is False
    assert service.delete_channel(ws, caller, link.id) is True
    assert len(service.list_channels(ws, caller, contact.id)) == 1

    assert service.delete_contact(ws, caller, contact.id) is True
    db_session.expire_all()
    assert db_session.get(Contact, contact.id) is None
    assert db_session.exec(select(ChannelLink).where(ChannelLink.contact_id == contact.id)).all() == []


def test_find_or_create_from_channel(db_session: Session, workspace_context: dict) -> None:
    ws, caller = workspace_context["workspace_id"], workspace_context["caller_id"]
    service = _service(db_session)

    contact, is_new = service.find_or_create_from_channel(ws, caller, "instagram", "joao_ig", "Joao Lima")
    assert is_new is True
    assert contact.full_name == "Joao Lima"

    same, is_new_again = service.find_or_create_from_channel(ws, caller, "instagram", "joao_ig")
    assert is_new_again is False
    assert same.id == contact.id
    assert same.interaction_count == 2


def test_every_operation_requires_membership(db_session: Session, workspace_context: dict) -> None:
    ws = workspace_context["workspace_id"]
    stranger = uuid4()
    service = _service(db_session)

    with pytest.raises(WorkspaceAccessError):
        service.list_contacts(ws, stranger)
    with pytest.raises(WorkspaceAccessError):
        service.create_contact(ws, stranger, ContactCreate(full_name="Intruder"))
    with pytest.raises(WorkspaceAccessError):
        service.find_or_create_from_channel(ws, stranger, "sms", "000")
    with pytest.raises(WorkspaceAccessError):
        service.delete_channel(ws, stranger, uuid4())
