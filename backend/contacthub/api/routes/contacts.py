from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlmodel import Session

from contacthub.api.deps import get_caller_id, get_db
from contacthub.models.contact import Contact
from contacthub.schemas.contact import (
    ChannelContactRequest,
    ChannelLinkCreate,
    ChannelLinkRead,
    ContactCreate,
    ContactRead,
    ContactResolveRequest,
    ContactResolveResponse,
    ContactUpdate,
    ContactWithChannels,
)
from contacthub.services.contact import ContactService
from contacthub.services.contact_resolver import ContactResolver

router = APIRouter(prefix="/workspaces/{workspace_id}", tags=["contacts"])


def _service(session: Session) -> ContactService:
    return ContactService(session)


def _serialize_with_channels(service: ContactService, workspace_id: UUID, contact: Contact) -> ContactWithChannels:
    channels = service.links.list_for_contact(contact.id, workspace_id)
    read = ContactWithChannels.model_validate(contact, from_attributes=True)
    return read.model_copy(update={
        "channels": [ChannelLinkRead.model_validate(link, from_attributes=True) for link in channels],
    })


@router.get("/contacts", response_model=List[ContactRead])
def list_contacts(
    workspace_id: UUID,
    q: str = Query(""),
    tags: List[str] | None = Query(None),
    favorite: bool | None = Query(None),
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> List[ContactRead]:
    contacts = _service(session).list_contacts(
        workspace_id,
        caller_id,
        search=q.strip(),
        tags=tags,
        is_favorite=favorite,
        limit=limit,
        offset=offset,
    )
    return [ContactRead.model_validate(contact, from_attributes=True) for contact in contacts]


@router.post("/contacts", response_model=ContactRead, status_code=status.HTTP_201_CREATED)
def create_contact(
    workspace_id: UUID,
    payload: ContactCreate,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> ContactRead:
    try:
        contact = _service(session).create_contact(workspace_id, caller_id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ContactRead.model_validate(contact, from_attributes=True)


@router.post("/contacts/resolve", response_model=ContactResolveResponse)
def resolve_contact(
    workspace_id: UUID,
    payload: ContactResolveRequest,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> ContactResolveResponse:
    resolved = ContactResolver(session).resolve(
        workspace_id,
        caller_id,
        payload.channel_type,
        sender_email=payload.sender_email,
        sender_name=payload.sender_name,
        channel_id=payload.channel_id,
    )
    return ContactResolveResponse(contact_id=resolved.contact_id, is_new=resolved.is_new)


@router.post("/contacts/from-channel", response_model=ContactRead)
def find_or_create_from_channel(
    workspace_id: UUID,
    payload: ChannelContactRequest,
    response: Response,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> ContactRead:
    try:
        contact, created = _service(session).find_or_create_from_channel(
            workspace_id,
            caller_id,
            payload.channel_type,
            payload.channel_id,
            payload.display_name,
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if created:
        response.status_code = status.HTTP_201_CREATED
    return ContactRead.model_validate(contact, from_attributes=True)


@router.get("/contacts/{contact_id}", response_model=ContactWithChannels)
def get_contact(
    workspace_id: UUID,
    contact_id: UUID,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> ContactWithChannels:
    service = _service(session)
    contact = service.get_contact(workspace_id, caller_id, contact_id)
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return _serialize_with_channels(service, workspace_id, contact)


@router.patch("/contacts/{contact_id}", response_model=ContactRead)
def update_contact(
    workspace_id: UUID,
    contact_id: UUID,
    payload: ContactUpdate,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> ContactRead:
    try:
        contact = _service(session).update_contact(workspace_id, caller_id, contact_id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return ContactRead.model_validate(contact, from_attributes=True)


@router.delete("/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    workspace_id: UUID,
    contact_id: UUID,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> Response:
    if not _service(session).delete_contact(workspace_id, caller_id, contact_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/contacts/{contact_id}/favorite", response_model=ContactRead)
def toggle_favorite(
    workspace_id: UUID,
    contact_id: UUID,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> ContactRead:
    contact = _service(session).toggle_favorite(workspace_id, caller_id, contact_id)
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return ContactRead.model_validate(contact, from_attributes=True)


@router.get("/contacts/{contact_id}/channels", response_model=List[ChannelLinkRead])
def list_channels(
    workspace_id: UUID,
    contact_id: UUID,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> List[ChannelLinkRead]:
    channels = _service(session).list_channels(workspace_id, caller_id, contact_id)
    if channels is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return [ChannelLinkRead.model_validate(link, from_attributes=True) for link in channels]


@router.post("/contacts/{contact_id}/channels", response_model=ChannelLinkRead)
def link_channel(
    workspace_id: UUID,
    contact_id: UUID,
    payload: ChannelLinkCreate,
    response: Response,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> ChannelLinkRead:
    try:
        result = _service(session).link_channel(workspace_id, caller_id, contact_id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    link, created = result
    if created:
        response.status_code = status.HTTP_201_CREATED
    return ChannelLinkRead.model_validate(link, from_attributes=True)


@router.delete("/channels/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_channel(
    workspace_id: UUID,
    link_id: UUID,
    session: Session = Depends(get_db),
    caller_id: UUID = Depends(get_caller_id),
) -> Response:
    if not _service(session).delete_channel(workspace_id, caller_id, link_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Channel not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
