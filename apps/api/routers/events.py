"""
Event endpoints.

Event images live on the external image host. Replacing an image deletes
the old one after the update commits, as a background task; deleting an
event deletes its image first. Image deletion failures are logged and
never block the record operation.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status

from apps.api.auth.dependencies import require_admin
from apps.api.auth.schemas import MessageResponse
from apps.api.config import Settings
from apps.api.dependencies import get_event_store, get_image_host, get_settings_dep
from apps.api.images import HostedImage, ImageHost, delete_image_quietly
from apps.api.uploads.file_detection import is_image, validate_size
from apps.api.uploads.schemas import EventResponse
from packages.records import EventCreate, EventFilters, EventRecord, RecordStore
from packages.shared.exceptions import ImageHostError, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])

EventStore = Annotated[RecordStore[EventRecord], Depends(get_event_store)]
Images = Annotated[ImageHost, Depends(get_image_host)]


async def _read_image(image: UploadFile | None, settings: Settings) -> bytes | None:
    """Return the image bytes, or None when no usable image was sent."""
    if image is None or not image.filename or not is_image(image.content_type):
        return None
    payload = await image.read()
    if not payload:
        return None
    validate_size(len(payload), settings.max_image_size_bytes, label="Image")
    return payload


async def _upload_image(host: ImageHost, payload: bytes | None) -> HostedImage | None:
    """Upload if there is something to upload; failures degrade to no image."""
    if payload is None:
        return None
    try:
        return await host.upload(payload)
    except ImageHostError as e:
        logger.warning(f"Event image upload failed, continuing without image: {e.message}")
        return None


@router.get("", response_model=list[EventResponse])
async def list_events(store: EventStore, q: str | None = None) -> list[EventRecord]:
    """List events, latest date first."""
    return await store.list(EventFilters.from_params(q=q))


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, store: EventStore) -> EventRecord:
    record = await store.get(event_id)
    if record is None:
        raise NotFoundError("Event", event_id)
    return record


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_event(
    store: EventStore,
    images: Images,
    settings: Annotated[Settings, Depends(get_settings_dep)],
    title: str | None = Form(None),
    description: str | None = Form(None),
    date: str | None = Form(None),
    location: str | None = Form(None),
    image: UploadFile | None = File(None),
) -> EventRecord:
    """Create an event, optionally with an image."""
    data = EventCreate(title=title, description=description, date=date, location=location)
    payload = await _read_image(image, settings)

    hosted = await _upload_image(images, payload)
    if hosted is not None:
        data.image_url = hosted.url
        data.image_public_id = hosted.public_id

    return await store.create(data)


@router.put(
    "/{event_id}",
    response_model=EventResponse,
    dependencies=[Depends(require_admin)],
)
async def update_event(
    event_id: str,
    store: EventStore,
    images: Images,
    settings: Annotated[Settings, Depends(get_settings_dep)],
    background_tasks: BackgroundTasks,
    title: str | None = Form(None),
    description: str | None = Form(None),
    date: str | None = Form(None),
    location: str | None = Form(None),
    image: UploadFile | None = File(None),
) -> EventRecord:
    """
    Merge the supplied fields into an event.

    Blank or omitted fields keep their stored values. A new image replaces
    the old one, which is deleted from the host after the update commits.
    """
    current = await store.get(event_id)
    if current is None:
        raise NotFoundError("Event", event_id)

    supplied = {"title": title, "description": description, "date": date, "location": location}
    changes: dict[str, Any] = {k: v for k, v in supplied.items() if v is not None and v.strip()}

    payload = await _read_image(image, settings)
    hosted = await _upload_image(images, payload)
    if hosted is not None:
        changes["image_url"] = hosted.url
        changes["image_public_id"] = hosted.public_id

    try:
        updated = await store.update(event_id, changes)
    except Exception:
        if hosted is not None:
            await delete_image_quietly(images, hosted.public_id)
        raise

    if updated is None:
        if hosted is not None:
            await delete_image_quietly(images, hosted.public_id)
        raise NotFoundError("Event", event_id)

    if hosted is not None and current.image_public_id and current.image_public_id != hosted.public_id:
        background_tasks.add_task(delete_image_quietly, images, current.image_public_id)

    return updated


@router.delete(
    "/{event_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
async def delete_event(event_id: str, store: EventStore, images: Images) -> MessageResponse:
    """Delete an event's hosted image (best effort), then the event."""
    current = await store.get(event_id)
    if current is None:
        raise NotFoundError("Event", event_id)
    await delete_image_quietly(images, current.image_public_id)
    if await store.delete(event_id) is None:
        raise NotFoundError("Event", event_id)
    return MessageResponse(message="Event deleted successfully")
