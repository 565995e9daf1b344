"""
Past-question endpoints.

Endpoints:
- POST /admin/past-questions: Upload a document with metadata (admin)
- GET /past-questions: Filtered, paginated listing
- GET /past-questions/{id}: Single record
- GET /past-questions/{id}/download: Stream the stored file
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from apps.api.auth.dependencies import require_admin
from apps.api.config import Settings
from apps.api.dependencies import get_blob_store, get_past_question_store, get_settings_dep
from apps.api.uploads.file_detection import sanitize_filename, validate_document, validate_size
from apps.api.uploads.schemas import PastQuestionListResponse, PastQuestionResponse
from packages.records import PastQuestionCreate, PastQuestionFilters, PastQuestionRecord, RecordStore
from packages.shared.exceptions import NotFoundError, ValidationError
from packages.shared.storage import BlobStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Past Questions"])

DEFAULT_DOWNLOAD_TYPE = "application/octet-stream"

PastQuestionStore = Annotated[RecordStore[PastQuestionRecord], Depends(get_past_question_store)]


async def _get_or_404(store: RecordStore[PastQuestionRecord], record_id: str) -> PastQuestionRecord:
    record = await store.get(record_id)
    if record is None:
        raise NotFoundError("Past question", record_id)
    return record


@router.post(
    "/admin/past-questions",
    response_model=PastQuestionResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def upload_past_question(
    store: PastQuestionStore,
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
    settings: Annotated[Settings, Depends(get_settings_dep)],
    file: UploadFile | None = File(None),
    title: str | None = Form(None),
    subject: str | None = Form(None),
    class_name: str | None = Form(None, alias="className"),
    year: str | None = Form(None),
) -> PastQuestionRecord:
    """
    Upload a past-question document.

    Every check runs before the file is written, so a rejected request
    never leaves a blob behind.
    """
    if file is None or not file.filename:
        raise ValidationError("File is required")
    if not title or not title.strip():
        raise ValidationError("Title is required")
    validate_document(file.filename, file.content_type)
    if file.size is not None:
        validate_size(file.size, settings.max_file_size_bytes)

    payload = await file.read()
    validate_size(len(payload), settings.max_file_size_bytes)
    mime_type = file.content_type or DEFAULT_DOWNLOAD_TYPE

    stored = await blob_store.upload(payload, mime_type, file.filename)
    try:
        return await store.create(
            PastQuestionCreate(
                title=title,
                subject=subject,
                class_name=class_name,
                year=year,
                file_key=stored.key,
                file_name=file.filename,
                mime_type=mime_type,
                size=stored.size,
            )
        )
    except Exception:
        logger.exception(f"Metadata write failed; blob {stored.key} is orphaned")
        raise


@router.get("/past-questions", response_model=PastQuestionListResponse)
async def list_past_questions(
    store: PastQuestionStore,
    settings: Annotated[Settings, Depends(get_settings_dep)],
    q: str | None = None,
    year: str | None = None,
    subject: str | None = None,
    class_name: str | None = Query(None, alias="className"),
    limit: str | None = None,
    offset: str | None = None,
) -> PastQuestionListResponse:
    """List past questions, newest first."""
    filters = PastQuestionFilters.from_params(
        q=q,
        subject=subject,
        class_name=class_name,
        year=year,
        limit=limit,
        offset=offset,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )
    page = await store.list(filters)
    return PastQuestionListResponse(
        items=[PastQuestionResponse.model_validate(item) for item in page.items],
        total=page.total,
    )


@router.get("/past-questions/{record_id}", response_model=PastQuestionResponse)
async def get_past_question(record_id: str, store: PastQuestionStore) -> PastQuestionRecord:
    return await _get_or_404(store, record_id)


@router.get("/past-questions/{record_id}/download")
async def download_past_question(
    record_id: str,
    store: PastQuestionStore,
    blob_store: Annotated[BlobStore, Depends(get_blob_store)],
) -> StreamingResponse:
    """Stream the stored file as an attachment."""
    record = await _get_or_404(store, record_id)
    stream = await blob_store.fetch(record.file_key)

    headers = {
        "Content-Disposition": f'attachment; filename="{sanitize_filename(record.file_name)}"',
        "X-Content-Type-Options": "nosniff",
        "Content-Security-Policy": "default-src 'none'",
    }
    length = stream.content_length if stream.content_length is not None else record.size
    if length is not None:
        headers["Content-Length"] = str(length)

    return StreamingResponse(
        stream.chunks,
        media_type=record.mime_type or DEFAULT_DOWNLOAD_TYPE,
        headers=headers,
    )
