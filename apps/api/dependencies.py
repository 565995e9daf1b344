"""
Application state and the FastAPI dependencies that hand it to routes.

Everything stateful (engine, blob store, session registry, fallback
collections) is built once per app in `build_app_state` and stored on
`app.state`, so tests can build isolated apps side by side.
"""

from dataclasses import dataclass
from datetime import timedelta

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from apps.api.auth.sessions import AdminSessionRegistry
from apps.api.config import Settings
from apps.api.images import ImageHost
from db.session import ConnectivityMonitor, SchemaGuard, build_engine, build_session_factory
from packages.records import (
    EVENT_UPDATABLE,
    PAST_QUESTION_UPDATABLE,
    EventRecord,
    MemoryEventRepository,
    MemoryPastQuestionRepository,
    PastQuestionRecord,
    RecordStore,
    SqlEventRepository,
    SqlPastQuestionRepository,
)
from packages.shared.storage import BlobStore, get_storage_backend_from_settings


@dataclass
class AppState:
    """Process-wide components, owned by one application instance."""

    settings: Settings
    engine: AsyncEngine
    monitor: ConnectivityMonitor
    schema: SchemaGuard
    blob_store: BlobStore
    sessions: AdminSessionRegistry
    past_questions: RecordStore[PastQuestionRecord]
    events: RecordStore[EventRecord]
    image_host: ImageHost


def build_app_state(
    settings: Settings,
    blob_store: BlobStore | None = None,
    image_host: ImageHost | None = None,
    monitor: ConnectivityMonitor | None = None,
) -> AppState:
    """Construct every component from settings; explicit arguments override."""
    engine = build_engine(settings.database_url, connect_timeout=settings.db_connect_timeout_seconds)
    session_factory = build_session_factory(engine)
    dialect = engine.dialect.name
    schema = SchemaGuard(engine)
    monitor = monitor or ConnectivityMonitor(
        engine,
        probe_interval=settings.db_probe_interval_seconds,
        timeout=settings.db_connect_timeout_seconds,
    )

    past_questions = RecordStore(
        durable=SqlPastQuestionRepository(session_factory, dialect),
        fallback=MemoryPastQuestionRepository(),
        monitor=monitor,
        allow_fallback=settings.allow_memory_fallback,
        updatable=PAST_QUESTION_UPDATABLE,
        name="past question",
        schema=schema,
    )
    events = RecordStore(
        durable=SqlEventRepository(session_factory, dialect),
        fallback=MemoryEventRepository(),
        monitor=monitor,
        allow_fallback=settings.allow_memory_fallback,
        updatable=EVENT_UPDATABLE,
        name="event",
        schema=schema,
    )

    return AppState(
        settings=settings,
        engine=engine,
        monitor=monitor,
        schema=schema,
        blob_store=blob_store or get_storage_backend_from_settings(settings),
        sessions=AdminSessionRegistry(
            settings.admin_api_key,
            ttl=timedelta(hours=settings.admin_session_ttl_hours),
        ),
        past_questions=past_questions,
        events=events,
        image_host=image_host
        or ImageHost(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
        ),
    )


# =============================================================================
# Dependencies
# =============================================================================


def get_app_state(request: Request) -> AppState:
    return request.app.state.components


def get_settings_dep(request: Request) -> Settings:
    return get_app_state(request).settings


def get_blob_store(request: Request) -> BlobStore:
    return get_app_state(request).blob_store


def get_session_registry(request: Request) -> AdminSessionRegistry:
    return get_app_state(request).sessions


def get_past_question_store(request: Request) -> RecordStore[PastQuestionRecord]:
    return get_app_state(request).past_questions


def get_event_store(request: Request) -> RecordStore[EventRecord]:
    return get_app_state(request).events


def get_image_host(request: Request) -> ImageHost:
    return get_app_state(request).image_host
