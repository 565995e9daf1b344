"""
Health check endpoint.
GET /health - Reports the blob backend and which record store is serving.
"""

from typing import Any

from fastapi import APIRouter, Depends

from apps.api.dependencies import AppState, get_app_state

router = APIRouter()


@router.get("/health")
async def health_check(state: AppState = Depends(get_app_state)) -> dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        200 + {"status": "ok", "storage_backend": ..., "record_store": "durable" | "memory"}
    """
    return {
        "status": "ok",
        "storage_backend": state.blob_store.backend_name,
        "record_store": await state.past_questions.current_mode(),
    }
