"""
Health endpoint: GET /health

Liveness only; the venue store is not queried.
"""

from fastapi import APIRouter, Request

from services.api.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "version": settings.app_version,
        },
        "requestId": request.state.request_id,
    }
