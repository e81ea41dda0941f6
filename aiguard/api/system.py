"""
System / health routes.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from aiguard.config import settings

router = APIRouter(tags=["System"])


@router.get("/health")
async def health():
    return {
        "status": "healthy",
        "model": settings.gemini_model,
        "history_backend": settings.history_backend,
        "history_capacity": settings.history_capacity,
    }


@router.get("/robots.txt", response_class=PlainTextResponse)
def robots():
    # Scan results are private; keep crawlers out entirely.
    return "User-agent: *\nDisallow: /"
