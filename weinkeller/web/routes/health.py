"""Liveness endpoint."""

from datetime import UTC, datetime

from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Report that the server is up."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}
