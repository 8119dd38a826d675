"""Health check endpoint."""
from fastapi import APIRouter

from studio import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict[str, str]:
    """Health check for the load balancer / Cloud Run."""
    return {"status": "ok", "version": __version__}
