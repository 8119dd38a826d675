"""Reel proxy: POST /api/generate-reel -> video/mp4 bytes."""
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from studio.logging_config import get_logger
from studio.schemas.common import ErrorResponse
from studio.schemas.reel import GenerateReelRequest
from studio.services.video_service import VeoClient

logger = get_logger(__name__)

router = APIRouter(tags=["reels"])

PROVIDER_HINT = "Ensure your project has Veo access and billing enabled."
VIDEO_MEDIA_TYPE = "video/mp4"


def get_video_client(request: Request) -> VeoClient:
    """One client per request; the settings were validated at startup."""
    return VeoClient(request.app.state.settings)


def _error(status_code: int, message: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=message, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


@router.post(
    "/api/generate-reel",
    response_class=Response,
    responses={
        200: {"content": {VIDEO_MEDIA_TYPE: {}}, "description": "Generated video"},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def post_generate_reel(
    request: Request,
    client: VeoClient = Depends(get_video_client),
) -> Response:
    """
    Submit the prompt, hold the response open while the job runs (can be minutes),
    then stream the downloaded video back. The provider key stays on the server.
    """
    try:
        body = await request.json()
        payload = GenerateReelRequest.model_validate(body)
    except (ValueError, ValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, "Prompt is required")
    prompt = payload.prompt or ""
    if not prompt.strip():
        return _error(status.HTTP_400_BAD_REQUEST, "Prompt is required")

    logger.info("reel.requested", prompt=prompt[:50], persona=payload.persona_name())
    try:
        video = await client.generate(prompt)
    except Exception as e:
        logger.warning("reel.failed", error=str(e))
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e), PROVIDER_HINT)

    logger.info("reel.sent", size_bytes=len(video))
    return Response(content=video, media_type=VIDEO_MEDIA_TYPE)
