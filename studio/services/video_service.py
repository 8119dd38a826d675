"""
Veo video generation client used by the reel proxy.
Job lifecycle: SUBMITTED -> POLLING -> COMPLETE | FAILED.
- submit: predictLongRunning with fixed parameters (1 video, 720p, 9:16).
- wait: poll every VEO_POLL_INTERVAL_SECONDS, at most VEO_MAX_POLL_ATTEMPTS times.
- download: the artifact URI is fetched server-side with the API key header; the key never reaches the browser
  and is dropped when a redirect leaves the issuing host.
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

import httpx

from studio.config import Settings
from studio.logging_config import get_logger

logger = get_logger(__name__)

API_KEY_HEADER = "x-goog-api-key"
NUMBER_OF_VIDEOS = 1
RESOLUTION = "720p"
ASPECT_RATIO = "9:16"
MAX_DOWNLOAD_REDIRECTS = 5


class VideoGenerationError(Exception):
    """Raised when a job cannot be submitted, completed or downloaded."""

    def __init__(self, message: str, operation_name: Optional[str] = None) -> None:
        self.operation_name = operation_name
        super().__init__(message)


class JobState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class VideoJob:
    """One provider operation and where it is in its lifecycle."""

    operation_name: str
    state: JobState = JobState.SUBMITTED
    attempts: int = 0
    video_uri: Optional[str] = None
    error: Optional[str] = None


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
        return body.get("error", {}).get("message", resp.text) or resp.text
    except Exception:
        return resp.text or f"HTTP {resp.status_code}"


def _video_uri(operation: Dict[str, Any]) -> Optional[str]:
    """generateVideoResponse.generatedSamples[0].video.uri (REST shape of generatedVideos[0].video.uri)."""
    response = operation.get("response") or {}
    video_response = response.get("generateVideoResponse") or response
    samples = video_response.get("generatedSamples") or video_response.get("generatedVideos") or []
    if not samples:
        return None
    video = samples[0].get("video") or {}
    return video.get("uri")


class VeoClient:
    """Submit/poll/download against the Gemini API long-running video operations."""

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if not settings.api_key:
            raise ValueError("api_key_missing")
        self.api_key = settings.api_key
        self.model = settings.veo_model
        self.base_url = settings.veo_api_base_url.rstrip("/")
        self.poll_interval = settings.veo_poll_interval_seconds
        self.max_attempts = settings.veo_max_poll_attempts
        self.timeout = settings.veo_http_timeout_seconds
        self.download_timeout = settings.veo_download_timeout_seconds
        self._http_client = http_client
        self._sleep = sleep

    @asynccontextmanager
    async def _client(self, timeout: float) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            yield client

    @property
    def _headers(self) -> Dict[str, str]:
        return {API_KEY_HEADER: self.api_key}

    async def submit(self, prompt: str) -> VideoJob:
        url = f"{self.base_url}/models/{self.model}:predictLongRunning"
        payload = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": NUMBER_OF_VIDEOS,
                "resolution": RESOLUTION,
                "aspectRatio": ASPECT_RATIO,
            },
        }
        try:
            async with self._client(self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._headers)
        except httpx.HTTPError as e:
            raise VideoGenerationError(f"Video job submission failed: {e}") from e
        if resp.status_code != 200:
            raise VideoGenerationError(f"Video job submission failed: {_error_message(resp)}")
        name = resp.json().get("name")
        if not name:
            raise VideoGenerationError("Video job submission returned no operation name.")
        logger.info("reel.submitted", operation=name, model=self.model)
        return VideoJob(operation_name=name)

    async def poll(self, job: VideoJob) -> VideoJob:
        """One status read. Moves the job to POLLING, COMPLETE or FAILED."""
        url = f"{self.base_url}/{job.operation_name}"
        job.attempts += 1
        try:
            async with self._client(self.timeout) as client:
                resp = await client.get(url, headers=self._headers)
        except httpx.HTTPError as e:
            job.state = JobState.FAILED
            job.error = f"Polling failed: {e}"
            return job
        if resp.status_code != 200:
            job.state = JobState.FAILED
            job.error = f"Polling failed: {_error_message(resp)}"
            return job

        operation = resp.json()
        if not operation.get("done"):
            job.state = JobState.POLLING
            return job
        if operation.get("error"):
            job.state = JobState.FAILED
            job.error = operation["error"].get("message") or "Video generation failed."
            return job
        uri = _video_uri(operation)
        if not uri:
            job.state = JobState.FAILED
            job.error = "Veo completed but returned no video URI."
            return job
        job.state = JobState.COMPLETE
        job.video_uri = uri
        return job

    async def wait(self, job: VideoJob) -> VideoJob:
        """Poll until COMPLETE. Raises VideoGenerationError on FAILED or when attempts run out."""
        while job.attempts < self.max_attempts:
            await self._sleep(self.poll_interval)
            await self.poll(job)
            logger.debug("reel.poll", operation=job.operation_name, attempt=job.attempts, state=job.state.value)
            if job.state == JobState.COMPLETE:
                logger.info("reel.completed", operation=job.operation_name, attempts=job.attempts)
                return job
            if job.state == JobState.FAILED:
                raise VideoGenerationError(job.error or "Video generation failed.", job.operation_name)
        job.state = JobState.FAILED
        job.error = f"Video generation did not finish after {job.attempts} polls."
        raise VideoGenerationError(job.error, job.operation_name)

    async def download(self, uri: str) -> bytes:
        """
        Fetch the artifact. Redirects are followed by hand so the API key header
        is only ever sent to the host that issued the URI.
        """
        url = httpx.URL(uri)
        headers = self._headers
        try:
            async with self._client(self.download_timeout) as client:
                for _ in range(MAX_DOWNLOAD_REDIRECTS + 1):
                    resp = await client.get(url, headers=headers, follow_redirects=False)
                    if not resp.is_redirect:
                        break
                    next_url = url.join(resp.headers["location"])
                    if next_url.host != url.host or next_url.scheme != url.scheme:
                        headers = {}
                    logger.debug("reel.download_redirect", host=next_url.host, keeps_key=bool(headers))
                    url = next_url
                else:
                    raise VideoGenerationError("Failed to download video: too many redirects")
        except httpx.HTTPError as e:
            raise VideoGenerationError(f"Failed to download video: {e}") from e
        if resp.status_code != 200:
            raise VideoGenerationError(f"Failed to download video: {resp.reason_phrase or resp.status_code}")
        return resp.content

    async def generate(self, prompt: str) -> bytes:
        """Submit, wait for completion and return the video bytes."""
        job = await self.submit(prompt)
        await self.wait(job)
        data = await self.download(job.video_uri)
        logger.info("reel.downloaded", operation=job.operation_name, size_bytes=len(data))
        return data
