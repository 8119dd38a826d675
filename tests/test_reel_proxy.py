"""
Reel proxy end to end with the provider faked by httpx.MockTransport.
- POST /api/generate-reel {} -> 400 {"error"}
- job completing after two polls -> 200 video/mp4 with the artifact bytes
- provider failure -> 500 {"error", "details"}
- OPTIONS on any path -> 204 with CORS headers
- artifact redirects to another host never carry the API key
- no API_KEY -> the app refuses to build / the entrypoint exits 1
"""
import json
from unittest.mock import patch

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from studio.config import Settings
from studio.main import MissingConfigurationError, create_app, run
from studio.routers.reel_router import PROVIDER_HINT, get_video_client
from studio.services.video_service import API_KEY_HEADER, MAX_DOWNLOAD_REDIRECTS, VeoClient, VideoGenerationError

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x01" * 2048
OPERATION = "models/veo-3.1-fast-generate-preview/operations/op-123"
VIDEO_URI = "https://files.example.test/v1beta/files/abc:download?alt=media"


async def no_sleep(_seconds: float) -> None:
    return None


class FakeVeo:
    """Scripted provider: submit, N pending polls, then done (or error)."""

    def __init__(self, pending_polls: int = 1, error: dict | None = None, submit_status: int = 200) -> None:
        self.pending_polls = pending_polls
        self.error = error
        self.submit_status = submit_status
        self.polls = 0
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "POST" and path.endswith(":predictLongRunning"):
            if self.submit_status != 200:
                return httpx.Response(self.submit_status, json={"error": {"message": "Permission denied"}})
            return httpx.Response(200, json={"name": OPERATION})
        if request.method == "GET" and path.endswith(OPERATION):
            self.polls += 1
            if self.polls <= self.pending_polls:
                return httpx.Response(200, json={"name": OPERATION, "done": False})
            if self.error is not None:
                return httpx.Response(200, json={"name": OPERATION, "done": True, "error": self.error})
            return httpx.Response(
                200,
                json={
                    "name": OPERATION,
                    "done": True,
                    "response": {
                        "generateVideoResponse": {"generatedSamples": [{"video": {"uri": VIDEO_URI}}]}
                    },
                },
            )
        if request.method == "GET" and request.url.host == "files.example.test":
            return httpx.Response(200, content=VIDEO_BYTES, headers={"content-type": "video/mp4"})
        return httpx.Response(404, json={"error": {"message": "not found"}})


def build_client(settings: Settings, fake: FakeVeo) -> VeoClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))
    return VeoClient(settings, http_client=http, sleep=no_sleep)


def app_with(settings: Settings, fake: FakeVeo):
    app = create_app(settings)
    app.dependency_overrides[get_video_client] = lambda: build_client(settings, fake)
    return app


@pytest.mark.asyncio
async def test_generate_reel_returns_video(proxy_settings) -> None:
    fake = FakeVeo(pending_polls=1)
    app = app_with(proxy_settings, fake)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.post("/api/generate-reel", json={"prompt": "Aria at golden hour", "persona": {"name": "Aria"}})

    assert r.status_code == 200
    assert r.headers["content-type"] == "video/mp4"
    assert len(r.content) == len(VIDEO_BYTES)
    assert r.content == VIDEO_BYTES
    assert fake.polls == 2
    assert all(req.headers[API_KEY_HEADER] == "test-api-key" for req in fake.requests)
    assert b"test-api-key" not in r.content

    submit = fake.requests[0]
    assert submit.url.path.endswith("/models/veo-3.1-fast-generate-preview:predictLongRunning")
    body = json.loads(submit.content)
    assert body["instances"] == [{"prompt": "Aria at golden hour"}]
    assert body["parameters"] == {"sampleCount": 1, "resolution": "720p", "aspectRatio": "9:16"}


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"prompt": ""}, {"prompt": "   "}, {"persona": {"name": "Aria"}}])
async def test_missing_prompt_is_400(proxy_settings, payload) -> None:
    fake = FakeVeo()
    app = app_with(proxy_settings, fake)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.post("/api/generate-reel", json=payload)
    assert r.status_code == 400
    assert r.json() == {"error": "Prompt is required"}
    assert fake.requests == []


@pytest.mark.asyncio
async def test_malformed_body_is_400(proxy_settings) -> None:
    app = app_with(proxy_settings, FakeVeo())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.post(
            "/api/generate-reel", content=b"{not json", headers={"Content-Type": "application/json"}
        )
    assert r.status_code == 400
    assert "error" in r.json()


@pytest.mark.asyncio
async def test_provider_error_is_500_with_details(proxy_settings) -> None:
    fake = FakeVeo(pending_polls=0, error={"code": 3, "message": "Prompt blocked by safety filters"})
    app = app_with(proxy_settings, fake)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.post("/api/generate-reel", json={"prompt": "something"})
    assert r.status_code == 500
    data = r.json()
    assert data["error"] == "Prompt blocked by safety filters"
    assert data["details"] == PROVIDER_HINT


@pytest.mark.asyncio
async def test_submission_rejected_is_500(proxy_settings) -> None:
    fake = FakeVeo(submit_status=403)
    app = app_with(proxy_settings, fake)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.post("/api/generate-reel", json={"prompt": "something"})
    assert r.status_code == 500
    assert "Permission denied" in r.json()["error"]


@pytest.mark.asyncio
async def test_preflight_on_any_path(proxy_settings) -> None:
    app = app_with(proxy_settings, FakeVeo())
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.options("/anything/at/all")
        h = await client.get("/health")
    assert r.status_code == 204
    assert r.headers["access-control-allow-origin"] == "*"
    assert "POST" in r.headers["access-control-allow-methods"]
    assert r.headers["access-control-allow-headers"] == "Content-Type"
    assert h.status_code == 200
    assert h.headers["access-control-allow-origin"] == "*"
    assert "x-correlation-id" in h.headers


def test_create_app_without_api_key_fails() -> None:
    with pytest.raises(MissingConfigurationError) as exc:
        create_app(Settings(_env_file=None, API_KEY=None))
    assert exc.value.name == "API_KEY"


def test_entrypoint_exits_without_api_key() -> None:
    with patch("studio.main.get_settings", return_value=Settings(_env_file=None, API_KEY=None)):
        with patch("studio.main.uvicorn.run") as serve:
            with pytest.raises(SystemExit) as exc:
                run()
    assert exc.value.code == 1
    serve.assert_not_called()


@pytest.mark.asyncio
async def test_wait_gives_up_after_max_attempts(proxy_settings) -> None:
    fake = FakeVeo(pending_polls=1000)
    client = build_client(proxy_settings, fake)
    job = await client.submit("slow")
    with pytest.raises(VideoGenerationError, match="did not finish"):
        await client.wait(job)
    assert fake.polls == proxy_settings.veo_max_poll_attempts


@pytest.mark.asyncio
async def test_completed_without_uri_fails(proxy_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json={"name": OPERATION})
        return httpx.Response(200, json={"name": OPERATION, "done": True, "response": {}})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = VeoClient(proxy_settings, http_client=http, sleep=no_sleep)
    with pytest.raises(VideoGenerationError, match="no video URI"):
        await client.generate("anything")


def test_client_requires_api_key() -> None:
    with pytest.raises(ValueError, match="api_key_missing"):
        VeoClient(Settings(_env_file=None, API_KEY=None))


@pytest.mark.asyncio
@pytest.mark.parametrize("persona", ["Aria", ["Aria"], 42, {"name": 7}, None])
async def test_any_persona_value_is_accepted(proxy_settings, persona) -> None:
    fake = FakeVeo(pending_polls=0)
    app = app_with(proxy_settings, fake)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        r = await client.post("/api/generate-reel", json={"prompt": "Aria on a rooftop", "persona": persona})
    assert r.status_code == 200
    assert r.content == VIDEO_BYTES


def redirecting_download(location: str, final_host: str) -> tuple[list[httpx.Request], httpx.AsyncClient]:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.host == final_host and request.url.path == "/blob":
            return httpx.Response(200, content=VIDEO_BYTES)
        return httpx.Response(302, headers={"location": location})

    return seen, httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_download_redirect_to_other_host_drops_api_key(proxy_settings) -> None:
    seen, http = redirecting_download("https://cdn.other.test/blob", "cdn.other.test")
    client = VeoClient(proxy_settings, http_client=http, sleep=no_sleep)

    assert await client.download(VIDEO_URI) == VIDEO_BYTES

    assert [r.url.host for r in seen] == ["files.example.test", "cdn.other.test"]
    assert seen[0].headers[API_KEY_HEADER] == "test-api-key"
    assert API_KEY_HEADER not in seen[1].headers


@pytest.mark.asyncio
async def test_download_redirect_on_same_host_keeps_api_key(proxy_settings) -> None:
    seen, http = redirecting_download("/blob", "files.example.test")
    client = VeoClient(proxy_settings, http_client=http, sleep=no_sleep)

    assert await client.download(VIDEO_URI) == VIDEO_BYTES

    assert [r.url.path for r in seen][-1] == "/blob"
    assert all(r.headers[API_KEY_HEADER] == "test-api-key" for r in seen)


@pytest.mark.asyncio
async def test_download_redirect_loop_fails(proxy_settings) -> None:
    seen, http = redirecting_download("https://files.example.test/loop", "nowhere.test")
    client = VeoClient(proxy_settings, http_client=http, sleep=no_sleep)
    with pytest.raises(VideoGenerationError, match="too many redirects"):
        await client.download(VIDEO_URI)
    assert len(seen) == MAX_DOWNLOAD_REDIRECTS + 1
