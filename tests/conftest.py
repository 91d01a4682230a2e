"""Shared fixtures: an in-memory stand-in for every external HTTP service."""

import base64
import io
import itertools
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest
from PIL import Image

from restyler.config import Settings

SUPABASE_URL = "https://project.supabase.co"
SOURCE_IMAGE_URL = "https://images.test/rooms/living.jpg"
OUTPUT_IMAGE_URL = "https://replicate.delivery/out/restyled.png"
STATUS_URL = "https://api.replicate.com/v1/predictions/pred-1"


def make_image_bytes(size=(640, 480), color="beige", fmt="JPEG") -> bytes:
    img = Image.new("RGB", size, color=color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeBackend:
    """Routes MockTransport requests to fake image host, generation backends and Supabase."""

    def __init__(self):
        self.calls: List[httpx.Request] = []
        self.source_status = 200
        self.source_bytes = make_image_bytes()
        self.account_status = 200
        self.generation_status = 200
        self.generated_bytes = make_image_bytes((64, 64), "navy", "PNG")
        self.artifacts: Optional[List[Dict[str, Any]]] = None
        self.prediction_statuses: List[str] = ["succeeded"]
        self.prediction_output: Any = OUTPUT_IMAGE_URL
        self.prediction_error: Optional[str] = None
        self.output_status = 200
        self.storage_status = 200
        self.objects: Dict[str, bytes] = {}
        self.object_headers: Dict[str, httpx.Headers] = {}
        self.tables: Dict[str, List[Dict[str, Any]]] = {"flats": [], "rooms": []}
        self.rest_error_status: Optional[int] = None
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    def add_row(self, table: str, **values) -> Dict[str, Any]:
        row = {"id": f"{table[:-1]}-{next(self._ids)}", **values}
        row.setdefault("created_at", f"2026-01-01T00:00:{len(self.tables[table]):02d}")
        self.tables[table].append(row)
        return row

    def requests_to(self, host: str, method: Optional[str] = None, path_prefix: str = "") -> List[httpx.Request]:
        return [
            r for r in self.calls
            if r.url.host == host
            and (method is None or r.method == method)
            and r.url.path.startswith(path_prefix)
        ]

    # ------------------------------------------------------------------
    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        host, path = request.url.host, request.url.path

        if host == "images.test":
            if self.source_status != 200:
                return httpx.Response(self.source_status, text="not found")
            return httpx.Response(200, content=self.source_bytes)
        if host == "api.stability.ai":
            return self._stability(request, path)
        if host == "api.replicate.com":
            return self._replicate(request, path)
        if host == "replicate.delivery":
            if self.output_status != 200:
                return httpx.Response(self.output_status)
            return httpx.Response(200, content=self.generated_bytes)
        if host == "project.supabase.co":
            if path.startswith("/storage/v1/object/"):
                return self._storage(request, path)
            if path.startswith("/rest/v1/"):
                return self._rest(request, path[len("/rest/v1/"):])
        return httpx.Response(404, json={"message": f"unexpected request {request.method} {request.url}"})

    def _stability(self, request: httpx.Request, path: str) -> httpx.Response:
        if path == "/v1/user/account":
            if self.account_status != 200:
                return httpx.Response(self.account_status, text="account problem")
            return httpx.Response(200, json={"id": "acct", "credits": 42})
        if path == "/v1/engines/list":
            return httpx.Response(200, json=[{"id": "sdxl"}, {"id": "sd3"}])
        if path.endswith("/image-to-image"):
            if self.generation_status != 200:
                return httpx.Response(self.generation_status, text="generation problem")
            artifacts = self.artifacts
            if artifacts is None:
                artifacts = [{"base64": base64.b64encode(self.generated_bytes).decode(), "finishReason": "SUCCESS"}]
            return httpx.Response(200, json={"artifacts": artifacts})
        return httpx.Response(404)

    def _replicate(self, request: httpx.Request, path: str) -> httpx.Response:
        if path == "/v1/account":
            if self.account_status != 200:
                return httpx.Response(self.account_status, text="account problem")
            return httpx.Response(200, json={"username": "tester"})
        if path == "/v1/predictions" and request.method == "POST":
            if self.generation_status not in (200, 201):
                return httpx.Response(self.generation_status, text="prediction problem")
            return httpx.Response(201, json={"id": "pred-1", "status": "starting", "urls": {"get": STATUS_URL}})
        if path == "/v1/predictions/pred-1":
            status = self.prediction_statuses.pop(0) if len(self.prediction_statuses) > 1 else self.prediction_statuses[0]
            body: Dict[str, Any] = {"id": "pred-1", "status": status}
            if status == "succeeded":
                body["output"] = self.prediction_output
            if self.prediction_error:
                body["error"] = self.prediction_error
            return httpx.Response(200, json=body)
        return httpx.Response(404)

    def _storage(self, request: httpx.Request, path: str) -> httpx.Response:
        public_prefix = "/storage/v1/object/public/room-images/"
        upload_prefix = "/storage/v1/object/room-images/"
        if request.method == "GET" and path.startswith(public_prefix):
            key = path[len(public_prefix):]
            if key not in self.objects:
                return httpx.Response(404, json={"message": "Object not found"})
            return httpx.Response(200, content=self.objects[key])
        if request.method == "POST" and path.startswith(upload_prefix):
            if self.storage_status != 200:
                return httpx.Response(self.storage_status, json={"message": "Bucket not found"})
            key = path[len(upload_prefix):]
            self.objects[key] = request.read()
            self.object_headers[key] = request.headers
            return httpx.Response(200, json={"Key": f"room-images/{key}"})
        return httpx.Response(404)

    def _rest(self, request: httpx.Request, table: str) -> httpx.Response:
        if self.rest_error_status:
            return httpx.Response(self.rest_error_status, json={"message": "permission denied for table"})

        rows = self.tables.setdefault(table, [])
        filters = {
            key: value[len("eq."):]
            for key, value in request.url.params.items()
            if value.startswith("eq.")
        }

        def matches(row):
            return all(str(row.get(k)) == v for k, v in filters.items())

        if request.method == "GET":
            found = [r for r in rows if matches(r)]
            order = request.url.params.get("order")
            if order:
                column, direction = order.split(".")
                found.sort(key=lambda r: r.get(column) or "", reverse=direction == "desc")
            return httpx.Response(200, json=found)
        if request.method == "POST":
            created = [self.add_row(table, **values) for values in json.loads(request.read())]
            return httpx.Response(201, json=created)
        if request.method == "PATCH":
            values = json.loads(request.read())
            updated = []
            for row in rows:
                if matches(row):
                    row.update(values)
                    updated.append(dict(row))
            return httpx.Response(200, json=updated)
        if request.method == "DELETE":
            removed = [r for r in rows if matches(r)]
            self.tables[table] = [r for r in rows if not matches(r)]
            return httpx.Response(200, json=removed)
        return httpx.Response(405)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def http_client(backend: FakeBackend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(backend))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        stability_api_key="sk-test-stability-key",
        replicate_api_token="r8_test_replicate_token",
        supabase_url=SUPABASE_URL,
        supabase_service_role_key="service-role-key",
        generation_provider="stability",
    )


@pytest.fixture
def replicate_settings(settings: Settings) -> Settings:
    return settings.model_copy(update={"generation_provider": "replicate"})


@pytest.fixture
def room(backend: FakeBackend) -> Dict[str, Any]:
    flat = backend.add_row(
        "flats",
        user_id="user-1",
        building_name="Maple Court",
        flat_number="4B",
        sq_meters=62.5,
        number_of_rooms=1,
    )
    return backend.add_row(
        "rooms",
        flat_id=flat["id"],
        room_name="Living room",
        sq_meters=24.0,
        original_image_url=SOURCE_IMAGE_URL,
    )


class SleepRecorder:
    """Injectable sleep that records requested delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()
