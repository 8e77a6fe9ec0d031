"""Shared fixtures: an in-memory SoundCave backend behind httpx.MockTransport."""
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from soundcave_admin.core.api_client import SoundCaveClient
from soundcave_admin.core.credentials import StaticCredentialProvider
from soundcave_admin.core.notifications import Notifier

BASE_URL = "http://backend.test"

_QUERY_KEYS = ("page", "limit", "sort_by", "order", "search", "q")


def ok(data: Any = None, **extra: Any) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "data": data, **extra})


def failure(status_code: int, message: str) -> httpx.Response:
    return httpx.Response(status_code, json={"success": False, "message": message})


class FakeBackend:
    """In-memory stand-in for the REST backend.

    Collections are lists of dicts. Requests are recorded in order. Rules
    added with reject() answer matching requests with an error instead.
    """

    def __init__(self) -> None:
        self.records: Dict[str, List[dict]] = {}
        self.requests: List[httpx.Request] = []
        self._rejects: List[Tuple[Callable[[str, str, dict], bool], int, str]] = []
        self._next_id = 1
        self._uploads = 0

    def add(self, collection: str, **record: Any) -> dict:
        if "id" not in record:
            record["id"] = self._next_id
        self._next_id = max(self._next_id, int(record["id"])) + 1
        self.records.setdefault(collection, []).append(record)
        return record

    def reject(
        self,
        predicate: Callable[[str, str, dict], bool],
        status_code: int = 500,
        message: str = "Internal server error",
    ) -> None:
        self._rejects.append((predicate, status_code, message))

    def sent(self, method: Optional[str] = None) -> List[httpx.Request]:
        return [r for r in self.requests if method is None or r.method == method]

    def paths(self, method: Optional[str] = None) -> List[str]:
        return [r.url.path for r in self.sent(method)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body: dict = {}
        if request.content and request.headers.get("content-type", "").startswith("application/json"):
            body = json.loads(request.content)
        for predicate, status_code, message in self._rejects:
            if predicate(request.method, request.url.path, body):
                return failure(status_code, message)

        parts = request.url.path.strip("/").split("/")[1:]
        collection, rest = parts[0], parts[1:]
        rows = self.records.setdefault(collection, [])

        if rest == ["upload"]:
            self._uploads += 1
            return ok({"file_url": f"https://cdn.test/{collection}/{self._uploads}"})
        if collection == "playlist-songs" and rest[:1] == ["playlist"]:
            playlist_id = int(rest[1])
            return ok([r for r in rows if r.get("playlist_id") == playlist_id])

        if request.method == "GET" and not rest:
            return self._list(rows, request.url.params)
        if request.method == "POST" and not rest:
            return ok(self.add(collection, **body))

        record_id = int(rest[0])
        record = next((r for r in rows if r["id"] == record_id), None)
        if record is None:
            return failure(404, "Not found")
        if request.method == "GET":
            return ok(record)
        if request.method == "PUT":
            record.update(body)
            return ok(record)
        rows.remove(record)
        return ok(None, message="Deleted")

    def _list(self, rows: List[dict], params: httpx.QueryParams) -> httpx.Response:
        page = int(params.get("page", 1))
        limit = int(params.get("limit", 10))
        term = (params.get("search") or params.get("q") or "").lower()
        if term:
            rows = [r for r in rows if term in str(r.get("title") or r.get("name") or "").lower()]
        for key, value in params.items():
            if key not in _QUERY_KEYS:
                rows = [r for r in rows if str(r.get(key)).lower() == value.lower()]
        total = len(rows)
        pages = max(1, -(-total // limit))
        items = rows[(page - 1) * limit: page * limit]
        return ok(items, pagination={"page": page, "limit": limit, "total": total, "pages": pages})


@pytest.fixture
def credentials() -> StaticCredentialProvider:
    return StaticCredentialProvider(token="test-token", user={"id": 1, "email": "admin@soundcave.test"})


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_client(credentials: StaticCredentialProvider) -> Callable[..., SoundCaveClient]:
    """Build a SoundCaveClient whose requests go to the given handler."""

    def _make(handler: Callable[[httpx.Request], Any]) -> SoundCaveClient:
        return SoundCaveClient(credentials, BASE_URL, transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def client(make_client, backend: FakeBackend) -> SoundCaveClient:
    return make_client(backend.handler)
