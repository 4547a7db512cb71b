"""
Pytest configuration and shared helpers for wikistreams tests.
"""
import json
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx
import pytest

from wikistreams.config import StreamSettings

RECENT_CHANGE_SCHEMA = "mediawiki/recentchange/2"


def make_change(
    domain: str = "en.wikipedia.org",
    schema: str = RECENT_CHANGE_SCHEMA,
    **fields: Any,
) -> Dict[str, Any]:
    """Build a recent change payload as the upstream service sends it."""
    payload = {
        "meta": {
            "domain": domain,
            "dt": "2023-01-01T12:00:00Z",
            "id": "5e4d4b5f-0a4f-4bd7-9f2a-3d1e4c3b2a10",
            "request_id": "XxYyZz",
            "schema_uri": schema,
            "topic": "eqiad.mediawiki.recentchange",
            "uri": f"https://{domain}/wiki/Main_Page",
            "partition": 0,
            "offset": 123456,
        },
        "bot": False,
        "comment": "fix typo",
        "length": {"new": 120, "old": 118},
        "minor": True,
        "namespace": 0,
        "title": "Main Page",
        "patrolled": False,
        "revision": {"new": 1002, "old": 1001},
        "server_name": domain,
        "timestamp": 1672574400,
        "type": "edit",
        "user": "Example",
        "wiki": "enwiki",
    }
    payload.update(fields)
    return payload


def sse_message(data: str, event: str = "message", event_id: Optional[str] = None) -> str:
    """Encode one SSE message block."""
    lines = [f"event: {event}"]
    if event_id is not None:
        lines.append(f"id: {event_id}")
    lines.extend(f"data: {line}" for line in data.split("\n"))
    return "\n".join(lines) + "\n\n"


def sse_body(*blocks: str) -> bytes:
    return "".join(blocks).encode("utf-8")


def sse_events(payloads: Iterable[Dict[str, Any]]) -> bytes:
    return sse_body(*(sse_message(json.dumps(p)) for p in payloads))


def sse_response(body: bytes) -> httpx.Response:
    return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})


class RecordingHandler:
    """httpx MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: Any):
        self.responses: List[Any] = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response


@pytest.fixture
def test_settings() -> StreamSettings:
    """Settings with fast, deterministic reconnect behaviour."""
    return StreamSettings(
        stream_url="https://stream.example.org/v2/stream/",
        max_reconnect_attempts=0,
        reconnect_base_delay=0.0,
        reconnect_max_delay=0.0,
    )


@pytest.fixture
def mock_client() -> Callable[[RecordingHandler], httpx.AsyncClient]:
    """Factory for an AsyncClient wired to a RecordingHandler."""
    def factory(handler: RecordingHandler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return factory
