from __future__ import annotations

from types import SimpleNamespace
from typing import Callable, List
from unittest.mock import AsyncMock

import httpx
import pytest

_RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def mock_http(monkeypatch):
    """Send every ``httpx.AsyncClient`` request to ``handler``.

    Returns an installer; calling it with a handler patches the client and
    hands back the list that collects each request made.
    """

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> List[httpx.Request]:
        requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        transport = httpx.MockTransport(record)

        def factory(*args, **kwargs):
            kwargs.pop("transport", None)
            return _RealAsyncClient(*args, transport=transport, **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", factory)
        return requests

    return install


def fake_openai_client(content=None, *, side_effect=None):
    """Stand-in for ``AsyncOpenAI`` exposing ``chat.completions.create``."""
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    create = AsyncMock(return_value=response, side_effect=side_effect)
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return client, create


def nominatim_record(name: str, lat: float, lon: float, hours: str | None = None) -> dict:
    record = {
        "display_name": f"{name}, 100 Main Street, DeLand, Florida, United States",
        "lat": str(lat),
        "lon": str(lon),
    }
    if hours is not None:
        record["extratags"] = {"opening_hours": hours}
    return record
