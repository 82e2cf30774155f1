"""Shared fixtures: a VaaSClient wired to an in-process mock transport."""
from typing import Callable

import httpx
import pytest

from vaas_hook.services.vaas_client import VaaSClient

HOST = "http://vaas.local"
USERNAME = "admin"
API_KEY = "s3cr3t"


def page(objects: list, next: str | None = None) -> dict:
    """Collection payload in the shape the VaaS API returns."""
    return {
        "meta": {"limit": 20, "next": next, "offset": 0, "previous": None, "total_count": len(objects)},
        "objects": objects,
    }


class Recorder:
    """Mock transport handler that remembers every request it answered."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def make_client():
    """Return a factory building (VaaSClient, Recorder) for a request handler."""
    clients: list[VaaSClient] = []

    def _make(handler, **kwargs) -> tuple[VaaSClient, Recorder]:
        recorder = Recorder(handler)
        http = httpx.Client(transport=httpx.MockTransport(recorder))
        client = VaaSClient(http, HOST, USERNAME, API_KEY, **kwargs)
        clients.append(client)
        return client, recorder

    yield _make
    for c in clients:
        c.close()
