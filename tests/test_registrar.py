# tests/test_registrar.py
import json

import httpx
import pytest

from conftest import page
from vaas_hook.core.config import Settings
from vaas_hook.core.errors import NotFoundError, VaaSError
from vaas_hook.services.registrar import Registrar

DIRECTORS = [{"id": 4, "name": "service-x", "backends": [], "resource_uri": "/api/v0.1/director/4/"}]
DCS = [{"id": 3, "name": "Warsaw", "symbol": "WAW", "resource_uri": "/api/v0.1/dc/3/"}]


def _settings(**overrides) -> Settings:
    values = dict(
        vaas_url="http://vaas.local",
        username="admin",
        api_key="s3cr3t",
        director="service-x",
        dc="WAW",
        address="10.0.0.1",
        port=8080,
        weight=2,
        tags=["canary"],
    )
    values.update(overrides)
    return Settings(**values)


def _handler(backends: list[dict]):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/v0.1/director/":
            return httpx.Response(200, json=page(DIRECTORS))
        if path == "/api/v0.1/dc/":
            return httpx.Response(200, json=page(DCS))
        if path == "/api/v0.1/backend/" and request.method == "POST":
            return httpx.Response(201, headers={"Location": "http://vaas.local/api/v0.1/backend/7/"})
        if path == "/api/v0.1/backend/":
            return httpx.Response(200, json=page(backends))
        if request.method == "DELETE":
            return httpx.Response(202, json={"info": "scheduled", "resource_uri": "/api/v0.1/task/1/"})
        return httpx.Response(404)
    return handler


def test_register_creates_backend_in_director(make_client):
    client, rec = make_client(_handler([]))

    location = Registrar(client, _settings()).register()

    assert location == "http://vaas.local/api/v0.1/backend/7/"
    post = next(r for r in rec.requests if r.method == "POST")
    assert json.loads(post.content) == {
        "address": "10.0.0.1",
        "port": 8080,
        "director": "/api/v0.1/director/4/",
        "dc": {"id": 3, "name": "Warsaw", "symbol": "WAW", "resource_uri": "/api/v0.1/dc/3/"},
        "weight": 2,
        "tags": ["canary"],
    }


def test_register_without_dc_skips_dc_lookup(make_client):
    client, rec = make_client(_handler([]))

    Registrar(client, _settings(dc=None)).register()

    assert all(r.url.path != "/api/v0.1/dc/" for r in rec.requests)


def test_register_unknown_dc_fails(make_client):
    client, _ = make_client(_handler([]))

    with pytest.raises(NotFoundError, match="no DC with name XXX found"):
        Registrar(client, _settings(dc="XXX")).register()


def test_deregister_deletes_found_backend(make_client):
    backends = [{"id": 7, "address": "10.0.0.1", "port": 8080, "resource_uri": "/api/v0.1/backend/7/"}]
    client, rec = make_client(_handler(backends))

    assert Registrar(client, _settings()).deregister() == 7
    assert rec.requests[-1].method == "DELETE"
    assert rec.requests[-1].url.path == "/api/v0.1/backend/7/"


def test_deregister_unknown_backend_fails(make_client):
    client, _ = make_client(_handler([]))

    with pytest.raises(NotFoundError, match="backend not found"):
        Registrar(client, _settings()).deregister()


def test_actions_require_director_and_port(make_client):
    client, rec = make_client(_handler([]))

    with pytest.raises(VaaSError, match="must be configured"):
        Registrar(client, _settings(port=None)).register()
    with pytest.raises(VaaSError, match="must be configured"):
        Registrar(client, _settings(director=None)).deregister()
    assert rec.requests == []


def test_deregister_never_deletes_backend_without_id(make_client):
    client, rec = make_client(_handler([{"address": "10.0.0.1", "port": 8080}]))

    with pytest.raises(NotFoundError, match="has no ID"):
        Registrar(client, _settings()).deregister()
    assert all(r.method != "DELETE" for r in rec.requests)
