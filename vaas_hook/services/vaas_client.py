"""HTTP client wrapper for the VaaS API.

Looks up directors, datacenters and backends, creates backends and removes
them. Every call is a single blocking round trip authenticated with the
``username`` and ``api_key`` query parameters. Includes basic Prometheus
metrics for request counts and latency.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Type, TypeVar

import httpx
from prometheus_client import Counter, Histogram
from pydantic import BaseModel, ValidationError

from vaas_hook.core.config import Settings
from vaas_hook.core.errors import APIError, NotFoundError, VaaSError
from vaas_hook.models.schemas import DC, Backend, Director, Page, Task

log = logging.getLogger("vaas")

API_PREFIX_PATH = "/api/v0.1"
API_BACKEND_PATH = API_PREFIX_PATH + "/backend/"
API_DC_PATH = API_PREFIX_PATH + "/dc/"
API_DIRECTOR_PATH = API_PREFIX_PATH + "/director/"

APPLICATION_JSON = "application/json"

# Statuses the control plane uses to reject a duplicate backend
CONFLICT_STATUSES = {409}

VAAS_REQUESTS = Counter("vaas_requests_total", "VaaS API requests", ["method", "status"])
VAAS_LATENCY = Histogram("vaas_request_latency_seconds", "VaaS API request latency seconds")

# Failures a lookup can end with
LOOKUP_ERRORS = (VaaSError, httpx.HTTPError, ValidationError)

M = TypeVar("M", bound=BaseModel)


def _masked(url: httpx.URL) -> str:
    """Render a request URL with the API key hidden."""
    if "api_key" in url.params:
        url = url.copy_set_param("api_key", "***")
    return str(url)


class VaaSClient:
    """
    REST client for the VaaS API.

    Holds an httpx.Client plus the immutable host and credentials. List
    lookups scan only the first page of results unless ``follow_pages`` is
    set. A failed backend creation is resolved by looking the backend up;
    with ``conflict_only`` that lookup only happens on a 409 answer.
    """

    def __init__(
        self,
        client: httpx.Client,
        host: str,
        username: str,
        api_key: str,
        *,
        follow_pages: bool = False,
        conflict_only: bool = False,
    ):
        """Create a client with a shared HTTPX Client, VaaS host and credentials."""
        self._client = client
        self._host = host.rstrip("/")
        self._username = username
        self._api_key = api_key
        self._follow_pages = follow_pages
        self._conflict_only = conflict_only

    @classmethod
    def from_settings(cls, settings: Settings) -> "VaaSClient":
        """Construct a VaaSClient from loaded settings."""
        client = httpx.Client(timeout=settings.request_timeout_s)
        return cls(
            client,
            str(settings.vaas_url),
            settings.username,
            settings.api_key,
            follow_pages=settings.follow_pages,
            conflict_only=settings.conflict_only,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "VaaSClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Directors
    # ------------------------------------------------------------------

    def find_director(self, name: str) -> Director:
        """Find a Director by its exact name."""
        for director in self._scan(API_DIRECTOR_PATH, Director, {"name": name}):
            if director.name == name:
                return director
        raise NotFoundError(f"no Director with name {name} found")

    def find_director_id(self, name: str) -> int:
        """Find the ID of the Director with the given name."""
        try:
            director = self.find_director(name)
        except LOOKUP_ERRORS as e:
            raise VaaSError(f"cannot determine director ID: {e}") from e
        return director.id

    # ------------------------------------------------------------------
    # Backends
    # ------------------------------------------------------------------

    def add_backend(self, backend: Backend, director: Director) -> str:
        """
        Create ``backend`` under ``director`` and return its resource URI.

        The URI comes from the Location header of the create response. When
        creation fails the backend is looked up by address and port instead,
        so registering an already registered backend succeeds. If that lookup
        fails too, the original creation error is raised.
        """
        request = self._request("POST", API_BACKEND_PATH, json=backend.to_payload())
        try:
            response = self._send(request)
            if response.content:
                created = Backend.model_validate_json(response.content)
                backend.id = created.id
                backend.resource_uri = created.resource_uri
        except LOOKUP_ERRORS as err:
            if not self._falls_back_on(err):
                raise
            log.info("Creating backend %s:%d failed, looking it up: %s", backend.address, backend.port, err)
            try:
                existing = self.find_backend(director, backend.address, backend.port)
            except LOOKUP_ERRORS as lookup_err:
                log.error("failed finding backend: %s", lookup_err)
                raise err
            backend.id = existing.id
            backend.resource_uri = existing.resource_uri
            return existing.resource_uri or ""

        return response.headers.get("Location") or backend.resource_uri or ""

    def delete_backend(self, backend_id: int) -> Task | None:
        """
        Remove the backend with the given ID, asking for async processing.

        A backend that is already gone counts as removed. Returns the task
        the server acknowledged the removal with, if it sent one.
        """
        request = self._request(
            "DELETE", f"{API_BACKEND_PATH}{backend_id}/", headers={"Prefer": "respond-async"}
        )
        try:
            response = self._send(request)
        except APIError as e:
            if e.status_code == httpx.codes.NOT_FOUND:
                log.warning("Tried to remove a non-existent backend (vaas-backend-id=%s)", backend_id)
                return None
            raise

        if not response.content or APPLICATION_JSON not in response.headers.get("Content-Type", ""):
            return None
        return Task.model_validate_json(response.content)

    def find_backend(self, director: Director, address: str, port: int) -> Backend:
        """Find the backend of ``director`` listening on ``address``:``port``."""
        params = {"address": address, "director": str(director.id), "port": str(port)}
        for backend in self._scan(API_BACKEND_PATH, Backend, params):
            log.debug("Backend found: %r", backend)
            if backend.address == address and backend.port == port:
                return backend
        raise NotFoundError("backend not found")

    def find_backend_id(self, director: str, address: str, port: int) -> int:
        """Resolve the ID of a backend given its director name, address and port."""
        try:
            found = self.find_director(director)
        except LOOKUP_ERRORS as e:
            raise VaaSError(f"cannot determine director ID: {e}") from e

        try:
            backend = self.find_backend(found, address, port)
        except LOOKUP_ERRORS as e:
            raise NotFoundError("backend not found") from e
        if backend.id is None:
            raise NotFoundError(f"backend {address}:{port} has no ID")
        return backend.id

    # ------------------------------------------------------------------
    # Datacenters
    # ------------------------------------------------------------------

    def get_dc(self, name: str) -> DC:
        """Find a DC by its symbol (e.g. ``WAW``)."""
        for dc in self._scan(API_DC_PATH, DC):
            if dc.symbol == name:
                return dc
        raise NotFoundError(f"no DC with name {name} found")

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _falls_back_on(self, err: Exception) -> bool:
        if not self._conflict_only:
            return True
        return isinstance(err, APIError) and err.status_code in CONFLICT_STATUSES

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Request:
        """Build a JSON request carrying the credentials as query parameters.

        ``path`` is either an API path, resolved against the host, or an
        absolute URL such as a pagination ``next`` locator.
        """
        url = self._host + path if path.startswith("/") else path
        query = dict(params or {})
        query["username"] = self._username
        query["api_key"] = self._api_key
        request_headers = {"Accept": APPLICATION_JSON, "Content-Type": APPLICATION_JSON}
        request_headers.update(headers or {})
        # merged into the URL so a pagination locator keeps its own query
        url = httpx.URL(url).copy_merge_params(query)
        return self._client.build_request(method, url, headers=request_headers, json=json)

    def _send(self, request: httpx.Request) -> httpx.Response:
        """Send ``request`` and raise APIError unless it answered with a 2xx status."""
        try:
            with VAAS_LATENCY.time():
                response = self._client.send(request)
        except httpx.HTTPError:
            VAAS_REQUESTS.labels(method=request.method, status="error").inc()
            raise
        VAAS_REQUESTS.labels(method=request.method, status=str(response.status_code)).inc()

        if not 200 <= response.status_code <= 299:
            raise APIError(_masked(request.url), response.status_code, response.text)
        return response

    def _scan(self, path: str, model: Type[M], params: dict[str, str] | None = None) -> Iterator[M]:
        """Yield the objects of a collection, page by page when following pages."""
        page_model = Page[model]
        fetched: set[str] = set()
        while path and path not in fetched:
            fetched.add(path)
            response = self._send(self._request("GET", path, params=params))
            page = page_model.model_validate_json(response.content)
            yield from page.objects
            if not self._follow_pages:
                return
            path = page.meta.next
