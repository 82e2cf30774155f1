"""Registers this host's backend in VaaS and removes it again."""
from __future__ import annotations

import logging

from vaas_hook.core.config import Settings
from vaas_hook.core.errors import VaaSError
from vaas_hook.models.schemas import Backend
from vaas_hook.services.vaas_client import VaaSClient

log = logging.getLogger("vaas.registrar")


class Registrar:
    """Lifecycle actions of the hook: register on start, deregister on stop."""

    def __init__(self, client: VaaSClient, settings: Settings):
        self._client = client
        self._settings = settings

    def _target(self) -> tuple[str, int]:
        if not self._settings.director or self._settings.port is None:
            raise VaaSError("director and backend port must be configured")
        return self._settings.director, self._settings.port

    def register(self) -> str:
        """Add the configured backend to its director and return its resource URI."""
        director_name, port = self._target()
        director = self._client.find_director(director_name)
        dc = self._client.get_dc(self._settings.dc) if self._settings.dc else None

        backend = Backend(
            address=self._settings.address,
            port=port,
            director=director.resource_uri,
            dc=dc,
            weight=self._settings.weight,
            tags=list(self._settings.tags),
            inherit_time_profile=self._settings.inherit_time_profile,
        )
        location = self._client.add_backend(backend, director)
        log.info("Registered %s:%d in director %s as %s", backend.address, port, director.name, location)
        return location

    def deregister(self) -> int:
        """Remove the configured backend from its director and return its ID."""
        director_name, port = self._target()
        backend_id = self._client.find_backend_id(director_name, self._settings.address, port)
        self._client.delete_backend(backend_id)
        log.info("Deregistered backend %d (%s:%d) from director %s",
                 backend_id, self._settings.address, port, director_name)
        return backend_id
