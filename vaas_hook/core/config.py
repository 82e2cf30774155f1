"""Configuration for the VaaS registration hook.

Provides strongly-typed settings using Pydantic and a loader from environment
variables with defaults suitable for local development.
"""

from __future__ import annotations

import os
import socket
from typing import cast

from pydantic import AnyUrl, BaseModel, ValidationError

_TRUE = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Pydantic settings for the hook."""
    # Base URL of the VaaS control plane, without the /api/v0.1 prefix
    vaas_url: AnyUrl
    username: str
    api_key: str
    request_timeout_s: float = 5.0
    follow_pages: bool = False
    conflict_only: bool = False

    # Backend to (de)register
    director: str | None = None
    dc: str | None = None
    address: str
    port: int | None = None
    weight: int | None = None
    tags: list[str] = []
    inherit_time_profile: bool = False


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUE


def _default_address() -> str:
    return socket.gethostbyname(socket.gethostname())


def load_settings() -> Settings:
    """Load settings from environment variables and return a Settings object."""
    tags = os.getenv("VAAS_BACKEND_TAGS", "")
    try:
        return Settings(
            vaas_url=cast(AnyUrl, os.getenv("VAAS_URL", "http://localhost:3030")),
            username=os.getenv("VAAS_USERNAME"),
            api_key=os.getenv("VAAS_API_KEY"),
            request_timeout_s=float(os.getenv("REQUEST_TIMEOUT_S", "5.0")),
            follow_pages=_flag("VAAS_FOLLOW_PAGES"),
            conflict_only=_flag("VAAS_CONFLICT_ONLY"),
            director=os.getenv("VAAS_DIRECTOR"),
            dc=os.getenv("VAAS_DC"),
            address=os.getenv("VAAS_BACKEND_ADDRESS") or _default_address(),
            port=os.getenv("VAAS_BACKEND_PORT"),
            weight=os.getenv("VAAS_BACKEND_WEIGHT"),
            tags=[t.strip() for t in tags.split(",") if t.strip()],
            inherit_time_profile=_flag("VAAS_INHERIT_TIME_PROFILE"),
        )
    except (ValidationError, ValueError, OSError) as e:
        raise RuntimeError(f"Invalid configuration: {e}") from e
