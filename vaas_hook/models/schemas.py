"""Pydantic models for the VaaS API resources used by the hook."""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

# Backend fields sent whenever they are set, zero included
_NULLABLE_FIELDS = {"id", "weight"}


class DC(BaseModel):
    """Datacenter a backend lives in."""

    id: int | None = None
    name: str | None = None
    symbol: str | None = None
    resource_uri: str | None = None


class Director(BaseModel):
    """Named traffic-distribution unit owning a set of backends."""

    id: int
    name: str
    backends: list[str] = Field(default_factory=list)  # backend resource URIs
    resource_uri: str | None = None


class Backend(BaseModel):
    """Server endpoint registered under a director."""

    id: int | None = None
    address: str
    port: int
    director: str | None = None  # director resource URI
    dc: DC | None = None
    inherit_time_profile: bool = False
    weight: int | None = None
    tags: list[str] = Field(default_factory=list)
    resource_uri: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Request body with empty fields omitted.

        ``id`` and ``weight`` are dropped only when unset; a weight of 0
        registers a drained backend. Other fields are dropped when empty
        (0, "", False, []).
        """
        return {
            k: v for k, v in self.model_dump(exclude_none=True).items()
            if v or k in _NULLABLE_FIELDS
        }


class Task(BaseModel):
    """Asynchronous task acknowledgement returned by the API."""

    info: str | None = None
    resource_uri: str | None = None


class Meta(BaseModel):
    """Pagination metadata of a collection response."""

    limit: int = 0
    next: str | None = None
    offset: int = 0
    previous: str | None = None
    total_count: int = 0


class Page(BaseModel, Generic[T]):
    """One page of a collection response."""

    meta: Meta = Field(default_factory=Meta)
    objects: list[T] = Field(default_factory=list)
