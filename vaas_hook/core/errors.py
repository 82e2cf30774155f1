"""Error types raised by the VaaS client."""
from __future__ import annotations


class VaaSError(Exception):
    """Base class for VaaS domain errors."""


class APIError(VaaSError):
    """The VaaS API answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int, body: str):
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"VaaS API error at {url} (HTTP {status_code}): {body}")


class NotFoundError(VaaSError):
    """A listing succeeded but no object matched the lookup."""
