"""VaaS registration hook entry point.

Usage: ``python -m vaas_hook.main {register|deregister}``. Configuration comes
from the environment (see ``vaas_hook.core.config``).
"""

from __future__ import annotations

import logging
import sys

import httpx
from pydantic import ValidationError

from vaas_hook.core.config import load_settings
from vaas_hook.core.errors import VaaSError
from vaas_hook.core.logging import setup_logging
from vaas_hook.services.registrar import Registrar
from vaas_hook.services.vaas_client import VaaSClient

log = logging.getLogger("vaas.hook")

ACTIONS = ("register", "deregister")


def main(argv: list[str] | None = None) -> int:
    """Run one registrar action and return the process exit code."""
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1 or argv[0] not in ACTIONS:
        print(f"Usage: python -m vaas_hook.main {{{'|'.join(ACTIONS)}}}", file=sys.stderr)
        return 2

    setup_logging()
    try:
        settings = load_settings()
    except RuntimeError as e:
        log.error("%s failed: %s", argv[0], e)
        return 1

    with VaaSClient.from_settings(settings) as client:
        registrar = Registrar(client, settings)
        try:
            if argv[0] == "register":
                registrar.register()
            else:
                registrar.deregister()
        except (VaaSError, httpx.HTTPError, ValidationError) as e:
            log.error("%s failed: %s", argv[0], e)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
