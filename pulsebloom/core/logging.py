"""
Process-wide logging setup.

Every module logs through `logging.getLogger(__name__)`; this module only
installs the root handler once, at application start-up.
"""
import logging
import sys

from pulsebloom.core.config import settings

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    if any(getattr(h, "_pulsebloom", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._pulsebloom = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel((level or settings.LOG_LEVEL).upper())
