"""
Logging setup for the console entry points.

The library only logs through module loggers; the executables call setup()
once, which routes records to stderr through rich. ANOMA_LOG selects the
level (debug, info, warning, error), warning by default.
"""
import logging
import os

from rich.console import Console
from rich.logging import RichHandler

ENV_LOG = "ANOMA_LOG"
DEFAULT_LEVEL = "WARNING"


def level():
    """
    The level named by ANOMA_LOG, or the default for unknown names.
    """
    name = os.environ.get(ENV_LOG, "").strip().upper() or DEFAULT_LEVEL
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.getLevelName(DEFAULT_LEVEL)


def setup():
    """
    Configure the root logger once, unless the host already did.
    """
    if logging.getLogger().handlers:
        return
    logging.basicConfig(
        level=level(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


__all__ = (
    "setup",
    "level",
)
