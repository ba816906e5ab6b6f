"""Diagnostic logging on stderr."""
import logging
import sys


def configure_logging(level: str = "WARNING") -> None:
    """
    Send all diagnostics to stderr.

    stdout carries the snapshot only, so callers parsing it never see trace
    lines.
    """
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)

    logging.getLogger(__name__).debug("Logging configured at level %s", level.upper())
