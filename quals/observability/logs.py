"""
Process-wide logging setup.

Every module logs through logging.getLogger(__name__) with a bracket tag
("[cache] hit ...", "[training] refresh ..."); this module only decides
where those lines go.
"""
import logging
import sys

from quals.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Install a single stdout handler on the root logger. Safe to call twice."""
    root = logging.getLogger()
    if getattr(root, "_quals_configured", False):
        return

    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    root._quals_configured = True  # type: ignore[attr-defined]
