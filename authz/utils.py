"""
Logging helpers shared by every module of the package.
"""
import logging

from authz.core import config


_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root = logging.getLogger("authz")
    root.addHandler(handler)
    root.setLevel(config.LOG_LEVEL)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger under the ``authz`` hierarchy.

    Usage:
        from authz.utils import get_logger

        log = get_logger(__name__)
    """
    _configure_root()
    if not name.startswith("authz"):
        name = f"authz.{name}"
    return logging.getLogger(name)
