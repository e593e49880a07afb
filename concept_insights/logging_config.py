"""Shared logging configuration for the concept insights pipeline.

Call ``configure_logging()`` once at an entry point to ensure logs are emitted.
The function is idempotent: if the root logger already has handlers, it does nothing.
"""

import logging
from typing import Optional, Union


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Configure the root logger with a console handler.

    ``level`` defaults to ``Settings.log_level``. Only configures if the root
    logger has no handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    if level is None:
        from .config import get_settings
        level = get_settings().log_level

    fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(fmt)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    root.setLevel(level.upper() if isinstance(level, str) else level)
