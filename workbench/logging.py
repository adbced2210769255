# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Centralized logging configuration for the workbench entrypoint.

Log records and the startup banner both end up in the pod log: the
entrypoint's stderr is captured by the container runtime, and the child
process has stderr merged into stdout.

Usage:
    # In entry points (scripts, CLI tools)
    from workbench.logging import configure_logging
    configure_logging(level=logging.INFO)

    # In library modules
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Creating directory: %s", path)
"""

import logging
import os


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

#: Environment variable selecting the level when no CLI flag is given.
LOG_LEVEL_ENV = "WORKBENCH_LOG_LEVEL"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def level_from_env(default: int = logging.INFO) -> int:
    """Return the log level named by ``WORKBENCH_LOG_LEVEL``.

    Unknown or empty values fall back to *default*.
    """
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    return _LEVELS.get(name, default)


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
) -> None:
    """Configure logging for the entrypoint.

    Sets up the root logger with a single stream handler.  Calling this
    again replaces the previous handler instead of adding a duplicate.

    Args:
        level: The logging level (e.g., logging.INFO, logging.DEBUG).
        format_string: Custom format string. If None, uses default format.
    """
    if format_string is None:
        format_string = DEFAULT_FORMAT

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)

    root_logger.addHandler(handler)
