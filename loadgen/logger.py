"""Logging setup shared by the CLI entry point and the workload engine.

Diagnostics go to stderr through the standard ``logging`` module; the
throughput lines of the console contract are printed by ``ResultsReporter``.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(level: str | int = logging.INFO) -> None:
    global _configured

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    _configured = True


def get_logger(name: str, auto_configure: bool = True) -> logging.Logger:
    """Get a logger, configuring the root handler on first use if needed."""
    global _configured

    if auto_configure and not _configured:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        _configured = True
    return logging.getLogger(name)
