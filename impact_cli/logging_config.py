"""
Logging setup for impact-cli.

Records go to stderr through rich so that ``--json`` output on stdout
stays machine-readable. GitPython logs every git invocation at DEBUG;
those records are only let through with ``verbose``.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAMESPACE = "impact_cli"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Install the rich stderr handler (and optionally a file handler) on the root logger.

    Args:
        verbose: DEBUG level, file/line locations and git command logging
        quiet: ERROR level only; wins over ``verbose``
        log_file: append plain-text records to this file as well

    Returns:
        The ``impact_cli`` package logger
    """
    level = _level(verbose, quiet)

    handlers = [
        RichHandler(
            console=Console(stderr=True),
            markup=False,
            rich_tracebacks=True,
            show_path=verbose,
        )
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)
    logging.getLogger("git").setLevel(level if verbose and not quiet else logging.WARNING)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``impact_cli`` namespace (``aggregator`` -> ``impact_cli.aggregator``)."""
    if not name:
        return logging.getLogger(LOGGER_NAMESPACE)
    if name != LOGGER_NAMESPACE and not name.startswith(LOGGER_NAMESPACE + "."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)
