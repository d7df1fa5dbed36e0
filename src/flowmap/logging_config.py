"""
Logging configuration for flowmap.

All ``flowmap.*`` loggers go through one rich handler on stderr, so scan
progress never mixes with the tables and JSON the CLI writes to stdout.
HTTP client libraries stay at WARNING unless ``--verbose`` is given; one
tree scan issues hundreds of requests.

Fetching and capture run on worker pools, so the optional log file records
the thread name of every line.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .exceptions import CodedError

ROOT_LOGGER = "flowmap"

_CHATTY_LIBRARIES = ("urllib3", "requests", "diskcache")

_FILE_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the flowmap logger tree.

    Args:
        verbose: DEBUG for flowmap and for the HTTP libraries
        quiet: ERROR only (wins over ``verbose``)
        log_file: Also append plain-text records to this file

    Returns:
        The ``flowmap`` root logger
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            # Paths like app/users/[id]/page.tsx must print as-is
            markup=False,
            show_time=verbose,
            show_path=verbose,
        )
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else max(level, logging.WARNING))

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the ``flowmap`` namespace.

    Args:
        name: Module name, usually ``__name__``. Names outside the
              namespace are prefixed, so ``"cli"`` becomes ``"flowmap.cli"``.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def log_coded_error(
    logger: logging.Logger, error: CodedError, level: int = logging.WARNING
) -> None:
    """Log a coded error as one line plus its JSON form for ``extra`` consumers."""
    logger.log(level, str(error), extra={"flowmap_error": error.to_json()})
