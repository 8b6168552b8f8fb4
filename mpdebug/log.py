"""Logging setup for the multipart debugger.

Log records go to stderr through Rich so that stdout carries only
command results. Trace mode turns on debug output for this package and
for botocore's request/response logging.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "mpdebug"
BOTOCORE_LOGGER = "botocore"


def configure_logging(trace: bool = False) -> None:
    """Configure root logging once per process.

    Args:
        trace: Log every request and response at DEBUG level.
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    if trace:
        logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)
        # Records propagate to the root RichHandler; no handler of its own.
        logging.getLogger(BOTOCORE_LOGGER).setLevel(logging.DEBUG)
