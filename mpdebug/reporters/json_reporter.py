"""JSON reporter, the default output format.

Strings are written as-is. Every other result is written as indented
JSON so it can be piped into other tools. Errors go to stderr.
"""

import json
import sys
from typing import Any, Optional, TextIO

from mpdebug.reporters.base import Reporter, to_jsonable


class JsonReporter(Reporter):
    """Writes command results to stdout as indented JSON.

    Args:
        stream: Output stream for results (defaults to sys.stdout)
        error_stream: Output stream for errors (defaults to sys.stderr)
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        error_stream: Optional[TextIO] = None,
    ):
        self._stream = stream
        self._error_stream = error_stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    @property
    def error_stream(self) -> TextIO:
        return self._error_stream if self._error_stream is not None else sys.stderr

    def render(self, value: Any) -> str:
        """Render a result value to text."""
        if isinstance(value, str):
            return value
        return json.dumps(to_jsonable(value), indent=2, default=str)

    def report_result(self, command: str, value: Any) -> None:
        self.stream.write(self.render(value))
        self.stream.write("\n")
        self.stream.flush()

    def report_error(self, command: str, error: Exception) -> None:
        print(f"{command}: {error}", file=self.error_stream)
