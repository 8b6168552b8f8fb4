"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import Any


class Reporter(ABC):
    """Abstract base class for command output reporters."""

    @abstractmethod
    def report_result(self, command: str, value: Any) -> None:
        """Called with the value a command produced."""
        pass

    @abstractmethod
    def report_error(self, command: str, error: Exception) -> None:
        """Called when a command fails."""
        pass


def to_jsonable(value: Any) -> Any:
    """Convert a result value to plain JSON-ready data."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value
