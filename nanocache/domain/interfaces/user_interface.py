"""Interface for presenting cache information to the user.

Defines the contract for displaying values, record listings, errors,
warnings and informational messages, allowing different UI implementations
(e.g., console, plain text for scripts).
"""

import abc
from typing import Any, Sequence

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a cached value to the user.

        Args:
            output: The decoded payload to display.
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_records(self, rows: Sequence[tuple], now: float, **kwargs: Any) -> None:
        """Displays a listing of records.

        Args:
            rows: (key, CacheRecord) pairs in display order.
            now: The reference time used to compute record age.
            **kwargs: Additional arguments for formatting (e.g., title).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass
