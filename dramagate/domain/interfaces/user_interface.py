"""Interface for presenting gateway results to the user.

Defines the contract for displaying catalog entries, episode lists, health
reports, errors, warnings and informational messages, allowing different
UI implementations (e.g., console, JSON output).
"""

import abc
from typing import Any, Dict, List

from dramagate.domain.models.catalog import CatalogEntry, Episode


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_catalog(self, entries: List[CatalogEntry], title: str, **kwargs: Any) -> None:
        """Displays a list of catalog entries.

        Args:
            entries: The entries to display, in upstream order.
            title: Heading for the listing (e.g., "Latest - page 2").
        """
        pass

    @abc.abstractmethod
    def display_episodes(self, title_id: str, episodes: List[Episode], **kwargs: Any) -> None:
        """Displays the ordered episode list of a title.

        Args:
            title_id: The title the episodes belong to.
            episodes: Episodes sorted by number.
            **kwargs: Additional arguments (e.g., as_json=True).
        """
        pass

    @abc.abstractmethod
    def display_health(self, report: Dict[str, Any], **kwargs: Any) -> None:
        """Displays a gateway health report."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass
