"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work to
the ContentGateway and hands the results to the UserInterface. Every handler
returns a process exit code so main.py stays free of error handling.
"""

import logging
from typing import Any, Dict

from dramagate.core.gateway import ContentGateway
from dramagate.domain.exceptions import CredentialUnavailable, UpstreamUnavailable
from dramagate.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_UNAVAILABLE = 2


class CommandHandler:
    """Handles incoming commands and delegates to the gateway."""

    def __init__(self, gateway: ContentGateway, ui: UserInterface):
        """Initializes the CommandHandler with the gateway and a UI."""
        self.gateway = gateway
        self.ui = ui

    async def handle_latest(self, page: int = 1, as_json: bool = False) -> int:
        """Handles the 'latest' command."""
        logger.info(f"Handling 'latest' command for page {page}")
        try:
            entries = await self.gateway.get_catalog_page(page)
        except ValueError as e:
            self.ui.display_error(str(e), title="Invalid input")
            return EXIT_USAGE
        except (UpstreamUnavailable, CredentialUnavailable) as e:
            return self._unavailable(e)

        if not entries and not as_json:
            self.ui.display_info(f"No titles found on page {page}.")
            return EXIT_OK
        self.ui.display_catalog(entries, title=f"Latest titles - page {page}", as_json=as_json)
        return EXIT_OK

    async def handle_search(self, keyword: str, as_json: bool = False) -> int:
        """Handles the 'search' command."""
        logger.info(f"Handling 'search' command with keyword: {keyword}")
        try:
            entries = await self.gateway.search(keyword)
        except (UpstreamUnavailable, CredentialUnavailable) as e:
            return self._unavailable(e)

        if not entries and not as_json:
            self.ui.display_info(f"No titles match '{keyword}'.")
            return EXIT_OK
        self.ui.display_catalog(entries, title=f"Search results for '{keyword}'", as_json=as_json)
        return EXIT_OK

    async def handle_episodes(self, title_id: str, as_json: bool = False) -> int:
        """Handles the 'episodes' command."""
        logger.info(f"Handling 'episodes' command for title: {title_id}")
        try:
            episodes = await self.gateway.get_episodes(title_id)
        except ValueError as e:
            self.ui.display_error(str(e), title="Invalid input")
            return EXIT_USAGE
        except (UpstreamUnavailable, CredentialUnavailable) as e:
            return self._unavailable(e)

        if not episodes and not as_json:
            self.ui.display_info(f"No playable episodes found for title {title_id}.")
            return EXIT_OK
        self.ui.display_episodes(title_id, episodes, as_json=as_json)
        return EXIT_OK

    def handle_health(self) -> int:
        """Handles the 'health' command. Purely local, never contacts upstream."""
        report: Dict[str, Any] = self.gateway.health()
        self.ui.display_health(report)
        return EXIT_OK

    def _unavailable(self, error: Exception) -> int:
        logger.error(f"Upstream unavailable: {error}")
        self.ui.display_error(
            "The content service is temporarily unavailable. Please try again shortly.",
            title="Service unavailable",
        )
        return EXIT_UNAVAILABLE
