"""Main entry point for the dramagate application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from typing import Annotated, Any, Awaitable, Callable, Coroutine, Dict, Optional

import httpx
import typer

# --- Core Layer ---
from dramagate.core.command_handler import CommandHandler, EXIT_OK
from dramagate.core.gateway import ContentGateway
from dramagate.core.services.catalog_service import CatalogService
from dramagate.core.services.credential_provider import CredentialProvider
from dramagate.core.services.episode_aggregator import EpisodeAggregator

# --- Domain Layer ---
from dramagate.domain.events.dispatcher import EventDispatcher

# --- Infrastructure Layer ---
# Config
from dramagate.infrastructure.config.settings import GatewaySettings, get_config, load_gateway_settings, set_config
# UI
from dramagate.infrastructure.cli.display import ConsoleDisplay
# HTTP
from dramagate.infrastructure.http.client import build_async_client
from dramagate.infrastructure.http.credential_source import HttpCredentialSource
from dramagate.infrastructure.http.executor import HttpxRequestExecutor
from dramagate.infrastructure.http.headers import UpstreamHeaderFactory
# Resilience
from dramagate.infrastructure.resilience.retry_coordinator import RetryCoordinator
# Monitoring
from dramagate.infrastructure.monitoring.event_logger import attach_event_logger
from dramagate.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

def create_dependencies(transport: Optional[httpx.AsyncBaseTransport] = None) -> Dict[str, Any]:
    """Creates the long-lived dependencies of the application.

    This acts as the Composition Root. The HTTP-bound gateway is built per
    command by `build_gateway()` because its client belongs to one event loop.

    Args:
        transport: Optional httpx transport (tests pass an httpx.MockTransport).
    """
    dependencies: Dict[str, Any] = {'ui': ConsoleDisplay()}
    try:
        # 1. Load Configuration First
        settings = load_gateway_settings()
        setup_logging(
            log_level=resolve_log_level(get_config('logging.level')),
            log_format=get_config('logging.format'),
            log_file=get_config('logging.file'),
        )
        logger.info("Configuration and logging initialized.")

        # 2. Event dispatching, logged through the standard logging setup
        dispatcher = EventDispatcher()
        attach_event_logger(dispatcher)

        dependencies['settings'] = settings
        dependencies['dispatcher'] = dispatcher
        dependencies['transport'] = transport
        return dependencies

    except (ValueError, TypeError) as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        raise typer.Exit(code=1)


def build_gateway(
    settings: GatewaySettings,
    dispatcher: EventDispatcher,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ContentGateway:
    """Wires the gateway and everything beneath it around one shared HTTP client."""
    client = build_async_client(settings, transport=transport)

    credential_provider = CredentialProvider(
        source=HttpCredentialSource(
            client, settings.credential_source_url, timeout_seconds=settings.credential_fetch_timeout_seconds,
        ),
        ttl_seconds=settings.credential_ttl_seconds,
        dispatcher=dispatcher,
    )
    retry_coordinator = RetryCoordinator(
        credential_provider=credential_provider,
        executor=HttpxRequestExecutor(client),
        header_factory=UpstreamHeaderFactory(settings),
        dispatcher=dispatcher,
        max_retries=settings.max_retries,
        backoff_seconds=settings.backoff_seconds,
    )
    catalog_service = CatalogService(
        retry_coordinator,
        timeout_ms=settings.catalog_timeout_ms,
        page_size=settings.catalog_page_size,
        channel_id=settings.catalog_channel_id,
    )
    episode_aggregator = EpisodeAggregator(
        retry_coordinator, batch_timeout_ms=settings.batch_timeout_ms, dispatcher=dispatcher,
    )
    return ContentGateway(catalog_service, episode_aggregator, credential_provider, http_client=client)


# --- Lazily wired dependencies ---
_dependencies: Optional[Dict[str, Any]] = None


def get_dependencies() -> Dict[str, Any]:
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="dramagate",
    help="dramagate: browse the latest drama titles, search them and list playable episodes.",
    add_completion=False,
)

# --- Helper for Running Async Commands ---

async def _with_handler(action: Callable[[CommandHandler], Awaitable[int]]) -> int:
    deps = get_dependencies()
    async with build_gateway(deps['settings'], deps['dispatcher'], deps.get('transport')) as gateway:
        return await action(CommandHandler(gateway, deps['ui']))


def run_async(coro: Coroutine[Any, Any, int]) -> None:
    """Runs a handler coroutine from a sync Typer command and exits with its code."""
    try:
        exit_code = asyncio.run(coro)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        raise typer.Exit(code=130)
    if exit_code != EXIT_OK:
        raise typer.Exit(code=exit_code)

# --- CLI Commands ---

JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print machine-readable JSON instead of a table.")
]


@app.command()
def latest(
    page: Annotated[int, typer.Option("--page", "-p", min=1, help="Catalog page number (1-based).")] = 1,
    as_json: JsonOption = False,
):
    """List the latest titles."""
    run_async(_with_handler(lambda handler: handler.handle_latest(page, as_json=as_json)))


@app.command()
def search(
    keyword: Annotated[str, typer.Argument(help="Search keyword.")],
    as_json: JsonOption = False,
):
    """Search titles by keyword."""
    run_async(_with_handler(lambda handler: handler.handle_search(keyword, as_json=as_json)))


@app.command()
def episodes(
    title_id: Annotated[str, typer.Argument(help="Identifier of the title (its bookId).")],
    as_json: JsonOption = False,
):
    """List every playable episode of a title, in order."""
    run_async(_with_handler(lambda handler: handler.handle_episodes(title_id, as_json=as_json)))


@app.command()
def health():
    """Report gateway status and credential cache age."""
    run_async(_with_handler(_health))


async def _health(handler: CommandHandler) -> int:
    return handler.handle_health()


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """Global options applied before any command runs."""
    if verbose:
        set_config('logging.level', 'DEBUG')

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    logger.debug("Starting dramagate application...")
    app()  # Typer takes over


if __name__ == "__main__":
    cli_entry_point()
