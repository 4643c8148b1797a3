import json

import pytest
from unittest.mock import MagicMock
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dramagate.infrastructure.cli.display import ConsoleDisplay
from dramagate.domain.models.catalog import CatalogEntry, Episode


@pytest.fixture
def mock_console():
    """Fixture to create a mock rich Console object."""
    return MagicMock()


@pytest.fixture
def console_display(mock_console: MagicMock):
    """Fixture to create a ConsoleDisplay instance with a mocked console."""
    return ConsoleDisplay(console=mock_console)


def test_display_catalog_renders_table(console_display: ConsoleDisplay, mock_console: MagicMock):
    entries = [CatalogEntry(id="1", name="A", tags=["Romance"], chapter_count=60, introduction="x" * 200)]

    console_display.display_catalog(entries, title="Latest")

    mock_console.print.assert_called_once()
    table = mock_console.print.call_args.args[0]
    assert isinstance(table, Table)
    assert table.title == "Latest"
    assert table.row_count == 1


def test_display_catalog_json(console_display: ConsoleDisplay, mock_console: MagicMock):
    entries = [CatalogEntry(id="1", name="A")]

    console_display.display_catalog(entries, title="Latest", as_json=True)

    payload = json.loads(mock_console.print_json.call_args.args[0])
    assert payload[0]["id"] == "1"
    assert payload[0]["name"] == "A"
    mock_console.print.assert_not_called()


def test_display_episodes_json(console_display: ConsoleDisplay, mock_console: MagicMock):
    episodes = [Episode(number=1, title="EP 1", stream_url="https://cdn.test/1.mp4")]

    console_display.display_episodes("41000100", episodes, as_json=True)

    payload = json.loads(mock_console.print_json.call_args.args[0])
    assert payload == {
        "titleId": "41000100",
        "episodes": [{"number": 1, "title": "EP 1", "stream_url": "https://cdn.test/1.mp4"}],
    }


def test_display_episodes_table(console_display: ConsoleDisplay, mock_console: MagicMock):
    episodes = [Episode(number=n, title=f"EP {n}", stream_url=f"https://cdn.test/{n}.mp4") for n in (1, 2)]

    console_display.display_episodes("41000100", episodes)

    table = mock_console.print.call_args.args[0]
    assert isinstance(table, Table)
    assert table.row_count == 2


def test_display_error(console_display: ConsoleDisplay, mock_console: MagicMock):
    """Test that display_error prints a red panel."""
    console_display.display_error("Something went wrong", title="Service unavailable")

    panel = mock_console.print.call_args.args[0]
    assert isinstance(panel, Panel)
    assert "Service unavailable" in str(panel.title)
    assert panel.border_style == "red"


def test_display_health_in_real_console():
    console = Console(record=True, width=100)
    display = ConsoleDisplay(console=console)

    display.display_health({
        "status": "OK", "timestamp": "2026-01-01T00:00:00+00:00",
        "credential_cached": True, "credential_age_seconds": 42.0,
    })

    output = console.export_text()
    assert "Status: OK" in output
    assert "Credential age: 42.0s" in output
