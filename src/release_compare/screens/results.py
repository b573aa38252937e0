"""Results screen — filterable list of releases, newest first."""

from rich.markup import escape
from textual import on
from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import Footer, Header, Input, ListItem, ListView, Static

from release_compare.models import RunConfig
from release_compare.report import Report, ReportEntry, entry_description, entry_title


class ReleaseItem(ListItem):
    """One release row: title with deltas, statistics below."""

    def __init__(self, report: Report, entry: ReportEntry) -> None:
        super().__init__()
        self.report = report
        self.entry = entry

    def compose(self) -> ComposeResult:
        yield Static(entry_title(self.report, self.entry), classes="release-title")
        yield Static(escape(entry_description(self.entry)), classes="release-description")


class ResultsScreen(Screen):
    """Final report display."""

    CSS = """
    ResultsScreen {
        layout: vertical;
    }
    #results-header {
        height: 3;
        background: $primary;
        color: $text;
        text-align: center;
        padding: 1 2;
        text-style: bold;
    }
    #filter-input {
        margin: 1 2 0 2;
    }
    #release-list {
        margin: 1 2;
    }
    ReleaseItem {
        padding: 0 1;
        height: auto;
    }
    .release-title {
        text-style: bold;
    }
    .release-description {
        color: $text-muted;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("/", "focus_filter", "Filter"),
        ("escape", "clear_filter", "Clear filter"),
    ]

    def __init__(self, report: Report, config: RunConfig, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.report = report
        self.config = config

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static(
            f"  📊  Releases comparison  ·  {escape(self.config.repo)}  "
            f"·  {len(self.report)} releases  ",
            id="results-header",
        )
        yield Input(placeholder="Filter releases by tag …", id="filter-input")
        yield ListView(*self._items(""), id="release-list")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#release-list", ListView).focus()

    def _items(self, query: str) -> list[ReleaseItem]:
        query = query.strip().lower()
        return [
            ReleaseItem(self.report, entry)
            for entry in self.report.newest_first()
            if query in entry.release_tag.lower()
        ]

    @on(Input.Changed, "#filter-input")
    async def apply_filter(self, event: Input.Changed) -> None:
        release_list = self.query_one("#release-list", ListView)
        await release_list.clear()
        await release_list.extend(self._items(event.value))

    def action_focus_filter(self) -> None:
        self.query_one("#filter-input", Input).focus()

    def action_clear_filter(self) -> None:
        self.query_one("#filter-input", Input).value = ""
        self.query_one("#release-list", ListView).focus()
