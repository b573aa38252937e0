"""Home screen — collects run inputs not given on the command line."""

from textual import on
from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, Static

from release_compare.errors import InputValidationError
from release_compare.models import RunConfig


class HomeScreen(Screen):
    """Initial screen to collect repository and release tags."""

    CSS = """
    HomeScreen {
        align: center middle;
    }
    #home-container {
        width: 72;
        height: auto;
        padding: 1 4;
        border: round $primary;
        background: $surface;
    }
    #subtitle {
        text-align: center;
        color: $text-muted;
        margin-bottom: 1;
    }
    .field-label {
        margin-top: 1;
        color: $text;
    }
    #start-btn {
        margin-top: 2;
        width: 100%;
    }
    #error-label {
        color: $error;
        text-align: center;
        margin-top: 1;
    }
    """

    def __init__(self, config: RunConfig, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.config = config

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Center():
            with Vertical(id="home-container"):
                yield Static(
                    "Compare lines of code between two releases of an npm package",
                    id="subtitle",
                )
                yield Label("GitHub repository (owner/repo):", classes="field-label")
                yield Input(
                    value=self.config.repo,
                    placeholder="e.g. sveltejs/svelte",
                    id="repo-input",
                )
                yield Label("GitHub token (optional):", classes="field-label")
                yield Input(
                    value=self.config.token or "",
                    placeholder="ghp_…",
                    password=True,
                    id="token-input",
                )
                yield Label("Base release:", classes="field-label")
                yield Input(
                    value=self.config.from_tag,
                    placeholder="e.g. svelte@4.0.0",
                    id="from-input",
                )
                yield Label("Release to compare to:", classes="field-label")
                yield Input(
                    value=self.config.to_tag,
                    placeholder="e.g. svelte@5.0.0",
                    id="to-input",
                )
                yield Label("Regex to ignore releases names (optional):", classes="field-label")
                yield Input(
                    value=self.config.ignore,
                    placeholder="e.g. next",
                    id="ignore-input",
                )
                yield Button("▶  Compare Releases", id="start-btn", variant="primary")
                yield Label("", id="error-label")
        yield Footer()

    def on_mount(self) -> None:
        """Focus the first empty input so typing works immediately."""
        for input_id in ("#repo-input", "#from-input", "#to-input"):
            field = self.query_one(input_id, Input)
            if not field.value:
                field.focus()
                return
        self.query_one("#start-btn", Button).focus()

    def collect_config(self) -> RunConfig:
        """Build a RunConfig from the form, keeping non-form settings."""
        values = {
            "repo": self.query_one("#repo-input", Input).value.strip(),
            "token": self.query_one("#token-input", Input).value.strip() or None,
            "from_tag": self.query_one("#from-input", Input).value.strip(),
            "to_tag": self.query_one("#to-input", Input).value.strip(),
            "ignore": self.query_one("#ignore-input", Input).value.strip(),
        }
        return self.config.model_copy(update=values)

    @on(Button.Pressed, "#start-btn")
    def start_run(self) -> None:
        error_label = self.query_one("#error-label", Label)
        config = self.collect_config()
        try:
            config.validate_inputs()
        except InputValidationError as e:
            error_label.update(f"⚠  {e}")
            return
        self.app.start_run(config)  # type: ignore[attr-defined]

    @on(Input.Submitted)
    def submit_on_enter(self) -> None:
        self.start_run()
