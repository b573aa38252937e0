"""Loading screen — shows pipeline progress while releases are processed."""

from typing import Optional

from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, ProgressBar, Static

from release_compare.errors import ReleaseCompareError
from release_compare.models import RunConfig, State
from release_compare.pipeline import PipelineController


def progress_text(controller: PipelineController) -> str:
    """One-line status for the controller's current state."""
    state = controller.state
    progress = controller.progress
    total = len(controller.releases)
    if state is State.checking:
        return "Checking if releases exist …"
    if state is State.fetching:
        return "Fetching releases …"
    if state is State.download_extract:
        text = f"Downloading and extracting releases ({progress.downloaded}/{total}"
        if progress.cached:
            text += f" - {progress.cached} cached"
        return text + ") …"
    if state is State.analyzing:
        return f"Analyzing releases ({progress.analyzed}/{total}) …"
    if state is State.summary:
        return "Complete!"
    return "Initializing …"


def progress_percent(controller: PipelineController) -> int:
    """Rough overall completion, downloads and analyses weighted equally."""
    state = controller.state
    total = len(controller.releases) or 1
    if state is State.checking:
        return 5
    if state is State.fetching:
        return 10
    if state is State.download_extract:
        return 10 + int(controller.progress.downloaded / total * 45)
    if state is State.analyzing:
        return 55 + int(controller.progress.analyzed / total * 45)
    if state is State.summary:
        return 100
    return 0


class LoadingScreen(Screen):
    """Displayed while the pipeline is running."""

    CSS = """
    LoadingScreen {
        align: center middle;
    }
    #loading-container {
        width: 72;
        height: auto;
        padding: 2 4;
        border: round $primary;
        background: $surface;
    }
    #loading-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 2;
    }
    #status-label {
        text-align: center;
        margin-bottom: 1;
    }
    #status-label.error {
        color: $error;
    }
    #progress-bar {
        margin: 1 0;
    }
    #phase-label {
        text-align: center;
        color: $text-muted;
    }
    """

    def __init__(self, config: RunConfig, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.config = config
        self._error: Optional[ReleaseCompareError] = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Center():
            with Vertical(id="loading-container"):
                yield Static(
                    f"📦  {escape(self.config.from_tag)} → {escape(self.config.to_tag)}",
                    id="loading-title",
                )
                yield Label("Initializing …", id="status-label")
                yield ProgressBar(total=100, show_eta=False, id="progress-bar")
                yield Label("", id="phase-label")
        yield Footer()

    def render_progress(self, controller: PipelineController) -> None:
        """Refresh labels from the controller after each pipeline event."""
        if controller.state is State.error or not self.is_mounted:
            return
        self.query_one("#status-label", Label).update(progress_text(controller))
        self.query_one("#progress-bar", ProgressBar).update(
            progress=progress_percent(controller)
        )
        if controller.state is State.download_extract:
            self.set_phase(
                f"Downloaded versions are available in the `{self.config.output_dir}/` directory"
            )
        elif controller.state is State.analyzing:
            self.set_phase("")

    def on_mount(self) -> None:
        if self._error is not None:
            self._render_error()

    def show_error(self, error: ReleaseCompareError) -> None:
        """Render a run error; deferred until mount if needed."""
        self._error = error
        if self.is_mounted:
            self._render_error()

    def _render_error(self) -> None:
        label = self.query_one("#status-label", Label)
        label.add_class("error")
        label.update(f"❌ Error: {escape(str(self._error))}")

    def set_phase(self, phase: str) -> None:
        self.query_one("#phase-label", Label).update(escape(phase))
