"""Main Textual TUI application for release-compare."""

import logging
from typing import Optional

from textual.app import App

from release_compare.downloader import ReleaseDownloader
from release_compare.errors import ReleaseCompareError
from release_compare.fetcher import GitHubFetcher
from release_compare.models import RunConfig
from release_compare.pipeline import PipelineController, PipelineRunner
from release_compare.screens.home import HomeScreen
from release_compare.screens.loading import LoadingScreen
from release_compare.screens.results import ResultsScreen

logger = logging.getLogger(__name__)

# Delay before exiting so the error gets one final render.
ERROR_EXIT_DELAY = 0.25


class ReleaseCompareApp(App):
    """TUI application comparing the releases of an npm package."""

    TITLE = "Release Compare"
    SUB_TITLE = "Lines · Files · Languages across npm releases"

    CSS = """
    Screen {
        background: $background;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, config: RunConfig, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.config = config
        self.controller: Optional[PipelineController] = None

    def on_mount(self) -> None:
        if self.config.missing_fields():
            self.push_screen(HomeScreen(self.config))
        else:
            self.start_run(self.config)

    def start_run(self, config: RunConfig) -> None:
        """Kick off the pipeline — called on mount or from HomeScreen."""
        self.config = config
        loading = LoadingScreen(config)
        if isinstance(self.screen, HomeScreen):
            self.switch_screen(loading)
        else:
            self.push_screen(loading)
        self.run_worker(self._run_pipeline(config, loading), exclusive=True)

    async def _run_pipeline(self, config: RunConfig, loading: LoadingScreen) -> None:
        controller = PipelineController(config)
        self.controller = controller
        fetcher = GitHubFetcher(token=config.token, max_pages=config.max_pages)
        downloader = ReleaseDownloader()
        runner = PipelineRunner(
            controller, fetcher, downloader, on_change=loading.render_progress
        )
        try:
            await runner.run()
        finally:
            await fetcher.close()
            await downloader.close()

        if controller.error is not None:
            self._show_error(loading, controller.error)
        elif controller.report is not None:
            self.switch_screen(ResultsScreen(controller.report, config))

    def _show_error(self, loading: LoadingScreen, error: ReleaseCompareError) -> None:
        """Render the error once, then leave with a non-zero status."""
        loading.show_error(error)
        self.set_timer(
            ERROR_EXIT_DELAY,
            lambda: self.exit(return_code=1, message=f"Error: {error}"),
        )
