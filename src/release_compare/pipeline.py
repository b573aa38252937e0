"""Run pipeline: state machine plus the asyncio loop that drives it.

``PipelineController`` is a reducer. It consumes typed events, updates
the state it owns and returns the effects to launch next; it never does
I/O. ``PipelineRunner`` performs those effects as concurrent tasks which
each post exactly one event back to a single queue, and feeds the queue
to the controller one event at a time.
"""

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from release_compare.analyzer import analyze_release
from release_compare.downloader import ReleaseDownloader
from release_compare.errors import (
    FilesystemError,
    NotFoundError,
    ReleaseCompareError,
)
from release_compare.fetcher import GitHubFetcher
from release_compare.models import AnalysisResult, Release, RunConfig, RunProgress, State
from release_compare.report import Report

logger = logging.getLogger(__name__)


# ── Events ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReleaseChecked:
    tag: str
    exists: bool


@dataclass(frozen=True)
class ReleasesFetched:
    releases: tuple[Release, ...]


@dataclass(frozen=True)
class ReleaseDownloaded:
    tag: str
    dest: Path
    archive_size: int = 0
    cached: bool = False


@dataclass(frozen=True)
class ReleaseAnalyzed:
    result: AnalysisResult


@dataclass(frozen=True)
class CleanupDone:
    path: Path


@dataclass(frozen=True)
class OperationFailed:
    error: ReleaseCompareError


Event = Union[
    ReleaseChecked,
    ReleasesFetched,
    ReleaseDownloaded,
    ReleaseAnalyzed,
    CleanupDone,
    OperationFailed,
]


# ── Effects ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CheckRelease:
    tag: str


@dataclass(frozen=True)
class FetchReleases:
    from_tag: str
    to_tag: str
    ignore: str


@dataclass(frozen=True)
class DownloadRelease:
    tag: str
    dest_root: Path


@dataclass(frozen=True)
class AnalyzeRelease:
    tag: str
    location: Path


@dataclass(frozen=True)
class RemoveOutput:
    path: Path


Effect = Union[CheckRelease, FetchReleases, DownloadRelease, AnalyzeRelease, RemoveOutput]


# ── Controller ────────────────────────────────────────────────────────────

class PipelineController:
    """State machine of a single comparison run."""

    def __init__(self, config: RunConfig) -> None:
        self.config = config
        self.state = State.init
        self.progress = RunProgress()
        self.releases: list[Release] = []
        self.report: Optional[Report] = None
        self.error: Optional[ReleaseCompareError] = None
        self._slots: list[Optional[AnalysisResult]] = []
        self._downloaded: set[str] = set()
        self._cleaning = False

    @property
    def is_finished(self) -> bool:
        return self.state.is_terminal

    @property
    def output_dir(self) -> Path:
        return Path(self.config.output_dir)

    def _index_of(self, tag: str) -> Optional[int]:
        for i, release in enumerate(self.releases):
            if release.tag_name == tag:
                return i
        return None

    def _move(self, expected: State, target: State) -> None:
        if self.state is not expected:
            raise RuntimeError(f"cannot move from {self.state.value} to {target.value}")
        logger.info("pipeline: %s -> %s", self.state.value, target.value)
        self.state = target

    def _fail(self, error: ReleaseCompareError) -> list[Effect]:
        logger.error("pipeline failed in %s: %s", self.state.value, error)
        self.error = error
        self.state = State.error
        return []

    # ── Transitions ───────────────────────────────────────────────────────

    def start(self) -> list[Effect]:
        """Validate the inputs and launch both existence checks."""
        try:
            self.config.validate_inputs()
        except ReleaseCompareError as e:
            return self._fail(e)
        self._move(State.init, State.checking)
        return [CheckRelease(self.config.from_tag), CheckRelease(self.config.to_tag)]

    def handle(self, event: Event) -> list[Effect]:
        """Apply one completion event and return the effects to launch."""
        if self.is_finished:
            logger.debug("ignoring %s after the run ended", type(event).__name__)
            return []
        if isinstance(event, OperationFailed):
            return self._fail(event.error)
        if isinstance(event, ReleaseChecked) and self.state is State.checking:
            return self._on_checked(event)
        if isinstance(event, ReleasesFetched) and self.state is State.fetching:
            return self._on_fetched(event)
        if isinstance(event, ReleaseDownloaded) and self.state is State.download_extract:
            return self._on_downloaded(event)
        if isinstance(event, ReleaseAnalyzed) and self.state is State.analyzing:
            return self._on_analyzed(event)
        if isinstance(event, CleanupDone) and self._cleaning:
            return self._finish()
        logger.warning("unexpected %s in state %s", type(event).__name__, self.state.value)
        return []

    def _on_checked(self, event: ReleaseChecked) -> list[Effect]:
        if not event.exists:
            return self._fail(
                NotFoundError(
                    f"{event.tag} does not exist, check that you input an existing GitHub tag",
                    hint=f"check at https://github.com/{self.config.repo}/tags",
                )
            )
        self.progress.existing_releases += 1
        if self.progress.existing_releases < 2:
            return []
        self._move(State.checking, State.fetching)
        return [FetchReleases(self.config.from_tag, self.config.to_tag, self.config.ignore)]

    def _on_fetched(self, event: ReleasesFetched) -> list[Effect]:
        if not event.releases:
            return self._fail(NotFoundError("no releases found, please check your inputs"))
        unique: dict[str, Release] = {}
        for release in event.releases:
            unique.setdefault(release.tag_name, release)
        self.releases = list(unique.values())
        self._slots = [None] * len(self.releases)
        self._move(State.fetching, State.download_extract)
        return [DownloadRelease(r.tag_name, self.output_dir) for r in self.releases]

    def _on_downloaded(self, event: ReleaseDownloaded) -> list[Effect]:
        if self._index_of(event.tag) is None or event.tag in self._downloaded:
            logger.warning("ignoring download report for %s", event.tag)
            return []
        self._downloaded.add(event.tag)
        self.progress.downloaded += 1
        if event.cached:
            self.progress.cached += 1
        else:
            self.progress.archive_sizes[event.tag] = event.archive_size

        if self.progress.downloaded < len(self.releases):
            return []
        self._move(State.download_extract, State.analyzing)
        return [AnalyzeRelease(r.tag_name, self.output_dir) for r in self.releases]

    def _on_analyzed(self, event: ReleaseAnalyzed) -> list[Effect]:
        tag = event.result.release_tag
        index = self._index_of(tag)
        if index is None or self._slots[index] is not None:
            logger.warning("ignoring analysis report for %s", tag)
            return []
        size = self.progress.archive_sizes.get(tag, 0)
        self._slots[index] = event.result.model_copy(update={"archive_size": size})
        self.progress.analyzed += 1

        if any(slot is None for slot in self._slots):
            return []
        if self.config.remove_after:
            self._cleaning = True
            return [RemoveOutput(self.output_dir)]
        return self._finish()

    def _finish(self) -> list[Effect]:
        results = [slot for slot in self._slots if slot is not None]
        if len(results) != len(self.releases):
            raise RuntimeError("report requested with unfilled analysis slots")
        self.report = Report(results)
        self._cleaning = False
        self._move(State.analyzing, State.summary)
        return []


# ── Runner ────────────────────────────────────────────────────────────────

class PipelineRunner:
    """Executes controller effects on the running asyncio loop."""

    def __init__(
        self,
        controller: PipelineController,
        fetcher: GitHubFetcher,
        downloader: ReleaseDownloader,
        analyze: Callable[[Path, str], AnalysisResult] = analyze_release,
        on_change: Optional[Callable[[PipelineController], None]] = None,
    ) -> None:
        self.controller = controller
        self.fetcher = fetcher
        self.downloader = downloader
        self._analyze = analyze
        self._on_change = on_change or (lambda _: None)
        self._queue: asyncio.Queue = asyncio.Queue()
        self._tasks: set[asyncio.Task] = set()

    def _launch(self, effects: list[Effect]) -> None:
        for effect in effects:
            task = asyncio.create_task(self._perform(effect))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def run(self) -> PipelineController:
        """Drive the controller until it reaches summary or error."""
        controller = self.controller
        self._launch(controller.start())
        self._on_change(controller)
        try:
            while not controller.is_finished:
                event = await self._queue.get()
                self._launch(controller.handle(event))
                self._on_change(controller)
        finally:
            pending = list(self._tasks)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        return controller

    async def _perform(self, effect: Effect) -> None:
        try:
            event = await self._execute(effect)
        except ReleaseCompareError as e:
            event = OperationFailed(e)
        except OSError as e:
            event = OperationFailed(FilesystemError(str(e)))
        except Exception as e:
            logger.exception("unexpected failure while running %s", type(effect).__name__)
            event = OperationFailed(ReleaseCompareError(f"unexpected error: {e}"))
        await self._queue.put(event)

    async def _execute(self, effect: Effect) -> Event:
        owner, repo = self.controller.config.owner_repo
        if isinstance(effect, CheckRelease):
            exists = await self.fetcher.release_exists(owner, repo, effect.tag)
            return ReleaseChecked(effect.tag, exists)
        if isinstance(effect, FetchReleases):
            releases = await self.fetcher.fetch_release_range(
                owner, repo, effect.from_tag, effect.to_tag, effect.ignore
            )
            return ReleasesFetched(tuple(releases))
        if isinstance(effect, DownloadRelease):
            outcome = await self.downloader.download(effect.tag, effect.dest_root)
            return ReleaseDownloaded(
                outcome.release_tag, outcome.dest, outcome.archive_size, outcome.cached
            )
        if isinstance(effect, AnalyzeRelease):
            result = await asyncio.to_thread(self._analyze, effect.location, effect.tag)
            return ReleaseAnalyzed(result)
        if isinstance(effect, RemoveOutput):
            try:
                await asyncio.to_thread(shutil.rmtree, effect.path)
            except OSError as e:
                raise FilesystemError(f"could not remove {effect.path}: {e}") from e
            return CleanupDone(effect.path)
        raise TypeError(f"unknown effect {effect!r}")
