"""Data models for release-compare."""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from release_compare.errors import InputValidationError


# ── Run configuration ─────────────────────────────────────────────────────

class RunConfig(BaseModel):
    """Inputs of a single comparison run. Immutable once the run starts."""

    model_config = ConfigDict(frozen=True)

    repo: str = ""
    token: Optional[str] = None
    from_tag: str = ""
    to_tag: str = ""
    ignore: str = ""
    output_dir: str = "releases"
    remove_after: bool = False
    max_pages: int = 10

    @property
    def owner_repo(self) -> tuple[str, str]:
        """Split ``owner/name``, dropping a trailing ``.git``."""
        value = self.repo.strip()
        if value.endswith(".git"):
            value = value[: -len(".git")]
        owner, _, name = value.partition("/")
        return owner, name

    def missing_fields(self) -> list[str]:
        """Required fields that are still blank."""
        missing = []
        if not self.repo.strip():
            missing.append("repo")
        if not self.from_tag.strip():
            missing.append("from_tag")
        if not self.to_tag.strip():
            missing.append("to_tag")
        return missing

    def validate_inputs(self) -> None:
        """Raise InputValidationError when the run cannot start."""
        if self.repo.count("/") != 1:
            raise InputValidationError(
                "invalid GitHub repository format", hint="format: owner/repo"
            )
        owner, name = self.owner_repo
        if not owner or not name:
            raise InputValidationError(
                "both owner and repository name are required",
                hint="format: owner/repo",
            )
        if not self.from_tag.strip():
            raise InputValidationError("invalid base release")
        if not self.to_tag.strip():
            raise InputValidationError("invalid release to compare to")
        if self.ignore:
            try:
                re.compile(self.ignore)
            except re.error as e:
                raise InputValidationError(
                    f"invalid ignore pattern {self.ignore!r}: {e}"
                ) from e
        if self.max_pages < 1:
            raise InputValidationError("max_pages must be at least 1")


# ── Releases ──────────────────────────────────────────────────────────────

class Release(BaseModel):
    """A GitHub release. Identity is the tag name."""

    model_config = ConfigDict(frozen=True)

    tag_name: str
    created_at: datetime
    name: Optional[str] = None
    draft: bool = False
    prerelease: bool = False
    tarball_url: Optional[str] = None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "Release":
        return cls(
            tag_name=item["tag_name"],
            created_at=datetime.fromisoformat(
                item["created_at"].replace("Z", "+00:00")
            ),
            name=item.get("name"),
            draft=item.get("draft", False),
            prerelease=item.get("prerelease", False),
            tarball_url=item.get("tarball_url"),
        )


class AnalysisResult(BaseModel):
    """Line and file statistics of one extracted release."""

    model_config = ConfigDict(frozen=True)

    release_tag: str
    total_lines: int = 0
    total_files: int = 0
    total_size: int = 0
    archive_size: int = 0  # 0 when not measured (cache hit)
    lines_by_language: dict[str, int] = Field(default_factory=dict)


# ── Pipeline state ────────────────────────────────────────────────────────

class State(str, Enum):
    """Pipeline states, in the order a successful run visits them."""

    init = "init"
    checking = "checking"
    fetching = "fetching"
    download_extract = "download_extract"
    analyzing = "analyzing"
    summary = "summary"
    error = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (State.summary, State.error)


class RunProgress(BaseModel):
    """Progress counters, mutated only by the pipeline controller."""

    existing_releases: int = 0
    downloaded: int = 0
    cached: int = 0
    archive_sizes: dict[str, int] = Field(default_factory=dict)
    analyzed: int = 0
