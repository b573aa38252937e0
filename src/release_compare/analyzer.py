"""Line and file statistics for an extracted release."""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Union

from release_compare.archive import count_lines
from release_compare.errors import FilesystemError
from release_compare.models import AnalysisResult

logger = logging.getLogger(__name__)

OTHER_LANGUAGE = "Other"

# Keys are lowercase single extensions with a leading dot.
EXT_TO_LANG: dict[str, str] = {
    ".js": "JavaScript",
    ".cjs": "JavaScript",
    ".mjs": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".cts": "TypeScript",
    ".mts": "TypeScript",
    ".tsx": "TypeScript",
    ".map": "Source Map",
    ".json": "JSON",
    ".md": "Markdown",
    ".svelte": "Svelte",
    ".css": "CSS",
    ".html": "HTML",
    ".yml": "YAML",
    ".yaml": "YAML",
}


def language_for(path: Path) -> Union[str, None]:
    """Language bucket of a file, or None when it has no extension.

    A dotfile such as ``.npmignore`` is its own extension.
    """
    suffix = path.suffix
    if not suffix and path.name.startswith(".") and path.name != ".":
        suffix = path.name
    suffix = suffix.lower()
    if not suffix:
        return None
    return EXT_TO_LANG.get(suffix, OTHER_LANGUAGE)


def analyze_release(location: Union[str, Path], release_tag: str) -> AnalysisResult:
    """Count lines, files and bytes of the release extracted at ``location/release_tag``."""
    root = Path(location) / release_tag
    if not root.is_dir():
        raise FilesystemError(f"no extracted release at {root}")

    total_lines = 0
    total_files = 0
    total_size = 0
    by_language: dict[str, int] = defaultdict(int)

    try:
        for path in sorted(root.rglob("*")):
            if not path.is_file() or path.is_symlink():
                continue
            total_size += path.stat().st_size
            with open(path, "rb") as fh:
                lines = count_lines(fh)
            total_lines += lines
            total_files += 1

            language = language_for(path)
            if language is not None:
                by_language[language] += lines
    except OSError as e:
        raise FilesystemError(f"could not analyze {release_tag}: {e}") from e

    logger.debug(
        "%s: %d files, %d lines, %d bytes", release_tag, total_files, total_lines, total_size
    )
    return AnalysisResult(
        release_tag=release_tag,
        total_lines=total_lines,
        total_files=total_files,
        total_size=total_size,
        lines_by_language=dict(by_language),
    )
