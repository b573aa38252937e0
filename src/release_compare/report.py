"""Chronological report built from completed analyses."""

from typing import Optional

from pydantic import BaseModel
from rich.markup import escape

from release_compare.models import AnalysisResult

VISIBLE_LANGUAGES = 2


class ReportEntry(BaseModel):
    """One release of the report with the positions of its neighbours."""

    index: int
    result: AnalysisResult
    previous_index: Optional[int] = None
    next_index: Optional[int] = None

    @property
    def release_tag(self) -> str:
        return self.result.release_tag


class Report:
    """Owns the ordered analyses, oldest first.

    Neighbour links are plain indices into ``entries``.
    """

    def __init__(self, results: list[AnalysisResult]) -> None:
        last = len(results) - 1
        self.entries: list[ReportEntry] = [
            ReportEntry(
                index=i,
                result=result,
                previous_index=i - 1 if i > 0 else None,
                next_index=i + 1 if i < last else None,
            )
            for i, result in enumerate(results)
        ]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self.entries)

    def __getitem__(self, index: int) -> ReportEntry:
        return self.entries[index]

    def previous(self, entry: ReportEntry) -> Optional[ReportEntry]:
        if entry.previous_index is None:
            return None
        return self.entries[entry.previous_index]

    def next(self, entry: ReportEntry) -> Optional[ReportEntry]:
        if entry.next_index is None:
            return None
        return self.entries[entry.next_index]

    def line_delta(self, entry: ReportEntry) -> Optional[int]:
        """Lines gained since the previous release, None for the first one."""
        prev = self.previous(entry)
        if prev is None:
            return None
        return entry.result.total_lines - prev.result.total_lines

    def total_delta(self, entry: ReportEntry) -> Optional[int]:
        """Lines gained since the first release, only for the most recent one."""
        if entry.next_index is not None or entry.previous_index is None:
            return None
        return entry.result.total_lines - self.entries[0].result.total_lines

    def newest_first(self) -> list[ReportEntry]:
        return list(reversed(self.entries))


# ── Formatting ────────────────────────────────────────────────────────────

def byte_count_si(size: int) -> str:
    """Format a byte count with SI units (1 kB = 1000 B)."""
    unit = 1000
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'kMGTPE'[exp]}B"


def diff_text(diff: int) -> str:
    if diff > 0:
        return f"[green]+{diff} lines[/green]"
    if diff < 0:
        return f"[red]{diff} lines[/red]"
    return "No change"


def entry_title(report: Report, entry: ReportEntry) -> str:
    """Tag plus line delta, and total delta on the most recent release.

    Returns Rich markup; the tag itself is escaped.
    """
    parts = [escape(entry.release_tag)]
    delta = report.line_delta(entry)
    if delta is not None:
        parts.append(f"  {diff_text(delta)}")
        total = report.total_delta(entry)
        if total is not None:
            parts.append(f" • Total: {diff_text(total)}")
    return "".join(parts)


def language_summary(lines_by_language: dict[str, int]) -> list[tuple[str, int]]:
    """Top languages by line count, the rest folded into one entry."""
    ranked = sorted(lines_by_language.items(), key=lambda kv: kv[1], reverse=True)
    if len(ranked) <= VISIBLE_LANGUAGES:
        return ranked
    rest = ranked[VISIBLE_LANGUAGES:]
    folded = (f"{len(rest)} other languages", sum(lines for _, lines in rest))
    return ranked[:VISIBLE_LANGUAGES] + [folded]


def entry_description(entry: ReportEntry) -> str:
    r = entry.result
    text = f"{r.total_files} files • {r.total_lines} lines • {byte_count_si(r.total_size)} "
    if r.archive_size > 0:
        text += f"({byte_count_si(r.archive_size)} gz) • "
    else:
        text += "• "
    text += " / ".join(
        f"{name} ({lines} lines)" for name, lines in language_summary(r.lines_by_language)
    )
    return text
