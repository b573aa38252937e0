"""Tests for the chronological report."""

import pytest

from release_compare.models import AnalysisResult
from release_compare.report import (
    Report,
    byte_count_si,
    diff_text,
    entry_description,
    entry_title,
    language_summary,
)


@pytest.fixture
def report():
    return Report(
        [
            AnalysisResult(release_tag="v1", total_lines=100),
            AnalysisResult(release_tag="v2", total_lines=150),
            AnalysisResult(release_tag="v3", total_lines=120),
        ]
    )


class TestReport:
    def test_links_are_indices(self, report):
        first, middle, last = report.entries
        assert (first.previous_index, first.next_index) == (None, 1)
        assert (middle.previous_index, middle.next_index) == (0, 2)
        assert (last.previous_index, last.next_index) == (1, None)

    def test_navigation(self, report):
        middle = report[1]
        assert report.previous(middle).release_tag == "v1"
        assert report.next(middle).release_tag == "v3"
        assert report.previous(report[0]) is None
        assert report.next(report[2]) is None

    def test_line_delta(self, report):
        assert report.line_delta(report[0]) is None
        assert report.line_delta(report[1]) == 50
        assert report.line_delta(report[2]) == -30

    def test_total_delta_only_on_most_recent(self, report):
        assert report.total_delta(report[0]) is None
        assert report.total_delta(report[1]) is None
        assert report.total_delta(report[2]) == 20

    def test_single_release(self):
        single = Report([AnalysisResult(release_tag="v1", total_lines=5)])
        assert len(single) == 1
        assert single.line_delta(single[0]) is None
        assert single.total_delta(single[0]) is None

    def test_newest_first(self, report):
        assert [e.release_tag for e in report.newest_first()] == ["v3", "v2", "v1"]
        assert [e.release_tag for e in report] == ["v1", "v2", "v3"]


class TestFormatting:
    @pytest.mark.parametrize(
        "size, expected",
        [(0, "0 B"), (999, "999 B"), (1000, "1.0 kB"), (1500, "1.5 kB"), (2_500_000, "2.5 MB")],
    )
    def test_byte_count_si(self, size, expected):
        assert byte_count_si(size) == expected

    def test_diff_text(self):
        assert "+5 lines" in diff_text(5)
        assert "-5 lines" in diff_text(-5)
        assert diff_text(0) == "No change"

    def test_entry_titles(self, report):
        assert entry_title(report, report[0]) == "v1"
        assert entry_title(report, report[1]) == "v2  [green]+50 lines[/green]"
        assert entry_title(report, report[2]) == (
            "v3  [red]-30 lines[/red] • Total: [green]+20 lines[/green]"
        )

    def test_language_summary_folds_the_rest(self):
        summary = language_summary({"JavaScript": 50, "JSON": 5, "Markdown": 10, "Other": 2})
        assert summary == [("JavaScript", 50), ("Markdown", 10), ("2 other languages", 7)]

    def test_language_summary_short(self):
        assert language_summary({"JSON": 1}) == [("JSON", 1)]

    def test_entry_description(self):
        entry = Report(
            [
                AnalysisResult(
                    release_tag="v1",
                    total_lines=12,
                    total_files=3,
                    total_size=2000,
                    archive_size=1500,
                    lines_by_language={"JavaScript": 10, "JSON": 2},
                )
            ]
        )[0]
        assert entry_description(entry) == (
            "3 files • 12 lines • 2.0 kB (1.5 kB gz) • JavaScript (10 lines) / JSON (2 lines)"
        )

    def test_entry_description_without_archive_size(self):
        entry = Report([AnalysisResult(release_tag="v1", total_size=10)])[0]
        assert entry_description(entry) == "0 files • 0 lines • 10 B • "
