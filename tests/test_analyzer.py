"""Tests for the release analyzer."""

from pathlib import Path

import pytest

from release_compare.analyzer import EXT_TO_LANG, OTHER_LANGUAGE, analyze_release, language_for
from release_compare.errors import FilesystemError


@pytest.fixture
def release_tree(tmp_path):
    """An extracted release with known contents."""
    root = tmp_path / "widget@1.0.0" / "package"
    (root / "src").mkdir(parents=True)
    (root / "index.js").write_bytes(b"a\nb\nc\n")  # 3 lines, 6 bytes
    (root / "src" / "util.ts").write_bytes(b"x\ny\n")  # 2 lines, 4 bytes
    (root / "src" / "types.TS").write_bytes(b"z\n")  # 1 line, 2 bytes
    (root / "README.md").write_bytes(b"# w\n\ntext\n")  # 3 lines, 10 bytes
    (root / "data.bin").write_bytes(b"\n\n\n\n")  # 4 lines, 4 bytes, unmapped
    (root / "LICENSE").write_bytes(b"MIT\n")  # 1 line, 4 bytes, no extension
    return tmp_path


class TestLanguageFor:
    def test_known_extension(self):
        assert language_for(Path("a.mjs")) == "JavaScript"

    def test_case_insensitive(self):
        assert language_for(Path("a.JSON")) == "JSON"

    def test_unmapped_extension(self):
        assert language_for(Path("a.bin")) == OTHER_LANGUAGE

    def test_no_extension(self):
        assert language_for(Path("LICENSE")) is None

    def test_dotfile_is_its_own_extension(self):
        assert language_for(Path("package/.npmignore")) == OTHER_LANGUAGE
        assert language_for(Path(".eslintrc.json")) == "JSON"

    def test_table_keys_are_lowercase_dotted(self):
        assert all(k.startswith(".") and k == k.lower() for k in EXT_TO_LANG)


class TestAnalyzeRelease:
    def test_totals(self, release_tree):
        result = analyze_release(release_tree, "widget@1.0.0")
        assert result.release_tag == "widget@1.0.0"
        assert result.total_files == 6
        assert result.total_lines == 14
        assert result.total_size == 30
        assert result.archive_size == 0

    def test_language_buckets(self, release_tree):
        result = analyze_release(release_tree, "widget@1.0.0")
        assert result.lines_by_language == {
            "JavaScript": 3,
            "TypeScript": 3,
            "Markdown": 3,
            OTHER_LANGUAGE: 4,
        }

    def test_unmapped_extension_not_in_named_buckets(self, release_tree):
        result = analyze_release(release_tree, "widget@1.0.0")
        named = {k: v for k, v in result.lines_by_language.items() if k != OTHER_LANGUAGE}
        assert sum(named.values()) == 9
        assert sum(result.lines_by_language.values()) == result.total_lines - 1

    def test_empty_release(self, tmp_path):
        (tmp_path / "v0").mkdir()
        result = analyze_release(tmp_path, "v0")
        assert result.total_files == 0
        assert result.total_lines == 0
        assert result.lines_by_language == {}

    def test_missing_release_directory(self, tmp_path):
        with pytest.raises(FilesystemError):
            analyze_release(tmp_path, "missing")

    def test_scoped_tag_nested_directory(self, tmp_path):
        root = tmp_path / "@scope" / "name@1.0.0" / "package"
        root.mkdir(parents=True)
        (root / "index.js").write_bytes(b"1\n2\n")
        result = analyze_release(tmp_path, "@scope/name@1.0.0")
        assert result.total_lines == 2
        assert result.lines_by_language == {"JavaScript": 2}
