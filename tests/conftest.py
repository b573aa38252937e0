"""Pytest configuration and fixtures."""

import io
import tarfile

import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


@pytest.fixture
def make_tarball():
    """Build an in-memory .tgz from a {path: bytes} mapping."""

    def _make(files: dict[str, bytes], mode: int = 0o644) -> bytes:
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tar:
            for name, data in files.items():
                info = tarfile.TarInfo(name)
                info.size = len(data)
                info.mode = mode
                tar.addfile(info, io.BytesIO(data))
        return buf.getvalue()

    return _make


@pytest.fixture
def release_record():
    """A GitHub release API record."""

    def _record(tag: str, created_at: str) -> dict:
        return {
            "tag_name": tag,
            "name": tag,
            "created_at": created_at,
            "draft": False,
            "prerelease": False,
            "tarball_url": f"https://api.github.com/repos/acme/widget/tarball/{tag}",
        }

    return _record
