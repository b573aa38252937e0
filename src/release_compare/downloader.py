"""npm registry tarball download and extraction."""

import asyncio
import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Optional, Union

import httpx
from pydantic import BaseModel

from release_compare.archive import extract_archive
from release_compare.errors import FilesystemError, NetworkError, NotFoundError

logger = logging.getLogger(__name__)

REGISTRY_URL = "https://registry.npmjs.com"


class PackageCoordinates(BaseModel):
    """Where a release tag lives on the npm registry."""

    scope: Optional[str] = None
    package: str
    archive: str

    @property
    def url(self) -> str:
        return f"{REGISTRY_URL}/{self.package}/-/{self.archive}.tgz"


class DownloadOutcome(BaseModel):
    """Result of downloading one release."""

    release_tag: str
    dest: Path
    archive_size: int = 0
    cached: bool = False


def package_coordinates(tag: str) -> PackageCoordinates:
    """Map a release tag onto its registry package and archive name.

    ``svelte@5.0.0`` -> package ``svelte``, archive ``svelte-5.0.0``;
    ``@sveltejs/kit@1.0.0`` -> scope ``@sveltejs``, package
    ``@sveltejs/kit``, archive ``kit-1.0.0``.
    """
    parts = tag.split("@")
    scope = None
    if tag.startswith("@") and len(parts) > 1:
        package = "@" + parts[1]
        scope = package.split("/", 1)[0]
    else:
        package = parts[0]

    archive = tag.split("/", 1)[1] if "/" in tag else tag
    return PackageCoordinates(
        scope=scope, package=package, archive=archive.replace("@", "-")
    )


def registry_url(tag: str) -> str:
    return package_coordinates(tag).url


class ReleaseDownloader:
    """Downloads release tarballs and extracts them under a root directory.

    A release whose destination directory already exists is reported as
    cached without touching the network.
    """

    def __init__(self, timeout: float = 120.0) -> None:
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def download(
        self, tag: str, dest_root: Union[str, Path]
    ) -> DownloadOutcome:
        dest = Path(dest_root) / tag
        if dest.exists():
            logger.debug("cache hit for %s at %s", tag, dest)
            return DownloadOutcome(release_tag=tag, dest=dest, cached=True)

        # Extraction goes to a sibling staging directory that is renamed
        # into place only once complete, so ``dest`` never holds a partial tree.
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            staging = Path(
                tempfile.mkdtemp(prefix=f"{dest.name}.", suffix=".part", dir=dest.parent)
            )
            staging.chmod(0o750)
        except OSError as e:
            raise FilesystemError(f"could not create {dest}: {e}") from e

        try:
            body = await self._fetch(registry_url(tag))
            await self._extract(staging, body)
            os.replace(staging, dest)
        except (tarfile.TarError, OSError) as e:
            await asyncio.to_thread(shutil.rmtree, staging, ignore_errors=True)
            raise FilesystemError(f"could not extract {tag}: {e}") from e
        except BaseException:
            await asyncio.to_thread(shutil.rmtree, staging, ignore_errors=True)
            raise

        logger.info("extracted %s (%d bytes) into %s", tag, len(body), dest)
        return DownloadOutcome(release_tag=tag, dest=dest, archive_size=len(body))

    async def _extract(self, staging: Path, body: bytes) -> None:
        """Run the extraction thread, outliving cancellation of the caller.

        A worker thread cannot be interrupted, so on cancellation this waits
        for it to stop writing before letting the caller clean up.
        """
        extraction = asyncio.ensure_future(asyncio.to_thread(extract_archive, staging, body))
        try:
            await asyncio.shield(extraction)
        except asyncio.CancelledError:
            await asyncio.gather(extraction, return_exceptions=True)
            raise

    async def _fetch(self, url: str) -> bytes:
        client = await self._client_instance()
        try:
            resp = await client.get(url)
        except httpx.HTTPError as e:
            raise NetworkError(f"could not download {url}: {e}") from e

        if resp.status_code == 404:
            raise NotFoundError(
                f"release not found at {url}",
                hint="check that the tag is published on the npm registry",
            )
        if resp.status_code != 200:
            raise NetworkError(
                f"could not download release: {resp.status_code} {resp.reason_phrase}"
            )
        return resp.content
