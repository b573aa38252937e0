"""GitHub release lookups via the REST API."""

import logging
import re
from typing import Optional
from urllib.parse import quote

import httpx

from release_compare.errors import AccessForbiddenError, NetworkError
from release_compare.models import Release

logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubFetcher:
    """Checks release tags and lists releases from the GitHub REST API."""

    def __init__(
        self,
        token: Optional[str] = None,
        max_pages: int = 10,
        timeout: float = 30.0,
    ) -> None:
        self.token = token
        self.max_pages = max_pages
        self.timeout = timeout
        self.base_url = "https://api.github.com"
        self._client: Optional[httpx.AsyncClient] = None

    # ── HTTP plumbing ─────────────────────────────────────────────────────

    @property
    def headers(self) -> dict[str, str]:
        h: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    async def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
            )
        return self._client

    async def _get(self, path: str, **kwargs) -> httpx.Response:  # type: ignore[no-untyped-def]
        """GET that maps transport and access failures onto run errors."""
        client = await self._client_instance()
        try:
            resp = await client.get(path, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkError(f"request to GitHub failed: {e}") from e

        if resp.status_code in (401, 403):
            if "rate limit" in resp.text.lower():
                remaining = resp.headers.get("x-ratelimit-remaining", "0")
                hint = (
                    f"remaining: {remaining}, wait a few minutes and retry"
                    if self.token
                    else "unauthenticated requests are limited to 60/hour, pass a token"
                )
                raise AccessForbiddenError("GitHub API rate limit exceeded", hint=hint)
            raise AccessForbiddenError(
                "access forbidden by GitHub",
                hint="check that your token is valid and can read this repository",
            )
        return resp

    def _json(self, resp: httpx.Response):  # type: ignore[no-untyped-def]
        try:
            return resp.json()
        except ValueError as e:
            raise NetworkError(f"malformed response from {resp.request.url}") from e

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ── Existence check ───────────────────────────────────────────────────

    async def release_exists(self, owner: str, repo: str, tag: str) -> bool:
        """Whether a release is published for ``tag``."""
        # tags like "@scope/pkg@1.0.0" or "v1#2" must stay one path segment
        resp = await self._get(f"/repos/{owner}/{repo}/releases/tags/{quote(tag, safe='')}")
        if resp.status_code == 404:
            logger.info("release %s not found in %s/%s", tag, owner, repo)
            return False
        if resp.status_code != 200:
            raise NetworkError(
                f"could not check release {tag}: "
                f"{resp.status_code} {resp.reason_phrase}"
            )
        return True

    # ── Release range ─────────────────────────────────────────────────────

    async def _fetch_page(self, owner: str, repo: str, page: int) -> list[dict]:
        resp = await self._get(
            f"/repos/{owner}/{repo}/releases",
            params={"per_page": str(PER_PAGE), "page": str(page)},
        )
        if resp.status_code != 200:
            raise NetworkError(
                f"could not list releases: {resp.status_code} {resp.reason_phrase}"
            )
        data = self._json(resp)
        if not isinstance(data, list):
            raise NetworkError("malformed release listing from GitHub")
        return data

    async def fetch_release_range(
        self,
        owner: str,
        repo: str,
        from_tag: str,
        to_tag: str,
        ignore: str = "",
    ) -> list[Release]:
        """Releases between two tags, both inclusive, oldest first.

        Pages are requested until both tags have been seen, the listing
        runs out, or ``max_pages`` is reached. Releases whose tag matches
        ``ignore`` are skipped, boundary tags included.
        """
        pattern = re.compile(ignore) if ignore else None

        releases: list[Release] = []
        seen: set[str] = set()
        for page in range(1, self.max_pages + 1):
            data = await self._fetch_page(owner, repo, page)
            for item in data:
                if not item.get("tag_name"):
                    continue
                try:
                    release = Release.from_api(item)
                except (KeyError, ValueError) as e:
                    raise NetworkError(f"malformed release record from GitHub: {e}") from e
                releases.append(release)
                seen.add(release.tag_name)
            if from_tag in seen and to_tag in seen:
                break
            if len(data) < PER_PAGE:
                break
        else:
            logger.warning(
                "stopped listing %s/%s releases after %d pages", owner, repo, self.max_pages
            )

        for tag in (from_tag, to_tag):
            if tag not in seen:
                logger.warning("release %s was not found in the listing", tag)

        return select_range(releases, from_tag, to_tag, pattern)


def select_range(
    releases: list[Release],
    from_tag: str,
    to_tag: str,
    pattern: Optional[re.Pattern] = None,
) -> list[Release]:
    """Scan releases chronologically from one boundary tag to the other."""
    ordered = sorted(releases, key=lambda r: r.created_at)

    selected: list[Release] = []
    found_from = found_to = False
    for release in ordered:
        tag = release.tag_name
        if not found_from and tag == from_tag:
            found_from = True
            found_to = found_to or tag == to_tag
        elif not found_to and tag == to_tag:
            found_to = True
        elif not (found_from or found_to):
            continue

        if pattern is None or not pattern.search(tag):
            selected.append(release)
        if found_from and found_to:
            break
    return selected
