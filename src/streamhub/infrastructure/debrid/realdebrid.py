"""Real-Debrid client: magnet link -> direct download URL.

Four REST calls, chained strictly in order (each step consumes the
previous step's output):

1. ``POST torrents/addMagnet``            -> torrent id
2. ``GET  torrents/info/{id}``            -> file listing
3. pick the largest video file
4. ``POST torrents/selectFiles/{id}``     (best-effort)
5. ``GET  torrents/info/{id}``            -> generated hoster link
6. ``POST unrestrict/link``               -> direct download URL

Every failing step raises ``ResolutionError`` (or a subclass); nothing is
retried.
"""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from streamhub.domain.exceptions import NoGeneratedLink, NoVideoFile, ResolutionError

log = structlog.get_logger(__name__)

API_URL = "https://api.real-debrid.com/rest/1.0"

VIDEO_FILE_RE = re.compile(r"\.(mp4|mkv|avi|mov|m4v)$", re.IGNORECASE)

_DEFAULT_TIMEOUT = 15.0


def pick_video_file(files: Any) -> int:
    """Id of the largest file whose path has a known video extension.

    Raises:
        NoVideoFile: listing is empty or holds no video file.
    """
    candidates: list[tuple[int, int]] = []
    for entry in files if isinstance(files, list) else []:
        if not isinstance(entry, dict):
            continue
        path = str(entry.get("path") or "")
        if not VIDEO_FILE_RE.search(path):
            continue
        try:
            candidates.append((int(entry.get("bytes") or 0), int(entry["id"])))
        except (KeyError, TypeError, ValueError):
            continue
    if not candidates:
        raise NoVideoFile("no video file in torrent listing")
    return max(candidates)[1]


class RealDebridResolver:
    """Link resolver for the ``realdebrid`` provider."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        base_url: str = API_URL,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._client = http_client
        self._owns_client = http_client is None
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "realdebrid"

    @property
    def label(self) -> str:
        return "RD"

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def cleanup(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _call(
        self,
        method: str,
        path: str,
        token: str,
        step: str,
        data: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._http().request(
                method,
                f"{self._base_url}/{path}",
                headers={"Authorization": f"Bearer {token}"},
                data=data,
            )
        except httpx.HTTPError as exc:
            raise ResolutionError(f"RD {step} failed: {exc}") from exc
        if not resp.is_success:
            raise ResolutionError(f"RD {step} {resp.status_code}")
        return resp

    @staticmethod
    def _json(resp: httpx.Response, step: str) -> dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as exc:
            raise ResolutionError(f"RD {step} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise ResolutionError(f"RD {step} returned unexpected body")
        return data

    async def add_magnet(self, magnet: str, token: str) -> str:
        resp = await self._call("POST", "torrents/addMagnet", token, "addMagnet", {"magnet": magnet})
        torrent_id = self._json(resp, "addMagnet").get("id")
        if not torrent_id:
            raise ResolutionError("RD addMagnet returned no id")
        return str(torrent_id)

    async def torrent_info(self, torrent_id: str, token: str) -> dict[str, Any]:
        resp = await self._call("GET", f"torrents/info/{torrent_id}", token, "info")
        return self._json(resp, "info")

    async def select_file(self, torrent_id: str, file_id: int, token: str) -> None:
        """Best-effort: the follow-up info call decides whether it worked."""
        try:
            await self._call(
                "POST",
                f"torrents/selectFiles/{torrent_id}",
                token,
                "selectFiles",
                {"files": str(file_id)},
            )
        except ResolutionError as exc:
            log.info("realdebrid_select_files_ignored", torrent_id=torrent_id, error=str(exc))

    async def unrestrict(self, link: str, token: str) -> str:
        resp = await self._call("POST", "unrestrict/link", token, "unrestrict", {"link": link})
        download = self._json(resp, "unrestrict").get("download")
        if not isinstance(download, str) or not download:
            raise ResolutionError("RD unrestrict returned no download URL")
        return download

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def resolve(self, link: str, token: str) -> str:
        """Turn *link* (a magnet) into a direct download URL."""
        torrent_id = await self.add_magnet(link, token)
        info = await self.torrent_info(torrent_id, token)
        file_id = pick_video_file(info.get("files"))
        await self.select_file(torrent_id, file_id, token)

        refreshed = await self.torrent_info(torrent_id, token)
        links = refreshed.get("links")
        generated = links[0] if isinstance(links, list) and links else None
        if not isinstance(generated, str) or not generated:
            raise NoGeneratedLink("RD produced no link after file selection")

        download = await self.unrestrict(generated, token)
        log.info("realdebrid_resolved", torrent_id=torrent_id, file_id=file_id)
        return download
