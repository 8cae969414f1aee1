"""Async client for the gallery API.

``ListingCoordinator`` implements the browsing loop of a gallery UI: filter
changes are coalesced over a short quiet window, and a response is applied
only if no newer request was issued after it. Superseded requests are not
cancelled server-side; their responses are simply dropped.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Set

import httpx

from huegallery.filter_model import FilterModel
from huegallery.query_codec import encode

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3


class GalleryClientError(Exception):
    """The gallery API could not be reached or returned an error."""


@dataclass
class ListingPage:
    items: List[dict]
    total_count: int
    page: int
    page_size: int
    query: str

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)


class GalleryClient:
    """Thin httpx wrapper over the ``/api/v1`` endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "GalleryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, params: Optional[dict] = None) -> dict:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise GalleryClientError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            raise GalleryClientError(f"GET {path} returned invalid JSON: {e}") from e

    async def list_images(self, filters: FilterModel) -> ListingPage:
        data = await self._get_json("/api/v1/images", params=encode(filters))
        try:
            return ListingPage(
                items=list(data["items"]),
                total_count=int(data["totalCount"]),
                page=int(data["page"]),
                page_size=int(data["pageSize"]),
                query=data["query"],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GalleryClientError(f"Malformed listing response: {e!r}") from e

    async def get_image(self, image_id: int) -> Optional[dict]:
        try:
            return await self._get_json(f"/api/v1/images/{image_id}")
        except GalleryClientError as e:
            cause = e.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code == 404:
                return None
            raise

    async def list_artists(self) -> List[str]:
        data = await self._get_json("/api/v1/artists")
        try:
            return list(data["artists"])
        except (KeyError, TypeError) as e:
            raise GalleryClientError(f"Malformed artists response: {e!r}") from e


class ListingCoordinator:
    """Debounced, latest-wins listing requests.

    ``submit`` restarts the quiet window; when it elapses, the most recent
    filters are requested. Each request gets a sequence number and only the
    newest one's outcome reaches ``on_result``/``on_error``.
    """

    def __init__(
        self,
        client: GalleryClient,
        on_result: Callable[[ListingPage], None],
        *,
        on_error: Optional[Callable[[Exception], None]] = None,
        quiet_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.client = client
        self.on_result = on_result
        self.on_error = on_error
        self.quiet_seconds = quiet_seconds
        self.latest: Optional[ListingPage] = None
        self._sequence = 0
        self._pending: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def sequence(self) -> int:
        """Sequence number of the most recently issued request."""
        return self._sequence

    def submit(self, filters: FilterModel) -> None:
        """Schedule a listing for ``filters`` after the quiet window."""
        loop = asyncio.get_running_loop()
        if self._pending is not None:
            self._pending.cancel()
        self._pending = loop.call_later(self.quiet_seconds, self._fire, filters)

    def _fire(self, filters: FilterModel) -> None:
        self._pending = None
        self._sequence += 1
        task = asyncio.ensure_future(self._request(self._sequence, filters))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _request(self, sequence: int, filters: FilterModel) -> None:
        try:
            page = await self.client.list_images(filters)
        except GalleryClientError as exc:
            if sequence != self._sequence:
                logger.debug("Ignoring failure of superseded listing request #%d", sequence)
                return
            if self.on_error is None:
                logger.warning("Listing request #%d failed: %s", sequence, exc)
            else:
                self.on_error(exc)
            return

        if sequence != self._sequence:
            logger.debug("Discarding stale listing response #%d (latest is #%d)", sequence, self._sequence)
            return
        self.latest = page
        self.on_result(page)

    async def wait_idle(self) -> None:
        """Wait until no request is scheduled or in flight."""
        while self._pending is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(self.quiet_seconds)

    def cancel(self) -> None:
        """Drop the scheduled request, if any; in-flight responses become stale."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._sequence += 1
