"""
Curio — Atelier Layout Client & Debounced Autosave
===================================================

What:  `LayoutApiClient` talks to the layout endpoints over httpx.
       `LayoutAutosaver` turns canvas changes into debounced PATCH calls.
How:   The autosaver registers itself as the canvas session's `on_change`.
       Each change (re)arms one `loop.call_later` timer; when it fires after
       650ms of quiet, the session's dirty set is drained into a PATCH sent
       as an independent task. Gesture handling never awaits the network.

Save ordering:
    Every PATCH gets a monotonically increasing sequence number. A response
    whose number is not newer than the last one applied is stale: its
    snapshot is ignored, but its fields still join the reset baseline unless
    a later confirmed save already set them. Failures only set the session's status note; the unsaved
    fields are re-marked dirty and go out with the next change. There is no
    automatic retry.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

import httpx

from curio.atelier.canvas import CanvasSession
from curio.exceptions import LayoutSyncError

logger = logging.getLogger(__name__)

AUTOSAVE_DELAY_SECONDS = 0.65
SAVE_FAILED_NOTE = "Couldn't save the layout. Your next change will try again."


class LayoutApiClient:
    """
    Thin async client for the board layout and card listing endpoints.

    Either pass a ready `httpx.AsyncClient` (tests use one bound to an
    ASGITransport) or a base URL and session token to build one.
    """

    def __init__(
        self,
        base_url: str = "",
        session_token: Optional[str] = None,
        cookie_name: str = "curio_session",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        if client is None:
            cookies = {cookie_name: session_token} if session_token else None
            client = httpx.AsyncClient(base_url=base_url, cookies=cookies, timeout=timeout)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client

    async def fetch_layout(self, board_id: str) -> Dict[str, Any]:
        body = await self._request("GET", f"/api/boards/{board_id}/atelier-layout")
        return body["layout"]

    async def patch_layout(self, board_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = await self._request("PATCH", f"/api/boards/{board_id}/atelier-layout", json=payload)
        return body["layout"]

    async def list_cards(self, board_id: str) -> List[Dict[str, Any]]:
        body = await self._request("GET", f"/api/boards/{board_id}/cards")
        return body["cards"]

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise LayoutSyncError(
                message="Could not reach the server",
                context={"path": path, "error_type": type(e).__name__},
            ) from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message") or "Layout request failed"
            except ValueError:
                message = "Layout request failed"
            raise LayoutSyncError(
                message=message,
                status_code=response.status_code,
                context={"path": path},
            )

        return response.json()


class LayoutAutosaver:
    """
    Debounced, fire-and-forget persistence for one canvas session.

    Usage:
        saver = LayoutAutosaver(session, client)   # hooks session.on_change
        ...gestures...
        await saver.flush()                        # on navigation away
        await saver.close()
    """

    def __init__(
        self,
        session: CanvasSession,
        client: LayoutApiClient,
        delay: float = AUTOSAVE_DELAY_SECONDS,
    ):
        self.session = session
        self.client = client
        self.delay = delay
        self.last_snapshot: Optional[Dict[str, Any]] = None

        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self._sequence = 0
        self._applied_sequence = 0

        session.on_change = self.schedule

    @property
    def pending(self) -> bool:
        """True while a save is armed or in flight."""
        return self._timer is not None or bool(self._tasks)

    def schedule(self) -> None:
        """(Re)arm the debounce timer. Must be called from the event loop thread."""
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._timer = None
        payload = self.session.drain_changes()
        if payload is None:
            return

        self._sequence += 1
        task = asyncio.get_running_loop().create_task(self._save(self._sequence, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _save(self, sequence: int, payload: Dict[str, Any]) -> None:
        board_id = self.session.board_id
        try:
            layout = await self.client.patch_layout(board_id, payload)
        except LayoutSyncError as e:
            logger.warning(
                "Layout save #%d for board %s failed: %s", sequence, board_id, e.message
            )
            self.session.requeue(payload)
            if sequence > self._applied_sequence:
                self.session.status_note = SAVE_FAILED_NOTE
            return

        # the server stored this payload even when a later save answered first
        self.session.mark_persisted(payload, sequence)

        if sequence <= self._applied_sequence:
            logger.debug("Discarding stale layout response #%d for board %s", sequence, board_id)
            return

        self._applied_sequence = sequence
        self.last_snapshot = layout

    async def wait_idle(self) -> None:
        """Wait for every save already in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def flush(self) -> None:
        """Send pending changes now instead of waiting out the debounce."""
        if self._timer is not None:
            self._timer.cancel()
        self._fire()
        await self.wait_idle()

    async def close(self) -> None:
        """Stop scheduling and let in-flight saves finish; unsent changes are dropped."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.session.on_change = None
        await self.wait_idle()
