"""
UI cache revalidation signal.

After a successful mutation the services name the frontend paths whose
cached data is now stale. Listeners (a webhook forwarder, a websocket
broadcaster, a test spy) subscribe here. Delivery is fire-and-forget:
a failing listener is logged and never fails the mutation.
"""

import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)

Listener = Callable[[str], Union[Awaitable[None], None]]


class PathRevalidator:
    """Fans out path invalidations to registered listeners."""

    def __init__(self, listeners: Optional[List[Listener]] = None):
        self._listeners: List[Listener] = list(listeners or [])

    def subscribe(self, listener: Listener) -> None:
        """Register a listener called with each invalidated path."""
        self._listeners.append(listener)

    async def revalidate(self, *paths: str) -> None:
        """Notify every listener of every path."""
        for path in paths:
            logger.debug(f"Revalidating {path}")
            for listener in self._listeners:
                try:
                    result = listener(path)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    logger.warning(f"Revalidation listener failed for {path}: {e}")


def circle_path(circle_id) -> str:
    """Frontend path of a circle room."""
    return f"/circles/{circle_id}"


class WebhookListener:
    """
    Forwards invalidated paths to the frontend's revalidation endpoint.

    Raises on transport or HTTP errors; PathRevalidator logs and drops them.
    """

    def __init__(self, url: str, secret: Optional[str] = None, timeout: float = 5.0):
        self._url = url
        self._secret = secret
        self._timeout = timeout

    async def __call__(self, path: str) -> None:
        headers = {"Content-Type": "application/json"}
        if self._secret:
            headers["x-revalidate-secret"] = self._secret

        async with httpx.AsyncClient() as client:
            response = await client.post(
                self._url,
                headers=headers,
                json={"path": path},
                timeout=self._timeout,
            )
            response.raise_for_status()
