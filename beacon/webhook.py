"""Fire-and-forget forwarding of visit records to a spreadsheet webhook."""

import asyncio
import logging
from typing import Any

import httpx

logger = logging.getLogger("beacon.webhook")


class WebhookForwarder:
    """Posts copies of visit records to ``url`` in detached tasks.

    A failed forward is logged and dropped; callers never await the outcome.
    Pending tasks are held here so they are not garbage collected mid-flight
    and can be drained on shutdown.
    """

    def __init__(self, client: httpx.AsyncClient, url: str, timeout: float = 10.0):
        self._client = client
        self.url = url
        self.timeout = timeout
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def forward(self, record: dict[str, Any]) -> None:
        # Apps Script web apps answer with a redirect to the result page
        resp = await self._client.post(
            self.url, json=record, timeout=self.timeout, follow_redirects=True
        )
        resp.raise_for_status()

    async def _forward_logged(self, record: dict[str, Any]) -> None:
        try:
            await self.forward(record)
        except Exception as e:
            logger.warning("webhook.forward_failed url=%s err=%r", self.url, e)
            return
        logger.info("webhook.forwarded ip=%s", record.get("ip"))

    def schedule(self, record: dict[str, Any]) -> asyncio.Task:
        task = asyncio.create_task(self._forward_logged(dict(record)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self, timeout: float = 5.0) -> None:
        """Wait for in-flight forwards, cancelling whatever is left after ``timeout``."""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        try:
            await asyncio.wait_for(asyncio.gather(*tasks, return_exceptions=True), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("webhook.drain_timeout pending=%d", len(self._tasks))
            for t in tasks:
                t.cancel()
