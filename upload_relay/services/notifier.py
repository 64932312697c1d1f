"""Forwards audit entries to an external webhook, best effort.

Delivery never raises and never delays the HTTP response: ``schedule`` hands
the POST to its own task, and failures end up in the log only. There is no
retry.
"""

import asyncio
import logging
from collections.abc import Iterable

import httpx

logger = logging.getLogger(__name__)


def format_audit_entry(original_names: Iterable[str], address: str, user_agent: str | None) -> str:
    """Builds the one-line summary of an upload batch."""
    return f"Uploaded files: {', '.join(original_names)}, IP: {address}, User Agent: {user_agent or 'unknown'}"


class AuditNotifier:
    """POSTs ``{"content": <message>}`` to a webhook URL.

    Args:
        webhook_url: Destination URL; ``None`` disables delivery.
        timeout: Timeout in seconds applied to each delivery.
        client: Optional pre-built client, mainly for tests.
    """

    def __init__(self, webhook_url: str | None, timeout: float = 10.0, client: httpx.AsyncClient | None = None) -> None:
        self.webhook_url = webhook_url
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._pending: set[asyncio.Task[None]] = set()

        if not webhook_url:
            logger.warning("No webhook URL configured. Audit entries will only be logged locally.")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def notify(self, message: str) -> None:
        if not self.webhook_url:
            logger.debug("Webhook delivery skipped, no URL configured")
            return

        try:
            response = await self._client.post(self.webhook_url, json={"content": message})
        except httpx.HTTPError as e:
            logger.error(f"Error sending log to webhook: {e!r}")
            return

        if not response.is_success:
            logger.error(f"Failed to send log to webhook: {response.status_code} {response.reason_phrase}")

    def schedule(self, message: str) -> asyncio.Task[None]:
        """Starts delivery in the background and returns without waiting for it."""
        task = asyncio.create_task(self.notify(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def aclose(self) -> None:
        """Waits for in-flight deliveries, then closes the HTTP client."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self._client.aclose()
