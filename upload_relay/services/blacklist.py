"""Denied client addresses, loaded from a JSON file and refreshed on a timer.

The file holds a JSON array of address strings, e.g. ``["203.0.113.7", "::1"]``.
Readers always see a complete set: a reload builds a new ``frozenset`` and
swaps the reference in one assignment, and a failed reload keeps the old one.
"""

import asyncio
import contextlib
import logging
from pathlib import Path

from pydantic import TypeAdapter
from pydantic import ValidationError

from upload_relay.core.exceptions import BlacklistLoadError

logger = logging.getLogger(__name__)

_ADDRESS_LIST = TypeAdapter(list[str])


def parse_blacklist(raw: str | bytes) -> frozenset[str]:
    """Parses a JSON array of address strings.

    Raises:
        BlacklistLoadError: If the payload is not a JSON array of strings.
    """
    try:
        addresses = _ADDRESS_LIST.validate_json(raw)
    except ValidationError as e:
        raise BlacklistLoadError(f"Invalid blacklist content: {e.error_count()} error(s), first: {e.errors()[0]['msg']}") from e
    return frozenset(address.strip() for address in addresses if address.strip())


class BlacklistStore:
    """Holds the current set of denied addresses for the lifetime of the process."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._addresses: frozenset[str] = frozenset()

    @property
    def addresses(self) -> frozenset[str]:
        return self._addresses

    def load(self) -> bool:
        """Replaces the in-memory set with the file contents.

        Returns:
            True if the set was replaced, False if the file could not be read or
            parsed, in which case the previous set is left untouched.
        """
        try:
            raw = self.path.read_bytes()
            addresses = parse_blacklist(raw)
        except (OSError, BlacklistLoadError) as e:
            logger.error(f"Error loading blacklist from file {self.path}: {e}")
            return False

        self._addresses = addresses
        logger.debug("Blacklist loaded from %s: %d address(es)", self.path, len(addresses))
        return True

    def is_blacklisted(self, address: str) -> bool:
        return address in self._addresses


class BlacklistRefresher:
    """Reloads a ``BlacklistStore`` every ``interval`` seconds on the running event loop."""

    def __init__(self, store: BlacklistStore, interval: float) -> None:
        self.store = store
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="blacklist-refresh")
        logger.info("Blacklist refresh scheduled every %.0f seconds", self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Blacklist refresh stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await asyncio.to_thread(self.store.load)
