"""
Change notifier: pushes the current file listing to every attached
real-time client whenever the storage directory changes.
"""
import asyncio
import logging
from typing import Any, Dict, Set

from starlette.concurrency import run_in_threadpool

from app.core.errors import StorageIOError
from app.core.storage import StorageDirectory, get_storage

logger = logging.getLogger(__name__)

# Pending listings kept per client; older ones are dropped first
MAILBOX_SIZE = 16


class Subscriber:
    """Mailbox of one attached client. Messages come out in the order they were put in."""

    def __init__(self, maxsize: int = MAILBOX_SIZE):
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def put(self, message: Dict[str, Any]) -> None:
        if self.queue.full():
            # Every message is a full listing, so the oldest pending one is stale anyway
            self.queue.get_nowait()
        self.queue.put_nowait(message)

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()


class ChangeNotifier:
    def __init__(self, storage: StorageDirectory, mailbox_size: int = MAILBOX_SIZE):
        self.storage = storage
        self.mailbox_size = mailbox_size
        self._subscribers: Set[Subscriber] = set()
        self._broadcast_lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._subscribers)

    def attach(self) -> Subscriber:
        subscriber = Subscriber(self.mailbox_size)
        self._subscribers.add(subscriber)
        return subscriber

    def detach(self, subscriber: Subscriber) -> None:
        self._subscribers.discard(subscriber)

    async def broadcast(self) -> int:
        """
        Re-read the file listing and queue it for every attached client.

        Broadcasts are serialized so a client never receives an older listing
        after a newer one. A failed directory read skips the broadcast.

        Returns:
            Number of clients the listing was queued for.
        """
        async with self._broadcast_lock:
            try:
                files = await run_in_threadpool(self.storage.list_files)
            except StorageIOError as e:
                logger.warning(f"Skipping file update broadcast: {e}")
                return 0

            message = {"type": "fileUpdate", "files": files}
            recipients = list(self._subscribers)
            for subscriber in recipients:
                subscriber.put(message)

        logger.debug(f"Broadcast {len(files)} files to {len(recipients)} clients")
        return len(recipients)


# Lazy initialization - only create when needed
_notifier = None


def get_notifier() -> ChangeNotifier:
    """Change notifier dependency."""
    global _notifier
    if _notifier is None:
        _notifier = ChangeNotifier(get_storage())
    return _notifier
