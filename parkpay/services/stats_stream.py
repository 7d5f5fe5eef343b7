# parkpay/services/stats_stream.py
"""
Live dashboard statistics.

Each open /admin/stats-stream connection owns an asyncio.Queue. Committed
changes to tickets, cars or payments wake every queue; the stream then
recomputes the stats and pushes them. Commits happen in FastAPI's worker
threads, so wake-ups are handed to each subscriber's loop thread-safely.
"""

from __future__ import annotations

import asyncio
from typing import Dict
from sqlalchemy import event
from sqlalchemy.orm import Session

from parkpay.models.ticket import Ticket
from parkpay.models.car import Car
from parkpay.models.payment import Payment
from parkpay.utils.logger import get_logger

logger = get_logger(__name__)

WATCHED_MODELS = (Ticket, Car, Payment)
_DIRTY_FLAG = "stats_dirty"


class StatsBroadcaster:
    """Registry of subscriber queues, one per connected dashboard."""

    def __init__(self) -> None:
        self._subscribers: Dict[asyncio.Queue, asyncio.AbstractEventLoop] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self) -> asyncio.Queue:
        # maxsize=1: a pending wake-up already means "recompute"
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        async with self._lock:
            self._subscribers[queue] = asyncio.get_running_loop()
        logger.info(f"[STATS] Subscriber connected ({len(self._subscribers)} open)")
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        async with self._lock:
            self._subscribers.pop(queue, None)
        logger.info(f"[STATS] Subscriber disconnected ({len(self._subscribers)} open)")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def notify(self) -> None:
        """Wake every subscriber. Safe to call from any thread."""
        for queue, loop in list(self._subscribers.items()):
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(_wake, queue)


def _wake(queue: asyncio.Queue) -> None:
    if queue.empty():
        queue.put_nowait(True)


broadcaster = StatsBroadcaster()


def _touches_watched(session: Session) -> bool:
    for obj in (*session.new, *session.dirty, *session.deleted):
        if isinstance(obj, WATCHED_MODELS):
            return True
    return False


def _after_flush(session: Session, flush_context) -> None:
    if _touches_watched(session):
        session.info[_DIRTY_FLAG] = True


def _after_commit(session: Session) -> None:
    if session.info.pop(_DIRTY_FLAG, False):
        broadcaster.notify()


def _after_rollback(session: Session) -> None:
    session.info.pop(_DIRTY_FLAG, None)


def register_change_listeners(session_factory) -> None:
    """Attach the change hooks to a sessionmaker (idempotent)."""
    if not event.contains(session_factory, "after_commit", _after_commit):
        event.listen(session_factory, "after_flush", _after_flush)
        event.listen(session_factory, "after_commit", _after_commit)
        event.listen(session_factory, "after_rollback", _after_rollback)
