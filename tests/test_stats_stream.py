# tests/test_stats_stream.py
"""Stats broadcaster and the session hooks that drive it."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import json
import pytest
from datetime import datetime
from unittest.mock import MagicMock, AsyncMock, patch
from sqlalchemy.orm import sessionmaker
from parkpay.database import engine, SessionLocal
from parkpay.models.ticket import Ticket
from parkpay.models.staff import Staff
from parkpay.routers import stats as stats_router
from parkpay.services import stats_stream
from parkpay.services.stats_stream import StatsBroadcaster, register_change_listeners


class TestStatsBroadcaster:
    @pytest.mark.asyncio
    async def test_notify_wakes_subscriber(self):
        broadcaster = StatsBroadcaster()
        queue = await broadcaster.subscribe()
        assert broadcaster.subscriber_count == 1

        broadcaster.notify()
        assert await asyncio.wait_for(queue.get(), timeout=1) is True

        await broadcaster.unsubscribe(queue)
        assert broadcaster.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_bursts_collapse_into_one_wakeup(self):
        broadcaster = StatsBroadcaster()
        queue = await broadcaster.subscribe()

        for _ in range(5):
            broadcaster.notify()
        await asyncio.sleep(0)

        assert queue.qsize() == 1

    @pytest.mark.asyncio
    async def test_notify_from_worker_thread(self):
        broadcaster = StatsBroadcaster()
        queue = await broadcaster.subscribe()

        await asyncio.to_thread(broadcaster.notify)

        assert await asyncio.wait_for(queue.get(), timeout=1) is True


class TestChangeListeners:
    @pytest.fixture
    def factory(self, tables):
        factory = sessionmaker(bind=engine)
        register_change_listeners(factory)
        register_change_listeners(factory)   # second call is a no-op
        return factory

    def test_commit_touching_tickets_notifies_once(self, factory):
        with patch.object(stats_stream.broadcaster, "notify") as notify:
            session = factory()
            session.add(Ticket(code="PARK001", status="available", created_at=datetime.utcnow()))
            session.commit()
            session.close()

        notify.assert_called_once()

    def test_unrelated_tables_do_not_notify(self, factory):
        with patch.object(stats_stream.broadcaster, "notify") as notify:
            session = factory()
            session.add(Staff(first_name="A", last_name="B", email="a@b.c", role="admin"))
            session.commit()
            session.close()

        notify.assert_not_called()

    def test_rolled_back_changes_do_not_notify(self, factory):
        with patch.object(stats_stream.broadcaster, "notify") as notify:
            session = factory()
            session.add(Ticket(code="PARK001", status="available"))
            session.flush()
            session.rollback()
            session.commit()
            session.close()

        notify.assert_not_called()


def frame_payload(frame: str) -> dict:
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    return json.loads(frame[len("data: "):])


class TestStatsStreamEndpoint:
    @pytest.mark.asyncio
    async def test_pushes_on_connect_and_after_each_commit(self, tables):
        register_change_listeners(SessionLocal)
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=False)

        response = await stats_router.stats_stream(request)
        assert response.media_type == "text/event-stream"
        frames = response.body_iterator

        first = frame_payload(await asyncio.wait_for(frames.__anext__(), timeout=5))
        assert first["total_tickets"] == 0
        assert stats_stream.broadcaster.subscriber_count == 1

        session = SessionLocal()
        session.add(Ticket(code="PARK001", status="available", created_at=datetime.utcnow()))
        session.commit()
        session.close()

        second = frame_payload(await asyncio.wait_for(frames.__anext__(), timeout=5))
        assert second["total_tickets"] == 1
        assert second["available_tickets"] == 1

        await frames.aclose()
        assert stats_stream.broadcaster.subscriber_count == 0
