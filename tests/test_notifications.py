import asyncio

import pytest

from conftest import FakeClock
from urban_node.urban_runtime import notifications as nt


def test_notice_expires_lazily_on_read():
    clock = FakeClock(100.0)
    board = nt.NotificationBoard(clock=clock)

    board.post(nt.SUCCESS, nt.MSG_SUBMITTED, ttl=2)
    assert board.current().message == nt.MSG_SUBMITTED

    clock.advance(2)
    assert board.current() is None


def test_notice_without_ttl_stays_until_replaced():
    clock = FakeClock()
    board = nt.NotificationBoard(clock=clock)

    board.post(nt.PENDING, nt.MSG_ENCRYPTING)
    clock.advance(3600)
    assert board.current().status == nt.PENDING

    board.post(nt.ERROR, "Submission failed: boom", ttl=3)
    assert board.current().status == nt.ERROR


def test_unknown_status_rejected():
    with pytest.raises(ValueError):
        nt.NotificationBoard().post("maybe", "?")


@pytest.mark.asyncio
async def test_scheduled_clear_notifies_listeners():
    board = nt.NotificationBoard()
    seen = []
    board.subscribe(seen.append)

    board.post(nt.SUCCESS, "done", ttl=0.01)
    await asyncio.sleep(0.05)

    assert board.current() is None
    assert seen[0].message == "done"
    assert seen[-1] is None


@pytest.mark.asyncio
async def test_replaced_notice_is_not_cleared_by_old_timer():
    board = nt.NotificationBoard()

    board.post(nt.SUCCESS, "old", ttl=0.01)
    board.post(nt.PENDING, "new")
    await asyncio.sleep(0.05)

    assert board.current().message == "new"
