import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

from app.core.config import Settings
from app.core.enums import EventType
from app.core.exceptions import DependencyError
from app.features.events.dispatcher import EventDispatcher
from app.features.events.handlers import build_event_dispatcher
from app.features.events.runner import BackgroundRunner
from app.features.events.schemas import TickSampleEvent, telemetry_event_adapter


def tick_event():
    return TickSampleEvent(type="tps_update", server="survival", tps=19.0)


async def test_dispatch_calls_exactly_one_handler():
    on_tick = AsyncMock(return_value="handled")
    on_connection = AsyncMock()
    dispatcher = EventDispatcher(
        {EventType.TPS_UPDATE: on_tick, EventType.CONNECTION: on_connection}
    )
    event = tick_event()

    assert await dispatcher.dispatch(event) == "handled"
    on_tick.assert_awaited_once_with(event)
    on_connection.assert_not_awaited()


async def test_unregistered_type_is_a_noop():
    dispatcher = EventDispatcher({})

    assert await dispatcher.dispatch(tick_event()) is None


def test_production_wiring_covers_every_event_type(alert_dispatcher):
    dispatcher = build_event_dispatcher(alert_dispatcher, Settings())

    assert set(dispatcher.event_types) == set(EventType)


async def test_production_handler_opens_its_own_session(alert_dispatcher):
    opened = []
    session = MagicMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()

    @asynccontextmanager
    async def session_scope():
        opened.append(session)
        yield session

    dispatcher = build_event_dispatcher(
        alert_dispatcher, Settings(), session_scope=session_scope
    )
    event = telemetry_event_adapter.validate_python(
        {"type": "player_impact", "uuid": "acc-1", "server": "survival"}
    )

    await dispatcher.dispatch(event)

    assert opened == [session]
    session.add.assert_called_once()
    session.commit.assert_awaited_once()


async def test_runner_isolates_handler_errors():
    failing = AsyncMock(side_effect=DependencyError("store down"))
    runner = BackgroundRunner(EventDispatcher({EventType.TPS_UPDATE: failing}))

    task = runner.submit(tick_event())
    await task

    assert task.exception() is None
    failing.assert_awaited_once()


async def test_runner_isolates_unexpected_errors():
    runner = BackgroundRunner(
        EventDispatcher({EventType.TPS_UPDATE: AsyncMock(side_effect=KeyError("x"))})
    )

    task = runner.submit(tick_event())
    await task

    assert task.exception() is None


async def test_runner_bounds_handler_time():
    async def slow(event):
        await asyncio.sleep(10)

    runner = BackgroundRunner(
        EventDispatcher({EventType.TPS_UPDATE: slow}), timeout_seconds=0.01
    )

    task = runner.submit(tick_event())
    await asyncio.wait_for(task, timeout=1)

    assert task.exception() is None


async def test_runner_keeps_tasks_until_done_and_drains():
    release = asyncio.Event()

    async def blocked(event):
        await release.wait()

    runner = BackgroundRunner(EventDispatcher({EventType.TPS_UPDATE: blocked}))
    runner.submit(tick_event())
    runner.submit(tick_event())
    await asyncio.sleep(0)
    assert runner.pending == 2

    release.set()
    await runner.drain(timeout=1)
    await asyncio.sleep(0)

    assert runner.pending == 0


async def test_drain_cancels_tasks_past_timeout():
    async def forever(event):
        await asyncio.Event().wait()

    runner = BackgroundRunner(EventDispatcher({EventType.TPS_UPDATE: forever}))
    task = runner.submit(tick_event())

    await runner.drain(timeout=0.01)

    assert task.cancelled()


async def test_drain_without_tasks_returns_immediately():
    runner = BackgroundRunner(EventDispatcher({}))

    await runner.drain(timeout=0)

    assert runner.pending == 0
