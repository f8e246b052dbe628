import asyncio

import pytest

from agentmeta.exceptions import SubscriptionStateError
from agentmeta.interfaces import StreamEvent
from agentmeta.projection import ItemState, ViewState
from agentmeta.watcher import MetadataWatcher

from helpers import data_event, make_item, settle


class TestMetadataWatcher:
    """Unit tests for MetadataWatcher."""

    def test_view_without_agent_is_loading(self, stream_factory):
        watcher = MetadataWatcher(stream_factory, refresh_interval=1)

        assert watcher.agent_id is None
        assert watcher.view().state is ViewState.LOADING

    @pytest.mark.anyio
    async def test_watch_projects_current_agent(self, stream_factory):
        async with MetadataWatcher(stream_factory, refresh_interval=1) as watcher:
            await watcher.watch("agent-1")
            assert watcher.view().state is ViewState.LOADING

            stream_factory.last().push(data_event())
            await settle()
            assert watcher.view().state is ViewState.EMPTY

            stream_factory.last().push(data_event(make_item("cpu", value="12%")))
            await settle()
            view = watcher.view()
            assert view.state is ViewState.READY
            assert view.items[0].value == "12%"

    @pytest.mark.anyio
    async def test_switching_agents_discards_previous_data(self, stream_factory):
        async with MetadataWatcher(stream_factory, refresh_interval=1) as watcher:
            await watcher.watch("agent-1")
            first = stream_factory.last("agent-1")
            first.push(data_event(make_item("old")))
            await settle()

            await watcher.watch("agent-2")

            assert first.closed
            assert watcher.agent_id == "agent-2"
            assert watcher.current() is None
            assert watcher.view().state is ViewState.LOADING

            # a late frame from the previous agent is never shown
            first.push(data_event(make_item("late")))
            await settle()
            assert watcher.view().state is ViewState.LOADING

            stream_factory.last("agent-2").push(data_event(make_item("new")))
            await settle()
            assert [item.key for item in watcher.view()] == ["new"]

    @pytest.mark.anyio
    async def test_watch_same_agent_keeps_subscription(self, stream_factory):
        async with MetadataWatcher(stream_factory, refresh_interval=1) as watcher:
            first = await watcher.watch("agent-1")
            second = await watcher.watch("agent-1")

            assert first is second
            assert len(stream_factory.streams) == 1

    @pytest.mark.anyio
    async def test_close_releases_subscription(self, stream_factory):
        watcher = MetadataWatcher(stream_factory, refresh_interval=1)
        await watcher.watch("agent-1")

        await watcher.close()
        await watcher.close()

        assert watcher.is_closed
        assert stream_factory.last().closed
        assert watcher.view().state is ViewState.LOADING
        with pytest.raises(SubscriptionStateError):
            await watcher.watch("agent-2")

    @pytest.mark.anyio
    async def test_context_exit_on_error_releases_subscription(self, stream_factory):
        with pytest.raises(RuntimeError):
            async with MetadataWatcher(stream_factory, refresh_interval=1) as watcher:
                await watcher.watch("agent-1")
                raise RuntimeError("consumer failed")

        assert stream_factory.last().closed

    @pytest.mark.anyio
    async def test_unwatch_keeps_watcher_usable(self, stream_factory):
        async with MetadataWatcher(stream_factory, refresh_interval=1) as watcher:
            await watcher.watch("agent-1")
            await watcher.unwatch()

            assert watcher.agent_id is None
            assert stream_factory.last().closed

            await watcher.watch("agent-2")
            assert watcher.agent_id == "agent-2"

    @pytest.mark.anyio
    async def test_errors_of_current_agent_are_reported(self, stream_factory):
        errors = []
        async with MetadataWatcher(stream_factory, refresh_interval=1, on_error=errors.append) as watcher:
            await watcher.watch("agent-1")
            stream_factory.last().push(StreamEvent(type="error", data="lost"))
            await settle()

            assert len(errors) == 1
            assert watcher.last_error is errors[0]

    @pytest.mark.anyio
    async def test_view_ages_items_with_clock(self, stream_factory, clock):
        async with MetadataWatcher(stream_factory, refresh_interval=1, clock=clock) as watcher:
            await watcher.watch("agent-1")
            stream_factory.last().push(data_event(make_item(interval=10, timeout=5, age=15)))
            await settle()

            assert watcher.view().items[0].state is ItemState.SUCCESS

            clock.advance(6)
            assert watcher.view().items[0].state is ItemState.STALE

    @pytest.mark.anyio
    async def test_views_yield_on_update_and_on_tick(self, stream_factory, clock):
        async with MetadataWatcher(stream_factory, refresh_interval=0.01, clock=clock) as watcher:
            await watcher.watch("agent-1")
            stream = stream_factory.last()
            views = watcher.views()

            first = await views.__anext__()
            assert first.state is ViewState.LOADING

            stream.push(data_event(make_item(interval=10, timeout=5, age=15)))
            second = await asyncio.wait_for(views.__anext__(), timeout=1)
            assert second.items[0].state is ItemState.SUCCESS

            # no new frame: the periodic tick re-evaluates staleness
            clock.advance(30)
            third = await asyncio.wait_for(views.__anext__(), timeout=1)
            assert third.items[0].state is ItemState.STALE

            await views.aclose()

    @pytest.mark.anyio
    async def test_views_end_when_closed(self, stream_factory):
        watcher = MetadataWatcher(stream_factory, refresh_interval=5)
        await watcher.watch("agent-1")

        async def consume():
            return [view async for view in watcher.views()]

        task = asyncio.create_task(consume())
        await settle()
        await watcher.close()

        collected = await asyncio.wait_for(task, timeout=1)
        assert len(collected) == 1

    @pytest.mark.anyio
    async def test_concurrent_views_are_all_woken_by_update(self, stream_factory):
        async with MetadataWatcher(stream_factory, refresh_interval=5) as watcher:
            await watcher.watch("agent-1")
            first_views = watcher.views()
            second_views = watcher.views()
            assert (await first_views.__anext__()).state is ViewState.LOADING
            assert (await second_views.__anext__()).state is ViewState.LOADING

            stream_factory.last().push(data_event(make_item("cpu")))
            first = await asyncio.wait_for(first_views.__anext__(), timeout=1)
            second = await asyncio.wait_for(second_views.__anext__(), timeout=1)

            assert first.state is ViewState.READY
            assert second.state is ViewState.READY

            await first_views.aclose()
            await second_views.aclose()

    def test_explicit_refresh_interval_is_kept(self, stream_factory):
        assert MetadataWatcher(stream_factory, refresh_interval=0.25).refresh_interval == 0.25

    @pytest.mark.parametrize("refresh_interval", [0, -1])
    def test_non_positive_refresh_interval_raises(self, stream_factory, refresh_interval):
        with pytest.raises(ValueError, match="refresh_interval"):
            MetadataWatcher(stream_factory, refresh_interval=refresh_interval)
