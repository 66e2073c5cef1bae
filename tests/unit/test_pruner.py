"""
Unit tests for background pruning.

The pruner's sleep is replaced with a ManualTimer, so each wait between
passes lasts exactly until the test calls ``timer.fire()``. A pass has
completed once the pruner enters the timer again
(``await timer.wait_for_sleep()``).
"""

import asyncio
import math

import pytest

from pgrest_session.config import StoreSettings
from pgrest_session.errors import TransportError
from pgrest_session.session import PostgrestSessionStore, Pruner


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


def pruning_settings(interval=30) -> StoreSettings:
    return StoreSettings(prune_session_interval=interval)


class TestStorePruning:
    """Pruning as driven by PostgrestSessionStore."""

    @pytest.mark.asyncio
    async def test_first_pass_runs_at_startup(self, table, clock, timer):
        store = PostgrestSessionStore(
            pruning_settings(), endpoint=table, clock=clock, sleep=timer.sleep
        )

        await timer.wait_for_sleep()

        (filters,) = table.calls_to("delete")[0]
        assert [str(f) for f in filters] == [f"expire=lte.{math.floor(clock.now)}"]
        assert timer.delays == [30.0]
        await store.close()

    @pytest.mark.asyncio
    async def test_pass_deletes_rows_at_or_before_now(self, make_table, clock, timer):
        now = int(clock.now)
        table = make_table([
            {"sid": "past", "sess": {}, "expire": now - 10},
            {"sid": "now", "sess": {}, "expire": now},
            {"sid": "future", "sess": {}, "expire": now + 1000},
        ])
        store = PostgrestSessionStore(
            pruning_settings(), endpoint=table, clock=clock, sleep=timer.sleep
        )

        await timer.wait_for_sleep()

        assert [r["sid"] for r in table.rows] == ["future"]
        await store.close()

    @pytest.mark.asyncio
    async def test_reschedules_after_each_pass(self, table, clock, timer):
        store = PostgrestSessionStore(
            pruning_settings(5), endpoint=table, clock=clock, sleep=timer.sleep
        )
        await timer.wait_for_sleep()

        for expected in (2, 3):
            clock.advance(5)
            timer.fire()
            await timer.wait_for_sleep()
            assert len(table.calls_to("delete")) == expected

        assert timer.delays == [5.0, 5.0, 5.0]
        assert timer.pending == 1
        await store.close()

    @pytest.mark.asyncio
    async def test_no_pass_after_close(self, table, clock, timer):
        store = PostgrestSessionStore(
            pruning_settings(), endpoint=table, clock=clock, sleep=timer.sleep
        )
        await timer.wait_for_sleep()

        await store.close()
        await store.pruner.wait_stopped()
        timer.fire()
        await settle()

        assert len(table.calls_to("delete")) == 1
        assert timer.pending == 0
        assert not store.pruner.running

    @pytest.mark.asyncio
    async def test_disabled_pruning_never_deletes(self, table, clock, timer):
        store = PostgrestSessionStore(
            StoreSettings(prune_session_interval=False),
            endpoint=table,
            clock=clock,
            sleep=timer.sleep,
        )
        await store.start()
        await settle()

        assert table.calls_to("delete") == []
        assert timer.delays == []
        assert not store.pruner.running
        await store.close()

    @pytest.mark.asyncio
    async def test_failed_pass_is_reported_and_loop_continues(self, table, clock, timer):
        errors = []
        table.fail_with["delete"] = TransportError("refused")
        store = PostgrestSessionStore(
            pruning_settings(), endpoint=table, clock=clock, sleep=timer.sleep
        )
        store.add_error_listener(errors.append)

        await timer.wait_for_sleep()
        assert len(errors) == 1
        assert isinstance(errors[0], TransportError)

        del table.fail_with["delete"]
        timer.fire()
        await timer.wait_for_sleep()

        assert len(table.calls_to("delete")) == 2
        assert len(errors) == 1
        await store.close()

    @pytest.mark.asyncio
    async def test_removed_listener_is_not_called(self, table, clock, timer):
        errors = []
        table.fail_with["delete"] = TransportError("refused")
        store = PostgrestSessionStore(
            pruning_settings(), endpoint=table, clock=clock, sleep=timer.sleep
        )
        store.add_error_listener(errors.append)
        store.remove_error_listener(errors.append)
        store.remove_error_listener(errors.append)

        await timer.wait_for_sleep()

        assert errors == []
        await store.close()

    @pytest.mark.asyncio
    async def test_close_lets_in_flight_pass_finish(self, table, clock, timer):
        """Closing mid-pass neither cancels the delete nor schedules another pass."""
        release = asyncio.Event()
        entered = asyncio.Event()
        original_delete = table.delete

        async def slow_delete(filters):
            entered.set()
            await release.wait()
            await original_delete(filters)

        table.delete = slow_delete
        store = PostgrestSessionStore(
            pruning_settings(), endpoint=table, clock=clock, sleep=timer.sleep
        )
        await asyncio.wait_for(entered.wait(), 1)

        await store.close()
        release.set()
        await store.pruner.wait_stopped()

        assert len(table.calls_to("delete")) == 1
        assert timer.delays == []
        assert store.pruner.passes == 1

    def test_pruning_waits_for_event_loop(self, table, clock, timer):
        """Outside a running loop the store defers pruning to start()."""
        store = PostgrestSessionStore(
            pruning_settings(), endpoint=table, clock=clock, sleep=timer.sleep
        )

        assert not store.pruner.running

        async def scenario():
            async with store:
                await timer.wait_for_sleep()
            assert store.closed

        asyncio.run(scenario())

        assert len(table.calls_to("delete")) == 1

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, table, clock, timer):
        store = PostgrestSessionStore(
            pruning_settings(), endpoint=table, clock=clock, sleep=timer.sleep
        )
        await store.start()
        await store.start()

        await timer.wait_for_sleep()
        await settle()

        assert len(table.calls_to("delete")) == 1
        assert timer.pending == 1
        await store.close()

    @pytest.mark.asyncio
    async def test_manual_prune_surfaces_errors(self, table, clock, store_settings):
        store = PostgrestSessionStore(store_settings, endpoint=table, clock=clock)
        table.fail_with["delete"] = TransportError("refused")

        with pytest.raises(TransportError):
            await store.prune_sessions()


class TestPruner:
    """The Pruner loop on its own."""

    @pytest.mark.asyncio
    async def test_listener_errors_do_not_stop_the_loop(self, timer):
        calls = []

        async def prune():
            calls.append(1)
            raise RuntimeError("boom")

        def bad_listener(error):
            raise ValueError("listener broke")

        pruner = Pruner(prune, 10, sleep=timer.sleep, on_error=bad_listener)
        assert pruner.start() is True

        await timer.wait_for_sleep()
        timer.fire()
        await timer.wait_for_sleep()

        assert len(calls) == 2
        assert pruner.passes == 2
        pruner.stop()
        await pruner.wait_stopped()
        assert not pruner.running

    @pytest.mark.asyncio
    async def test_disabled_pruner_does_not_start(self, timer):
        async def prune():
            raise AssertionError("should not run")

        pruner = Pruner(prune, False, sleep=timer.sleep)

        assert pruner.enabled is False
        assert pruner.start() is False
        await pruner.wait_stopped()

    @pytest.mark.asyncio
    async def test_stopped_before_first_pass(self, timer):
        calls = []

        async def prune():
            calls.append(1)

        pruner = Pruner(prune, 10, sleep=timer.sleep)
        pruner.start()
        pruner.stop()
        await pruner.wait_stopped()

        assert calls == []
        assert pruner.start() is False
