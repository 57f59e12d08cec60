"""
Unit tests for the lock guard.
"""

import asyncio

import pytest

from joblock.config import Settings
from joblock.constants import LOCK_MARKER
from joblock.errors import StaleLockError, StoreCommunicationError
from joblock.lock import LockGuard, LockInspector, LockKeyDeriver, constant_key
from joblock.store import MemoryLockStore


class WorkFailed(Exception):
    pass


class TestLockGuardRun:
    """Tests for LockGuard.run on an in-memory store."""

    async def test_runs_work_and_releases(self, guard: LockGuard, memory_store: MemoryLockStore):
        """Test a free lock runs the work and leaves no key behind."""

        async def work() -> int:
            return 42

        result = await guard.run("Job", [1], work)

        assert result.acquired is True
        assert result.skipped is False
        assert result.value == 42
        assert result.key == "locked:Job-[1]"
        assert await memory_store.exists("locked:Job-[1]") is False

    async def test_sync_work_supported(self, guard: LockGuard):
        result = await guard.run("Job", [1], lambda: "done")

        assert result.value == "done"

    async def test_skips_when_lock_held(self, guard: LockGuard, memory_store: MemoryLockStore):
        """Test a held lock skips the work and leaves the key in place."""
        await memory_store.set_if_absent("locked:Job-[1]", LOCK_MARKER)
        calls = []

        async def work() -> None:
            calls.append(1)

        result = await guard.run("Job", [1], work)

        assert result.skipped is True
        assert result.value is None
        assert calls == []
        assert await memory_store.exists("locked:Job-[1]") is True

    async def test_work_failure_propagates_after_release(
        self, guard: LockGuard, memory_store: MemoryLockStore
    ):
        """Test a failing work is re-raised and the lock is still released."""

        async def work() -> None:
            raise WorkFailed("boom")

        with pytest.raises(WorkFailed, match="boom"):
            await guard.run("Job", [1], work)

        assert await memory_store.exists("locked:Job-[1]") is False

    async def test_reacquire_after_failure(self, guard: LockGuard):
        """Test the same key can be acquired again after a failed run."""

        def failing() -> None:
            raise WorkFailed()

        with pytest.raises(WorkFailed):
            await guard.run("Job", [1], failing)

        result = await guard.run("Job", [1], lambda: "again")
        assert result.acquired is True
        assert result.value == "again"

    async def test_release_on_cancellation(
        self, guard: LockGuard, memory_store: MemoryLockStore
    ):
        """Test a cancelled run still releases its lock."""
        started = asyncio.Event()

        async def work() -> None:
            started.set()
            await asyncio.Event().wait()

        task = asyncio.create_task(guard.run("Job", [1], work))
        await started.wait()
        assert await memory_store.exists("locked:Job-[1]") is True

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert await memory_store.exists("locked:Job-[1]") is False


class TestLockGuardContention:
    """Tests for mutual exclusion between concurrent runs."""

    async def test_identical_keys_exclude_each_other(self, guard: LockGuard):
        """Test exactly one of two overlapping runs executes."""
        started = asyncio.Event()
        release = asyncio.Event()

        async def first_work() -> str:
            started.set()
            await release.wait()
            return "first"

        async def second_work() -> str:
            return "second"

        first_task = asyncio.create_task(guard.run("Job", [1], first_work))
        await started.wait()

        second = await guard.run("Job", [1], second_work)
        release.set()
        first = await first_task

        assert first.acquired is True
        assert first.value == "first"
        assert second.skipped is True

    async def test_gathered_runs_single_winner(self, guard: LockGuard):
        """Test many concurrent runs on one key produce one execution."""
        executions = []

        async def work() -> None:
            executions.append(1)
            await asyncio.sleep(0.01)

        results = await asyncio.gather(*(guard.run("Job", [1], work) for _ in range(10)))

        assert sum(r.acquired for r in results) == 1
        assert len(executions) == 1

    async def test_distinct_arguments_run_independently(
        self, guard: LockGuard, memory_store: MemoryLockStore
    ):
        """Test different argument sequences hold independent locks."""
        both_started = asyncio.Barrier(2)

        async def work(n: int) -> int:
            await both_started.wait()
            return n

        results = await asyncio.wait_for(
            asyncio.gather(
                guard.run("Job", [1], lambda: work(1)),
                guard.run("Job", [2], lambda: work(2)),
            ),
            timeout=5,
        )

        assert [r.value for r in results] == [1, 2]
        assert all(r.acquired for r in results)
        assert len(memory_store) == 0

    async def test_constant_key_override_serializes_job_type(
        self, memory_store: MemoryLockStore
    ):
        """Test a constant key makes different arguments contend."""
        deriver = LockKeyDeriver()
        deriver.register("Graph", constant_key("network-graph"))
        guard = LockGuard(memory_store, deriver)
        started = asyncio.Event()
        release = asyncio.Event()
        executed = []

        async def first_work() -> None:
            executed.append(1)
            started.set()
            await release.wait()

        async def second_work() -> None:
            executed.append(2)

        first_task = asyncio.create_task(guard.run("Graph", [1], first_work))
        await started.wait()
        second = await guard.run("Graph", [2], second_work)
        release.set()
        first = await first_task

        assert first.key == second.key == "network-graph"
        assert first.acquired is True
        assert second.skipped is True
        assert executed == [1]

    async def test_inspector_sees_lock_only_while_held(
        self, guard: LockGuard, inspector: LockInspector
    ):
        started = asyncio.Event()
        release = asyncio.Event()

        async def work() -> None:
            started.set()
            await release.wait()

        assert await inspector.is_locked("Job", [1]) is False

        task = asyncio.create_task(guard.run("Job", [1], work))
        await started.wait()
        assert await inspector.is_locked("Job", [1]) is True

        release.set()
        await task
        assert await inspector.is_locked("Job", [1]) is False


class TestLockGuardStoreFailures:
    """Tests for store communication failures."""

    async def test_acquire_failure_propagates(self, flaky_store):
        """Test a failed acquisition raises and never runs the work."""
        flaky_store.fail_on.add("set_if_absent")
        guard = LockGuard(flaky_store)
        calls = []

        with pytest.raises(StoreCommunicationError) as exc_info:
            await guard.run("Job", [1], lambda: calls.append(1))

        assert not isinstance(exc_info.value, StaleLockError)
        assert exc_info.value.operation == "set_if_absent"
        assert calls == []
        assert [op for op, _ in flaky_store.calls] == ["set_if_absent"]

    async def test_release_failure_raises_stale_lock(self, flaky_store):
        """Test a failed release is surfaced as a stale lock."""
        flaky_store.fail_on.add("delete")
        guard = LockGuard(flaky_store)

        with pytest.raises(StaleLockError) as exc_info:
            await guard.run("Job", [1], lambda: 42)

        assert exc_info.value.key == "locked:Job-[1]"
        assert isinstance(exc_info.value.__cause__, StoreCommunicationError)
        assert await flaky_store.exists("locked:Job-[1]") is True

    async def test_release_failure_keeps_work_error_as_context(self, flaky_store):
        flaky_store.fail_on.add("delete")
        guard = LockGuard(flaky_store)

        def failing() -> None:
            raise WorkFailed("boom")

        with pytest.raises(StaleLockError) as exc_info:
            await guard.run("Job", [1], failing)

        assert isinstance(exc_info.value.__context__.__context__, WorkFailed)

    async def test_single_store_call_each_way(self, flaky_store):
        """Test one acquire and one release per successful run, no retries."""
        guard = LockGuard(flaky_store)

        await guard.run("Job", [1], lambda: None)

        assert flaky_store.calls == [
            ("set_if_absent", "locked:Job-[1]"),
            ("delete", "locked:Job-[1]"),
        ]

    async def test_skip_issues_no_delete(self, flaky_store):
        await flaky_store.set_if_absent("locked:Job-[1]", LOCK_MARKER)
        flaky_store.calls.clear()
        guard = LockGuard(flaky_store)

        result = await guard.run("Job", [1], lambda: None)

        assert result.skipped is True
        assert flaky_store.calls == [("set_if_absent", "locked:Job-[1]")]


class TestLockGuardOptions:
    """Tests for optional expiry and owner tokens."""

    async def test_owner_tokens_release_with_compare_and_delete(self, flaky_store):
        guard = LockGuard(flaky_store, owner_tokens=True)
        seen = []

        async def work() -> None:
            seen.append(await flaky_store.get("locked:Job-[1]"))

        await guard.run("Job", [1], work)

        assert seen[0] not in (None, LOCK_MARKER)
        assert [op for op, _ in flaky_store.calls] == ["set_if_absent", "delete_if_value"]
        assert await flaky_store.exists("locked:Job-[1]") is False

    async def test_owner_tokens_do_not_remove_foreign_lock(
        self, memory_store: MemoryLockStore
    ):
        """Test a run whose lock was replaced leaves the new holder's lock alone."""
        guard = LockGuard(memory_store, owner_tokens=True)

        async def work() -> None:
            await memory_store.delete("locked:Job-[1]")
            await memory_store.set_if_absent("locked:Job-[1]", "other-owner")

        await guard.run("Job", [1], work)

        assert await memory_store.get("locked:Job-[1]") == "other-owner"

    async def test_without_owner_tokens_foreign_lock_is_removed(
        self, guard: LockGuard, memory_store: MemoryLockStore
    ):
        async def work() -> None:
            await memory_store.delete("locked:Job-[1]")
            await memory_store.set_if_absent("locked:Job-[1]", "other-owner")

        await guard.run("Job", [1], work)

        assert await memory_store.exists("locked:Job-[1]") is False

    def test_invalid_ttl(self, memory_store: MemoryLockStore):
        with pytest.raises(ValueError):
            LockGuard(memory_store, ttl_seconds=0)

    def test_from_settings(self, memory_store: MemoryLockStore):
        settings = Settings(lock_ttl_seconds=30, lock_owner_tokens=True)

        guard = LockGuard.from_settings(memory_store, settings)

        assert guard.ttl_seconds == 30
        assert guard.owner_tokens is True

    async def test_force_release(self, guard: LockGuard, memory_store: MemoryLockStore):
        """Test a stale lock can be cleared manually."""
        await memory_store.set_if_absent("locked:Job-[1]", LOCK_MARKER)

        await guard.force_release("Job", [1])

        result = await guard.run("Job", [1], lambda: "ran")
        assert result.value == "ran"


class BrokenDeleteStore(MemoryLockStore):
    """Memory store whose delete fails with a non-lock exception."""

    async def delete(self, key):
        raise OSError("socket closed")


class TestLockGuardCollaborators:
    """Tests for the collaborators a guard is built with."""

    def test_keeps_empty_store_and_deriver(self):
        store = MemoryLockStore()
        deriver = LockKeyDeriver()

        guard = LockGuard(store, deriver)
        inspector = LockInspector(store, deriver)

        assert guard.store is store
        assert guard.key_deriver is deriver
        assert inspector.store is store
        assert inspector.key_deriver is deriver

    async def test_unexpected_release_error_is_stale_lock(self):
        """Test any exception from the store's delete surfaces as a stale lock."""
        store = BrokenDeleteStore()
        guard = LockGuard(store)

        with pytest.raises(StaleLockError) as exc_info:
            await guard.run("Job", [1], lambda: 42)

        assert exc_info.value.key == "locked:Job-[1]"
        assert isinstance(exc_info.value.__cause__, OSError)
        assert await store.exists("locked:Job-[1]") is True
