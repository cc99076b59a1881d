"""Tests for the keyed batch queue."""

import asyncio

from networth.live.queue import KeyedBatchQueue


def test_repeated_keys_run_once():
    calls = []

    async def runner(key):
        calls.append(key)

    async def scenario():
        queue = KeyedBatchQueue(runner)
        for key in ["a", "b", "a", "a", "c", "b"]:
            queue.enqueue(key)
        assert queue.pending == ("a", "b", "c")
        await queue.join()

    asyncio.run(scenario())
    assert calls == ["a", "b", "c"]


def test_jobs_run_one_at_a_time():
    running = []
    overlaps = []

    async def runner(key):
        if running:
            overlaps.append(key)
        running.append(key)
        await asyncio.sleep(0)
        running.remove(key)

    async def scenario():
        queue = KeyedBatchQueue(runner)
        for key in range(5):
            queue.enqueue(key)
        await queue.join()

    asyncio.run(scenario())
    assert overlaps == []


def test_keys_arriving_mid_batch_form_next_batch():
    calls = []

    async def scenario():
        holder = {}

        async def runner(key):
            calls.append(key)
            if key == "first" and calls.count("first") == 1:
                # Re-enqueued while its own batch runs: runs again next batch
                holder["queue"].enqueue("first")
                holder["queue"].enqueue("second")

        queue = KeyedBatchQueue(runner)
        holder["queue"] = queue
        queue.enqueue("first")
        queue.enqueue("other")
        await queue.join()

    asyncio.run(scenario())
    assert calls == ["first", "other", "first", "second"]


def test_failure_is_logged_and_others_still_run(caplog):
    calls = []

    async def runner(key):
        if key == "bad":
            raise RuntimeError("boom")
        calls.append(key)

    async def scenario():
        queue = KeyedBatchQueue(runner, name="test-queue")
        for key in ["good", "bad", "also-good"]:
            queue.enqueue(key)
        await queue.join()

    asyncio.run(scenario())
    assert calls == ["good", "also-good"]
    assert "test-queue failed to process 'bad'" in caplog.text


def test_join_without_work_returns_immediately():
    async def runner(key):
        pass

    async def scenario():
        queue = KeyedBatchQueue(runner)
        await asyncio.wait_for(queue.join(), timeout=1)

    asyncio.run(scenario())


def test_close_drops_pending_and_rejects_new_keys():
    calls = []
    started = None

    async def scenario():
        nonlocal started
        started = asyncio.Event()
        release = asyncio.Event()

        async def runner(key):
            calls.append(key)
            started.set()
            await release.wait()

        queue = KeyedBatchQueue(runner)
        queue.enqueue(1)
        queue.enqueue(2)
        await started.wait()
        await queue.close()

        assert queue.closed
        assert queue.pending == ()
        assert queue.enqueue(3) is False
        await asyncio.wait_for(queue.join(), timeout=1)

    asyncio.run(scenario())
    assert calls == [1]


def test_close_from_inside_a_job():
    calls = []

    async def scenario():
        holder = {}

        async def runner(key):
            calls.append(key)
            await holder["queue"].close()

        queue = KeyedBatchQueue(runner)
        holder["queue"] = queue
        queue.enqueue("a")
        queue.enqueue("b")
        await asyncio.wait_for(queue.join(), timeout=1)

    asyncio.run(scenario())
    assert calls == ["a"]
