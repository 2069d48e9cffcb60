import asyncio
import io
import threading

import pytest

from vcf_consensus.helpers.errors import SinkError
from vcf_consensus.helpers.sinks import SampleSink, SinkPool


class GatedHandle(io.StringIO):
    """Handle whose writes block until the gate opens."""

    def __init__(self, gate):
        super().__init__()
        self.gate = gate

    def write(self, s):
        self.gate.wait(timeout=5)
        return super().write(s)


class FailingHandle(io.StringIO):
    def write(self, s):
        raise OSError("No space left on device")


def test_write_reports_full_channel():
    handle = io.StringIO()

    async def scenario():
        sink = SampleSink("S1", handle, channel_size=1).start()
        accepted = sink.write("AC")
        refused = sink.write("GT")
        await sink.send("GT")
        await sink.close()
        return accepted, refused

    accepted, refused = asyncio.run(scenario())

    assert accepted is True
    assert refused is False
    assert handle.getvalue() == "ACGT"


def test_fragments_keep_their_order():
    handle = io.StringIO()
    fragments = [f"{i}," for i in range(200)]

    async def scenario():
        sink = SampleSink("S1", handle, channel_size=3).start()
        for fragment in fragments:
            await sink.send(fragment)
        await sink.close()
        return sink.written

    written = asyncio.run(scenario())

    assert handle.getvalue() == "".join(fragments)
    assert written == len("".join(fragments))


def test_slow_sample_does_not_hold_up_others():
    gate = threading.Event()
    slow = GatedHandle(gate)
    fast = io.StringIO()

    async def scenario():
        pool = SinkPool(["slow", "fast"], [slow, fast], channel_size=1).start()

        async def feed_slow():
            for text in "ABCD":
                await pool.send(0, text)

        slow_task = asyncio.create_task(feed_slow())
        for text in "ABCD":
            await asyncio.wait_for(pool.send(1, text), timeout=2)
        # wait until the fast writer has caught up
        for _ in range(200):
            if fast.getvalue() == "ABCD":
                break
            await asyncio.sleep(0.01)

        fast_done_first = fast.getvalue() == "ABCD" and not slow_task.done()
        gate.set()
        await slow_task
        await pool.close()
        return fast_done_first

    assert asyncio.run(scenario())
    assert slow.getvalue() == "ABCD"
    assert fast.getvalue() == "ABCD"


def test_send_all_waits_for_every_sample():
    handles = [io.StringIO() for _ in range(3)]

    async def scenario():
        async with SinkPool(["a", "b", "c"], handles, channel_size=1) as pool:
            await pool.send_all(["A", "CC", "-"])
            await pool.send_all(["T", "GG", "N"])

    asyncio.run(scenario())

    assert [h.getvalue() for h in handles] == ["AT", "CCGG", "-N"]


def test_send_all_needs_one_text_per_sample():
    async def scenario():
        async with SinkPool(["a", "b"], [io.StringIO(), io.StringIO()]) as pool:
            await pool.send_all(["A"])

    with pytest.raises(ValueError):
        asyncio.run(scenario())


def test_write_failure_surfaces_on_close():
    async def scenario():
        sink = SampleSink("S1", FailingHandle()).start()
        await sink.send("ACGT")
        await sink.close()

    with pytest.raises(SinkError, match="S1"):
        asyncio.run(scenario())


def test_closed_handle_is_a_sink_error():
    handle = io.StringIO()
    handle.close()

    async def scenario():
        async with SinkPool(["S1"], [handle]) as pool:
            await pool.send(0, "A")

    with pytest.raises(SinkError):
        asyncio.run(scenario())


def test_failed_sink_rejects_further_writes():
    async def scenario():
        sink = SampleSink("S1", FailingHandle()).start()
        await sink.send("A")
        for _ in range(200):
            if sink.error is not None:
                break
            await asyncio.sleep(0.01)
        try:
            sink.write("C")
        finally:
            await sink.abort()

    with pytest.raises(SinkError):
        asyncio.run(scenario())


def test_sink_must_be_started():
    async def scenario():
        SampleSink("S1", io.StringIO()).write("A")

    with pytest.raises(SinkError, match="never started"):
        asyncio.run(scenario())


def test_writes_after_close_are_rejected():
    async def scenario():
        sink = SampleSink("S1", io.StringIO()).start()
        await sink.close()
        await sink.send("A")

    with pytest.raises(SinkError, match="closed"):
        asyncio.run(scenario())


def test_pool_needs_one_handle_per_name():
    with pytest.raises(ValueError):
        SinkPool(["a", "b"], [io.StringIO()])


class BrokenHandle(io.StringIO):
    def write(self, s):
        raise RuntimeError("handle went away")


def test_unexpected_handle_error_fails_instead_of_hanging():
    async def scenario():
        sink = SampleSink("S1", BrokenHandle(), channel_size=1).start()
        try:
            for text in "ABCDEF":
                await asyncio.wait_for(sink.send(text), timeout=2)
            await asyncio.wait_for(sink.close(), timeout=2)
        finally:
            await sink.abort()

    with pytest.raises(SinkError, match="handle went away"):
        asyncio.run(scenario())
