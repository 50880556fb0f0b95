"""Tests for the raw reader and its detached poller thread."""
import asyncio
import logging
import threading

import pytest

from kvshell.cancel import CancelScope
from kvshell.terminal import Key, KeyKind
from kvshell.terminal.reader import RawReader


class RecordingReceiver:
    def __init__(self):
        self.batches = []

    async def input(self, events):
        self.batches.append(events)


class ScriptedInput:
    """Returns scripted chunks, then blocks until released."""

    def __init__(self, *chunks):
        self._chunks = list(chunks)
        self.released = threading.Event()
        self.reads = 0

    def read(self):
        self.reads += 1
        if self._chunks:
            chunk = self._chunks.pop(0)
            if isinstance(chunk, Exception):
                raise chunk
            return chunk
        self.released.wait()
        return b""


@pytest.fixture
def scripted():
    holder = []

    def make(*chunks):
        source = ScriptedInput(*chunks)
        holder.append(source)
        return source

    yield make

    # Let abandoned pollers see end of input and exit
    for source in holder:
        source.released.set()


async def wait_for_batches(receiver, count, timeout=1.0):
    async def poll():
        while len(receiver.batches) < count:
            await asyncio.sleep(0.01)
    await asyncio.wait_for(poll(), timeout=timeout)


class GatedReceiver(RecordingReceiver):
    """Holds each batch until the test opens the gate."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()

    async def input(self, events):
        self.batches.append(events)
        await self.gate.wait()


class TestRawReader:
    """Tests for RawReader."""

    @pytest.mark.asyncio
    async def test_forwards_decoded_batches(self, scripted):
        source = scripted(b"ab", b"\x1b[A")
        receiver = RecordingReceiver()
        scope = CancelScope()

        task = asyncio.create_task(RawReader(source.read, receiver).run(scope))
        await wait_for_batches(receiver, 2)
        scope.cancel()
        await asyncio.wait_for(task, timeout=1.0)

        assert receiver.batches == [
            [Key(KeyKind.CHARACTER, "a"), Key(KeyKind.CHARACTER, "b")],
            [Key(KeyKind.UP)],
        ]

    @pytest.mark.asyncio
    async def test_cancel_while_read_blocked(self, scripted):
        """Test that run returns on cancellation while the read never returns."""
        source = scripted()
        scope = CancelScope()

        task = asyncio.create_task(RawReader(source.read, RecordingReceiver()).run(scope))
        await asyncio.sleep(0.05)
        scope.cancel()

        await asyncio.wait_for(task, timeout=1.0)
        assert task.done()

    @pytest.mark.asyncio
    async def test_read_error_is_logged_and_retried(self, scripted, caplog):
        source = scripted(OSError("EIO"), b"x")
        receiver = RecordingReceiver()
        scope = CancelScope()

        task = asyncio.create_task(RawReader(source.read, receiver).run(scope))
        await wait_for_batches(receiver, 1)
        scope.cancel()
        await asyncio.wait_for(task, timeout=1.0)

        assert receiver.batches == [[Key(KeyKind.CHARACTER, "x")]]
        assert "poll error" in caplog.text

    @pytest.mark.asyncio
    async def test_end_of_input_stops_poller(self, caplog):
        """Test that the poller exits at end of input instead of spinning."""
        caplog.set_level(logging.INFO)
        scope = CancelScope()
        reader = RawReader(lambda: b"", RecordingReceiver())

        task = asyncio.create_task(reader.run(scope))
        await asyncio.sleep(0.05)
        scope.cancel()
        await asyncio.wait_for(task, timeout=1.0)

        assert "input closed" in caplog.text

    @pytest.mark.asyncio
    async def test_no_read_ahead_while_batch_pending(self, scripted):
        """Test that the next read waits until the receiver takes the batch."""
        source = scripted(b"a", b"b")
        receiver = GatedReceiver()
        scope = CancelScope()

        task = asyncio.create_task(RawReader(source.read, receiver).run(scope))
        await wait_for_batches(receiver, 1)
        await asyncio.sleep(0.05)
        assert source.reads == 1

        receiver.gate.set()
        await wait_for_batches(receiver, 2)
        scope.cancel()
        await asyncio.wait_for(task, timeout=1.0)

        assert receiver.batches == [
            [Key(KeyKind.CHARACTER, "a")],
            [Key(KeyKind.CHARACTER, "b")],
        ]

    @pytest.mark.asyncio
    async def test_decode_failure_ends_reader(self, scripted, monkeypatch, caplog):
        def broken(data):
            raise ValueError("bad chunk")

        monkeypatch.setattr("kvshell.terminal.reader.decode", broken)
        source = scripted(b"x")
        receiver = RecordingReceiver()

        task = asyncio.create_task(RawReader(source.read, receiver).run(CancelScope()))

        with pytest.raises(ValueError, match="bad chunk"):
            await asyncio.wait_for(task, timeout=1.0)
        assert receiver.batches == []
        assert "poll error: decode" in caplog.text
