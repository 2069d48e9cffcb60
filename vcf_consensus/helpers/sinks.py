import asyncio
import logging
from typing import List, Sequence, TextIO

from vcf_consensus.helpers.constants import CHANNEL_SIZE
from vcf_consensus.helpers.errors import SinkError


logger = logging.getLogger(__name__)

_CLOSE = object()


class SampleSink:
    """
    Writable stream for one sample. Text goes through a bounded channel and a
    single writer task does the blocking file writes in a worker thread, so a
    slow handle only holds up its own sample.
    """

    def __init__(self, name: str, handle: TextIO, channel_size: int = CHANNEL_SIZE):
        self.name = name
        self.handle = handle
        self.written = 0
        self.error = None
        self._queue = asyncio.Queue(maxsize=channel_size)
        self._task = None
        self._closed = False


    def start(self):
        """Starts the writer task. Needs a running event loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._drain(), name=f"sink-{self.name}")
        return self


    def write(self, text: str) -> bool:
        """
        Hands text to the writer without waiting.

        Returns False when the channel is full and the text was not taken; the
        caller then has to wait for room, eg. with send().
        """
        self._checkState()
        try:
            self._queue.put_nowait(text)
        except asyncio.QueueFull:
            return False
        return True


    async def send(self, text: str):
        """Writes text, waiting for room in this sample's channel if it is full."""
        if not self.write(text):
            logger.debug("Channel for %s is full, waiting", self.name)
            await self._queue.put(text)
            self._checkState()


    async def close(self):
        """
        Waits until every queued fragment has been written, then flushes the
        handle. The handle itself is left open for its owner to close.
        """
        if self._closed:
            return
        if self._task is None:
            raise SinkError(f"Output for sample '{self.name}' was never started")
        self._closed = True

        await self._queue.put(_CLOSE)
        await self._task

        if self.error is None:
            try:
                await asyncio.to_thread(self.handle.flush)
            except Exception as e:
                self.error = SinkError(f"Failed to flush output for sample '{self.name}': {e}")

        if self.error is not None:
            raise self.error


    async def abort(self):
        """Stops the writer task without waiting for queued text."""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass


    def _checkState(self):
        if self.error is not None:
            raise self.error
        if self._closed:
            raise SinkError(f"Output for sample '{self.name}' is already closed")
        if self._task is None:
            raise SinkError(f"Output for sample '{self.name}' was never started")


    async def _drain(self):
        while True:
            text = await self._queue.get()
            chunk = []
            done = False

            # coalesce whatever is already queued into one write
            while True:
                if text is _CLOSE:
                    done = True
                else:
                    chunk.append(text)
                self._queue.task_done()

                if done or self._queue.empty():
                    break
                text = self._queue.get_nowait()

            if chunk and self.error is None:
                data = "".join(chunk)
                try:
                    await asyncio.to_thread(self.handle.write, data)
                    self.written += len(data)
                except Exception as e:
                    # keep draining so senders never wait on a dead channel
                    self.error = SinkError(f"Failed to write output for sample '{self.name}': {e}")

            if done:
                return



class SinkPool:
    """
    The per-sample sinks of one run. Use as an async context manager: the
    writers start on entry and are drained on exit, also when the block
    raises. Only cancellation stops them without draining.
    """

    def __init__(self, names: Sequence[str], handles: Sequence[TextIO], channel_size: int = CHANNEL_SIZE):
        if len(names) != len(handles):
            raise ValueError(f"{len(names)} sample names but {len(handles)} output handles")
        self.sinks: List[SampleSink] = [SampleSink(n, h, channel_size) for n, h in zip(names, handles)]


    def __len__(self):
        return len(self.sinks)


    def start(self):
        for sink in self.sinks:
            sink.start()
        return self


    def write(self, sample_idx: int, text: str) -> bool:
        return self.sinks[sample_idx].write(text)


    async def send(self, sample_idx: int, text: str):
        await self.sinks[sample_idx].send(text)


    async def send_all(self, texts: Sequence[str]):
        """
        Sends one text to each sample. Every sample waits on its own channel and
        the call returns once all of them have accepted their text.

        :param texts: one text per sample, in sample order
        """
        if len(texts) != len(self.sinks):
            raise ValueError(f"{len(texts)} texts for {len(self.sinks)} samples")
        await asyncio.gather(*(sink.send(text) for sink, text in zip(self.sinks, texts)))


    async def close(self):
        results = await asyncio.gather(*(sink.close() for sink in self.sinks), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result


    async def abort(self):
        await asyncio.gather(*(sink.abort() for sink in self.sinks))


    async def __aenter__(self):
        return self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            await self.close()
        elif issubclass(exc_type, Exception):
            # windows flushed before the failure still reach their handles
            results = await asyncio.gather(*(sink.close() for sink in self.sinks), return_exceptions=True)
            for sink, result in zip(self.sinks, results):
                if isinstance(result, BaseException):
                    logger.warning("Output for %s was not completed: %s", sink.name, result)
        else:
            await self.abort()
