"""
Listening lifecycle around a TunerPipeline.

A capture source pushes PCM chunks; the session forwards them to the
pipeline while listening and drops them otherwise. Stopping resets the
pipeline synchronously, so nothing analysed after stop() can come from the
previous stream.

A failing capture source ends the session: the pipeline is reset and a
terminal ListeningStopped event carrying the error is sent to subscribers.
The session never restarts on its own.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional

from .config import TunerConfig
from .pipeline import PitchResult, TunerPipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListeningStopped:
    """Terminal event emitted when listening ends."""
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        """Whether listening ended because of a capture error."""
        return self.error is not None


StopCallback = Callable[[ListeningStopped], None]


class ListeningSession:
    """
    Start/stop control for a pipeline fed by a push source.

    Attributes:
        pipeline: TunerPipeline receiving the chunks
    """

    def __init__(self, pipeline: Optional[TunerPipeline] = None,
                 config: Optional[TunerConfig] = None):
        self.pipeline = pipeline if pipeline is not None else TunerPipeline(config)
        self._listening = False
        self._callbacks: List[StopCallback] = []

    @property
    def is_listening(self) -> bool:
        return self._listening

    def on_stopped(self, callback: StopCallback) -> None:
        """Register a callback for ListeningStopped events."""
        self._callbacks.append(callback)

    def start(self) -> None:
        """Begin accepting chunks with cold analysis state."""
        if self._listening:
            logger.warning("Session is already listening")
            return
        self.pipeline.reset()
        self._listening = True
        logger.info("Listening started")

    def stop(self) -> None:
        """Stop accepting chunks and reset the pipeline."""
        self._finish(None)

    def fail(self, error: BaseException) -> None:
        """Handle a capture failure: stop, reset and notify subscribers."""
        logger.error("Capture stream failed: %s", error, exc_info=error)
        self._finish(error)

    def _finish(self, error: Optional[BaseException]) -> None:
        if not self._listening:
            logger.debug("Session is not listening, nothing to stop")
            return
        self._listening = False
        self.pipeline.reset()
        logger.info("Listening stopped")

        event = ListeningStopped(error)
        for callback in list(self._callbacks):
            callback(event)

    def feed(self, chunk: bytes) -> Optional[PitchResult]:
        """
        Pass one chunk to the pipeline.

        Returns:
            PitchResult, or None if not listening or no update this pass
        """
        if not self._listening:
            return None
        return self.pipeline.process_chunk(chunk)

    def listen(self, chunks: Iterable[bytes]) -> Iterator[PitchResult]:
        """
        Drive the session from an iterable chunk source.

        Starts the session if needed and yields every PitchResult. Ends with
        stop() when the source is exhausted, or fail() if the source raises.
        Breaking out of the loop, or calling stop() from inside it, stops
        consumption.
        """
        if not self._listening:
            self.start()

        source = iter(chunks)
        try:
            while self._listening:
                try:
                    chunk = next(source)
                except StopIteration:
                    break
                except Exception as e:
                    self.fail(e)
                    return

                result = self.feed(chunk)
                if result is not None:
                    yield result
        finally:
            self.stop()
