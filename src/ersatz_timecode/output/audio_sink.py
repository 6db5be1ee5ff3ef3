"""
Audio output for the synthesized time signal.

Wraps a sounddevice (PortAudio) output stream whose callback pulls samples
straight from the WaveformScheduler. The callback does no locking, no
logging and no allocation beyond what numpy slicing needs; status flags
reported by PortAudio are counted there and logged from the main thread.

Usage:
    sink = AudioSink(scheduler, blocksize=512)
    sink.start()
    sink.wait(stop_event)
    sink.stop()
"""

import logging
import threading
from typing import Any, Optional, Union

from ..timing.scheduler import WaveformScheduler
from ..timing.timecode_constants import DEFAULT_BLOCKSIZE

logger = logging.getLogger(__name__)


class AudioSink:
    """Pull-based audio stream driven by a WaveformScheduler."""

    def __init__(
        self,
        scheduler: WaveformScheduler,
        device: Optional[Union[int, str]] = None,
        blocksize: int = DEFAULT_BLOCKSIZE,
        channels: int = 1,
        latency: Union[str, float] = 'low',
    ):
        """
        Initialize the sink.

        Args:
            scheduler: Source of samples; its wavetable dtype sets the stream format
            device: PortAudio device index or name (default output if None)
            blocksize: Frames per callback (0 lets PortAudio choose)
            channels: Output channels; all carry the same signal
            latency: 'low', 'high' or seconds
        """
        if channels < 1:
            raise ValueError(f"channels must be >= 1, got {channels}")
        self.scheduler = scheduler
        self.device = device
        self.blocksize = blocksize
        self.channels = channels
        self.latency = latency

        self.stream: Optional[Any] = None
        self.callbacks = 0
        self.frames_written = 0
        self.status_events = 0
        self.last_status = ''
        self._reported_events = 0

    @property
    def sample_rate(self) -> int:
        return self.scheduler.sample_rate

    def callback(self, outdata, frames, time_info, status) -> None:
        """sounddevice callback: fill every frame, keep playing."""
        if status:
            self.status_events += 1
            self.last_status = str(status)
        self.scheduler.fill(outdata)
        self.callbacks += 1
        self.frames_written += frames

    def start(self) -> None:
        """Open and start the output stream."""
        import sounddevice as sd

        self.stream = sd.OutputStream(
            samplerate=self.sample_rate,
            blocksize=self.blocksize,
            device=self.device,
            channels=self.channels,
            dtype=self.scheduler.wavetable.dtype.name,
            latency=self.latency,
            callback=self.callback,
        )
        self.stream.start()
        logger.info(
            f"Audio stream started: {self.sample_rate} Hz, {self.channels} ch, "
            f"{self.scheduler.wavetable.dtype.name}, blocksize {self.blocksize}, "
            f"latency {self.stream.latency * 1000:.1f} ms")

    @property
    def active(self) -> bool:
        return self.stream is not None and self.stream.active

    def wait(self, stop_event: threading.Event, poll_interval: float = 0.5) -> None:
        """Block until ``stop_event`` is set or the stream ends."""
        while self.active and not stop_event.wait(poll_interval):
            self.report_status()
        self.report_status()

    def report_status(self) -> None:
        """Log PortAudio status flags seen since the last report."""
        new_events = self.status_events - self._reported_events
        if new_events > 0:
            logger.warning(f"Audio stream status ({new_events} new): {self.last_status}")
            self._reported_events = self.status_events

    def stop(self) -> None:
        """Stop and close the stream."""
        if self.stream is None:
            return
        try:
            self.stream.stop()
        finally:
            self.stream.close()
            self.stream = None
        seconds = self.frames_written / self.sample_rate
        logger.info(f"Audio stream stopped after {seconds:.1f} s ({self.callbacks} callbacks)")
