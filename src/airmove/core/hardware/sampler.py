"""
Orientation sampler interface and a scripted stand-in for the earphones.

The real sampler (headphone motion updates from the OS) lives outside this
package; anything with ``start(callback)``, ``stop()``, ``is_available()`` and
``connection_status`` (with change listeners) plugs into the motion pipeline.

ScriptedSampler is API-compatible and needs no hardware:
- 'script': replays a fixed list of (pitch, yaw) pairs once
- 'synthetic': holds still and performs a nod/turn every few seconds, cycling
  through Up, Down, Left, Right

LineStreamSampler reads samples piped in by an external motion helper.

Usage:
    sampler = ScriptedSampler(mode='synthetic', rate_hz=25)
    sampler.start(pipeline.submit_sample)
"""

import json
import logging
import math
import threading
import time
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, TextIO, Tuple

from airmove.core.errors import SensorUnavailableError
from airmove.core.imu.orientation_sample import OrientationSample
from airmove.utils.config import Config

log = logging.getLogger(__name__)

SampleCallback = Callable[[OrientationSample], None]
StatusCallback = Callable[["ConnectionStatus"], None]


class ConnectionStatus(Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class SamplerService(Protocol):
    connection_status: ConnectionStatus

    def is_available(self) -> bool: ...

    def add_status_listener(self, callback: StatusCallback) -> None: ...

    def start(self, callback: SampleCallback) -> bool: ...

    def stop(self) -> None: ...


class StatusReporter:
    """Notifies listeners when connection_status changes."""

    def __init__(self) -> None:
        self.connection_status = ConnectionStatus.DISCONNECTED
        self._status_listeners: List[StatusCallback] = []

    def add_status_listener(self, callback: StatusCallback) -> None:
        self._status_listeners.append(callback)

    def _set_status(self, status: ConnectionStatus) -> None:
        if status is self.connection_status:
            return
        self.connection_status = status
        log.info("Sampler %s", status.value)
        for callback in list(self._status_listeners):
            callback(status)


class ScriptedSampler(StatusReporter):
    """Mock orientation source for development without earphones."""

    # (pitch_delta, yaw_delta) applied at the peak of each synthetic gesture
    SYNTHETIC_MOVES = [(0.35, 0.0), (-0.35, 0.0), (0.0, 0.35), (0.0, -0.35)]

    def __init__(
        self,
        mode: str = 'synthetic',
        rate_hz: float = Config.SAMPLER_RATE_HZ,
        script: Optional[Sequence[Tuple[float, float]]] = None,
        gesture_interval: float = 3.0,
        available: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if mode not in ('script', 'synthetic'):
            raise ValueError(f"Unknown mode: {mode}")
        if mode == 'script' and not script:
            raise ValueError("'script' mode needs a non-empty script")
        super().__init__()
        self.mode = mode
        self.rate_hz = rate_hz
        self.script: List[Tuple[float, float]] = list(script or [])
        self.gesture_interval = gesture_interval
        self.available = available
        self.clock = clock

        self.sample_count = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def is_available(self) -> bool:
        return self.available

    def start(self, callback: SampleCallback) -> bool:
        if not self.available:
            log.warning("Orientation sampler unavailable")
            return False
        if self._thread is not None:
            log.info("Sampler already running")
            return True
        self._stop_event.clear()
        self.sample_count = 0
        self._set_status(ConnectionStatus.CONNECTED)
        self._thread = threading.Thread(target=self._run, args=(callback,), daemon=True)
        self._thread.start()
        log.info("ScriptedSampler started in '%s' mode @ %.0f Hz", self.mode, self.rate_hz)
        return True

    def stop(self) -> None:
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._set_status(ConnectionStatus.DISCONNECTED)

    def samples(self):
        """Yield (pitch, yaw) pairs for the configured mode."""
        if self.mode == 'script':
            yield from self.script
            return
        period = max(1, int(self.gesture_interval * self.rate_hz))
        index = 0
        while True:
            phase = index % period
            move = self.SYNTHETIC_MOVES[(index // period) % len(self.SYNTHETIC_MOVES)]
            # Three-sample bump: out, hold, back
            scale = {1: 1.0, 2: 1.0}.get(phase, 0.0)
            jitter = 0.002 * math.sin(index * 0.7)
            yield move[0] * scale + jitter, move[1] * scale + jitter
            index += 1

    def _run(self, callback: SampleCallback) -> None:
        interval = 1.0 / self.rate_hz
        for pitch, yaw in self.samples():
            if self._stop_event.is_set():
                break
            callback(OrientationSample(pitch=pitch, yaw=yaw, timestamp=self.clock()))
            self.sample_count += 1
            if self._stop_event.wait(interval):
                break
        self._set_status(ConnectionStatus.DISCONNECTED)


class LineStreamSampler(StatusReporter):
    """Reads samples from a text stream fed by an external motion helper.

    Each line is either JSON (``{"pitch": 0.1, "yaw": -0.2}``) or two
    whitespace-separated floats ``pitch yaw``. Samples are stamped with the
    local clock on arrival so they share a time base with watchdog ticks.
    End of stream disconnects. An interactive terminal has no helper behind
    it, so start() raises SensorUnavailableError.
    """

    def __init__(self, stream: TextIO, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self.stream = stream
        self.clock = clock
        self.sample_count = 0
        self.bad_lines = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def is_available(self) -> bool:
        return self.stream is not None and not self.stream.closed

    def start(self, callback: SampleCallback) -> bool:
        if not self.is_available():
            log.warning("Sample stream is closed")
            return False
        if self.stream.isatty():
            raise SensorUnavailableError("no motion helper is piping samples into this stream")
        if self._thread is not None:
            return True
        self._stop_event.clear()
        self._set_status(ConnectionStatus.CONNECTED)
        self._thread = threading.Thread(target=self._run, args=(callback,), daemon=True)
        self._thread.start()
        return True

    def stop(self) -> None:
        # A blocked readline() cannot be interrupted; the daemon thread drops
        # whatever it reads after the stop flag is set.
        self._stop_event.set()
        self._thread = None
        self._set_status(ConnectionStatus.DISCONNECTED)

    def parse_line(self, line: str) -> Optional[OrientationSample]:
        line = line.strip()
        if not line or line.startswith("#"):
            return None
        try:
            if line.startswith("{"):
                data = json.loads(line)
                pitch, yaw = float(data["pitch"]), float(data["yaw"])
            else:
                fields = line.split()
                pitch, yaw = float(fields[0]), float(fields[1])
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            self.bad_lines += 1
            log.debug("Skipping malformed sample line %r: %s", line, exc)
            return None
        return OrientationSample(pitch=pitch, yaw=yaw, timestamp=self.clock())

    def _run(self, callback: SampleCallback) -> None:
        for line in self.stream:
            if self._stop_event.is_set():
                break
            sample = self.parse_line(line)
            if sample is not None:
                callback(sample)
                self.sample_count += 1
        self._set_status(ConnectionStatus.DISCONNECTED)
        log.info("Sample stream ended after %d samples", self.sample_count)
