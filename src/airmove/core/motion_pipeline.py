"""
Single consuming loop for orientation samples and watchdog ticks.

The sampler callback and the 1 Hz ticker only enqueue messages; one worker
thread drains the queue and drives the recognizer, the watchdog and the
dispatcher in arrival order. No other thread touches recognizer state.

Messages:
- ("sample", OrientationSample): watchdog activity check, then gesture recognition
- ("tick", now): watchdog countdown check

Lifecycle:
- start(): cold start (recognizer baseline cleared, watchdog armed now)
- stop(): threads signalled and joined, pending messages dropped, all
  recognizer/watchdog state cleared
- set_watchdog_enabled(): cancels or restarts only the ticker

handle_sample()/handle_tick() are the synchronous entry points the worker
uses; tests call them directly.
"""

import logging
import queue
import threading
import time
from typing import Callable, Optional

from airmove.core.imu.gesture_recognizer import GestureRecognizer
from airmove.core.imu.inactivity_watchdog import InactivityWatchdog
from airmove.core.imu.orientation_sample import GestureDirection, OrientationSample
from airmove.core.input.action_dispatcher import ActionDispatcher, DispatchOutcome
from airmove.utils.config import Config

log = logging.getLogger(__name__)

GestureCallback = Callable[[GestureDirection, DispatchOutcome], None]


class MotionPipeline:
    """Merges the sample and tick channels into one consumer."""

    def __init__(
        self,
        recognizer: GestureRecognizer,
        watchdog: InactivityWatchdog,
        dispatcher: ActionDispatcher,
        clock: Callable[[], float] = time.monotonic,
        tick_interval: float = Config.WATCHDOG_TICK_INTERVAL,
        on_sample: Optional[Callable[[OrientationSample], None]] = None,
        on_gesture: Optional[GestureCallback] = None,
        on_alarm: Optional[Callable[[], None]] = None,
    ) -> None:
        self.recognizer = recognizer
        self.watchdog = watchdog
        self.dispatcher = dispatcher
        self.clock = clock
        self.tick_interval = tick_interval
        self.on_sample = on_sample
        self.on_gesture = on_gesture
        self.on_alarm = on_alarm

        self._queue: "queue.Queue" = queue.Queue(maxsize=Config.PIPELINE_QUEUE_SIZE)
        self._stop_event = threading.Event()
        self._worker: Optional[threading.Thread] = None
        self._ticker_stop = threading.Event()
        self._ticker: Optional[threading.Thread] = None
        self._lock = threading.Lock()

        self.dropped_samples = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None

    @property
    def is_ticking(self) -> bool:
        return self._ticker is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            if self._worker is not None:
                return
            self.recognizer.reset()
            self.watchdog.start(self.clock())
            self._stop_event.clear()
            self._worker = threading.Thread(target=self._run_loop, name="motion-pipeline", daemon=True)
            self._worker.start()
        if self.watchdog.is_enabled:
            self._start_ticker()

    def stop(self) -> None:
        self._stop_ticker()
        with self._lock:
            worker, self._worker = self._worker, None
            self._stop_event.set()
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout=2.0)
        self._drain()
        self.recognizer.reset()
        self.watchdog.stop()

    def set_watchdog_enabled(self, enabled: bool) -> None:
        if not self.is_running:
            return
        if enabled:
            self.watchdog.start(self.clock())
            self._start_ticker()
        else:
            self._stop_ticker()

    def _start_ticker(self) -> None:
        with self._lock:
            if self._ticker is not None:
                return
            self._ticker_stop = threading.Event()
            self._ticker = threading.Thread(
                target=self._tick_loop, args=(self._ticker_stop,), name="watchdog-ticker", daemon=True
            )
            self._ticker.start()

    def _stop_ticker(self) -> None:
        with self._lock:
            ticker, self._ticker = self._ticker, None
            self._ticker_stop.set()
        if ticker is not None and ticker is not threading.current_thread():
            ticker.join(timeout=2.0)

    def _drain(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    def submit_sample(self, sample: OrientationSample) -> None:
        """Sampler callback; never blocks the delivery thread."""
        if self._stop_event.is_set():
            return
        try:
            self._queue.put_nowait(("sample", sample))
        except queue.Full:
            self.dropped_samples += 1
            log.debug("Pipeline queue full, dropped sample (%d total)", self.dropped_samples)

    def _tick_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.tick_interval):
            try:
                self._queue.put(("tick", self.clock()), timeout=self.tick_interval)
            except queue.Full:
                log.warning("Pipeline queue full, skipped watchdog tick")

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    def _run_loop(self) -> None:
        log.info("Motion pipeline started")
        while not self._stop_event.is_set():
            try:
                kind, payload = self._queue.get(timeout=Config.PIPELINE_POLL_TIMEOUT)
            except queue.Empty:
                continue
            if kind == "sample":
                self.handle_sample(payload)
            elif kind == "tick":
                self.handle_tick(payload)
        log.info("Motion pipeline stopped")

    def handle_sample(self, sample: OrientationSample) -> Optional[GestureDirection]:
        if self.on_sample:
            self.on_sample(sample)
        self.watchdog.on_sample(sample)
        gesture = self.recognizer.on_sample(sample)
        if gesture is None:
            return None
        outcome = self.dispatcher.dispatch(gesture)
        if self.on_gesture:
            self.on_gesture(gesture, outcome)
        return gesture

    def handle_tick(self, now: float) -> bool:
        if not self.watchdog.on_tick(now):
            return False
        self.dispatcher.dispatch_alarm()
        if self.on_alarm:
            self.on_alarm()
        return True
