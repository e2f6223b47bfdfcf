"""
Presentation-facing facade over the gesture pipeline.

MotionController wires the settings table, recognizer, watchdog, dispatcher,
recorder and sampler together and exposes:

Read-only observable fields (listeners get ``(name, value)`` on change):
- pitch, yaw: latest orientation sample, radians
- last_gesture: most recent gesture that fired
- is_alarm_active: wake-me alarm raised and not yet acknowledged
- connection_status: sampler connection, updated whenever the sampler reports a change
- is_recording: shortcut capture in progress
- is_listening: samples are being consumed
- is_permission_granted: the OS lets us post synthetic input
- last_outcome: DispatchOutcome of the last gesture

Mutation entry points: set_mode, set_sensitivity, set_preset,
toggle_direction, start_recording, stop_recording, set_wake_me_config,
reset_alarm, start_listening, stop_listening.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from airmove.core.audio.sound_player import SoundPlayer
from airmove.core.errors import SensorUnavailableError
from airmove.core.hardware.sampler import ConnectionStatus, SamplerService
from airmove.core.imu.gesture_recognizer import GestureRecognizer
from airmove.core.imu.inactivity_watchdog import InactivityWatchdog
from airmove.core.imu.orientation_sample import GestureDirection, OrientationSample
from airmove.core.input.action_dispatcher import ActionDispatcher, DispatchOutcome
from airmove.core.input.event_poster import EventPoster
from airmove.core.input.permissions import PermissionChecker
from airmove.core.input.shortcut_recorder import InputHook, ShortcutRecorder
from airmove.core.motion_pipeline import MotionPipeline
from airmove.utils.config_sections import (
    ActionMode,
    DirectionSettings,
    PresetAction,
    RecordedShortcut,
    WakeMeConfig,
)
from airmove.utils.settings_store import SettingsTable

log = logging.getLogger(__name__)

FieldListener = Callable[[str, Any], None]


class MotionController:
    """Owns the pipeline and publishes its state."""

    def __init__(
        self,
        sampler: SamplerService,
        settings: SettingsTable,
        event_poster: EventPoster,
        sound_player: SoundPlayer,
        permission_checker: PermissionChecker,
        input_hook: InputHook,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sampler = sampler
        self.settings = settings

        self.recognizer = GestureRecognizer(settings.sensitivity)
        self.watchdog = InactivityWatchdog(lambda: self.settings.wake_me, clock=clock)
        self.dispatcher = ActionDispatcher(
            direction_settings=settings.direction,
            wake_me_config=lambda: self.settings.wake_me,
            event_poster=event_poster,
            sound_player=sound_player,
            permission_checker=permission_checker,
        )
        self.pipeline = MotionPipeline(
            self.recognizer,
            self.watchdog,
            self.dispatcher,
            clock=clock,
            on_sample=self._on_sample,
            on_gesture=self._on_gesture,
            on_alarm=self._on_alarm,
        )
        self.recorder = ShortcutRecorder(input_hook, on_recorded=self._on_recorded)

        self._listeners: List[FieldListener] = []
        self._state_lock = threading.Lock()
        self._state: Dict[str, Any] = {
            "pitch": 0.0,
            "yaw": 0.0,
            "last_gesture": None,
            "is_alarm_active": False,
            "connection_status": ConnectionStatus.DISCONNECTED,
            "is_recording": False,
            "is_listening": False,
            "is_permission_granted": self.dispatcher.is_permission_granted,
            "last_outcome": None,
        }
        sampler.add_status_listener(self._on_connection_status)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    def add_listener(self, callback: FieldListener) -> None:
        self._listeners.append(callback)

    def _publish(self, name: str, value: Any) -> None:
        with self._state_lock:
            if self._state.get(name) == value:
                return
            self._state[name] = value
        for callback in list(self._listeners):
            callback(name, value)

    def _get(self, name: str) -> Any:
        with self._state_lock:
            return self._state[name]

    @property
    def pitch(self) -> float:
        return self._get("pitch")

    @property
    def yaw(self) -> float:
        return self._get("yaw")

    @property
    def last_gesture(self) -> Optional[GestureDirection]:
        return self._get("last_gesture")

    @property
    def is_alarm_active(self) -> bool:
        return self._get("is_alarm_active")

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._get("connection_status")

    @property
    def is_recording(self) -> bool:
        return self._get("is_recording")

    @property
    def is_listening(self) -> bool:
        return self._get("is_listening")

    @property
    def is_permission_granted(self) -> bool:
        return self._get("is_permission_granted")

    @property
    def last_outcome(self) -> Optional[DispatchOutcome]:
        return self._get("last_outcome")

    def refresh_permission(self) -> bool:
        granted = self.dispatcher.refresh_permission()
        self._publish("is_permission_granted", granted)
        return granted

    # ------------------------------------------------------------------
    # Listening
    # ------------------------------------------------------------------

    def start_listening(self) -> bool:
        """Start consuming samples; False when the sensor is unavailable."""
        if self.is_listening:
            return True
        if not self.sampler.is_available():
            log.warning("Headphone motion is not available, not listening")
            self._publish("connection_status", ConnectionStatus.DISCONNECTED)
            return False

        self.refresh_permission()
        self.pipeline.start()
        try:
            started = self.sampler.start(self.pipeline.submit_sample)
        except SensorUnavailableError as exc:
            log.warning("Sampler failed to start: %s", exc)
            started = False
        if not started:
            log.warning("Sampler refused to start, not listening")
            self.pipeline.stop()
            self._publish("connection_status", ConnectionStatus.DISCONNECTED)
            return False

        self._publish("is_listening", True)
        log.info("Listening for head gestures")
        return True

    def stop_listening(self) -> None:
        self._publish("is_listening", False)
        self.sampler.stop()
        self.pipeline.stop()
        self._publish("is_alarm_active", False)
        self._publish("connection_status", self.sampler.connection_status)
        log.info("Stopped listening")

    def toggle_listening(self) -> bool:
        if self.is_listening:
            self.stop_listening()
            return False
        return self.start_listening()

    # ------------------------------------------------------------------
    # Settings mutations
    # ------------------------------------------------------------------

    def set_mode(self, direction: GestureDirection, mode: ActionMode) -> DirectionSettings:
        return self.settings.update_direction(direction, mode=ActionMode(mode))

    def set_sensitivity(self, direction: GestureDirection, sensitivity: float) -> DirectionSettings:
        return self.settings.update_direction(direction, sensitivity=sensitivity)

    def set_preset(self, direction: GestureDirection, preset: PresetAction) -> DirectionSettings:
        return self.settings.update_direction(direction, preset=PresetAction(preset))

    def toggle_direction(self, direction: GestureDirection) -> DirectionSettings:
        enabled = self.settings.direction(direction).is_enabled
        return self.settings.update_direction(direction, is_enabled=not enabled)

    def set_wake_me_config(self, **changes: Any) -> WakeMeConfig:
        was_enabled = self.settings.wake_me.is_enabled
        config = self.settings.update_wake_me(**changes)
        if config.is_enabled != was_enabled:
            self.pipeline.set_watchdog_enabled(config.is_enabled)
            if not config.is_enabled:
                self._publish("is_alarm_active", False)
        return config

    def reset_alarm(self) -> None:
        self.watchdog.reset()
        self._publish("is_alarm_active", False)

    # ------------------------------------------------------------------
    # Shortcut recording
    # ------------------------------------------------------------------

    def start_recording(self, direction: GestureDirection) -> bool:
        started = self.recorder.start_recording(direction)
        if started:
            self._publish("is_recording", True)
        return started

    def stop_recording(self) -> None:
        self.recorder.stop_recording()
        self._publish("is_recording", False)

    def _on_recorded(self, direction: GestureDirection, shortcut: RecordedShortcut) -> None:
        self.settings.update_direction(direction, shortcut=shortcut)
        self._publish("is_recording", False)

    # ------------------------------------------------------------------
    # Pipeline callbacks (worker thread)
    # ------------------------------------------------------------------

    def _on_sample(self, sample: OrientationSample) -> None:
        self._publish("pitch", sample.pitch)
        self._publish("yaw", sample.yaw)

    def _on_gesture(self, gesture: GestureDirection, outcome: DispatchOutcome) -> None:
        self._publish("last_gesture", gesture)
        self._publish("last_outcome", outcome)
        if outcome is DispatchOutcome.PERMISSION_DENIED:
            self._publish("is_permission_granted", False)

    def _on_alarm(self) -> None:
        self._publish("is_alarm_active", True)

    def _on_connection_status(self, status: ConnectionStatus) -> None:
        # Sampler thread; the sensor may drop while still listening
        self._publish("connection_status", status)
        if status is ConnectionStatus.DISCONNECTED and self.is_listening:
            log.warning("Headphone motion disconnected while listening")
