"""Tests for MotionController state, settings mutations and recording."""

from __future__ import annotations

import io
import threading

import pytest

import airmove.core.input.shortcut_recorder as recorder_module
from airmove.core.hardware.sampler import ConnectionStatus, LineStreamSampler, ScriptedSampler
from airmove.core.imu.orientation_sample import GestureDirection
from airmove.core.input.action_dispatcher import DispatchOutcome
from airmove.core.input.event_poster import DryRunEventPoster
from airmove.core.input.key_codes import Modifier
from airmove.core.input.permissions import StaticPermissionChecker
from airmove.core.input.shortcut_recorder import KeyEvent
from airmove.core.motion_controller import MotionController
from airmove.utils.config_sections import ActionMode, PresetAction
from airmove.utils.settings_store import InMemorySettingsStore, SettingsTable

KEY_J = 38


class SyncThread:
    def __init__(self, target, args=(), daemon=False):
        self.target = target
        self.args = args

    def start(self):
        self.target(*self.args)


class FakeHook:
    def __init__(self) -> None:
        self.handler = None

    def install(self, handler):
        self.handler = handler

    def uninstall(self):
        self.handler = None


class FakeSoundPlayer:
    def __init__(self) -> None:
        self.played = []

    def play(self, name: str) -> None:
        self.played.append(name)


def make_controller(sampler=None, trusted=True):
    store = InMemorySettingsStore()
    hook = FakeHook()
    controller = MotionController(
        sampler=sampler or ScriptedSampler(mode="script", script=[(0.0, 0.0)], rate_hz=100),
        settings=SettingsTable(store),
        event_poster=DryRunEventPoster(),
        sound_player=FakeSoundPlayer(),
        permission_checker=StaticPermissionChecker(trusted=trusted),
        input_hook=hook,
    )
    return controller, store, hook


def test_initial_state():
    controller, _, _ = make_controller()
    assert controller.is_listening is False
    assert controller.is_recording is False
    assert controller.is_alarm_active is False
    assert controller.last_gesture is None
    assert controller.connection_status is ConnectionStatus.DISCONNECTED
    assert controller.is_permission_granted is True


def test_start_listening_refused_without_sensor():
    sampler = ScriptedSampler(mode="synthetic", available=False)
    controller, _, _ = make_controller(sampler)

    assert controller.start_listening() is False
    assert controller.is_listening is False
    assert controller.pipeline.is_running is False


def test_listening_dispatches_scripted_nod():
    sampler = ScriptedSampler(mode="script", script=[(0.0, 0.0), (0.5, 0.0)], rate_hz=100)
    controller, _, _ = make_controller(sampler)
    fired = threading.Event()
    controller.add_listener(lambda name, value: name == "last_gesture" and fired.set())

    assert controller.start_listening() is True
    try:
        assert fired.wait(2.0)
    finally:
        controller.stop_listening()

    assert controller.last_gesture is GestureDirection.UP
    assert controller.last_outcome is DispatchOutcome.DISPATCHED
    assert controller.is_listening is False


def test_listeners_only_hear_changes():
    controller, _, _ = make_controller()
    changes = []
    controller.add_listener(lambda name, value: changes.append((name, value)))

    controller._publish("is_alarm_active", False)
    controller._publish("is_alarm_active", True)
    controller._publish("is_alarm_active", True)

    assert changes == [("is_alarm_active", True)]


def test_settings_mutations_read_back_and_persist():
    controller, store, _ = make_controller()

    controller.set_mode(GestureDirection.LEFT, ActionMode.SHORTCUT)
    controller.set_sensitivity(GestureDirection.LEFT, 1.7)
    controller.set_preset(GestureDirection.UP, PresetAction.MUTE)
    controller.toggle_direction(GestureDirection.DOWN)

    settings = controller.settings
    assert settings.direction(GestureDirection.LEFT).mode is ActionMode.SHORTCUT
    assert settings.direction(GestureDirection.LEFT).sensitivity == 1.0
    assert settings.direction(GestureDirection.UP).preset is PresetAction.MUTE
    assert settings.direction(GestureDirection.DOWN).is_enabled is False
    assert store.save_count == 4
    assert store.blob["directions"]["down"]["is_enabled"] is False


def test_recognizer_reads_updated_sensitivity():
    controller, _, _ = make_controller()
    before = controller.recognizer.threshold(GestureDirection.UP)
    controller.set_sensitivity(GestureDirection.UP, 1.0)
    assert controller.recognizer.threshold(GestureDirection.UP) < before


def test_permission_denied_is_published():
    controller, _, _ = make_controller(trusted=False)
    controller._on_gesture(GestureDirection.UP, DispatchOutcome.PERMISSION_DENIED)
    assert controller.is_permission_granted is False
    assert controller.last_outcome is DispatchOutcome.PERMISSION_DENIED


def test_alarm_and_reset():
    controller, _, _ = make_controller()
    controller._on_alarm()
    assert controller.is_alarm_active is True

    controller.reset_alarm()
    assert controller.is_alarm_active is False


def test_disabling_wake_me_clears_alarm():
    controller, _, _ = make_controller()
    controller.set_wake_me_config(is_enabled=True, timeout=60)
    controller._on_alarm()

    config = controller.set_wake_me_config(is_enabled=False)
    assert config.is_enabled is False
    assert controller.is_alarm_active is False


def test_recording_flow_writes_shortcut(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(recorder_module.threading, "Thread", SyncThread)
    controller, store, hook = make_controller()

    assert controller.start_recording(GestureDirection.RIGHT) is True
    assert controller.is_recording is True

    hook.handler(KeyEvent(KEY_J, int(Modifier.COMMAND | Modifier.OPTION), True))

    shortcut = controller.settings.direction(GestureDirection.RIGHT).shortcut
    assert shortcut.key_code == KEY_J
    assert shortcut.display_string == "Option+Command+J"
    assert controller.is_recording is False
    assert hook.handler is None
    assert store.blob["directions"]["right"]["shortcut"]["key_code"] == KEY_J


def test_stop_recording_keeps_previous_shortcut():
    controller, _, _ = make_controller()
    controller.start_recording(GestureDirection.UP)
    controller.stop_recording()

    assert controller.is_recording is False
    assert controller.settings.direction(GestureDirection.UP).shortcut is None


def test_sampler_error_means_not_listening():
    class TerminalStream(io.StringIO):
        def isatty(self):
            return True

    controller, _, _ = make_controller(LineStreamSampler(TerminalStream("")))

    assert controller.start_listening() is False
    assert controller.is_listening is False
    assert controller.pipeline.is_running is False


def test_stream_end_is_published_as_disconnected():
    sampler = LineStreamSampler(io.StringIO("0 0\n0.01 0\n"))
    controller, _, _ = make_controller(sampler)
    dropped = threading.Event()
    controller.add_listener(
        lambda name, value: name == "connection_status"
        and value is ConnectionStatus.DISCONNECTED
        and dropped.set()
    )

    assert controller.start_listening() is True
    try:
        assert dropped.wait(2.0)
        assert controller.connection_status is ConnectionStatus.DISCONNECTED
        assert sampler.connection_status is ConnectionStatus.DISCONNECTED
    finally:
        controller.stop_listening()
    assert controller.is_listening is False


def test_connection_status_tracks_listening():
    sampler = ScriptedSampler(mode="synthetic", rate_hz=50)
    controller, _, _ = make_controller(sampler)

    controller.start_listening()
    try:
        assert controller.connection_status is ConnectionStatus.CONNECTED
    finally:
        controller.stop_listening()
    assert controller.connection_status is ConnectionStatus.DISCONNECTED
