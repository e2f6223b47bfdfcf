"""Unit tests for the SoundPlayer alert sounds."""

from __future__ import annotations

import subprocess

import numpy as np
import pytest

import airmove.core.audio.sound_player as sound_module
from airmove.core.audio.sound_player import SoundPlayer
from airmove.utils.config import Config


class SyncThread:
    def __init__(self, target, args=(), daemon=False):
        self.target = target
        self.args = args
        self.daemon = daemon

    def start(self):
        self.target(*self.args)


class FakeSoundDevice:
    def __init__(self) -> None:
        self.played = []

    def play(self, data, samplerate, blocking=False):
        self.played.append((len(data), samplerate))


@pytest.fixture()
def sound_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    (tmp_path / "Glass.aiff").write_bytes(b"FORM")
    run_calls = []
    fake_sd = FakeSoundDevice()

    monkeypatch.setattr(sound_module.shutil, "which", lambda cmd: "/usr/bin/afplay" if cmd == "afplay" else None)
    monkeypatch.setattr(sound_module.subprocess, "run", lambda cmd, check: run_calls.append(cmd))
    monkeypatch.setattr(sound_module.threading, "Thread", SyncThread)
    monkeypatch.setattr(sound_module.time, "sleep", lambda _: None)
    monkeypatch.setattr(sound_module, "sd", fake_sd)

    player = SoundPlayer(sound_dirs=[str(tmp_path)])
    return player, run_calls, fake_sd, tmp_path


def test_resolves_named_system_sound(sound_env):
    player, _, _, tmp_path = sound_env
    assert player.resolve("Glass") == tmp_path / "Glass.aiff"
    assert player.resolve("Nope") is None
    assert player.resolve("") is None


def test_resolves_explicit_path(sound_env):
    player, _, _, tmp_path = sound_env
    assert player.resolve(str(tmp_path / "Glass.aiff")) == tmp_path / "Glass.aiff"


def test_play_uses_command_line_player(sound_env):
    player, run_calls, fake_sd, tmp_path = sound_env
    player.play("Glass")

    assert run_calls == [["afplay", str(tmp_path / "Glass.aiff")]]
    assert fake_sd.played == []
    assert player.get_play_stats()["files_played"] == 1


def test_missing_sound_falls_back_to_beep(sound_env):
    player, run_calls, fake_sd, _ = sound_env
    player.play("DoesNotExist")

    assert run_calls == []
    assert len(fake_sd.played) == Config.BEEP_COUNT
    assert player.get_play_stats()["beeps_played"] == 1


def test_player_failure_falls_back_to_beep(sound_env, monkeypatch: pytest.MonkeyPatch):
    player, _, fake_sd, _ = sound_env

    def failing_run(cmd, check):
        raise subprocess.CalledProcessError(1, cmd)

    monkeypatch.setattr(sound_module.subprocess, "run", failing_run)
    player.play("Glass")
    assert len(fake_sd.played) == Config.BEEP_COUNT


def test_beep_without_sounddevice_does_not_raise(sound_env, monkeypatch: pytest.MonkeyPatch):
    player, _, _, _ = sound_env
    monkeypatch.setattr(sound_module, "sd", None)
    player.play("DoesNotExist")
    assert player.get_play_stats()["failures"] == 1


def test_generate_tone_shape_and_volume():
    tone = SoundPlayer.generate_tone(440, 0.1, volume=0.5)
    assert tone.dtype == np.float32
    assert len(tone) == int(Config.BEEP_SAMPLE_RATE * 0.1)
    assert np.max(np.abs(tone)) <= 0.5 + 1e-6
    assert tone[0] == pytest.approx(0.0)
