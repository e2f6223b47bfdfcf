"""Tests for the scripted and line-stream samplers."""

from __future__ import annotations

import io
import itertools

import pytest

from airmove.core.errors import SensorUnavailableError
from airmove.core.hardware.sampler import ConnectionStatus, LineStreamSampler, ScriptedSampler


def counter_clock():
    ticks = itertools.count()
    return lambda: float(next(ticks))


def test_script_mode_replays_once():
    received = []
    sampler = ScriptedSampler(mode='script', rate_hz=1000, script=[(0.0, 0.0), (0.1, 0.2)], clock=counter_clock())

    assert sampler.start(received.append) is True
    sampler._thread.join(timeout=2.0)

    assert [(s.pitch, s.yaw, s.timestamp) for s in received] == [(0.0, 0.0, 0.0), (0.1, 0.2, 1.0)]
    assert sampler.connection_status is ConnectionStatus.DISCONNECTED
    sampler.stop()


def test_unavailable_sampler_refuses_start():
    sampler = ScriptedSampler(available=False)
    assert sampler.start(lambda s: None) is False
    assert sampler.connection_status is ConnectionStatus.DISCONNECTED


def test_invalid_modes():
    with pytest.raises(ValueError):
        ScriptedSampler(mode='video')
    with pytest.raises(ValueError):
        ScriptedSampler(mode='script')


def test_synthetic_pattern_cycles_directions():
    sampler = ScriptedSampler(mode='synthetic', rate_hz=10, gesture_interval=1.0)
    pairs = list(itertools.islice(sampler.samples(), 40))

    peaks = [pairs[i * 10 + 1] for i in range(4)]
    assert peaks[0][0] > 0.3
    assert peaks[1][0] < -0.3
    assert peaks[2][1] > 0.3
    assert peaks[3][1] < -0.3
    assert abs(pairs[0][0]) < 0.01


def test_line_stream_parses_both_formats():
    sampler = LineStreamSampler(io.StringIO(""), clock=lambda: 7.0)

    plain = sampler.parse_line("0.1 -0.2\n")
    assert (plain.pitch, plain.yaw, plain.timestamp) == (0.1, -0.2, 7.0)

    as_json = sampler.parse_line('{"pitch": 0.3, "yaw": 0.4}')
    assert (as_json.pitch, as_json.yaw) == (0.3, 0.4)

    assert sampler.parse_line("# comment") is None
    assert sampler.parse_line("garbage") is None
    assert sampler.parse_line('{"pitch": 1}') is None
    assert sampler.bad_lines == 2


def test_line_stream_delivers_until_eof():
    received = []
    sampler = LineStreamSampler(io.StringIO("0 0\n0.5 0\nbad\n0.6 0.1\n"), clock=counter_clock())

    assert sampler.start(received.append) is True
    sampler._thread.join(timeout=2.0)

    assert [s.pitch for s in received] == [0.0, 0.5, 0.6]
    assert sampler.connection_status is ConnectionStatus.DISCONNECTED


def test_closed_stream_is_unavailable():
    stream = io.StringIO("")
    stream.close()
    assert LineStreamSampler(stream).start(lambda s: None) is False


class TerminalStream(io.StringIO):
    def isatty(self):
        return True


def test_terminal_stream_has_no_helper():
    sampler = LineStreamSampler(TerminalStream(""))
    with pytest.raises(SensorUnavailableError):
        sampler.start(lambda sample: None)
    assert sampler.connection_status is ConnectionStatus.DISCONNECTED


def test_status_listeners_follow_stream_lifetime():
    sampler = LineStreamSampler(io.StringIO("0 0\n0.1 0\n"), clock=counter_clock())
    statuses = []
    sampler.add_status_listener(statuses.append)

    assert sampler.start(lambda sample: None) is True
    sampler._thread.join(timeout=2.0)

    assert statuses == [ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED]


def test_status_listener_not_repeated_on_stop():
    sampler = ScriptedSampler(mode="script", script=[(0.0, 0.0)], rate_hz=100)
    statuses = []
    sampler.add_status_listener(statuses.append)

    sampler.start(lambda sample: None)
    sampler._thread.join(timeout=2.0)
    sampler.stop()

    assert statuses == [ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED]
