"""Tests for GestureRecognizer thresholds, scan order and global cooldown."""

from __future__ import annotations

import pytest

from airmove.core.imu.gesture_recognizer import GestureRecognizer, sensitivity_to_threshold
from airmove.core.imu.orientation_sample import GestureDirection, OrientationSample


def make_recognizer(sensitivities=None, default=0.7):
    sensitivities = {} if sensitivities is None else sensitivities
    return GestureRecognizer(lambda direction: sensitivities.get(direction, default))


def feed(recognizer, samples):
    return [recognizer.on_sample(OrientationSample(p, y, t)) for p, y, t in samples]


def test_threshold_boundaries_and_monotonic():
    assert sensitivity_to_threshold(0.0) == pytest.approx(0.40)
    assert sensitivity_to_threshold(1.0) == pytest.approx(0.02)

    values = [sensitivity_to_threshold(i / 20) for i in range(21)]
    assert all(a > b for a, b in zip(values, values[1:]))


def test_first_sample_is_baseline():
    recognizer = make_recognizer(default=1.0)
    assert recognizer.on_sample(OrientationSample(1.0, 1.0, 0.0)) is None
    assert recognizer.previous_pitch == 1.0


def test_single_up_then_cooldown():
    # Up threshold 0.15 -> sensitivity (0.40 - 0.15) / 0.38
    recognizer = make_recognizer({GestureDirection.UP: (0.40 - 0.15) / 0.38}, default=0.0)
    results = feed(recognizer, [(0.0, 0.0, 0.0), (0.5, 0.0, 0.04), (1.0, 0.0, 0.08)])

    assert results == [None, GestureDirection.UP, None]


def test_scan_order_prefers_pitch_over_yaw():
    recognizer = make_recognizer(default=1.0)
    results = feed(recognizer, [(0.0, 0.0, 0.0), (-0.3, 0.3, 0.1)])
    assert results[-1] is GestureDirection.DOWN


@pytest.mark.parametrize(
    "pitch, yaw, expected",
    [
        (0.5, 0.0, GestureDirection.UP),
        (-0.5, 0.0, GestureDirection.DOWN),
        (0.0, 0.5, GestureDirection.LEFT),
        (0.0, -0.5, GestureDirection.RIGHT),
        (0.01, -0.01, None),
    ],
)
def test_each_direction(pitch, yaw, expected):
    recognizer = make_recognizer(default=0.7)
    assert feed(recognizer, [(0.0, 0.0, 0.0), (pitch, yaw, 0.1)])[-1] is expected


def test_cooldown_is_global_across_directions():
    recognizer = make_recognizer(default=1.0)
    results = feed(
        recognizer,
        [
            (0.0, 0.0, 0.0),
            (0.5, 0.0, 0.1),   # Up fires
            (0.5, 0.5, 0.5),   # Left suppressed
            (0.0, 0.5, 0.9),   # Down suppressed
            (0.0, 1.0, 1.2),   # Left fires after cooldown
        ],
    )
    assert results == [None, GestureDirection.UP, None, None, GestureDirection.LEFT]


def test_no_two_gestures_within_cooldown():
    recognizer = make_recognizer(default=1.0)
    fired_at = []
    pitch = 0.0
    for i in range(200):
        pitch += 0.3 if i % 2 == 0 else -0.3
        timestamp = i * 0.04
        if recognizer.on_sample(OrientationSample(pitch, 0.0, timestamp)):
            fired_at.append(timestamp)

    assert len(fired_at) > 1
    assert all(b - a >= 1.0 - 1e-9 for a, b in zip(fired_at, fired_at[1:]))


def test_previous_updated_even_when_suppressed():
    recognizer = make_recognizer(default=1.0)
    feed(recognizer, [(0.0, 0.0, 0.0), (0.5, 0.0, 0.1), (0.9, 0.2, 0.2)])
    assert recognizer.previous_pitch == 0.9
    assert recognizer.previous_yaw == 0.2


def test_sensitivity_read_on_every_sample():
    sensitivities = {}
    recognizer = make_recognizer(sensitivities, default=0.0)
    assert feed(recognizer, [(0.0, 0.0, 0.0), (0.1, 0.0, 0.1)])[-1] is None

    sensitivities[GestureDirection.UP] = 1.0
    assert recognizer.on_sample(OrientationSample(0.2, 0.0, 0.2)) is GestureDirection.UP


def test_zero_sensitivity_needs_large_motion():
    recognizer = make_recognizer(default=0.0)
    assert feed(recognizer, [(0.0, 0.0, 0.0), (0.39, 0.0, 0.1)])[-1] is None
    assert recognizer.on_sample(OrientationSample(0.80, 0.0, 0.2)) is GestureDirection.UP


def test_reset_clears_baseline_and_cooldown():
    recognizer = make_recognizer(default=1.0)
    feed(recognizer, [(0.0, 0.0, 0.0), (0.5, 0.0, 0.1)])
    recognizer.reset()

    assert recognizer.cooldown_until is None
    assert feed(recognizer, [(0.0, 0.0, 0.2), (0.5, 0.0, 0.3)]) == [None, GestureDirection.UP]
