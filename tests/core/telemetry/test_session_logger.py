"""Tests for per-session log files."""

from __future__ import annotations

import logging

import pytest

from airmove.core.telemetry import session_logger
from airmove.core.telemetry.session_logger import SESSION_FILES, SessionLogger


@pytest.fixture()
def session(tmp_path):
    logger = SessionLogger(session_dir=tmp_path / "session")
    yield logger
    logger.close()


def test_creates_one_file_per_channel(session):
    for filename in SESSION_FILES:
        assert (session.log_dir / filename).exists()


def test_records_route_to_their_channel(session):
    logging.getLogger("airmove.core.imu.gesture_recognizer").info("Gesture up")
    logging.getLogger("airmove.core.input.action_dispatcher").info("Dispatch up -> dispatched")
    session.close()

    gestures = (session.log_dir / "gestures.log").read_text()
    dispatch = (session.log_dir / "dispatch.log").read_text()
    combined = (session.log_dir / "session.log").read_text()

    assert "Gesture up" in gestures
    assert "Dispatch up" not in gestures
    assert "Dispatch up" in dispatch
    assert "Gesture up" in combined and "Dispatch up" in combined


def test_close_detaches_handlers(session):
    root = logging.getLogger("airmove")
    attached = len(root.handlers)
    session.close()
    assert len(root.handlers) < attached


def test_global_instance_is_reused(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.setattr(session_logger, "_session_logger", None)
    first = session_logger.get_session_logger(session_dir=tmp_path)
    try:
        assert session_logger.get_session_logger() is first
    finally:
        session_logger.close_session_logger()
    assert session_logger._session_logger is None
