"""
Session log files for gesture and dispatch debugging.

Module loggers live under the ``airmove`` namespace; this helper attaches
file handlers so one listening session lands in its own directory:

- gestures.log: recognizer decisions (fired and suppressed gestures)
- dispatch.log: dispatch outcomes, event synthesis failures
- watchdog.log: wake-me countdown and alarms
- session.log: everything under ``airmove`` at DEBUG

Console output stays at WARNING (INFO with verbose=True).

Usage:
    from airmove.core.telemetry.session_logger import get_session_logger

    session = get_session_logger()
    print(session.log_dir)
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from airmove.utils.config import Config

_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s'
_DATEFMT = '%H:%M:%S'

# file name -> logger namespace
SESSION_FILES = {
    "gestures.log": "airmove.core.imu.gesture_recognizer",
    "dispatch.log": "airmove.core.input",
    "watchdog.log": "airmove.core.imu.inactivity_watchdog",
    "session.log": "airmove",
}


class SessionLogger:
    """Attaches per-session file handlers to the airmove loggers."""

    def __init__(self, session_dir: Optional[Path] = None, verbose: bool = False):
        if session_dir is None:
            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            self.log_dir = Path(Config.LOG_DIR) / f"session_{timestamp}"
        else:
            self.log_dir = Path(session_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._handlers = []
        formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

        root = logging.getLogger("airmove")
        root.setLevel(logging.DEBUG)

        for filename, namespace in SESSION_FILES.items():
            fh = logging.FileHandler(self.log_dir / filename, mode='w')
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(formatter)
            logging.getLogger(namespace).addHandler(fh)
            self._handlers.append((namespace, fh))

        ch = logging.StreamHandler()
        ch.setLevel(logging.INFO if verbose else logging.WARNING)
        ch.setFormatter(formatter)
        root.addHandler(ch)
        self._handlers.append(("airmove", ch))

    def close(self):
        """Close all handlers."""
        for namespace, handler in self._handlers:
            logging.getLogger(namespace).removeHandler(handler)
            handler.close()
        self._handlers.clear()


# Global instance
_session_logger = None


def get_session_logger(session_dir: Optional[Path] = None, verbose: bool = False) -> SessionLogger:
    """Get or create the session logger instance."""
    global _session_logger
    if _session_logger is None:
        _session_logger = SessionLogger(session_dir=session_dir, verbose=verbose)
    return _session_logger


def close_session_logger() -> None:
    global _session_logger
    if _session_logger is not None:
        _session_logger.close()
        _session_logger = None
