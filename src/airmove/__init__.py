"""AirMove: head gestures from motion-tracking earphones mapped to keyboard and system actions."""

__version__ = "0.3.0"
