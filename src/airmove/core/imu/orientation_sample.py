import math
from dataclasses import dataclass
from enum import Enum


class GestureDirection(Enum):
    """One of the four independent recognition channels."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class OrientationSample:
    """Head attitude reported by the earphones (roll unused)"""
    pitch: float           # Head tilt up/down, radians
    yaw: float             # Head turn left/right, radians
    timestamp: float       # Monotonic seconds

    @property
    def pitch_degrees(self) -> float:
        return math.degrees(self.pitch)

    @property
    def yaw_degrees(self) -> float:
        return math.degrees(self.yaw)
