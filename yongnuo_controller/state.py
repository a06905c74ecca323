"""
Light state values shared between OSC ingestion and BLE transmission.
"""

from dataclasses import dataclass, replace
from enum import Enum


class Modification(Enum):
    """Which part of the light state a dispatch changed."""
    NONE = "none"
    RGB = "rgb"
    WHITE = "white"


@dataclass
class LightState:
    """
    Desired channel values for the light.

    red, green and blue range 0-255; warm and cool range 0-99.
    Instances are owned by a single thread. Use snapshot() to hand a copy
    to another thread.
    """

    red: int = 0
    green: int = 0
    blue: int = 0
    warm: int = 0
    cool: int = 0

    def snapshot(self) -> "LightState":
        """Return an independent copy of this state."""
        return replace(self)
