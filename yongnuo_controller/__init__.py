"""
Yongnuo BLE LED Light Controller

A Python library for controlling Yongnuo Bluetooth Low Energy LED lights.

Usage:
    from yongnuo_controller import Light, LightState

    async with Light("AA:BB:CC:DD:EE:FF") as light:
        await light.set_rgb(LightState(red=255, green=128))
        await light.set_white(LightState(warm=50, cool=20))

Or use the OSC bridge:
    yongnuo-osc-server discover
    yongnuo-osc-server connect -m <address>
"""

from .commands import Command
from .exceptions import (
    AdapterUnavailableError,
    CharacteristicMissingError,
    ConnectionFailedError,
    HandshakeError,
    LightError,
    LightNotFoundError,
)
from .light import BLEAddress, DeviceInfo, Light, find_light_by_address, locate_light, scan_for_lights
from .protocol import Characteristics
from .state import LightState, Modification

__version__ = "0.1.0"

__all__ = [
    # Main class
    "Light",

    # Utility functions
    "scan_for_lights",
    "find_light_by_address",
    "locate_light",

    # Values
    "BLEAddress",
    "DeviceInfo",
    "LightState",
    "Modification",

    # Errors
    "LightError",
    "AdapterUnavailableError",
    "LightNotFoundError",
    "ConnectionFailedError",
    "CharacteristicMissingError",
    "HandshakeError",

    # Low-level access
    "Command",
    "Characteristics",
]
