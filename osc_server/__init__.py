"""
OSC Server for Yongnuo BLE LED light control.

Bridges OSC channel messages received over UDP to BLE command frames,
enabling integration with creative tools like TouchDesigner, Max/MSP,
QLab and more.
"""

from .dispatch import DecodeError, decode_datagram, dispatch_packet
from .mailbox import StateMailbox
from .server import BridgeState, LightOSCServer

__all__ = [
    "LightOSCServer",
    "BridgeState",
    "StateMailbox",
    "DecodeError",
    "decode_datagram",
    "dispatch_packet",
]
