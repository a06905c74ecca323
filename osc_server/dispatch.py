"""
OSC packet decoding and dispatch onto a LightState.

Supported addresses each take one float in 0..1:
    /red /green /blue   - scaled to 0-255
    /warm /cool         - scaled to 0-99
"""

import logging
import math
from typing import Dict, Tuple, Union

from pythonosc import osc_bundle, osc_message
from pythonosc.osc_bundle import OscBundle
from pythonosc.osc_message import OscMessage
from pythonosc.parsing import osc_types

from yongnuo_controller.protocol import RGB_MAX, WHITE_MAX
from yongnuo_controller.state import LightState, Modification

logger = logging.getLogger(__name__)

Packet = Union[OscMessage, OscBundle]

# address -> (state field, channel maximum, modification)
ROUTES: Dict[str, Tuple[str, int, Modification]] = {
    "/red": ("red", RGB_MAX, Modification.RGB),
    "/green": ("green", RGB_MAX, Modification.RGB),
    "/blue": ("blue", RGB_MAX, Modification.RGB),
    "/warm": ("warm", WHITE_MAX, Modification.WHITE),
    "/cool": ("cool", WHITE_MAX, Modification.WHITE),
}

_PARSE_ERRORS = (
    osc_message.ParseError,
    osc_bundle.ParseError,
    osc_types.ParseError,
    UnicodeDecodeError,
)


class DecodeError(Exception):
    """A datagram is not a valid OSC message or bundle."""


def decode_datagram(data: bytes) -> Packet:
    """
    Decode a UDP datagram into an OSC message or bundle.

    Raises:
        DecodeError: if the datagram cannot be parsed
    """
    try:
        if OscBundle.dgram_is_bundle(data):
            return OscBundle(data)
        if OscMessage.dgram_is_message(data):
            return OscMessage(data)
    except _PARSE_ERRORS as e:
        raise DecodeError(str(e)) from e
    raise DecodeError("Datagram is neither an OSC message nor a bundle")


def read_float(message: OscMessage) -> float:
    """Return the first argument as a float, or 0.0 if it is missing or not numeric."""
    if not message.params:
        return 0.0
    value = message.params[0]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def scale_channel(value: float, maximum: int) -> int:
    """
    Scale a 0..1 control value to an integer channel value.

    Rounds to nearest (ties to even) after clamping to [0, maximum], so
    1.0 maps to exactly `maximum`. NaN maps to 0.
    """
    scaled = value * maximum
    if math.isnan(scaled):
        return 0
    return int(round(max(0.0, min(float(maximum), scaled))))


def handle_message(message: OscMessage, state: LightState) -> Modification:
    """Apply a single message to the state."""
    logger.debug(f"{message.address}: {' '.join(str(arg) for arg in message.params)}")

    route = ROUTES.get(message.address)
    if route is None:
        logger.warning(f"Unsupported OSC address: {message.address}")
        return Modification.NONE

    channel, maximum, modification = route
    setattr(state, channel, scale_channel(read_float(message), maximum))
    return modification


def handle_bundle(bundle: OscBundle, state: LightState) -> Modification:
    """
    Apply every packet of a bundle in order.

    All members change the state, but only the last member's modification
    is returned. A bundle that sets both RGB and white channels therefore
    reports just the kind of its final member.
    """
    modification = Modification.NONE
    for content in bundle:
        modification = dispatch_packet(content, state)
    return modification


def dispatch_packet(packet: Packet, state: LightState) -> Modification:
    """Apply a decoded OSC packet to a mutable state and report what changed."""
    if isinstance(packet, OscBundle):
        return handle_bundle(packet, state)
    return handle_message(packet, state)
