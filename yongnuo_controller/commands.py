"""
Command builders for Yongnuo BLE LED lights.

Each command is built as a plain 6-byte frame ready to write to the
COMMAND characteristic.
"""

from .protocol import (
    FRAME_HEADER,
    FRAME_TRAILER,
    OPCODE_INIT,
    OPCODE_RGB,
    OPCODE_WHITE,
    WHITE_MODE,
)
from .state import LightState


def build_frame(opcode: int, *args: int) -> bytes:
    """
    Build a command frame.

    Frame format: [0xAE][opcode][arg0][arg1][arg2][0x56]

    Args:
        opcode: Command opcode byte
        *args: Up to three payload bytes (missing bytes are zero)

    Returns:
        6-byte frame
    """
    payload = list(args) + [0] * (3 - len(args))
    return bytes([FRAME_HEADER, opcode, *payload, FRAME_TRAILER])


class Command:
    """Factory for building light command frames."""

    @staticmethod
    def handshake() -> bytes:
        """
        Initialize the light for remote control.

        Must be written once after connecting, before any other command.

        Returns:
            Command frame
        """
        return build_frame(OPCODE_INIT)

    @staticmethod
    def rgb(state: LightState) -> bytes:
        """
        Set the RGB LEDs.

        Args:
            state: Light state; red, green and blue are used (0-255)

        Returns:
            Command frame
        """
        return build_frame(OPCODE_RGB, state.red, state.green, state.blue)

    @staticmethod
    def white(state: LightState) -> bytes:
        """
        Set the white LEDs.

        Note the device expects cool before warm.

        Args:
            state: Light state; cool and warm are used (0-99)

        Returns:
            Command frame
        """
        return build_frame(OPCODE_WHITE, WHITE_MODE, state.cool, state.warm)
