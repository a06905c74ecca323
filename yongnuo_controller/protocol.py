"""
Protocol constants for Yongnuo BLE LED light communication.

Based on the command format the light's own mobile app writes to the
vendor command characteristic. Every command is a fixed 6-byte frame:
[HEADER][opcode][payload x3][TRAILER]
"""

# BLE Characteristic UUIDs
class Characteristics:
    """BLE GATT characteristic UUIDs for light communication."""

    # Command channel (write without response, plain frames)
    COMMAND = "f000aa61-0451-4000-b000-000000000000"


# Frame delimiters
FRAME_HEADER = 0xAE
FRAME_TRAILER = 0x56

# Command opcodes
OPCODE_INIT = 0x33
OPCODE_RGB = 0xA1
OPCODE_WHITE = 0xAA

# The white command carries a constant mode byte before cool/warm
WHITE_MODE = 0x01

FRAME_LENGTH = 6

# Channel ranges accepted by the light
RGB_MAX = 255
WHITE_MAX = 99

# Scan duration used to find the light before connecting
CONNECT_SCAN_TIMEOUT = 5.0

# Default discovery scan duration
DISCOVER_TIMEOUT = 10.0

# OSC listener defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000

# Maximum datagram size read from the OSC socket
RECEIVE_BUFFER_SIZE = 4096

# How long to keep draining queued datagrams before publishing
POLL_TIMEOUT = 0.001
