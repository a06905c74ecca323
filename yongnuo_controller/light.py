"""
High-level Light controller class.

Provides an async API for locating, connecting to and commanding
Yongnuo BLE LED lights.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from bleak import BleakClient, BleakScanner
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak.exc import BleakError

from .commands import Command
from .exceptions import (
    AdapterUnavailableError,
    CharacteristicMissingError,
    ConnectionFailedError,
    HandshakeError,
    LightNotFoundError,
)
from .protocol import CONNECT_SCAN_TIMEOUT, Characteristics
from .state import LightState, Modification

logger = logging.getLogger(__name__)

# Errors bleak surfaces for a failed connection or write
BLE_ERRORS = (BleakError, asyncio.TimeoutError, OSError)

_ADDRESS_PATTERN = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")


@dataclass(frozen=True)
class BLEAddress:
    """A 6-byte Bluetooth hardware address."""

    octets: bytes

    @classmethod
    def parse(cls, text: str) -> "BLEAddress":
        """
        Parse a colon separated hex address such as "AA:BB:CC:DD:EE:FF".

        Raises:
            ValueError: if the text is not a valid address
        """
        text = text.strip()
        if not _ADDRESS_PATTERN.match(text):
            raise ValueError(f"Invalid BLE address: {text!r}")
        return cls(bytes(int(part, 16) for part in text.split(":")))

    def __str__(self) -> str:
        return ":".join(f"{octet:02X}" for octet in self.octets)


@dataclass(frozen=True)
class DeviceInfo:
    """A peripheral seen during a scan."""

    name: Optional[str]
    address: BLEAddress
    device: Optional[BLEDevice] = field(default=None, compare=False, repr=False)


class Light:
    """
    Yongnuo BLE LED light controller.

    Usage:
        async with Light("AA:BB:CC:DD:EE:FF") as light:
            await light.set_rgb(LightState(red=255))
            await light.set_white(LightState(warm=50, cool=20))
    """

    def __init__(self, device: Union[BLEDevice, str]):
        """
        Initialize light controller.

        Args:
            device: BLEDevice from a scan, or the light's BLE address
        """
        self.device = device
        self.address = device.address if isinstance(device, BLEDevice) else device
        self._client: Optional[BleakClient] = None
        self._command_char: Optional[BleakGATTCharacteristic] = None

    async def __aenter__(self) -> "Light":
        """Async context manager entry - connects and initializes the light."""
        await self.connect()
        await self.discover_command_characteristic()
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - disconnects from the light."""
        await self.disconnect()

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to the light."""
        return self._client is not None and self._client.is_connected

    async def connect(self) -> None:
        """
        Establish BLE connection to the light.

        Raises:
            ConnectionFailedError: if the link cannot be established
        """
        self._client = BleakClient(self.device)
        try:
            await self._client.connect()
        except BLE_ERRORS as e:
            self._client = None
            raise ConnectionFailedError(f"Could not connect to device {self.address}: {e}") from e

    async def disconnect(self) -> None:
        """Disconnect from the light."""
        if self._client and self._client.is_connected:
            await self._client.disconnect()
        self._client = None
        self._command_char = None

    async def discover_command_characteristic(self) -> BleakGATTCharacteristic:
        """
        Find the vendor command characteristic among the light's services.

        Raises:
            CharacteristicMissingError: if the light does not expose it
        """
        if not self._client:
            raise RuntimeError("Not connected to light")

        for service in self._client.services:
            for char in service.characteristics:
                if char.uuid.lower() == Characteristics.COMMAND:
                    self._command_char = char
                    return char

        raise CharacteristicMissingError(
            f"Could not find matching command characteristic {Characteristics.COMMAND}"
        )

    async def initialize(self) -> None:
        """
        Send the initialization frame.

        Raises:
            HandshakeError: if the frame cannot be written
        """
        try:
            await self._write(Command.handshake())
        except BLE_ERRORS as e:
            raise HandshakeError(f"Couldn't send initialize message: {e}") from e

    async def _write(self, frame: bytes) -> None:
        """Write a frame to the command characteristic without waiting for a response."""
        if not self._client or not self._command_char:
            raise RuntimeError("Not connected to light")
        await self._client.write_gatt_char(self._command_char, frame, response=False)

    # High-level commands

    async def set_rgb(self, state: LightState) -> None:
        """
        Send the RGB channels of a state.

        Args:
            state: Light state (red, green, blue are sent)
        """
        logger.info(f"Sending RGB state: {state.red}, {state.green}, {state.blue}")
        await self._write(Command.rgb(state))

    async def set_white(self, state: LightState) -> None:
        """
        Send the white channels of a state.

        Args:
            state: Light state (cool, warm are sent)
        """
        logger.info(f"Sending White state: {state.cool}, {state.warm}")
        await self._write(Command.white(state))

    async def send_state(self, state: LightState, modification: Modification) -> None:
        """
        Send the part of a state named by a modification.

        Exactly one frame is written for RGB or WHITE; nothing for NONE.
        """
        if modification is Modification.RGB:
            await self.set_rgb(state)
        elif modification is Modification.WHITE:
            await self.set_white(state)


# Utility functions

async def scan_for_lights(timeout: float = 10.0) -> List[DeviceInfo]:
    """
    Scan for nearby BLE devices.

    Args:
        timeout: Scan duration in seconds (negative values scan for 0s)

    Returns:
        Every device seen during the scan that reports a hardware address

    Raises:
        AdapterUnavailableError: if scanning cannot be started
    """
    try:
        devices = await BleakScanner.discover(timeout=max(0.0, timeout))
    except BLE_ERRORS as e:
        raise AdapterUnavailableError(f"Can't start scanning for devices: {e}") from e

    found = []
    for device in devices:
        try:
            address = BLEAddress.parse(device.address)
        except ValueError:
            # e.g. CoreBluetooth reports per-host UUIDs instead of addresses
            logger.debug(f"Skipping device without hardware address: {device.address}")
            continue
        found.append(DeviceInfo(name=device.name, address=address, device=device))
    return found


def find_light_by_address(devices: Sequence[DeviceInfo], address: BLEAddress) -> DeviceInfo:
    """
    Find a scanned device by exact address.

    Raises:
        LightNotFoundError: if no device has the address
    """
    for info in devices:
        if info.address == address:
            return info
    raise LightNotFoundError(f"Could not find devices with the specified address {address}")


async def locate_light(address: BLEAddress, timeout: float = CONNECT_SCAN_TIMEOUT) -> DeviceInfo:
    """Scan for `timeout` seconds and return the device with the given address."""
    devices = await scan_for_lights(timeout)
    return find_light_by_address(devices, address)
