"""Errors raised while setting up a connection to a light."""


class LightError(Exception):
    """Base class for light setup failures. These are not retried."""


class LightNotFoundError(LightError):
    """No scanned device matched the requested address."""


class ConnectionFailedError(LightError):
    """The BLE link to the light could not be established."""


class CharacteristicMissingError(LightError):
    """The light does not expose the command characteristic."""


class HandshakeError(LightError):
    """The initialization frame could not be written."""


class AdapterUnavailableError(LightError):
    """No usable Bluetooth adapter for scanning."""
