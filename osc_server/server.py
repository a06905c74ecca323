"""
OSC Server for Yongnuo BLE LED light control.

This server keeps a connection to one light and forwards channel values
received as OSC messages, enabling integration with creative tools like
TouchDesigner, Max/MSP, QLab and more.
"""

import argparse
import asyncio
import logging
import socket
import sys
import threading
from enum import Enum
from typing import Iterator, List, Optional

from yongnuo_controller import (
    BLEAddress,
    Light,
    LightError,
    LightState,
    Modification,
    locate_light,
    scan_for_lights,
)
from yongnuo_controller.protocol import (
    CONNECT_SCAN_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DISCOVER_TIMEOUT,
    POLL_TIMEOUT,
    RECEIVE_BUFFER_SIZE,
)

from .dispatch import ROUTES, DecodeError, decode_datagram, dispatch_packet
from .mailbox import StateMailbox

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S"
)
logger = logging.getLogger(__name__)

# sysexits.h EX_USAGE
EXIT_USAGE = 64


class BridgeState(Enum):
    """Setup progress of the bridge. RUNNING is final."""
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    RUNNING = "running"


class LightOSCServer:
    """
    OSC Server that owns one light connection and forwards channel changes.

    OSC Address Patterns:
        /red <0-1>      - Red channel (0-255 on the light)
        /green <0-1>    - Green channel (0-255 on the light)
        /blue <0-1>     - Blue channel (0-255 on the light)
        /warm <0-1>     - Warm white channel (0-99 on the light)
        /cool <0-1>     - Cool white channel (0-99 on the light)

    Bundles are applied member by member.

    Two threads run once connected. The ingestion thread owns the socket
    and a private LightState; it publishes snapshots to a StateMailbox.
    The transmit thread owns the light and writes one frame per update it
    takes from the mailbox. Updates published faster than the light
    accepts them are coalesced. Light coroutines run on an event loop
    thread owned by the server.
    """

    def __init__(
        self,
        address: BLEAddress,
        listen_host: str = DEFAULT_HOST,
        listen_port: int = DEFAULT_PORT,
        scan_timeout: float = CONNECT_SCAN_TIMEOUT,
        light: Optional[Light] = None,
        mailbox: Optional[StateMailbox] = None
    ):
        """
        Initialize the OSC server.

        Args:
            address: BLE address of the light to control
            listen_host: Host to listen on for OSC messages
            listen_port: Port to listen on for OSC messages
            scan_timeout: Seconds to scan for the light before connecting
            light: Already constructed light to use instead of scanning
            mailbox: Mailbox shared by the ingestion and transmit threads
        """
        self.address = address
        self.listen_host = listen_host
        self.listen_port = listen_port
        self.scan_timeout = scan_timeout

        self.light = light
        self.mailbox = mailbox if mailbox is not None else StateMailbox()
        self.state: Optional[BridgeState] = None

        self._socket: Optional[socket.socket] = None

        # Set up async event loop for light operations. It runs for the
        # life of the server so bleak callbacks are serviced between writes.
        self.loop = asyncio.new_event_loop()

        def run_loop():
            asyncio.set_event_loop(self.loop)
            self.loop.run_forever()

        self._loop_thread = threading.Thread(target=run_loop, name="ble-loop", daemon=True)
        self._loop_thread.start()

    def _run_async(self, coro):
        """Run an async coroutine on the light's event loop and wait for its result."""
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return future.result()

    @property
    def server_address(self):
        """The (host, port) the socket is bound to."""
        if not self._socket:
            raise RuntimeError("Socket is not open")
        return self._socket.getsockname()

    def open_socket(self) -> None:
        """
        Bind the UDP socket for OSC messages.

        Raises:
            OSError: if the address cannot be bound
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.listen_host, self.listen_port))
        except OSError:
            sock.close()
            raise
        self._socket = sock
        host, port = sock.getsockname()
        logger.info(f"OSC server on {host}:{port}")

    def connect(self) -> None:
        """
        Locate the light, connect and send the initialization frame.

        Raises:
            LightError: on any setup failure; nothing is retried
        """
        self.state = BridgeState.CONNECTING
        logger.info(f"Connecting to device {self.address}...")

        if self.light is None:
            info = self._run_async(locate_light(self.address, self.scan_timeout))
            self.light = Light(info.device or str(info.address))

        self._run_async(self.light.connect())
        self._run_async(self.light.discover_command_characteristic())

        self.state = BridgeState.HANDSHAKING
        logger.info("Initializing light...")
        self._run_async(self.light.initialize())

        self.state = BridgeState.RUNNING
        logger.info("Connected.")

    def close(self) -> None:
        """Release the socket and stop the event loop after a failed setup."""
        if self._socket:
            self._socket.close()
            self._socket = None

        if not self.loop.is_closed():
            self.loop.call_soon_threadsafe(self.loop.stop)
            self._loop_thread.join(timeout=5)
            if not self._loop_thread.is_alive():
                self.loop.close()

    # Ingestion thread

    def _receive_burst(self) -> Iterator[bytes]:
        """Wait for one datagram, then yield any others already queued."""
        self._socket.settimeout(None)
        yield self._socket.recv(RECEIVE_BUFFER_SIZE)

        self._socket.settimeout(POLL_TIMEOUT)
        while True:
            try:
                data = self._socket.recv(RECEIVE_BUFFER_SIZE)
            except socket.timeout:
                return
            yield data

    def _handle_datagram(self, data: bytes, state: LightState) -> Modification:
        """Decode one datagram and apply it to the state."""
        try:
            packet = decode_datagram(data)
        except DecodeError as e:
            logger.warning(f"Dropping malformed OSC datagram ({len(data)} bytes): {e}")
            return Modification.NONE
        return dispatch_packet(packet, state)

    def _ingest_burst(self, state: LightState) -> None:
        """Apply a burst of datagrams, publishing each change as it is made."""
        for data in self._receive_burst():
            modification = self._handle_datagram(data, state)
            # NONE would overwrite a pending update the light has not seen yet
            if modification is not Modification.NONE:
                self.mailbox.publish(state, modification)

    def _ingest_forever(self) -> None:
        state = LightState()
        while True:
            self._ingest_burst(state)

    # Transmit thread

    def _transmit(self, state: LightState, modification: Modification) -> None:
        """Write one update to the light. Failures are logged, not raised."""
        try:
            self._run_async(self.light.send_state(state, modification))
        except Exception as e:
            logger.error(f"Could not send {modification.value} state: {e}")

    def _transmit_forever(self) -> None:
        while True:
            state, modification = self.mailbox.consume()
            self._transmit(state, modification)

    def serve_forever(self) -> None:
        """
        Run the ingestion and transmit threads until interrupted.

        Raises:
            RuntimeError: if not connected, or if a worker thread dies
        """
        if self.state is not BridgeState.RUNNING:
            raise RuntimeError("Not connected to light")
        if not self._socket:
            raise RuntimeError("Socket is not open")

        threads: List[threading.Thread] = [
            threading.Thread(target=self._ingest_forever, name="osc-ingest", daemon=True),
            threading.Thread(target=self._transmit_forever, name="ble-transmit", daemon=True),
        ]
        for thread in threads:
            thread.start()

        logger.info("OSC server started. Waiting for messages...")
        logger.info(f"Supported addresses: {', '.join(ROUTES)}")
        logger.info("Press Ctrl+C to stop the server.")

        # Main thread just waits so it can receive KeyboardInterrupt
        try:
            while all(thread.is_alive() for thread in threads):
                threads[0].join(timeout=0.5)
        except KeyboardInterrupt:
            logger.info("Stopping OSC server...")
            return

        dead = [thread.name for thread in threads if not thread.is_alive()]
        raise RuntimeError(f"Worker thread stopped: {', '.join(dead)}")


def cmd_discover(args: argparse.Namespace) -> int:
    """Scan for nearby BLE devices and print them."""
    print(f"Discovering available lights... {args.timeout:g}s")

    try:
        devices = asyncio.run(scan_for_lights(args.timeout))
    except LightError as e:
        print(f"Error: {e}")
        return 1

    print("\nFound:")
    for device in devices:
        print(f"{device.address} ({device.name or 'Unknown'})")
    return 0


def cmd_connect(args: argparse.Namespace) -> int:
    """Connect to a light and bridge OSC messages to it until interrupted."""
    try:
        address = BLEAddress.parse(args.mac)
    except ValueError as e:
        print(f"Target address invalid: {e}")
        return 1

    server = LightOSCServer(
        address,
        listen_host=args.host,
        listen_port=args.port,
        scan_timeout=args.scan_timeout,
    )

    try:
        server.open_socket()
    except OSError as e:
        print(f"Can't open server socket: {e}")
        server.close()
        return 1

    try:
        server.connect()
    except LightError as e:
        print(f"Error: {e}")
        server.close()
        return 1

    try:
        server.serve_forever()
    except RuntimeError as e:
        print(f"Error: {e}")
        server.close()
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the OSC server."""
    parser = argparse.ArgumentParser(
        prog="yongnuo-osc-server",
        description=(
            "Connect to a Yongnuo LED light over Bluetooth LE and control it using OSC. "
            "Supported OSC addresses are: /red, /green, /blue, /warm, /cool, "
            "accepting single float values in range 0..1"
        )
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- discover subcommand ---
    discover_parser = subparsers.add_parser(
        "discover", help="Discover available Bluetooth LE devices",
    )
    discover_parser.add_argument(
        "--timeout", "-t", type=float, default=DISCOVER_TIMEOUT,
        help="Scan timeout in seconds (default: 10)",
    )

    # --- connect subcommand ---
    connect_parser = subparsers.add_parser(
        "connect", help="Connect to a Yongnuo Bluetooth LE device",
    )
    connect_parser.add_argument(
        "--mac", "-m", required=True,
        help="MAC address of the device",
    )
    connect_parser.add_argument(
        "--port", "-p", type=int, default=DEFAULT_PORT,
        help="UDP port where the OSC server should listen for messages (default: 8000)",
    )
    connect_parser.add_argument(
        "--host", "-H", default=DEFAULT_HOST,
        help="Host to listen on (default: 0.0.0.0)",
    )
    connect_parser.add_argument(
        "--scan-timeout", type=float, default=CONNECT_SCAN_TIMEOUT,
        help="Seconds to scan for the device before connecting (default: 5)",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    handlers = {
        "discover": cmd_discover,
        "connect": cmd_connect,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
