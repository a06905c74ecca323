"""
Single-slot handoff of light state from the OSC thread to the BLE thread.
"""

import threading
from typing import Optional, Tuple

from yongnuo_controller.state import LightState, Modification


class StateMailbox:
    """
    Last-write-wins mailbox holding at most one pending state update.

    publish() overwrites whatever is pending, so a slow consumer only ever
    sees the newest state. Intended for one producer and one consumer.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._updated = threading.Condition(self._lock)
        self._state = LightState()
        self._modification = Modification.NONE

    def publish(self, state: LightState, modification: Modification) -> None:
        """Replace the pending update with a copy of `state` and wake the consumer."""
        snapshot = state.snapshot()
        with self._lock:
            self._state = snapshot
            self._modification = modification
            self._updated.notify()

    def consume(self, timeout: Optional[float] = None) -> Optional[Tuple[LightState, Modification]]:
        """
        Wait for a pending update and take it.

        The stored state is kept after the update is taken; only the
        modification resets to NONE.

        Args:
            timeout: Seconds to wait, or None to wait forever

        Returns:
            (state copy, modification), or None if the timeout expired
        """
        with self._lock:
            ready = self._updated.wait_for(
                lambda: self._modification is not Modification.NONE, timeout
            )
            if not ready:
                return None
            update = (self._state.snapshot(), self._modification)
            self._modification = Modification.NONE
        return update
