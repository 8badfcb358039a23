from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, FrozenSet

from .registry import ConnectionRegistry
from .rooms import RoomDirectory

LOGGER = logging.getLogger(__name__)


def _clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CaptureNotice:
    capture_id: str
    room_id: str
    timestamp: int
    recipients: FrozenSet[str]

    def as_payload(self) -> dict:
        return {
            "roomId": self.room_id,
            "captureId": self.capture_id,
            "timestamp": self.timestamp,
        }


class CaptureCoordinator:
    """Fan out one ``capture-now`` per trigger to the room's current members."""

    def __init__(
        self,
        directory: RoomDirectory,
        registry: ConnectionRegistry,
        *,
        clock: Callable[[], int] = _clock_ms,
    ) -> None:
        self._directory = directory
        self._registry = registry
        self._clock = clock

    def trigger_capture(self, room_id: str) -> CaptureNotice:
        recipients = self._directory.members_of(room_id)
        notice = CaptureNotice(
            capture_id=secrets.token_hex(6),
            room_id=room_id,
            timestamp=self._clock(),
            recipients=recipients,
        )
        payload = notice.as_payload()
        for identity in recipients:
            connection = self._registry.get(identity)
            if connection is not None:
                connection.outbox.push("capture-now", payload)
        LOGGER.info(
            "Capture triggered in room %s (%s, %d members)",
            room_id,
            notice.capture_id,
            len(recipients),
        )
        return notice


__all__ = ["CaptureCoordinator", "CaptureNotice"]
