from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from .outbox import Outbox
from .rooms import RoomDirectory

LOGGER = logging.getLogger(__name__)


def _now() -> float:
    return time.time()


def _issue_identity() -> str:
    return secrets.token_urlsafe(12)


@dataclass
class Connection:
    identity: str
    outbox: Outbox
    room: Optional[str] = None
    connected_at: float = field(default_factory=_now)
    closing: bool = False


class ConnectionRegistry:
    """
    Live connections keyed by identity.

    ``unregister`` removes the connection from its room through the directory
    before the identity is discarded, and is safe to call any number of times
    from any number of teardown paths.
    """

    def __init__(self, directory: RoomDirectory, *, outbox_size: int = 256) -> None:
        self._directory = directory
        self._outbox_size = outbox_size
        self._connections: Dict[str, Connection] = {}

    def register(self) -> str:
        return self.open().identity

    def open(self) -> Connection:
        identity = _issue_identity()
        while identity in self._connections:
            identity = _issue_identity()
        connection = Connection(
            identity=identity,
            outbox=Outbox(identity, queue_size=self._outbox_size),
        )
        self._connections[identity] = connection
        LOGGER.info("User connected: %s", identity)
        return connection

    def get(self, identity: str) -> Optional[Connection]:
        connection = self._connections.get(identity)
        if connection is None or connection.closing:
            return None
        return connection

    def lookup(self, identity: str) -> Optional[str]:
        connection = self.get(identity)
        return connection.room if connection else None

    def set_room(self, identity: str, room_id: Optional[str]) -> None:
        connection = self.get(identity)
        if connection is not None:
            connection.room = room_id

    def unregister(self, identity: str) -> bool:
        connection = self._connections.get(identity)
        if connection is None or connection.closing:
            return False
        connection.closing = True
        room_id = connection.room
        if room_id is not None:
            self._directory.leave(room_id, identity)
            connection.room = None
        self._connections.pop(identity, None)
        connection.outbox.close()
        LOGGER.info("User disconnected: %s", identity)
        return True

    def __contains__(self, identity: object) -> bool:
        return isinstance(identity, str) and self.get(identity) is not None

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    def __len__(self) -> int:
        return len(self._connections)


__all__ = ["Connection", "ConnectionRegistry"]
