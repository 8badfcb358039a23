from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, FrozenSet, Optional

from .capture import CaptureCoordinator
from .models import (
    BackgroundUpdateMessage,
    CaptureTriggerMessage,
    ClientMessage,
    JoinRoomMessage,
    LayerUpdateMessage,
    LeaveRoomMessage,
    MalformedMessage,
    PingMessage,
    SignalMessage,
    parse_client_message,
)
from .registry import Connection, ConnectionRegistry
from .relay import SignalRelay
from .rooms import MembershipEvent, RoomDirectory
from .state import StateBroadcaster

LOGGER = logging.getLogger(__name__)


class CoordinatorHub:
    """
    Entry point for one process worth of rooms and connections.

    Wires the registry, directory, relay, capture coordinator and state
    broadcaster together and turns decoded client frames into calls on them.
    Join/leave notices are produced by a directory subscription, so every path
    that changes membership (explicit leave, room switch, disconnect) announces
    it the same way.
    """

    def __init__(
        self,
        *,
        outbox_size: int = 256,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.directory = RoomDirectory()
        self.registry = ConnectionRegistry(self.directory, outbox_size=outbox_size)
        self.relay = SignalRelay(self.registry)
        capture_kwargs: Dict[str, Any] = {"clock": clock} if clock else {}
        self.capture = CaptureCoordinator(self.directory, self.registry, **capture_kwargs)
        self.state = StateBroadcaster(self.directory, self.registry)
        self.directory.subscribe(self._on_membership)

    # Connection lifecycle -----------------------------------------------------
    def connect(self) -> Connection:
        return self.registry.open()

    def disconnect(self, identity: str) -> bool:
        return self.registry.unregister(identity)

    def shutdown(self) -> None:
        for connection in self.registry:
            self.registry.unregister(connection.identity)

    # Membership ---------------------------------------------------------------
    def join_room(self, identity: str, room_id: str) -> Optional[FrozenSet[str]]:
        connection = self.registry.get(identity)
        if connection is None:
            return None
        if connection.room is not None and connection.room != room_id:
            previous = connection.room
            connection.room = None
            self.directory.leave(previous, identity)
        connection.room = room_id
        return self.directory.join(room_id, identity)

    def leave_room(self, identity: str) -> bool:
        connection = self.registry.get(identity)
        if connection is None or connection.room is None:
            return False
        room_id = connection.room
        connection.room = None
        return self.directory.leave(room_id, identity)

    def _on_membership(self, event: MembershipEvent) -> None:
        if event.kind == "joined":
            self._announce_join(event)
        else:
            self._push_many(event.members, "user-left", {"userId": event.identity})

    def _announce_join(self, event: MembershipEvent) -> None:
        others = event.others
        joiner = self.registry.get(event.identity)
        if joiner is not None:
            joiner.outbox.push(
                "room-joined",
                {
                    "roomId": event.room_id,
                    "userId": event.identity,
                    "members": sorted(others),
                },
            )
            for identity in sorted(others):
                joiner.outbox.push("user-joined", {"userId": identity, "initiator": False})
        self._push_many(
            others, "user-joined", {"userId": event.identity, "initiator": True}
        )

    def _push_many(
        self, identities: FrozenSet[str], kind: str, payload: Dict[str, Any]
    ) -> None:
        for identity in identities:
            connection = self.registry.get(identity)
            if connection is not None:
                connection.outbox.push(kind, payload)

    # Dispatch -----------------------------------------------------------------
    def handle_text(self, identity: str, raw: str | bytes) -> bool:
        connection = self.registry.get(identity)
        if connection is None:
            return False
        try:
            message = parse_client_message(raw)
        except MalformedMessage as exc:
            LOGGER.debug("Discarding malformed frame from %s: %s", identity, exc.detail)
            connection.outbox.push(
                "error", {"error": "malformed_message", "detail": exc.detail}
            )
            return False
        try:
            self.dispatch(identity, message)
        except Exception as exc:
            LOGGER.exception("Failed to handle %s from %s", message.type, identity)
            connection.outbox.push(
                "error", {"error": "server_exception", "detail": str(exc)}
            )
            return False
        return True

    def dispatch(self, identity: str, message: ClientMessage) -> None:
        if isinstance(message, JoinRoomMessage):
            self.join_room(identity, message.room_id)
        elif isinstance(message, LeaveRoomMessage):
            self.leave_room(identity)
        elif isinstance(message, SignalMessage):
            self.relay.relay(identity, message.to, message.signal)
        elif isinstance(message, CaptureTriggerMessage):
            if self._in_room(identity, message.room_id, message.type):
                self.capture.trigger_capture(message.room_id)
        elif isinstance(message, LayerUpdateMessage):
            if message.sender_id is not None and message.sender_id != identity:
                LOGGER.warning(
                    "Discarding layer-update from %s claiming sender %s",
                    identity,
                    message.sender_id,
                )
                return
            if self._in_room(identity, message.room_id, message.type):
                self.state.update_layers(message.room_id, identity, message.layers)
        elif isinstance(message, BackgroundUpdateMessage):
            if self._in_room(identity, message.room_id, message.type):
                self.state.update_background(
                    message.room_id, identity, message.background
                )
        elif isinstance(message, PingMessage):
            connection = self.registry.get(identity)
            if connection is not None:
                connection.outbox.push("pong", {"ts": time.time()})

    def _in_room(self, identity: str, room_id: str, kind: str) -> bool:
        current = self.registry.lookup(identity)
        if current == room_id:
            return True
        LOGGER.warning(
            "Discarding %s from %s: not a member of room %s", kind, identity, room_id
        )
        return False

    def stats(self) -> Dict[str, int]:
        return {
            "rooms": len(self.directory),
            "connections": len(self.registry),
            "members": self.directory.member_count(),
        }


__all__ = ["CoordinatorHub"]
