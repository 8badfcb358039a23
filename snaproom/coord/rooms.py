"""
Room membership for collaborative capture sessions.

A room exists only while it has members: the first ``join`` creates it and the
``leave`` that removes the last member deletes it in the same step. Mutations
are plain synchronous calls with no await points, so on the single event loop
that owns the directory each join/leave is applied atomically with respect to
every other one. Subscribers are told about every successful join/leave after
the member set has been updated.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Literal

LOGGER = logging.getLogger(__name__)


def _now() -> float:
    return time.time()


@dataclass
class Room:
    room_id: str
    members: set[str] = field(default_factory=set)
    created_at: float = field(default_factory=_now)


@dataclass(frozen=True)
class MembershipEvent:
    kind: Literal["joined", "left"]
    room_id: str
    identity: str
    members: FrozenSet[str]
    rejoin: bool = False
    room_created: bool = False
    room_destroyed: bool = False

    @property
    def others(self) -> FrozenSet[str]:
        return self.members - {self.identity}


MembershipListener = Callable[[MembershipEvent], None]


class RoomDirectory:
    def __init__(self) -> None:
        self._rooms: Dict[str, Room] = {}
        self._listeners: List[MembershipListener] = []

    # Subscriptions ------------------------------------------------------------
    def subscribe(self, listener: MembershipListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def _notify(self, event: MembershipEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                LOGGER.exception(
                    "Membership listener failed for %s %s in room %s",
                    event.kind,
                    event.identity,
                    event.room_id,
                )

    # Mutations ----------------------------------------------------------------
    def join(self, room_id: str, identity: str) -> FrozenSet[str]:
        room = self._rooms.get(room_id)
        created = room is None
        if room is None:
            room = Room(room_id)
            self._rooms[room_id] = room
            LOGGER.info("Room %s created", room_id)
        rejoin = identity in room.members
        room.members.add(identity)
        members = frozenset(room.members)
        LOGGER.info(
            "User %s joined room %s (%d members%s)",
            identity,
            room_id,
            len(members),
            ", rejoin" if rejoin else "",
        )
        self._notify(
            MembershipEvent(
                kind="joined",
                room_id=room_id,
                identity=identity,
                members=members,
                rejoin=rejoin,
                room_created=created,
            )
        )
        return members

    def leave(self, room_id: str, identity: str) -> bool:
        room = self._rooms.get(room_id)
        if room is None or identity not in room.members:
            return False
        room.members.discard(identity)
        destroyed = not room.members
        if destroyed:
            del self._rooms[room_id]
        members = frozenset(room.members)
        LOGGER.info("User %s left room %s", identity, room_id)
        if destroyed:
            LOGGER.info("Room %s destroyed (empty)", room_id)
        self._notify(
            MembershipEvent(
                kind="left",
                room_id=room_id,
                identity=identity,
                members=members,
                room_destroyed=destroyed,
            )
        )
        return True

    # Queries ------------------------------------------------------------------
    def members_of(self, room_id: str) -> FrozenSet[str]:
        room = self._rooms.get(room_id)
        if room is None:
            return frozenset()
        return frozenset(room.members)

    def exists(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def member_count(self) -> int:
        return sum(len(room.members) for room in self._rooms.values())


__all__ = ["MembershipEvent", "MembershipListener", "Room", "RoomDirectory"]
