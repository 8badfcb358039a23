"""
Collaborative editor state fan-out.

Last write wins with no server-side merge: the broadcaster keeps no copy of the
layer list or background between updates. Each update is relayed as a full
replacement to every room member except its sender, and receivers replace their
local view unconditionally.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List

from .registry import ConnectionRegistry
from .rooms import RoomDirectory

LOGGER = logging.getLogger(__name__)


class StateBroadcaster:
    def __init__(self, directory: RoomDirectory, registry: ConnectionRegistry) -> None:
        self._directory = directory
        self._registry = registry

    def update_layers(
        self, room_id: str, sender_identity: str, new_layers: List[Dict[str, Any]]
    ) -> FrozenSet[str]:
        recipients = self._fan_out(
            room_id,
            sender_identity,
            "layer-update",
            {"roomId": room_id, "from": sender_identity, "layers": new_layers},
        )
        LOGGER.info(
            "Layer update in room %s (%d layers, %d recipients)",
            room_id,
            len(new_layers),
            len(recipients),
        )
        return recipients

    def update_background(
        self, room_id: str, sender_identity: str, new_background: Dict[str, Any]
    ) -> FrozenSet[str]:
        recipients = self._fan_out(
            room_id,
            sender_identity,
            "background-update",
            {"roomId": room_id, "from": sender_identity, "background": new_background},
        )
        LOGGER.info(
            "Background update in room %s (%d recipients)", room_id, len(recipients)
        )
        return recipients

    def _fan_out(
        self, room_id: str, sender_identity: str, kind: str, payload: Dict[str, Any]
    ) -> FrozenSet[str]:
        recipients = self._directory.members_of(room_id) - {sender_identity}
        for identity in recipients:
            connection = self._registry.get(identity)
            if connection is not None:
                connection.outbox.push(kind, payload)
        return recipients


__all__ = ["StateBroadcaster"]
