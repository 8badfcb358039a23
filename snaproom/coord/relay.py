from __future__ import annotations

import logging
from typing import Any

from .registry import ConnectionRegistry

LOGGER = logging.getLogger(__name__)


class SignalRelay:
    """
    Transparent conduit for peer-connection handshake payloads.

    The payload is delivered verbatim, tagged with the sender. Source and
    destination are not required to share a room. A destination that is not
    connected drops the message without telling the sender.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    def relay(self, from_identity: str, to_identity: str, payload: Any) -> bool:
        target = self._registry.get(to_identity)
        if target is None:
            LOGGER.debug(
                "Dropping signal from %s: %s is not connected",
                from_identity,
                to_identity,
            )
            return False
        return target.outbox.push("signal", {"from": from_identity, "signal": payload})


__all__ = ["SignalRelay"]
