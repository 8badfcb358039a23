"""
Room coordination primitives for SnapRoom.

Connection registry, room directory, signal relay, capture coordinator and the
collaborative state broadcaster live here, composed by ``CoordinatorHub`` so the
FastAPI socket layer only has to feed it frames.
"""

from __future__ import annotations

from .capture import CaptureCoordinator, CaptureNotice
from .hub import CoordinatorHub
from .models import MalformedMessage, parse_client_message
from .outbox import Outbox
from .registry import Connection, ConnectionRegistry
from .relay import SignalRelay
from .rooms import MembershipEvent, Room, RoomDirectory
from .state import StateBroadcaster

__all__ = [
    "CaptureCoordinator",
    "CaptureNotice",
    "Connection",
    "ConnectionRegistry",
    "CoordinatorHub",
    "MalformedMessage",
    "MembershipEvent",
    "Outbox",
    "Room",
    "RoomDirectory",
    "SignalRelay",
    "StateBroadcaster",
    "parse_client_message",
]
