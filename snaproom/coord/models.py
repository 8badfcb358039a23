"""
Wire schemas for the room coordination socket.

Inbound frames are JSON objects discriminated by ``type``; ``parse_client_message``
turns raw text into one of the ``*Message`` models or raises ``MalformedMessage``.
Layer and background descriptors are checked against ``Layer`` and ``Background``
but travel as the client sent them: members receive the exact JSON value, with
no defaults filled in and no number coercion. Unknown fields are allowed so
clients can extend descriptors without a server change.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Type, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)


class MalformedMessage(ValueError):
    """Raised when an inbound frame cannot be decoded or validated."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class Layer(BaseModel):
    """
    One positioned, transformable element of the shared composite.

    ``opacity`` outside [0, 1] or a non-positive ``scale`` cannot be rendered the
    same way by every client, so a layer-update carrying one is rejected as a
    whole and the sender gets an ``error`` frame instead of a partial apply.
    """

    id: str = Field(min_length=1)
    src: Optional[str] = None
    opacity: float = Field(1.0, ge=0.0, le=1.0)
    x: float = 0.0
    y: float = 0.0
    scale: float = Field(1.0, gt=0.0)
    rotation: float = 0.0
    visible: bool = True
    locked: bool = False

    model_config = ConfigDict(extra="allow")


class Background(BaseModel):
    color: Optional[str] = None
    image: Optional[str] = None
    blur: float = Field(0.0, ge=0.0)

    model_config = ConfigDict(extra="allow")


def _checked_against(model: Type[BaseModel]) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    def check(value: Dict[str, Any]) -> Dict[str, Any]:
        try:
            model.model_validate(value)
        except ValidationError as exc:
            first = exc.errors(include_url=False, include_context=False)[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ValueError(f"{location or model.__name__}: {first['msg']}") from None
        return value

    return check


LayerPayload = Annotated[Dict[str, Any], AfterValidator(_checked_against(Layer))]
BackgroundPayload = Annotated[Dict[str, Any], AfterValidator(_checked_against(Background))]


class _ClientMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class JoinRoomMessage(_ClientMessage):
    type: Literal["join-room"]
    room_id: str = Field(alias="roomId", min_length=1)


class LeaveRoomMessage(_ClientMessage):
    type: Literal["leave-room"]


class SignalMessage(_ClientMessage):
    type: Literal["signal"]
    to: str = Field(min_length=1)
    signal: Any = None


class CaptureTriggerMessage(_ClientMessage):
    type: Literal["capture-trigger"]
    room_id: str = Field(alias="roomId", min_length=1)


class LayerUpdateMessage(_ClientMessage):
    type: Literal["layer-update"]
    room_id: str = Field(alias="roomId", min_length=1)
    layers: List[LayerPayload]
    sender_id: Optional[str] = Field(None, alias="senderId")


class BackgroundUpdateMessage(_ClientMessage):
    type: Literal["background-update"]
    room_id: str = Field(alias="roomId", min_length=1)
    background: BackgroundPayload


class PingMessage(_ClientMessage):
    type: Literal["ping"]


ClientMessage = Annotated[
    Union[
        JoinRoomMessage,
        LeaveRoomMessage,
        SignalMessage,
        CaptureTriggerMessage,
        LayerUpdateMessage,
        BackgroundUpdateMessage,
        PingMessage,
    ],
    Field(discriminator="type"),
]

_CLIENT_MESSAGE = TypeAdapter(ClientMessage)


def parse_client_message(raw: str | bytes | Dict[str, Any]) -> ClientMessage:
    if isinstance(raw, (str, bytes)):
        try:
            body = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise MalformedMessage(f"invalid_json: {exc}") from exc
    else:
        body = raw
    if not isinstance(body, dict):
        raise MalformedMessage("frame must be a JSON object")
    try:
        return _CLIENT_MESSAGE.validate_python(body)
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False)
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise MalformedMessage(
            f"{location or 'frame'}: {first.get('msg', 'invalid')}"
        ) from exc


__all__ = [
    "Background",
    "BackgroundPayload",
    "BackgroundUpdateMessage",
    "CaptureTriggerMessage",
    "ClientMessage",
    "JoinRoomMessage",
    "Layer",
    "LayerPayload",
    "LayerUpdateMessage",
    "LeaveRoomMessage",
    "MalformedMessage",
    "PingMessage",
    "SignalMessage",
    "parse_client_message",
]
