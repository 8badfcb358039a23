from __future__ import annotations

import json

import pytest

from snaproom.coord import MalformedMessage, parse_client_message
from snaproom.coord.models import (
    BackgroundUpdateMessage,
    CaptureTriggerMessage,
    JoinRoomMessage,
    LayerUpdateMessage,
    SignalMessage,
)


def test_join_room_uses_client_field_names() -> None:
    message = parse_client_message(json.dumps({"type": "join-room", "roomId": "abc123"}))
    assert isinstance(message, JoinRoomMessage)
    assert message.room_id == "abc123"


def test_signal_payload_is_opaque() -> None:
    payload = {"type": "offer", "nested": [1, {"deep": True}]}
    message = parse_client_message({"type": "signal", "to": "peer", "signal": payload})
    assert isinstance(message, SignalMessage)
    assert message.signal == payload


def test_bytes_frames_are_accepted() -> None:
    message = parse_client_message(b'{"type": "capture-trigger", "roomId": "abc123"}')
    assert isinstance(message, CaptureTriggerMessage)


def test_layer_descriptors_are_kept_as_sent() -> None:
    layers = [{"id": "a", "src": "blob:1", "zIndex": 3, "x": 5}, {"id": "b", "opacity": 0.5}]
    message = parse_client_message({"type": "layer-update", "roomId": "abc123", "layers": layers})
    assert isinstance(message, LayerUpdateMessage)
    assert message.layers == layers
    assert type(message.layers[0]["x"]) is int
    assert "visible" not in message.layers[1]


def test_background_descriptor_is_kept_as_sent() -> None:
    background = {"color": "#fff", "blur": 3}
    message = parse_client_message(
        {"type": "background-update", "roomId": "abc123", "background": background}
    )
    assert isinstance(message, BackgroundUpdateMessage)
    assert message.background == background
    assert type(message.background["blur"]) is int


def test_rejected_layer_names_the_offending_field() -> None:
    with pytest.raises(MalformedMessage) as excinfo:
        parse_client_message(
            {"type": "layer-update", "roomId": "r", "layers": [{"id": "a", "scale": 0}]}
        )
    assert "layers.0" in excinfo.value.detail
    assert "scale" in excinfo.value.detail


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        json.dumps({"roomId": "abc123"}),
        json.dumps({"type": "teleport"}),
        json.dumps({"type": "join-room"}),
        json.dumps({"type": "join-room", "roomId": ""}),
        json.dumps({"type": "signal", "signal": {}}),
        json.dumps({"type": "layer-update", "roomId": "r", "layers": "nope"}),
        json.dumps(
            {"type": "layer-update", "roomId": "r", "layers": [{"id": "a", "opacity": 2}]}
        ),
        json.dumps({"type": "background-update", "roomId": "r", "background": {"blur": -1}}),
        json.dumps({"type": "layer-update", "roomId": "r", "layers": [{"src": "blob:1"}]}),
        json.dumps({"type": "layer-update", "roomId": "r", "layers": ["l1"]}),
    ],
)
def test_malformed_frames_raise(raw: str) -> None:
    with pytest.raises(MalformedMessage):
        parse_client_message(raw)
