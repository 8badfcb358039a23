from __future__ import annotations

from snaproom.config import load_settings
from snaproom.coord import CoordinatorHub

HUB = CoordinatorHub(outbox_size=load_settings().outbox_size)


def get_hub() -> CoordinatorHub:
    return HUB


__all__ = ["HUB", "get_hub"]
