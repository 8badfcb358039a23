from __future__ import annotations

from .settings import ServerSettings, load_settings

__all__ = ["ServerSettings", "load_settings"]
