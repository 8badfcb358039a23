"""
Server settings for SnapRoom.

Values resolve from the environment first (``SNAPROOM_*`` and plain ``PORT``),
then from the ``server`` section of ``config/snaproom.json`` / ``snaproom.json``,
and finally from the defaults declared on :class:`ServerSettings`.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Annotated, Any, Dict, Mapping

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

CONFIG_PATH = Path("config/snaproom.json")
CONFIG_CANDIDATES: tuple[Path, ...] = (CONFIG_PATH, Path("snaproom.json"))
ENV_PREFIX = "SNAPROOM_"


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        populate_by_name=True,
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = Field(
        3001,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("SNAPROOM_PORT", "PORT", "port"),
    )
    cors_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])
    outbox_size: int = Field(256, ge=1)
    log_level: str = "INFO"
    log_dir: Path = Field(default_factory=lambda: Path("./logs"))

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [item.strip() for item in stripped.split(",") if item.strip()]
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_level(cls, value: Any) -> str:
        return str(value or "INFO").strip().upper()

    @field_validator("log_dir", mode="before")
    @classmethod
    def _resolve_dir(cls, value: Any) -> Path:
        return Path(value).expanduser().resolve()

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["log_dir"] = str(self.log_dir)
        return data


def _load_raw_config() -> dict:
    for path in CONFIG_CANDIDATES:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            continue
        except json.JSONDecodeError:
            continue
    return {}


def _config_section(payload: Mapping[str, object]) -> Dict[str, Any]:
    server = payload.get("server")
    if isinstance(server, Mapping):
        return dict(server)
    return {}


def _env_names(field_name: str) -> tuple[str, ...]:
    if field_name == "port":
        return (f"{ENV_PREFIX}PORT", "PORT")
    return (f"{ENV_PREFIX}{field_name.upper()}",)


def load_settings() -> ServerSettings:
    """
    Return resolved settings. File values only apply where no environment
    override exists for the same key.
    """
    file_values = _config_section(_load_raw_config())
    init_values: Dict[str, Any] = {}
    for name, value in file_values.items():
        if name not in ServerSettings.model_fields:
            continue
        if any(os.getenv(env_name) for env_name in _env_names(name)):
            continue
        init_values[name] = value
    return ServerSettings(**init_values)
