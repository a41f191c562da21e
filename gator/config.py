"""The user's configuration file: database URL and current user."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILE_NAME = ".gatorconfig.json"


def config_path() -> Path:
    """Location of the configuration file in the user's home directory."""
    return Path.home() / CONFIG_FILE_NAME


@dataclass
class Config:
    """Settings read from the configuration file."""

    db_url: str = ""
    current_user_name: str = ""
    path: Path | None = field(default=None, compare=False, repr=False)

    def set_user(self, name: str) -> None:
        """Make ``name`` the current user and save the configuration."""
        self.current_user_name = name
        write(self, self.path)


def _string_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"config field {key!r} must be a string")
    return value


def read(path: str | Path | None = None) -> Config:
    """Load the configuration from ``path`` or the default location."""
    target = Path(path) if path is not None else config_path()
    with target.open(encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError("config file must hold a JSON object")
    return Config(
        db_url=_string_field(data, "db_url"),
        current_user_name=_string_field(data, "current_user_name"),
        path=target,
    )


def write(config: Config, path: str | Path | None = None) -> None:
    """Save ``config`` to ``path`` or the default location."""
    target = Path(path) if path is not None else config_path()
    data = {"db_url": config.db_url, "current_user_name": config.current_user_name}
    target.write_text(
        json.dumps(data, separators=(",", ":"), ensure_ascii=False) + "\n",
        encoding="utf-8",
    )