from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import logging
import tomllib

from vellum.globlens import DEFAULT_GLOB_LOADER

DEFAULT_CONFIG_NAME = "vellum.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

logger = logging.getLogger(__name__)


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        logger.warning("Ignoring invalid config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def server_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("server", {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def _normalize_extensions(value: TomlValue, default: tuple[str, ...]) -> tuple[str, ...]:
    names = _normalize_name_list(value)
    if not names:
        return default
    return tuple(name.lower() if name.startswith(".") else f".{name.lower()}" for name in names)


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


@dataclass(frozen=True)
class ServerSettings:
    glob_loader: str = DEFAULT_GLOB_LOADER
    template_extensions: tuple[str, ...] = (".vellum",)
    script_extensions: tuple[str, ...] = (".py",)
    log_level: str = "WARNING"

    @classmethod
    def from_section(cls, section: TomlTable | None) -> "ServerSettings":
        if not isinstance(section, dict):
            return cls()
        defaults = cls()
        glob_loader = section.get("glob_loader")
        log_level = section.get("log_level")
        return cls(
            glob_loader=(
                glob_loader.strip()
                if isinstance(glob_loader, str) and glob_loader.strip()
                else defaults.glob_loader
            ),
            template_extensions=_normalize_extensions(
                section.get("template_extensions"), defaults.template_extensions
            ),
            script_extensions=_normalize_extensions(
                section.get("script_extensions"), defaults.script_extensions
            ),
            log_level=(
                log_level.strip().upper()
                if isinstance(log_level, str) and log_level.strip()
                else defaults.log_level
            ),
        )


def load_settings(
    root: Path | None = None,
    config_path: Path | None = None,
    overrides: TomlTable | None = None,
) -> ServerSettings:
    section = server_defaults(root=root, config_path=config_path)
    return ServerSettings.from_section(merge_payload(overrides or {}, section))
