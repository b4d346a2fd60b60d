"""Per-field generation configuration.

A config file is a YAML (or JSON) list of entries keyed by field name, or a
mapping holding that list under ``fields``:

    - name: aws.vpcflow.version
      value: 2
    - name: destination.port
      range: 65535
      cardinality: 100
    - name: event.action
      enum: ["ACCEPT", "REJECT"]
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from corpusgen.errors import ConfigError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ConfigField:
    name: str
    value: Any = None
    range: int = 0
    cardinality: int = 0
    fuzziness: int = 0
    enum: tuple[str, ...] = ()

    @property
    def has_value(self) -> bool:
        return self.value is not None

    @staticmethod
    def from_mapping(payload: Mapping[str, Any]) -> ConfigField:
        name = payload.get("name")
        if not name:
            raise ConfigError(f"Config entry is missing 'name': {dict(payload)}")
        name = str(name)

        cardinality = _as_int(payload, "cardinality", name)
        if "cardinality" in payload and payload["cardinality"] is not None and cardinality < 1:
            raise ConfigError(f"cardinality must be >= 1, got {cardinality}", field=name)

        fuzziness = _as_int(payload, "fuzziness", name)
        if not 0 <= fuzziness <= 100:
            raise ConfigError(f"fuzziness must be within 0-100, got {fuzziness}", field=name)

        value_range = _as_int(payload, "range", name)
        if value_range < 0:
            raise ConfigError(f"range must be >= 0, got {value_range}", field=name)

        enum_raw = payload.get("enum") or []
        if not isinstance(enum_raw, list) or not all(isinstance(v, str) for v in enum_raw):
            raise ConfigError("enum must be a list of strings", field=name)

        return ConfigField(
            name=name,
            value=payload.get("value"),
            range=value_range,
            cardinality=cardinality,
            fuzziness=fuzziness,
            enum=tuple(enum_raw),
        )


def _as_int(payload: Mapping[str, Any], key: str, name: str) -> int:
    raw = payload.get(key)
    if raw is None:
        return 0
    if isinstance(raw, bool):
        raise ConfigError(f"{key} must be an integer, got {raw!r}", field=name)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}", field=name) from exc


@dataclass(frozen=True)
class Config:
    fields: tuple[ConfigField, ...] = ()
    _by_name: dict[str, ConfigField] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Later entries win when a name is repeated.
        object.__setattr__(self, "_by_name", {f.name: f for f in self.fields})

    def get_field(self, name: str) -> ConfigField | None:
        return self._by_name.get(name)

    @staticmethod
    def from_entries(entries: Iterable[Mapping[str, Any]]) -> Config:
        return Config(fields=tuple(ConfigField.from_mapping(e) for e in entries))

    @staticmethod
    def from_payload(payload: Any) -> Config:
        if payload is None:
            return Config()
        if isinstance(payload, Mapping):
            payload = payload.get("fields") or []
        if not isinstance(payload, list):
            raise ConfigError("Config must be a list of field entries")
        return Config.from_entries(payload)


def load_config_from_yaml(text: str) -> Config:
    cfg = Config.from_payload(yaml.safe_load(text))
    logger.debug("config_loaded", fields=len(cfg.fields))
    return cfg


def load_config(path: Path) -> Config:
    text = path.read_text()
    if path.suffix.lower() in {".yml", ".yaml"}:
        return load_config_from_yaml(text)
    cfg = Config.from_payload(json.loads(text))
    logger.debug("config_loaded", path=str(path), fields=len(cfg.fields))
    return cfg
