"""Starter templates that reproduce JSON-shaped records for a schema."""

from __future__ import annotations

from collections.abc import Sequence

import orjson

from corpusgen import fields as ft
from corpusgen.config import Config
from corpusgen.fields import Field

UNQUOTED_TYPES = ft.INTEGER_TYPES | ft.FLOAT_TYPES | {ft.FIELD_TYPE_BOOLEAN}


def _quoted(cfg: Config, field: Field) -> bool:
    field_cfg = cfg.get_field(field.name)
    if field_cfg is not None and field_cfg.has_value:
        return isinstance(field_cfg.value, str)
    return field.type not in UNQUOTED_TYPES


def _render(cfg: Config, fields: Sequence[Field], placeholder: str) -> str:
    parts: list[str] = []
    for field in fields:
        # dynamic keys vary per record and cannot be written into a fixed template
        if field.is_dynamic:
            continue
        quote = '"' if _quoted(cfg, field) else ""
        key = orjson.dumps(field.name).decode()
        parts.append(f"{key}:{quote}{placeholder.format(name=field.name)}{quote}")
    return "{" + ",".join(parts) + "}"


def custom_template_for(cfg: Config, fields: Sequence[Field]) -> bytes:
    return _render(cfg, fields, "{{{{.{name}}}}}").encode()


def jinja_template_for(cfg: Config, fields: Sequence[Field]) -> str:
    return _render(cfg, fields, '{{{{ generate("{name}") }}}}')


def mako_template_for(cfg: Config, fields: Sequence[Field]) -> str:
    return _render(cfg, fields, '${{generate("{name}")}}')
