"""Field schema model.

Schemas normally come from an external field catalog; ``load_fields`` reads
the same shape from a local YAML/JSON file:

    - name: source.ip
      type: ip
    - name: aws.vpcflow.interface_id
      type: keyword
      example: eni-1235b8ca123456789
    - name: labels.*
      type: object
      object_type: keyword
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from corpusgen.errors import SchemaError

FIELD_TYPE_LONG = "long"
FIELD_TYPE_INTEGER = "integer"
FIELD_TYPE_UNSIGNED_LONG = "unsigned_long"
FIELD_TYPE_DOUBLE = "double"
FIELD_TYPE_FLOAT = "float"
FIELD_TYPE_HALF_FLOAT = "half_float"
FIELD_TYPE_SCALED_FLOAT = "scaled_float"
FIELD_TYPE_KEYWORD = "keyword"
FIELD_TYPE_CONSTANT_KEYWORD = "constant_keyword"
FIELD_TYPE_WILDCARD = "wildcard"
FIELD_TYPE_IP = "ip"
FIELD_TYPE_BOOLEAN = "boolean"
FIELD_TYPE_GEO_POINT = "geo_point"
FIELD_TYPE_DATE = "date"
FIELD_TYPE_OBJECT = "object"
FIELD_TYPE_NESTED = "nested"
FIELD_TYPE_FLATTENED = "flattened"

INTEGER_TYPES = frozenset({FIELD_TYPE_LONG, FIELD_TYPE_INTEGER, FIELD_TYPE_UNSIGNED_LONG})
FLOAT_TYPES = frozenset(
    {FIELD_TYPE_DOUBLE, FIELD_TYPE_FLOAT, FIELD_TYPE_HALF_FLOAT, FIELD_TYPE_SCALED_FLOAT}
)
KEYWORD_TYPES = frozenset({FIELD_TYPE_KEYWORD, FIELD_TYPE_WILDCARD})
OBJECT_TYPES = frozenset({FIELD_TYPE_OBJECT, FIELD_TYPE_NESTED, FIELD_TYPE_FLATTENED})

# Near-time dates land within this many seconds before "now".
DATE_RANGE_SECONDS = 3600
DATE_LAYOUT = "%Y-%m-%dT%H:%M:%S.%fZ"

WILDCARD_SUFFIX = ".*"


@dataclass(frozen=True)
class Field:
    name: str
    type: str
    example: str = ""
    object_type: str = ""

    @property
    def is_wildcard(self) -> bool:
        return self.name.endswith(WILDCARD_SUFFIX)

    @property
    def root_name(self) -> str:
        """Name with any trailing ``.*`` removed."""
        if self.is_wildcard:
            return self.name[: -len(WILDCARD_SUFFIX)]
        return self.name

    @property
    def is_dynamic(self) -> bool:
        return self.is_wildcard or (self.type in OBJECT_TYPES and bool(self.object_type))

    @staticmethod
    def from_mapping(payload: Mapping[str, Any]) -> Field:
        if not payload.get("name") or not payload.get("type"):
            raise SchemaError(f"Field entry needs 'name' and 'type': {dict(payload)}")
        example = payload.get("example")
        return Field(
            name=str(payload["name"]),
            type=str(payload["type"]).lower(),
            example="" if example is None else str(example),
            object_type=str(payload.get("object_type") or "").lower(),
        )


def fields_from_mappings(entries: Iterable[Mapping[str, Any]]) -> list[Field]:
    return [Field.from_mapping(entry) for entry in entries]


def load_fields(path: Path) -> list[Field]:
    """Load a field schema from a YAML or JSON file."""
    text = path.read_text()
    if path.suffix.lower() in {".yml", ".yaml"}:
        payload = yaml.safe_load(text)
    else:
        payload = json.loads(text)
    if isinstance(payload, Mapping):
        payload = payload.get("fields", [])
    if not isinstance(payload, list):
        raise SchemaError(f"Schema file must hold a list of fields: {path}")
    return fields_from_mappings(payload)
