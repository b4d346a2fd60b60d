"""Compile (field, config) pairs into bound emitters.

A bound field renders one fragment per call into a shared ``bytearray``.
In JSON mode the fragment is ``"name":value`` with strings quoted; in bare
mode (template generators) it is the value alone. Binding happens once per
generator; ``emit`` only draws random values and appends bytes.

Binding precedence per field:

1. configured static ``value``
2. configured ``cardinality`` (wraps the by-type emitter)
3. dynamic object key (``labels.*``, JSON mode only)
4. by field type
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Protocol

import orjson
import structlog

from corpusgen import fields as ft
from corpusgen.config import Config, ConfigField
from corpusgen.errors import BindError
from corpusgen.fields import Field
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState, ScalarEntry
from corpusgen.wrappers import CardinalityField, DynamicField

logger = structlog.get_logger(__name__)

KEYWORD_SPLIT_RE = re.compile(r"[.\-_\s]")
WORDS_N_MAX = 25


class BoundField(Protocol):
    name: str

    def emit(self, state: GenState, dupes: set[str], sink: bytearray) -> None: ...


def _key(name: str, json_mode: bool) -> bytes:
    return orjson.dumps(name) + b":" if json_mode else b""


def _quote(json_mode: bool) -> bytes:
    return b'"' if json_mode else b""


class StaticField:
    """Replays a pre-serialized literal."""

    def __init__(self, name: str, payload: bytes) -> None:
        self.name = name
        self.payload = payload

    def emit(self, state: GenState, dupes: set[str], sink: bytearray) -> None:
        sink += self.payload


class TextField:
    """Writes ``prefix + render() + suffix``; covers words, ips, dates, bools."""

    def __init__(
        self, name: str, render: Callable[[], str], prefix: bytes, suffix: bytes = b""
    ) -> None:
        self.name = name
        self.render = render
        self.prefix = prefix
        self.suffix = suffix

    def emit(self, state: GenState, dupes: set[str], sink: bytearray) -> None:
        sink += self.prefix
        sink += self.render().encode()
        sink += self.suffix


class ConstantKeywordField:
    """Draws one token per ``GenState`` and repeats it forever after."""

    def __init__(self, name: str, providers: ValueProviders, json_mode: bool) -> None:
        self.name = name
        self.providers = providers
        self.prefix = _key(name, json_mode) + _quote(json_mode)
        self.suffix = _quote(json_mode)

    def emit(self, state: GenState, dupes: set[str], sink: bytearray) -> None:
        entry = state.scalar(self.name)
        if entry is None:
            entry = ScalarEntry(self.providers.word())
            state.cache[self.name] = entry
        sink += self.prefix
        sink += str(entry.value).encode()
        sink += self.suffix


class EnumField:
    """Uniform pick among configured values.

    The index is drawn from ``[0, len(enum) - 1)``, so the last configured
    value is never produced. Kept as-is until the intended range is confirmed.
    """

    def __init__(
        self, name: str, enum: Iterable[str], providers: ValueProviders, json_mode: bool
    ) -> None:
        self.name = name
        self.providers = providers
        key = _key(name, json_mode)
        if json_mode:
            self.choices = [key + orjson.dumps(v) for v in enum]
        else:
            self.choices = [v.encode() for v in enum]
        self.upper = len(self.choices) - 1

    def emit(self, state: GenState, dupes: set[str], sink: bytearray) -> None:
        idx = self.providers.randint(self.upper) if self.upper > 0 else 0
        sink += self.choices[idx]


class LongField:
    """Integer draw, optionally walking from the previous value by <= fuzziness%."""

    def __init__(
        self,
        name: str,
        draw: Callable[[], int],
        fuzziness: int,
        providers: ValueProviders,
        json_mode: bool,
    ) -> None:
        self.name = name
        self.draw = draw
        self.fuzziness = fuzziness
        self.providers = providers
        self.prefix = _key(name, json_mode)

    def next_value(self, state: GenState) -> int:
        value = self.draw()
        if self.fuzziness <= 0:
            return value
        prev = state.scalar(self.name)
        if prev is not None:
            walked = prev.value * fuzz_ratio(self.providers, self.fuzziness)
            # round toward the previous value so the step stays within bounds
            value = math.floor(walked) if walked >= prev.value else math.ceil(walked)
        state.cache[self.name] = ScalarEntry(value)
        return value

    def emit(self, state: GenState, dupes: set[str], sink: bytearray) -> None:
        sink += self.prefix
        sink += str(self.next_value(state)).encode()


class DoubleField:
    """Integer draw divided by a uniform in (0, 1], with the same fuzziness walk."""

    def __init__(
        self,
        name: str,
        draw: Callable[[], int],
        fuzziness: int,
        providers: ValueProviders,
        json_mode: bool,
    ) -> None:
        self.name = name
        self.draw = draw
        self.fuzziness = fuzziness
        self.providers = providers
        self.prefix = _key(name, json_mode)

    def next_value(self, state: GenState) -> float:
        value = self.draw() / self.providers.unit()
        if self.fuzziness <= 0:
            return value
        prev = state.scalar(self.name)
        if prev is not None:
            value = prev.value * fuzz_ratio(self.providers, self.fuzziness)
        state.cache[self.name] = ScalarEntry(value)
        return value

    def emit(self, state: GenState, dupes: set[str], sink: bytearray) -> None:
        sink += self.prefix
        sink += f"{self.next_value(state):f}".encode()


def fuzz_ratio(providers: ValueProviders, fuzziness: int) -> float:
    """``1 +/- k/100`` with ``k`` uniform in ``[0, fuzziness)`` and a coin-flip sign."""
    delta = providers.randint(fuzziness) / 100.0
    return 1.0 + delta if providers.coin() else 1.0 - delta


def make_int_func(
    field_cfg: ConfigField, field: Field, providers: ValueProviders
) -> Callable[[], int]:
    if field_cfg.range > 0:
        upper = field_cfg.range
    elif field.example:
        upper = 10 ** len(field.example)
    else:
        upper = 10
    randint = providers.randint
    return lambda: randint(upper)


def keyword_shape(example: str) -> tuple[int, str]:
    """Infer (token count, joiner) from an example like ``eni-1235b8ca``."""
    total = len(KEYWORD_SPLIT_RE.split(example))
    if "\\." in example:
        joiner = "."
    elif "-" in example:
        joiner = "-"
    elif "_" in example:
        joiner = "_"
    elif " " in example:
        joiner = " "
    else:
        joiner = ""
    return total, joiner


def bind_static(field: Field, value: object, json_mode: bool) -> StaticField:
    if not json_mode and isinstance(value, str):
        return StaticField(field.name, value.encode())
    try:
        encoded = orjson.dumps(value)
    except orjson.JSONEncodeError as exc:
        raise BindError(f"Static value is not JSON serializable: {exc}", field=field.name) from exc
    return StaticField(field.name, _key(field.name, json_mode) + encoded)


def bind_keyword(
    field_cfg: ConfigField, field: Field, providers: ValueProviders, json_mode: bool
) -> BoundField:
    if field_cfg.enum:
        logger.debug("enum_bound", field=field.name, values=len(field_cfg.enum))
        return EnumField(field.name, field_cfg.enum, providers, json_mode)

    prefix = _key(field.name, json_mode) + _quote(json_mode)
    suffix = _quote(json_mode)
    if field.example:
        count, joiner = keyword_shape(field.example)
        words = providers.words
        return TextField(field.name, lambda: words(count, joiner), prefix, suffix)
    return TextField(field.name, providers.word, prefix, suffix)


def bind_by_type(
    field_cfg: ConfigField, field: Field, providers: ValueProviders, json_mode: bool = True
) -> BoundField:
    name = field.name
    key = _key(name, json_mode)
    quote = _quote(json_mode)
    field_type = field.type

    if field_type == ft.FIELD_TYPE_DATE:
        return TextField(name, providers.near_time, key + quote, quote)
    if field_type == ft.FIELD_TYPE_IP:
        return TextField(name, providers.ip, key + quote, quote)
    if field_type in ft.FLOAT_TYPES:
        draw = make_int_func(field_cfg, field, providers)
        return DoubleField(name, draw, field_cfg.fuzziness, providers, json_mode)
    if field_type in ft.INTEGER_TYPES:
        draw = make_int_func(field_cfg, field, providers)
        return LongField(name, draw, field_cfg.fuzziness, providers, json_mode)
    if field_type == ft.FIELD_TYPE_CONSTANT_KEYWORD:
        return ConstantKeywordField(name, providers, json_mode)
    if field_type in ft.KEYWORD_TYPES:
        return bind_keyword(field_cfg, field, providers, json_mode)
    if field_type == ft.FIELD_TYPE_BOOLEAN:
        return TextField(name, lambda: "true" if providers.coin() else "false", key)
    if field_type == ft.FIELD_TYPE_GEO_POINT:
        return TextField(name, providers.geo_point, key + quote, quote)

    # objects without a value type and anything unrecognised: free text
    words = providers.words
    randint = providers.randint
    return TextField(name, lambda: words(randint(WORDS_N_MAX)), key + quote, quote)


def _value_field(field: Field, name: str) -> Field:
    """Field describing the values held under a dynamic object key."""
    value_type = field.type
    if value_type in ft.OBJECT_TYPES:
        value_type = field.object_type or ft.FIELD_TYPE_KEYWORD
    return replace(field, name=name, type=value_type, object_type="")


def bind_field(
    cfg: Config, field: Field, providers: ValueProviders, *, json_mode: bool = True
) -> BoundField:
    field_cfg = cfg.get_field(field.name) or ConfigField(name=field.name)

    if field_cfg.has_value:
        return bind_static(field, field_cfg.value, json_mode)

    if field_cfg.cardinality > 0:
        inner_field = field
        if field.is_dynamic:
            inner_field = _value_field(field, field.root_name)
        inner = bind_by_type(field_cfg, inner_field, providers, json_mode)
        return CardinalityField(field.name, inner, field_cfg.cardinality)

    if field.is_dynamic:
        inner = bind_by_type(field_cfg, _value_field(field, field.name), providers, json_mode)
        if not json_mode:
            return inner
        return DynamicField(field.name, field.root_name, inner, providers)

    return bind_by_type(field_cfg, field, providers, json_mode)


def bind_fields(
    cfg: Config, fields: Iterable[Field], providers: ValueProviders, *, json_mode: bool = True
) -> dict[str, BoundField]:
    """Bind every schema field once; a repeated name keeps the last binding."""
    bound: dict[str, BoundField] = {}
    for field in fields:
        bound[field.name] = bind_field(cfg, field, providers, json_mode=json_mode)
    return bound
