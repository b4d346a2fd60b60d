"""Record assembly.

``JsonGenerator`` renders one JSON object per ``emit`` from the bound fields
of a schema. ``new_generator`` picks between the JSON, custom-template, Jinja
and Mako variants; all of them share the same bound-field machinery and the
same ``emit(state, sink)`` contract. No record separator is written.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Protocol

import structlog

from corpusgen.binding import BoundField, bind_fields
from corpusgen.config import Config
from corpusgen.fields import Field
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState
from corpusgen.template.custom import CustomTemplateGenerator
from corpusgen.template.jinja import JinjaGenerator
from corpusgen.template.mako_engine import MakoGenerator

logger = structlog.get_logger(__name__)

TEMPLATE_TYPES = ("json", "custom", "jinja", "mako")


class Generator(Protocol):
    def emit(self, state: GenState, sink: bytearray) -> None: ...


class JsonGenerator:
    def __init__(
        self, cfg: Config, fields: Sequence[Field], providers: ValueProviders | None = None
    ) -> None:
        self.providers = providers or ValueProviders()
        bound = bind_fields(cfg, fields, self.providers, json_mode=True)
        self.emitters: tuple[BoundField, ...] = tuple(bound.values())
        logger.debug("generator_built", kind="json", fields=len(self.emitters))

    def emit(self, state: GenState, sink: bytearray) -> None:
        """Append one JSON object to ``sink``.

        Emitters that write nothing (skipped dynamic fields) get no separator,
        and a trailing separator left by the last writer is removed. If an emitter
        raises, whatever this record wrote is removed and the counter is not
        advanced.
        """
        start = len(sink)
        sink += b"{"
        dupes: set[str] = set()
        last_comma = -1
        try:
            for emitter in self.emitters:
                pos = len(sink)
                emitter.emit(state, dupes, sink)
                if len(sink) > pos:
                    sink += b","
                    last_comma = len(sink)
        except Exception:
            del sink[start:]
            raise

        if last_comma == len(sink):
            del sink[-1]
        sink += b"}"
        state.counter += 1


def new_generator(
    cfg: Config,
    fields: Sequence[Field],
    *,
    template: bytes | str | None = None,
    template_type: str = "json",
    providers: ValueProviders | None = None,
) -> Generator:
    """Build the generator variant named by ``template_type``."""
    kind = template_type.lower()
    if kind not in TEMPLATE_TYPES:
        raise ValueError(
            f"Unsupported template type '{template_type}'. Choose from {TEMPLATE_TYPES}."
        )
    if kind == "json":
        return JsonGenerator(cfg, fields, providers)
    if template is None:
        raise ValueError(f"Template type '{kind}' needs a template.")
    if kind == "custom":
        raw = template.encode() if isinstance(template, str) else template
        return CustomTemplateGenerator(raw, cfg, fields, providers)
    text = template.decode() if isinstance(template, bytes) else template
    if kind == "mako":
        return MakoGenerator(text, cfg, fields, providers)
    return JinjaGenerator(text, cfg, fields, providers)


def iter_records(generator: Generator, state: GenState, count: int) -> Iterator[bytes]:
    """Yield ``count`` rendered records; the generator stream itself never ends."""
    buf = bytearray()
    for _ in range(count):
        buf.clear()
        generator.emit(state, buf)
        yield bytes(buf)
