"""Render records through a pre-parsed ``{{.FieldName}}`` template."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from corpusgen.binding import BoundField, bind_fields
from corpusgen.config import Config
from corpusgen.errors import TemplateError
from corpusgen.fields import Field
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState
from corpusgen.template.parser import parse_template

logger = structlog.get_logger(__name__)


class CustomTemplateGenerator:
    """Interleaves template literals with bare field values.

    Every schema field is bound once; fields the template never mentions are
    bound but unused. The template is parsed here and never again.
    """

    def __init__(
        self,
        template: bytes,
        cfg: Config,
        fields: Sequence[Field],
        providers: ValueProviders | None = None,
    ) -> None:
        self.providers = providers or ValueProviders()
        parsed = parse_template(template)
        bound = bind_fields(cfg, fields, self.providers, json_mode=False)

        missing = sorted({name for name in parsed.field_names if name not in bound})
        if missing:
            raise TemplateError(f"Template references unknown fields: {', '.join(missing)}")

        # a repeated name reuses the literal that preceded its first occurrence
        prefixes = parsed.prefixes
        self.emitters: tuple[tuple[bytes, BoundField], ...] = tuple(
            (prefixes[name], bound[name]) for name in parsed.field_names
        )
        self.trailer = parsed.trailer
        logger.debug(
            "generator_built",
            kind="custom",
            fields=len(bound),
            placeholders=len(self.emitters),
        )

    def emit(self, state: GenState, sink: bytearray) -> None:
        start = len(sink)
        dupes: set[str] = set()
        try:
            for prefix, emitter in self.emitters:
                sink += prefix
                emitter.emit(state, dupes, sink)
        except Exception:
            del sink[start:]
            raise
        sink += self.trailer
        state.counter += 1
