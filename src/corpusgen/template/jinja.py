"""Jinja2-backed record rendering.

The template sees one callable, ``generate("FieldName")``, which runs the
bound emitter for that field and returns its bare rendered value as text.
Conditionals, arithmetic and formatting are Jinja's business:

    {{ generate("SrcAddr") }} {% set packets = generate("Packets") | int %}
    {%- if packets == 0 %}NODATA{% else %}{{ generate("LogStatus") }}{% endif %}
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from jinja2 import Environment, TemplateSyntaxError
from jinja2.sandbox import SandboxedEnvironment

from corpusgen.binding import bind_fields
from corpusgen.config import Config
from corpusgen.errors import TemplateError
from corpusgen.fields import Field
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState

logger = structlog.get_logger(__name__)


class JinjaGenerator:
    def __init__(
        self,
        template: str,
        cfg: Config,
        fields: Sequence[Field],
        providers: ValueProviders | None = None,
        *,
        sandboxed: bool = True,
    ) -> None:
        self.providers = providers or ValueProviders()
        self.bound = bind_fields(cfg, fields, self.providers, json_mode=False)
        env_cls = SandboxedEnvironment if sandboxed else Environment
        env = env_cls(keep_trailing_newline=True, autoescape=False)
        try:
            self.template = env.from_string(template)
        except TemplateSyntaxError as exc:
            raise TemplateError(
                f"Invalid Jinja template (line {exc.lineno}): {exc.message}"
            ) from exc
        logger.debug("generator_built", kind="jinja", fields=len(self.bound))

    def emit(self, state: GenState, sink: bytearray) -> None:
        dupes: set[str] = set()
        bound = self.bound

        def generate(name: str) -> str:
            emitter = bound.get(name)
            if emitter is None:
                raise TemplateError(f"Template references unknown field: {name}", field=name)
            scratch = state.acquire()
            try:
                emitter.emit(state, dupes, scratch)
                return scratch.decode()
            finally:
                state.release(scratch)

        sink += self.template.render(generate=generate).encode()
        state.counter += 1
