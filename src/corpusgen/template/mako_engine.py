"""Mako-backed record rendering.

Same contract as the Jinja adapter: the template gets ``generate("FieldName")``
and nothing else. Mako expressions are plain Python, so arithmetic and
conditionals on generated values read naturally:

    <% packets = int(generate("Packets")) %>${generate("SrcAddr")} ${packets}
    ${"NODATA" if packets == 0 else generate("LogStatus")}
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from mako.exceptions import MakoException
from mako.template import Template

from corpusgen.binding import bind_fields
from corpusgen.config import Config
from corpusgen.errors import TemplateError
from corpusgen.fields import Field
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState

logger = structlog.get_logger(__name__)


class MakoGenerator:
    def __init__(
        self,
        template: str,
        cfg: Config,
        fields: Sequence[Field],
        providers: ValueProviders | None = None,
    ) -> None:
        self.providers = providers or ValueProviders()
        self.bound = bind_fields(cfg, fields, self.providers, json_mode=False)
        try:
            self.template = Template(template, strict_undefined=True)
        except MakoException as exc:
            raise TemplateError(f"Invalid Mako template: {exc}") from exc
        logger.debug("generator_built", kind="mako", fields=len(self.bound))

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
