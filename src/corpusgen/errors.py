"""Exception hierarchy for corpusgen.

Construction-time failures (config, schema, binding, template parsing) are
raised before a generator exists. ``MalformedPayloadError`` is the only error
raised from ``emit`` and signals a binder/wrapper mismatch; it is not
transient and callers should stop using the generator instance.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class CorpusGenError(Exception):
    """Base exception for corpusgen."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ConfigError(CorpusGenError):
    """Raised when a field configuration entry is invalid."""


class SchemaError(CorpusGenError):
    """Raised when a field schema entry is incomplete."""


class BindError(CorpusGenError):
    """Raised when a field/config pair cannot be compiled into an emitter."""


class TemplateError(CorpusGenError):
    """Raised when a template references fields the schema does not bind."""


class MalformedPayloadError(CorpusGenError):
    """Raised when a wrapped emitter produced output without its expected key."""

    def __init__(self, payload: bytes, *, field: str | None = None) -> None:
        super().__init__(f"Malformed dynamic field payload {payload!r}", field=field)
        self.payload = payload
        logger.error("malformed_payload", field=field, payload=payload[:64])
