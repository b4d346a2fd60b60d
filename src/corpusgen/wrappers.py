"""Decorators over bound fields: cardinality pools and dynamic object keys."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import orjson
import structlog

from corpusgen.errors import MalformedPayloadError
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState

if TYPE_CHECKING:
    from corpusgen.binding import BoundField

logger = structlog.get_logger(__name__)

# Attempts at a fresh value before a duplicate is accepted into the pool.
CARDINALITY_TRIES = 11
# Attempts at an unused dynamic key before falling back to a unique token.
DYNAMIC_KEY_TRIES = 10


def cardinality_target(cardinality: int) -> int:
    """Distinct values to keep for a field configured with ``cardinality``."""
    return math.ceil(1000 / cardinality)


class CardinalityField:
    """Caps the distinct values of ``inner`` at ``ceil(1000 / cardinality)``.

    The first ``target`` records each add one rendered fragment to a pool held
    in ``GenState``; afterwards the wrapped emitter is never called and the
    pool is replayed as ``pool[counter % target]``.
    """

    def __init__(self, name: str, inner: BoundField, cardinality: int) -> None:
        self.name = name
        self.inner = inner
        self.target = cardinality_target(cardinality)
        self.cache_key = f"{name}#cardinality"

    def emit(self, state: GenState, dupes: set[str], sink: bytearray) -> None:
        pool = state.pool(self.cache_key).fragments
        target = self.target

        if len(pool) < target:
            scratch = state.acquire()
            try:
                for _ in range(CARDINALITY_TRIES):
                    scratch.clear()
                    self.inner.emit(state, dupes, scratch)
                    if bytes(scratch) not in pool:
                        break
                else:
                    logger.debug("cardinality_duplicate_accepted", field=self.name)
                pool.append(bytes(scratch))
            finally:
                state.release(scratch)

        idx = state.counter % target
        if idx >= len(pool):
            idx = len(pool) - 1
        sink += pool[idx]


class DynamicField:
    """Renames the key of ``inner`` to ``<root>.<random token>``, half the time.

    ``inner`` must render ``"<key>":<value>``. Tokens are unique among the
    dynamic keys of one record (tracked in ``dupes``).
    """

    def __init__(self, key: str, root: str, inner: BoundField, providers: ValueProviders) -> None:
        self.name = key
        self.root = root
        self.inner = inner
        self.providers = providers
        self.target = orjson.dumps(key) + b":"
        # opening quote and root, without the closing quote
        self.root_prefix = orjson.dumps(root)[:-1] + b"."

    def pick_key(self, dupes: set[str]) -> str:
        token = self.providers.word()
        tries = 0
        while token in dupes and tries < DYNAMIC_KEY_TRIES:
            token = self.providers.word()
            tries += 1
        if token in dupes:
            token = self.providers.unique_token()
            logger.debug("dynamic_key_fallback", field=self.name, token=token)
        dupes.add(token)
        return token

    def emit(self, state: GenState, dupes: set[str], sink: bytearray) -> None:
        if self.providers.coin():
            return

        scratch = state.acquire()
        try:
            self.inner.emit(state, dupes, scratch)
            if not scratch:
                return
            if not scratch.startswith(self.target):
                raise MalformedPayloadError(bytes(scratch), field=self.name)
            if len(scratch) == len(self.target):
                return

            token = self.pick_key(dupes)
            sink += self.root_prefix
            sink += token.encode()
            sink += b'":'
            sink += scratch[len(self.target) :]
        finally:
            state.release(scratch)
