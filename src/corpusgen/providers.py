"""Primitive value providers.

Every provider draws from one injected ``random.Random`` so a seeded
``ValueProviders`` yields a reproducible stream. Human-readable tokens come
from Faker's word provider, generated once into a pool and then sampled,
which keeps per-emit cost to a single ``choice``.
"""

from __future__ import annotations

import random
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from faker import Faker

from corpusgen.fields import DATE_LAYOUT, DATE_RANGE_SECONDS

DEFAULT_WORD_POOL_SIZE = 500


def _generate_pool(generator_func: Callable[[], str], size: int) -> list[str]:
    """Collect up to ``size`` distinct values, giving up after 3x attempts."""
    pool: list[str] = []
    seen: set[str] = set()
    max_attempts = size * 3
    attempts = 0
    while len(pool) < size and attempts < max_attempts:
        value = generator_func()
        if value not in seen:
            seen.add(value)
            pool.append(value)
        attempts += 1
    return pool


class ValueProviders:
    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        seed: int | None = None,
        word_pool_size: int = DEFAULT_WORD_POOL_SIZE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.rng = rng if rng is not None else random.Random(seed)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        fake = Faker()
        fake.seed_instance(self.rng.getrandbits(32))
        self.words_pool: list[str] = _generate_pool(fake.word, word_pool_size)

    def randint(self, upper: int) -> int:
        """Integer in ``[0, upper)``; ``upper`` must be positive."""
        return self.rng.randrange(upper)

    def unit(self) -> float:
        """Float in ``(0, 1]``."""
        return 1.0 - self.rng.random()

    def coin(self) -> bool:
        return self.rng.getrandbits(1) == 1

    def word(self) -> str:
        return self.rng.choice(self.words_pool)

    def words(self, count: int, joiner: str = " ") -> str:
        choice = self.rng.choice
        pool = self.words_pool
        return joiner.join([choice(pool) for _ in range(count)])

    def ip(self) -> str:
        r = self.rng.randrange
        return f"{r(255)}.{r(255)}.{r(255)}.{r(255)}"

    def geo_point(self) -> str:
        lat = self.rng.uniform(-90.0, 90.0)
        lon = self.rng.uniform(-180.0, 180.0)
        return f"{lat:.6f},{lon:.6f}"

    def near_time(self, max_offset_seconds: int = DATE_RANGE_SECONDS) -> str:
        offset = timedelta(seconds=self.rng.randrange(max_offset_seconds))
        return (self._clock() - offset).strftime(DATE_LAYOUT)

    def unique_token(self) -> str:
        return uuid.UUID(int=self.rng.getrandbits(128), version=4).hex
