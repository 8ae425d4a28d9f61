"""Injectable identifier and clock sources.

Lineage tags, logical ids and relationship ids are opaque UUID-shaped strings.
Timestamps feed the export filename, metadata and zip entry dates. Both are
injected so two exports with the same inputs and sources are byte-identical.
"""

from __future__ import annotations

import random
import uuid
from datetime import datetime, timezone
from typing import Protocol


class IdSource(Protocol):
    def next(self) -> str:
        ...


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class RandomIdSource:
    """Version-4 UUIDs from the operating system's random source."""

    def next(self) -> str:
        return str(uuid.uuid4())


class SeededIdSource:
    """Version-4-shaped UUIDs from a seeded PRNG.

    Not cryptographically strong; collisions are checked so one source never
    hands out the same id twice.
    """

    def __init__(self, seed: int = 0):
        self._rng = random.Random(seed)
        self._issued: set[str] = set()

    def next(self) -> str:
        while True:
            value = str(uuid.UUID(int=self._rng.getrandbits(128), version=4))
            if value not in self._issued:
                self._issued.add(value)
                return value


class SequentialIdSource:
    """Counter-based ids, readable in test failures."""

    def __init__(self, start: int = 1):
        self._counter = start

    def next(self) -> str:
        value = f"00000000-0000-4000-8000-{self._counter:012x}"
        self._counter += 1
        return value


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    def __init__(self, value: datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        self._value = value

    def now(self) -> datetime:
        return self._value


def iso_date(clock: Clock) -> str:
    """``YYYY-MM-DD`` in UTC, used in suggested filenames."""
    return clock.now().astimezone(timezone.utc).strftime("%Y-%m-%d")


def iso_timestamp(clock: Clock) -> str:
    """``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    moment = clock.now().astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
