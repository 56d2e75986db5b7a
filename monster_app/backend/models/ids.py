"""Identifier generation for persisted entities and battle tokens."""
from __future__ import annotations

import os
import random
import uuid
from typing import Optional

from loguru import logger

from .errors import RandomnessUnavailableError

ALPHANUMERIC = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"


class RandomSource:
    """Interface for the byte and integer sources used by the generators."""

    strong = False

    def token_bytes(self, n: int) -> bytes:
        raise NotImplementedError

    def randbelow(self, n: int) -> int:
        raise NotImplementedError


class SystemRandomSource(RandomSource):
    """Operating system CSPRNG."""

    strong = True

    def __init__(self) -> None:
        self._rng = random.SystemRandom()

    def token_bytes(self, n: int) -> bytes:
        try:
            return os.urandom(n)
        except NotImplementedError as exc:
            raise RandomnessUnavailableError() from exc

    def randbelow(self, n: int) -> int:
        try:
            return self._rng.randrange(n)
        except NotImplementedError as exc:
            raise RandomnessUnavailableError() from exc


class PseudoRandomSource(RandomSource):
    """Seedable Mersenne Twister source for ephemeral tokens and tests."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def token_bytes(self, n: int) -> bytes:
        return bytes(self._rng.getrandbits(8) for _ in range(n))

    def randbelow(self, n: int) -> int:
        return self._rng.randrange(n)


def select_random_source() -> RandomSource:
    """Pick the source used for the lifetime of the process."""

    try:
        os.urandom(1)
    except NotImplementedError:
        logger.warning("OS randomness unavailable, short ids fall back to a pseudo-random source")
        return PseudoRandomSource()
    return SystemRandomSource()


default_source = select_random_source()


def generate_uuid(source: Optional[RandomSource] = None) -> str:
    """Return a canonical version-4 UUID string.

    Only a strong source is accepted; anything else raises
    :class:`RandomnessUnavailableError`.
    """

    source = source or default_source
    if not source.strong:
        raise RandomnessUnavailableError()
    return str(uuid.UUID(bytes=bytes(source.token_bytes(16)), version=4))


def generate_short_id(length: int = 8, source: Optional[RandomSource] = None) -> str:
    """Return ``length`` characters drawn from the 62-character alphanumeric alphabet."""

    if length < 0:
        raise ValueError("length must be non-negative")
    source = source or default_source
    return "".join(ALPHANUMERIC[source.randbelow(len(ALPHANUMERIC))] for _ in range(length))
