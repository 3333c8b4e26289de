"""
olm_core.entropy
----------------
The randomness source every key-generating operation draws from.

A source is any callable ``source(length) -> bytes``; ``os.urandom`` is the
default. Sources may block while the OS gathers entropy and offer no
cancellation: callers that need a deadline should wrap their source.
Failures are never retried.
"""

from __future__ import annotations
import os
from typing import Callable, Optional

from .errors import RandomnessError
from .logger import get_logger

RandomSource = Callable[[int], bytes]

log = get_logger("olm_core.entropy")


def read_random(length: int, source: Optional[RandomSource] = None) -> bytearray:
    """Read exactly ``length`` bytes into a fresh bytearray the caller may zero."""
    source = source or os.urandom
    try:
        data = source(length)
    except Exception as e:
        log.error(f"[RANDOM] source failed: {e}")
        raise RandomnessError(message=f"random source failed: {e}") from e

    if not isinstance(data, (bytes, bytearray)) or len(data) != length:
        got = len(data) if isinstance(data, (bytes, bytearray)) else type(data).__name__
        log.error(f"[RANDOM] short read: wanted={length} got={got}")
        raise RandomnessError(message=f"random source returned {got}, wanted {length} bytes")
    return bytearray(data)
