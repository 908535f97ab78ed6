"""A pseudo-random engine seeded from the operating system's entropy source."""

from __future__ import annotations

import os
import random

_SEED_BYTES = 1024 * 4


def get_random_engine() -> random.Random:
    """A freshly and thoroughly seeded pseudo-random generator."""
    return random.Random(int.from_bytes(os.urandom(_SEED_BYTES), "big"))