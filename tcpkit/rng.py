"""A well-seeded pseudo-random generator."""

import os
import random


def get_random_engine():
    """Return a ``random.Random`` seeded with 4096 bytes from the OS entropy source."""
    return random.Random(int.from_bytes(os.urandom(4096), "big"))