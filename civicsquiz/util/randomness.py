from __future__ import annotations

"""Random and clock capabilities passed into the session core."""

import os
import random
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def seed_from_env() -> Optional[int]:
    """Return the SEED env var as an int, or None if unset or malformed."""
    seed = os.environ.get("SEED")
    if seed is None:
        return None
    try:
        return int(seed)
    except ValueError:
        return None


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Build an isolated RNG; falls back to SEED from the environment."""
    if seed is None:
        seed = seed_from_env()
    return random.Random(seed)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fixed_clock(moment: datetime) -> Clock:
    """Clock that always returns ``moment``. Handy for replays."""

    def _clock() -> datetime:
        return moment

    return _clock


def session_id_from(rng: random.Random) -> str:
    """uuid4-formatted id drawn from ``rng`` so replays yield the same id."""
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))
