"""
Synthetic record generation.

Produces email-shaped descriptions from a pseudo-random source. Pass a seed for
reproducible payload sequences.
"""

from __future__ import annotations

import random
import string
from typing import Optional

from failover_probe.domain.models import Record

_FIRST_NAMES = ["alice", "bob", "carol", "dave", "erin", "frank", "grace", "heidi", "ivan", "judy"]
_DOMAINS = ["example.com", "example.org", "example.net", "mail.test", "probe.invalid"]


class RecordGenerator:
    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def generate(self) -> Record:
        rng = self._rng
        suffix = "".join(rng.choices(string.ascii_lowercase + string.digits, k=6))
        email = f"{rng.choice(_FIRST_NAMES)}.{suffix}@{rng.choice(_DOMAINS)}"
        return Record(description=email)


__all__ = ["RecordGenerator"]
