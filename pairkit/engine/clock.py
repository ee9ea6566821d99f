"""Coordinated application clock for consistent timestamps across engine modules."""
from __future__ import annotations

import dataclasses

import whenever


@dataclasses.dataclass
class AppClock:
    """Shared time source for session and pairing timestamps.

    Stores read ``clock.now()`` instead of calling ``Instant.now()`` directly
    so tests can pin time by assigning ``frozen``.
    """

    frozen: whenever.Instant | None = None

    def now(self) -> whenever.Instant:
        if self.frozen is not None:
            return self.frozen

        return whenever.Instant.now()
