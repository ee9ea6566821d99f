"""Notification boundary: typed failures in, user-facing notices out."""
from __future__ import annotations

from typing import TYPE_CHECKING

import whenever
from loguru import logger

from pairkit.engine.clock import AppClock
from pairkit.engine.errors import NOTICE_TITLE, PairingError

if TYPE_CHECKING:
    from pairkit.engine.protocols import Notifier


class LogNotifier:
    """Default notifier for headless hosts: notices go to the error log."""

    def alert(self, title: str, message: str) -> None:
        logger.error("{}: {}", title, message)


class Notifications:
    """Maps failures to their notice text and forwards them to the notifier.

    The full cause chain goes to the log; the notifier only sees the notice
    text. Every initialization failure is alerted. Suppressible failures
    (wallet fetches) repeating the same notice within ``suppressSeconds``
    are logged but not re-alerted.
    """

    def __init__(
        self,
        notifier: Notifier | None = None,
        clock: AppClock | None = None,
        suppressSeconds: float = 30,
    ):
        self.notifier = notifier or LogNotifier()
        self.clock = clock or AppClock()
        self.suppressSeconds = suppressSeconds
        self.lastShown: dict[str, whenever.Instant] = {}

    def report(self, failure: PairingError) -> bool:
        """Log ``failure`` and alert its notice. Returns False if the alert was suppressed."""
        logger.opt(exception=failure).error(
            "[{}] {}{}",
            type(failure).__name__,
            failure,
            f" (caused by {failure.__cause__!r})" if failure.__cause__ else "",
        )

        return self.alert(failure.notice, suppress=failure.suppressible)

    def alert(self, message: str, suppress: bool = True) -> bool:
        now = self.clock.now()
        if suppress and (last := self.lastShown.get(message)) is not None:
            if (now - last).in_seconds() < self.suppressSeconds:
                logger.debug("Suppressing repeated notice: {}", message)
                return False

        self.lastShown[message] = now
        self.notifier.alert(NOTICE_TITLE, message)
        return True
