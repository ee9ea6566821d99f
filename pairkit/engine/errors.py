"""Typed failures raised inside the pairing lifecycle.

Each failure carries the user-facing ``notice`` for its category. The
underlying exception stays attached as ``__cause__``.
"""
from __future__ import annotations

from typing import Any, Final

NOTICE_TITLE: Final = "Error"
NOTICE_INIT: Final = "Error initializing provider"
NOTICE_WALLETS: Final = "Error fetching wallets"


class PairingError(Exception):
    """Base exception for all pairing lifecycle failures."""

    notice: str = NOTICE_INIT

    # repeats within the notification window are logged but not re-alerted
    suppressible: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class InitializationFailure(PairingError):
    """Connection bootstrap failed; never retried automatically."""

    notice = NOTICE_INIT
    step = "setup"


class FactoryFailure(InitializationFailure):
    """The connection factory raised or returned no connection object."""

    step = "factory"


class AccountFetchFailure(InitializationFailure):
    """Fetching account data for an already-active session failed."""

    step = "account"

    def __init__(self, topic: str, message: str, details: dict[str, Any] | None = None):
        self.topic = topic
        super().__init__(f"Account fetch failed for session {topic}: {message}", details)


class PeripheralFetchFailure(PairingError):
    """A peripheral fetch (wallet listings) failed; connection state is unaffected."""

    notice = NOTICE_WALLETS
    suppressible = True

    def __init__(
        self,
        message: str,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.status = status
        super().__init__(message, details)
