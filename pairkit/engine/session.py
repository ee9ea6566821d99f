"""Connection state and the single tracked session."""
from __future__ import annotations

import dataclasses
import enum
from typing import Any

import whenever
from loguru import logger

from pairkit.engine.clock import AppClock


class ConnectionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    # initialized with a connection object but no active session
    IDLE = "idle"
    CONNECTED = "connected"
    FAILED = "failed"


# states from which a fresh initialization attempt may start
STARTABLE = frozenset({ConnectionState.UNINITIALIZED, ConnectionState.FAILED})


@dataclasses.dataclass(slots=True, frozen=True)
class Session:
    """An active remote session, identified by its opaque topic."""

    topic: str
    established: whenever.Instant


@dataclasses.dataclass(slots=True)
class ClientStore:
    """Connection object, lifecycle state, and the one tracked session.

    Only the initializer, the app's ``sessionEstablished``, and reset
    mutate this store; the hosting application reads it.
    """

    clock: AppClock = dataclasses.field(default_factory=AppClock)
    provider: Any | None = None
    session: Session | None = None
    initialized: bool = False
    state: ConnectionState = ConnectionState.UNINITIALIZED

    # bumped by every claimed attempt and every reset
    attempt: int = 0

    @property
    def sessionTopic(self) -> str | None:
        return self.session.topic if self.session else None

    def begin(self) -> int | None:
        """Claim the initialization slot.

        Check and transition happen with no suspension in between, so this
        is the actual gate against concurrent initialization attempts.
        Returns the attempt number to pass to ``owns()`` after each await,
        or None when the slot is taken.
        """
        if self.provider is not None or self.state not in STARTABLE:
            return None

        self.attempt += 1
        self.state = ConnectionState.INITIALIZING
        return self.attempt

    def owns(self, attempt: int) -> bool:
        """True while ``attempt`` is still in progress (no reset and no newer attempt since)."""
        return attempt == self.attempt and self.state is ConnectionState.INITIALIZING

    def setProvider(self, provider: Any) -> None:
        self.provider = provider

    def setSessionTopic(self, topic: str) -> Session:
        if not topic:
            raise ValueError("Session topic must be a non-empty string")

        if self.session and self.session.topic != topic:
            logger.info("[session] Replacing tracked session {} with {}", self.session.topic, topic)

        self.session = Session(topic=topic, established=self.clock.now())
        return self.session

    def setInitialized(self, initialized: bool) -> None:
        self.initialized = initialized

    def transition(self, state: ConnectionState) -> None:
        if state is ConnectionState.CONNECTED and not self.sessionTopic:
            raise ValueError("Cannot enter CONNECTED without a session topic")

        if state is not self.state:
            logger.debug("[session] State {} -> {}", self.state.name, state.name)

        self.state = state

    def fail(self) -> None:
        """Abandon a failed attempt: nothing held, not initialized."""
        self.provider = None
        self.session = None
        self.initialized = False
        self.state = ConnectionState.FAILED

    def resetSession(self) -> None:
        # any attempt suspended across this reset is now stale
        self.attempt += 1
        self.provider = None
        self.session = None
        self.initialized = False
        self.state = ConnectionState.UNINITIALIZED
