"""Narrow protocols for the external collaborators of the pairing lifecycle.

The connection object itself is produced by a host-supplied factory; these
protocols describe only the surface the engine modules touch, so any
protocol client can be adapted without the engine importing it.
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, Final, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pairkit.engine.stores import Account
    from pairkit.helpers import ProviderMetadata

# signal names emitted by the connection object and its subscriber
DISPLAY_URI: Final = "display_uri"
SESSION_DELETED: Final = "session_deleted"


@runtime_checkable
class SignalEmitter(Protocol):
    """Anything that registers and removes named signal handlers."""

    def on(self, event: str, handler: Callable[..., Any]) -> Any: ...
    def off(self, event: str, handler: Callable[..., Any]) -> Any: ...


@runtime_checkable
class RemoteSession(Protocol):
    """An active authorized pairing as reported by the connection object."""

    topic: str
    namespaces: Mapping[str, Any]


@runtime_checkable
class ConnectionObject(SignalEmitter, Protocol):
    """Active protocol client returned by the connection factory.

    ``on``/``off`` carry ``display_uri``; ``subscriber`` carries
    ``session_deleted`` events for every topic the client relays.
    """

    session: RemoteSession | None
    subscriber: SignalEmitter


ConnectionFactory = Callable[
    [str, "str | None", "ProviderMetadata"], Awaitable["ConnectionObject | None"]
]

AccountFetcher = Callable[["ConnectionObject"], Awaitable["Account"]]


@runtime_checkable
class Notifier(Protocol):
    """User-facing alert presenter (rendering is the host's business)."""

    def alert(self, title: str, message: str) -> None: ...
