"""pairkit engine layer — pairing lifecycle logic with no UI dependency.

All modules use ``from __future__ import annotations`` and modern
Python typing (``str | None``, ``@dataclass(slots=True)``, etc.).

Modules
-------
session
    Lifecycle state and the tracked session.
    - ``ConnectionState``: UNINITIALIZED / INITIALIZING / IDLE / CONNECTED / FAILED
    - ``Session``: opaque topic plus when it was established
    - ``ClientStore``: connection object, state, session; ``begin()`` is the atomic init gate

stores
    Dependent state cleared on reset.
    - ``AccountStore`` / ``Account``: account derived from session namespaces (CAIP-10)
    - ``ConnectionStore`` / ``PairingUri``: most recent pairing URI, consumed once
    - ``ConfigStore``, ``ThemeStore``, ``OptionsStore``, ``ExplorerStore``

storage
    - ``DeepLinkStorage``: persisted deep-link wallet reference on diskcache

reset
    - ``ResetCoordinator``: fixed-order teardown of every dependent store

relay
    - ``PairingURIRelay``: ``display_uri`` -> ``ConnectionStore.setPairingUri``

monitor
    - ``SessionMonitor``: queue-fed ``session_deleted`` consumer; resets on topic match

initializer
    - ``ConnectionInitializer``: factory call, construct-then-subscribe, existing-session restore

theme
    - ``ThemeSync``: configured override or OS appearance into ``ThemeStore``

explorer
    - ``ExplorerClient`` / ``WalletListing``: httpx client for mobile wallet listings

notify
    - ``Notifications``: typed failure -> notice text boundary; ``LogNotifier`` default

errors
    - ``PairingError`` and its ``InitializationFailure`` / ``PeripheralFetchFailure`` families

protocols
    - ``ConnectionObject``, ``SignalEmitter``, ``Notifier`` and the factory / fetcher callables
"""

from pairkit.engine.errors import (
    AccountFetchFailure,
    FactoryFailure,
    InitializationFailure,
    PairingError,
    PeripheralFetchFailure,
)
from pairkit.engine.initializer import ConnectionInitializer
from pairkit.engine.monitor import SessionMonitor
from pairkit.engine.relay import PairingURIRelay
from pairkit.engine.reset import ResetCoordinator
from pairkit.engine.session import ClientStore, ConnectionState, Session

__all__ = [
    "AccountFetchFailure",
    "ClientStore",
    "ConnectionInitializer",
    "ConnectionState",
    "FactoryFailure",
    "InitializationFailure",
    "PairingError",
    "PairingURIRelay",
    "PeripheralFetchFailure",
    "ResetCoordinator",
    "Session",
    "SessionMonitor",
]
