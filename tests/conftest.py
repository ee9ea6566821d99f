"""Shared test fixtures for the pairkit test suite.

FakeConnection provides a test double for a protocol client's connection
object, allowing headless lifecycle testing without a relay server.
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pairkit.engine.storage import DeepLinkStorage
from pairkit.engine.stores import Account
from pairkit.helpers import Configuration, ProviderMetadata


# ── Lightweight stubs for connection object types ──


class FakeEmitter:
    """Named-signal emitter with the on/off/emit surface of a protocol client."""

    def __init__(self):
        self.handlers: dict[str, list] = defaultdict(list)

    def on(self, event, handler):
        self.handlers[event].append(handler)

    def off(self, event, handler):
        self.handlers[event] = [h for h in self.handlers[event] if h != handler]

    def emit(self, event, payload):
        for handler in list(self.handlers[event]):
            handler(payload)

    def count(self, event) -> int:
        return len(self.handlers[event])


@dataclass
class FakeSession:
    """Stub for a remote session as reported by the connection object."""

    topic: str = "t1"
    namespaces: dict = field(
        default_factory=lambda: {
            "eip155": {"accounts": ["eip155:1:0xAbC0000000000000000000000000000000000001"]}
        }
    )


class FakeConnection(FakeEmitter):
    """Test double for a connection object.

    ``subscriber`` is a separate emitter, matching clients whose relay
    subscriber carries ``session_deleted`` for every topic.
    """

    def __init__(self, session: FakeSession | None = None):
        super().__init__()
        self.session = session
        self.subscriber = FakeEmitter()


class FakeFactory:
    """Connection factory double recording every call.

    ``gate`` (an asyncio.Event) holds the factory suspended until set;
    ``error`` makes it raise; ``empty`` makes it return None; ``emitUri`` queues a display_uri emission
    on the loop before returning.
    """

    def __init__(self, connection=None, error: Exception | None = None, gate=None, emitUri=None, empty=False):
        self.connection = None if empty else (connection or FakeConnection())
        self.error = error
        self.gate = gate
        self.emitUri = emitUri
        self.calls: list[tuple] = []

    async def __call__(self, projectId, relayUrl, metadata):
        self.calls.append((projectId, relayUrl, metadata))

        if self.gate is not None:
            await self.gate.wait()

        if self.error is not None:
            raise self.error

        if self.emitUri and self.connection is not None:
            asyncio.get_running_loop().call_soon(
                self.connection.emit, "display_uri", self.emitUri
            )

        return self.connection


class FakeNotifier:
    def __init__(self):
        self.alerts: list[tuple[str, str]] = []

    def alert(self, title, message):
        self.alerts.append((title, message))


class FakeCache(dict):
    """Dict-like cache with .set()/.delete() matching the diskcache API."""

    def set(self, key, value, expire=None):
        self[key] = value
        return True

    def delete(self, key):
        return self.pop(key, None) is not None


class CountingFetcher:
    """Account fetcher double counting invocations.

    ``gate`` (an asyncio.Event) holds the fetch suspended until set.
    """

    def __init__(self, error: Exception | None = None, gate=None):
        self.calls = 0
        self.error = error
        self.gate = gate

    async def __call__(self, connection):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()

        if self.error is not None:
            raise self.error

        return Account("eip155", "1", "0xabc", ("eip155:1:0xabc",))


# ── Fixtures ──


@pytest.fixture
def metadata() -> ProviderMetadata:
    return ProviderMetadata(name="X")


@pytest.fixture
def config(metadata) -> Configuration:
    return Configuration(projectId="abc", metadata=metadata)


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def deeplinks(cache) -> DeepLinkStorage:
    return DeepLinkStorage(cache)


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def make_app(cache, notifier):
    """Build a PairingApp with logging setup patched out and fake collaborators."""
    from pairkit.app import PairingApp

    def build(factory=None, wallets=None, **kwargs):
        kwargs.setdefault("notifier", notifier)
        kwargs.setdefault("cache", cache)
        with patch("pairkit.app.PairingApp.setupLogging"):
            app = PairingApp(factory=factory or FakeFactory(), **kwargs)

        # never reach the real explorer API from tests
        app.explorerClient = MagicMock(
            getMobileWallets=AsyncMock(return_value=wallets or ([], 0))
        )
        return app

    return build
