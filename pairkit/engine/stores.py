"""Dependent local state stores cleared by reset.

Each store is a plain object owned by the ``PairingApp`` and handed by
reference to whichever coordinator mutates it.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import whenever
from loguru import logger

from pairkit.engine.clock import AppClock

if TYPE_CHECKING:
    from pairkit.engine.explorer import WalletListing
    from pairkit.engine.protocols import AccountFetcher, ConnectionObject
    from pairkit.helpers import ThemeMode


# ------------------------------------------------------------------
# Account
# ------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Account:
    """Account derived from an active session's namespaces.

    ``accounts`` holds every CAIP-10 id the session approved
    (``namespace:reference:address``); the first one is the active account.
    """

    namespace: str
    chainId: str
    address: str
    accounts: tuple[str, ...] = ()

    @classmethod
    def fromCaip10(cls, accountId: str, accounts: tuple[str, ...] = ()) -> Account:
        parts = accountId.split(":")
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Not a CAIP-10 account id: {accountId!r}")

        namespace, chainId, address = parts
        return cls(namespace, chainId, address, accounts or (accountId,))


def _namespaceAccounts(body: Any) -> list[str]:
    if isinstance(body, Mapping):
        return list(body.get("accounts") or [])

    return list(getattr(body, "accounts", None) or [])


async def accountFromSession(connection: ConnectionObject) -> Account:
    """Default account fetcher: read the first approved account of the session."""
    session = connection.session
    if session is None:
        raise ValueError("Connection has no active session")

    accounts = [a for body in session.namespaces.values() for a in _namespaceAccounts(body)]
    if not accounts:
        raise ValueError(f"Session {session.topic} approved no accounts")

    return Account.fromCaip10(accounts[0], tuple(accounts))


@dataclass(slots=True)
class AccountStore:
    fetcher: AccountFetcher = accountFromSession
    account: Account | None = None

    @property
    def isConnected(self) -> bool:
        return self.account is not None

    async def getAccount(self, connection: ConnectionObject) -> Account:
        """Fetch the session's account without storing it.

        The caller stores it with ``setAccount`` once it has checked that no
        reset ran while the fetch was suspended.
        """
        return await self.fetcher(connection)

    def setAccount(self, account: Account) -> None:
        self.account = account
        logger.info("[account] Active account {} on {}:{}", account.address, account.namespace, account.chainId)

    def resetAccount(self) -> None:
        self.account = None


# ------------------------------------------------------------------
# Connection (pairing)
# ------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class PairingUri:
    uri: str
    received: whenever.Instant


@dataclass(slots=True)
class ConnectionStore:
    """Holds the most recently relayed pairing URI (never persisted)."""

    clock: AppClock = field(default_factory=AppClock)
    pairingUri: PairingUri | None = None

    def setPairingUri(self, uri: str) -> PairingUri:
        self.pairingUri = PairingUri(uri=uri, received=self.clock.now())
        return self.pairingUri

    def consumePairingUri(self) -> PairingUri | None:
        """Return the pending URI once; later calls get None until a new one arrives."""
        pending, self.pairingUri = self.pairingUri, None
        return pending

    def resetConnection(self) -> None:
        self.pairingUri = None


# ------------------------------------------------------------------
# Config / theme / options / explorer
# ------------------------------------------------------------------


@dataclass(slots=True)
class ConfigStore:
    projectId: str | None = None

    def setProjectId(self, projectId: str) -> None:
        self.projectId = projectId

    def resetConfig(self) -> None:
        self.projectId = None


@dataclass(slots=True)
class ThemeStore:
    themeMode: ThemeMode = "light"

    def setThemeMode(self, themeMode: ThemeMode) -> None:
        if themeMode != self.themeMode:
            logger.info("[theme] Theme mode set to {}", themeMode)

        self.themeMode = themeMode


@dataclass(slots=True)
class OptionsStore:
    isDataLoaded: bool = False

    def setIsDataLoaded(self, loaded: bool) -> None:
        self.isDataLoaded = loaded


@dataclass(slots=True)
class ExplorerStore:
    """Wallet listings fetched once per app instance."""

    wallets: list[WalletListing] = field(default_factory=list)
    total: int = 0

    def setWallets(self, wallets: list[WalletListing], total: int) -> None:
        self.wallets = wallets
        self.total = total
