"""Pairing lifecycle manager.

``PairingApp`` owns every store and coordinator of one pairing client and
reacts to configuration changes: theme and projectId are mirrored, the
wallet list is fetched once, and one initialization attempt is scheduled
for each new configuration while no connection object is held.
"""

from __future__ import annotations

import asyncio
import logging
import os
import pathlib
import sys
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

import diskcache  # type: ignore
from loguru import logger

from pairkit.engine.clock import AppClock
from pairkit.engine.errors import AccountFetchFailure, PeripheralFetchFailure
from pairkit.engine.explorer import ExplorerClient
from pairkit.engine.initializer import ConnectionInitializer
from pairkit.engine.monitor import SessionMonitor
from pairkit.engine.notify import Notifications
from pairkit.engine.protocols import AccountFetcher, ConnectionFactory, Notifier
from pairkit.engine.relay import PairingURIRelay
from pairkit.engine.reset import ResetCoordinator
from pairkit.engine.session import STARTABLE, ClientStore, ConnectionState, Session
from pairkit.engine.storage import DeepLinkReference, DeepLinkStorage
from pairkit.engine.stores import (
    AccountStore,
    ConfigStore,
    ConnectionStore,
    ExplorerStore,
    OptionsStore,
    PairingUri,
    ThemeStore,
    accountFromSession,
)
from pairkit.engine.theme import ThemeSync
from pairkit.helpers import PAIRKIT_CONFIG, Configuration, ThemeMode


@dataclass(slots=True)
class PairingApp:
    # async (projectId, relayUrl, metadata) -> connection object
    factory: ConnectionFactory

    # where user-facing notices go (defaults to the error log)
    notifier: Notifier | None = None

    accountFetcher: AccountFetcher = accountFromSession

    # current OS color scheme, consulted when no theme override is configured
    systemAppearance: Callable[[], ThemeMode | None] = lambda: None

    explorerUrl: str = field(default_factory=lambda: PAIRKIT_CONFIG["PAIRKIT_EXPLORER_URL"])
    logdir: str = field(default_factory=lambda: PAIRKIT_CONFIG["PAIRKIT_LOGDIR"])

    # persisted key/value storage (deep-link reference lives here)
    cache: Any = field(
        default_factory=lambda: diskcache.Cache(PAIRKIT_CONFIG["PAIRKIT_CACHE_DIR"])
    )

    clock: AppClock = field(default_factory=AppClock)

    # State stores
    client: ClientStore = field(init=False)
    account: AccountStore = field(init=False)
    pairing: ConnectionStore = field(init=False)
    configStore: ConfigStore = field(init=False)
    theme: ThemeStore = field(init=False)
    options: OptionsStore = field(init=False)
    explorer: ExplorerStore = field(init=False)
    deeplinks: DeepLinkStorage = field(init=False)

    # Coordinators
    notifications: Notifications = field(init=False)
    resetter: ResetCoordinator = field(init=False)
    relay: PairingURIRelay = field(init=False)
    monitor: SessionMonitor = field(init=False)
    initializer: ConnectionInitializer = field(init=False)
    themeSync: ThemeSync = field(init=False)
    explorerClient: ExplorerClient = field(init=False)

    # most recent configuration passed to configure() (None until first call and after reset)
    lastConfig: Configuration | None = field(init=False, default=None)

    # background tasks held until done so they are not garbage collected
    tasks: set[asyncio.Task] = field(init=False, default_factory=set)

    # Console log handler (set by setupLogging, used by setConsoleLogLevel)
    _console_handler_id: int = field(init=False, default=0)
    _console_sink: Any = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.setupLogging()

        self.client = ClientStore(clock=self.clock)
        self.account = AccountStore(fetcher=self.accountFetcher)
        self.pairing = ConnectionStore(clock=self.clock)
        self.configStore = ConfigStore()
        self.theme = ThemeStore()
        self.options = OptionsStore()
        self.explorer = ExplorerStore()
        self.deeplinks = DeepLinkStorage(self.cache)

        self.notifications = Notifications(self.notifier, clock=self.clock)

        self.resetter = ResetCoordinator(
            self.client, self.account, self.pairing, self.configStore, self.deeplinks
        )

        # detach from the dropped connection object whenever any reset runs
        self.resetter.onReset(self._afterReset)

        self.relay = PairingURIRelay(self.pairing)
        self.monitor = SessionMonitor(self.client, self.resetter)

        self.initializer = ConnectionInitializer(
            self.factory,
            self.client,
            self.account,
            self.relay,
            self.monitor,
            self.notifications,
        )

        self.themeSync = ThemeSync(self.theme, self.systemAppearance)
        self.explorerClient = ExplorerClient(self.explorerUrl)

    def setupLogging(self) -> None:
        now = self.clock.now().py_datetime()
        LOGDIR = pathlib.Path(self.logdir) / f"{now.year}" / f"{now.month:02}"
        LOGDIR.mkdir(exist_ok=True, parents=True)
        LOG_FILE_TEMPLATE = str(
            LOGDIR / f"pairkit-pid={os.getpid()}-{now.isoformat(timespec='seconds')}"
        ).replace(":", "-")

        # http client libraries log through stdlib logging; keep them in their own file
        logging.basicConfig(
            level=logging.INFO,
            filename=LOG_FILE_TEMPLATE + "-http.log",
            format="%(asctime)s %(name)s %(message)s",
        )

        logger.info("Logging session with prefix: {}", LOG_FILE_TEMPLATE)

        logger.remove()
        self._console_sink = sys.stderr
        self._console_handler_id = logger.add(sys.stderr, colorize=True, level="INFO")

        # full history, including TRACE signal filtering decisions, goes to disk
        logger.add(sink=LOG_FILE_TEMPLATE + "-pairkit.log", level="TRACE", colorize=False)
        logger.add(
            sink=LOG_FILE_TEMPLATE + "-pairkit-color.log",
            level="TRACE",
            colorize=True,
        )

    def setConsoleLogLevel(self, level: str) -> None:
        """Change the console log level at runtime.

        Removes the current console handler and re-adds it at the new level."""
        logger.remove(self._console_handler_id)
        self._console_handler_id = logger.add(self._console_sink, colorize=True, level=level)
        logger.info("Console log level set to {}", level)

    # ------------------------------------------------------------------
    # Read-only views for the hosting application
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self.client.state

    @property
    def sessionTopic(self) -> str | None:
        return self.client.sessionTopic

    @property
    def initialized(self) -> bool:
        return self.client.initialized

    @property
    def pairingUri(self) -> PairingUri | None:
        return self.pairing.pairingUri

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def configure(self, config: Configuration) -> asyncio.Task | None:
        """Apply a (possibly unchanged) configuration.

        Must be called from inside the running event loop. Returns the
        scheduled initialization task, or None when no attempt was started.
        """
        previous = self.lastConfig
        if config == previous:
            return None

        self.lastConfig = config

        if previous is None or config.themeModeOverride != previous.themeModeOverride:
            self.themeSync.apply(config.themeModeOverride)

        if previous is None or config.projectId != previous.projectId:
            self.configStore.setProjectId(config.projectId)

        if previous is None:
            self.task_create("fetch wallets", self.fetchWallets())

        if not config.complete:
            logger.debug("[configure] Waiting for projectId and metadata before initializing")
            return None

        if self.client.provider is not None or self.client.state not in STARTABLE:
            logger.debug(
                "[configure] Not initializing for new configuration (state {})",
                self.client.state.name,
            )
            return None

        return self.task_create("initialize", self.initializer.initialize(config))

    async def initialize(self, config: Configuration | None = None) -> bool:
        """Explicit initialization attempt (e.g. a retry after FAILED or after a reset)."""
        config = config or self.lastConfig
        if config is None:
            raise ValueError("No configuration to initialize with")

        return await self.initializer.initialize(config)

    async def sessionEstablished(self, topic: str) -> Session | None:
        """Track a session created by a new pairing on the held connection object.

        Returns None (after reporting the failure) if the account fetch fails,
        and None without touching any store if a reset or another session
        replaced this one while the fetch was suspended.
        """
        if not topic:
            raise ValueError("Session topic must be a non-empty string")

        connection = self.client.provider
        if connection is None or not self.client.initialized:
            raise RuntimeError("No initialized connection object to track a session on")

        session = self.client.setSessionTopic(topic)

        try:
            account = await self.account.getAccount(connection)
        except Exception as e:
            if not self._tracking(session, connection):
                logger.warning("[session] Session {} was replaced or reset while its account fetch failed: {}", topic, e)
                return None

            failure = AccountFetchFailure(topic, str(e))
            failure.__cause__ = e
            self.client.session = None
            self.account.resetAccount()
            self.client.transition(ConnectionState.IDLE)
            self.notifications.report(failure)
            return None

        if not self._tracking(session, connection):
            logger.warning("[session] Session {} was replaced or reset while fetching its account", topic)
            return None

        self.account.setAccount(account)
        self.client.transition(ConnectionState.CONNECTED)
        logger.info("[session] Session {} established", topic)
        return session

    def _tracking(self, session: Session, connection: Any) -> bool:
        """True if ``session`` on ``connection`` is still what the client store holds."""
        return self.client.session is session and self.client.provider is connection

    def reset(self) -> None:
        """Caller-invoked full reset (same teardown as a remote session delete)."""
        self.resetter.reset()

    def _afterReset(self) -> None:
        self.relay.detach()
        self.monitor.detach()

        # the next configure() starts over, even with an identical configuration
        self.lastConfig = None

    def onAppearanceChange(self, colorScheme: ThemeMode | None) -> bool:
        return self.themeSync.onAppearanceChange(colorScheme)

    async def fetchWallets(self) -> bool:
        """Load the mobile wallet list once. Failures are reported, never raised."""
        if self.explorer.total:
            return True

        if not (projectId := self.configStore.projectId):
            logger.debug("[explorer] No projectId configured, not fetching wallets")
            return False

        try:
            wallets, total = await self.explorerClient.getMobileWallets(projectId, version=2)
        except PeripheralFetchFailure as e:
            self.notifications.report(e)
            return False

        self.explorer.setWallets(wallets, total)
        self.options.setIsDataLoaded(True)
        return True

    # ------------------------------------------------------------------
    # Deep-link storage
    # ------------------------------------------------------------------

    def setDeepLinkWallet(self, ref: DeepLinkReference) -> None:
        self.deeplinks.setDeepLinkWallet(ref)

    def getDeepLinkWallet(self) -> DeepLinkReference | None:
        return self.deeplinks.getDeepLinkWallet()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def task_create(self, name: str, coroutine: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coroutine, name=name)
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task

    async def close(self) -> None:
        """Detach from the connection object, stop background work, close storage."""
        self.relay.detach()
        self.monitor.detach()

        pending = list(self.tasks)
        for task in pending:
            task.cancel()

        # detached consumers exit on their own once their queue is handled
        pending.extend(self.monitor.retired)

        for result in await asyncio.gather(*pending, return_exceptions=True):
            if isinstance(result, Exception):
                logger.opt(exception=result).error("Background task failed before close")

        self.deeplinks.close()
