"""Asynchronous connection bootstrap."""
from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from pairkit.engine.errors import AccountFetchFailure, FactoryFailure, InitializationFailure
from pairkit.engine.session import ClientStore, ConnectionState
from pairkit.engine.stores import AccountStore

if TYPE_CHECKING:
    from pairkit.engine.monitor import SessionMonitor
    from pairkit.engine.notify import Notifications
    from pairkit.engine.protocols import ConnectionFactory, ConnectionObject
    from pairkit.engine.relay import PairingURIRelay
    from pairkit.helpers import Configuration


class ConnectionInitializer:
    """Builds the connection object from configuration and publishes the result.

    The only suspension points are the factory call and the account fetch.
    Everything between "factory returned" and "signals subscribed" runs as
    one synchronous step so no early ``display_uri`` or ``session_deleted``
    can be emitted before a handler is registered.

    Parameters
    ----------
    factory:
        ``async factory(projectId, relayUrl, metadata)`` returning the connection object.
    client:
        Connection object / state / session store.
    account:
        Account store; fetches account data for a pre-existing session.
    relay:
        Pairing URI relay registered on the new connection object.
    monitor:
        Session-deleted monitor registered on the new connection object.
    notifications:
        Boundary that turns failures into user notices.
    """

    def __init__(
        self,
        factory: ConnectionFactory,
        client: ClientStore,
        account: AccountStore,
        relay: PairingURIRelay,
        monitor: SessionMonitor,
        notifications: Notifications,
    ):
        self.factory = factory
        self.client = client
        self.account = account
        self.relay = relay
        self.monitor = monitor
        self.notifications = notifications

    async def initialize(self, config: Configuration) -> bool:
        """Run one initialization attempt.

        Returns True when the connection object is ready (``IDLE`` or
        ``CONNECTED``). Returns False when preconditions are unmet, another
        attempt already holds the gate, or the attempt failed (in which case
        one notice was reported and the state is ``FAILED``). An attempt
        overtaken by a reset while suspended also returns False, leaving the
        stores to whatever the reset (or a newer attempt) made of them.
        """
        if not config.complete:
            logger.debug("[init] Skipping initialization: projectId and metadata are required")
            return False

        if (attempt := self.client.begin()) is None:
            logger.warning(
                "[init] Initialization already {} (state {}), ignoring new request",
                "held" if self.client.provider is not None else "in progress",
                self.client.state.name,
            )
            return False

        logger.info("[init] Creating connection for project {} (attempt {})", config.projectId, attempt)

        try:
            ready = await self._initialize(config, attempt)
        except InitializationFailure as e:
            return self._failed(attempt, e)
        except Exception as e:
            failure = InitializationFailure(f"Connection setup failed: {e}")
            failure.__cause__ = e
            return self._failed(attempt, failure)

        return ready

    def _failed(self, attempt: int, failure: InitializationFailure) -> bool:
        if not self.client.owns(attempt):
            logger.opt(exception=failure).warning(
                "[init] Attempt {} failed after being reset, not reporting: {}", attempt, failure
            )
            return False

        self._abandon()
        self.notifications.report(failure)
        return False

    async def _initialize(self, config: Configuration, attempt: int) -> bool:
        try:
            connection = await self.factory(
                config.projectId, config.relayUrl, config.metadata
            )
        except Exception as e:
            raise FactoryFailure(
                f"Connection factory raised {type(e).__name__}: {e}",
                dict(projectId=config.projectId, relayUrl=config.relayUrl),
            ) from e

        if connection is None:
            raise FactoryFailure(
                "Connection factory returned no connection object",
                dict(projectId=config.projectId, relayUrl=config.relayUrl),
            )

        if not self.client.owns(attempt):
            # a reset (and maybe a newer attempt) ran while the factory call was suspended
            logger.warning(
                "[init] Attempt {} overtaken while connecting (state {}), discarding new connection",
                attempt,
                self.client.state.name,
            )
            return False

        self._attach(connection)

        # a session that survived from an earlier run is active immediately
        if session := connection.session:
            self.client.setSessionTopic(session.topic)
            logger.info("[init] Restoring existing session {}", session.topic)

            try:
                account = await self.account.getAccount(connection)
            except Exception as e:
                raise AccountFetchFailure(session.topic, str(e)) from e

            if not self.client.owns(attempt):
                logger.warning("[init] Session {} was reset while fetching its account", session.topic)
                return False

            self.account.setAccount(account)

        self.client.setInitialized(True)
        self.client.transition(
            ConnectionState.CONNECTED if self.client.session else ConnectionState.IDLE
        )

        logger.info(
            "[init] Initialized ({}{})",
            self.client.state.name,
            f": {self.client.sessionTopic}" if self.client.session else "",
        )
        return True

    def _attach(self, connection: ConnectionObject) -> None:
        """Hold the connection object and subscribe to its signals (never suspends)."""
        self.client.setProvider(connection)
        self.relay.attach(connection)
        self.monitor.attach(connection)

    def _abandon(self) -> None:
        self.relay.detach()
        self.monitor.detach()
        self.account.resetAccount()
        self.client.fail()
