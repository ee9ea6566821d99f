"""Full teardown of session-dependent local state."""
from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from pairkit.engine.session import ClientStore
from pairkit.engine.storage import DeepLinkStorage
from pairkit.engine.stores import AccountStore, ConfigStore, ConnectionStore


class ResetCoordinator:
    """Clears every dependent store in a fixed order.

    Order: session/client, account, connection/pairing, config, then the
    persisted deep-link reference. Reset listeners run after all stores are
    clear. Calling ``reset()`` repeatedly leaves the same terminal state.

    Parameters
    ----------
    client:
        Connection object, state and session.
    account:
        Derived account of the active session.
    connection:
        Most recent pairing URI.
    config:
        Mirrored projectId.
    deeplinks:
        Persisted deep-link wallet reference.
    """

    def __init__(
        self,
        client: ClientStore,
        account: AccountStore,
        connection: ConnectionStore,
        config: ConfigStore,
        deeplinks: DeepLinkStorage,
    ):
        self.client = client
        self.account = account
        self.connection = connection
        self.config = config
        self.deeplinks = deeplinks
        self.listeners: list[Callable[[], None]] = []

    def onReset(self, listener: Callable[[], None]) -> None:
        self.listeners.append(listener)

    def reset(self) -> None:
        topic = self.client.sessionTopic

        try:
            self.client.resetSession()
            self.account.resetAccount()
            self.connection.resetConnection()
            self.config.resetConfig()
            self.deeplinks.removeDeepLinkWallet()
        except Exception:
            # no partial-failure path exists; the caller gets the error
            logger.exception("[reset] Store clear failed during reset")
            raise

        for listener in self.listeners:
            listener()

        if topic:
            logger.info("[reset] Cleared session {} and all dependent state", topic)
        else:
            logger.debug("[reset] Cleared all dependent state (no session tracked)")
