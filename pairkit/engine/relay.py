"""Pairing URI relay from the connection object to the connection store."""
from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from pairkit.engine.protocols import DISPLAY_URI
from pairkit.engine.stores import ConnectionStore

if TYPE_CHECKING:
    from pairkit.engine.protocols import ConnectionObject


class PairingURIRelay:
    """Forwards each ``display_uri`` payload verbatim; the newest URI wins."""

    def __init__(self, connection: ConnectionStore):
        self.connection = connection
        self.source: ConnectionObject | None = None

    def attach(self, source: ConnectionObject) -> None:
        self.detach()
        source.on(DISPLAY_URI, self.onUri)
        self.source = source

    def detach(self) -> None:
        if self.source is None:
            return

        self.source.off(DISPLAY_URI, self.onUri)
        self.source = None

    def onUri(self, uri: str) -> None:
        # URIs carry a symmetric key, so only the prefix is logged
        logger.info("[pairing] New pairing URI: {}...", uri[:24])
        self.connection.setPairingUri(uri)
