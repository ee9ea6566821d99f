"""Persisted deep-link wallet reference."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from loguru import logger

if TYPE_CHECKING:
    import diskcache

DEEPLINK_KEY: Final = ("deeplink", "wallet")


@dataclass(slots=True, frozen=True)
class DeepLinkReference:
    """The wallet the current app launch was deep-linked from."""

    name: str
    href: str


class DeepLinkStorage:
    """Deep-link reference persisted in a diskcache (or any dict-like with ``set``)."""

    def __init__(self, cache: diskcache.Cache):
        self.cache = cache

    def setDeepLinkWallet(self, ref: DeepLinkReference) -> None:
        self.cache.set(DEEPLINK_KEY, dict(name=ref.name, href=ref.href))

    def getDeepLinkWallet(self) -> DeepLinkReference | None:
        if not (found := self.cache.get(DEEPLINK_KEY)):
            return None

        return DeepLinkReference(name=found["name"], href=found["href"])

    def removeDeepLinkWallet(self) -> None:
        # deleting a missing key is fine; reset runs this unconditionally
        if self.cache.delete(DEEPLINK_KEY):
            logger.info("[storage] Removed deep-link wallet reference")

    def close(self) -> None:
        if close := getattr(self.cache, "close", None):
            close()
