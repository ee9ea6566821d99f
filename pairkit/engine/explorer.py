"""Mobile wallet listings from the wallet explorer API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from pairkit.engine.errors import PeripheralFetchFailure
from pairkit.helpers import DEFAULT_EXPLORER_URL


@dataclass(slots=True, frozen=True)
class WalletListing:
    id: str
    name: str
    homepage: str = ""
    imageId: str = ""

    # deep link targets for launching the wallet with a pairing URI
    native: str | None = None
    universal: str | None = None

    @classmethod
    def fromListing(cls, listing: dict[str, Any]) -> WalletListing:
        mobile = listing.get("mobile") or {}
        return cls(
            id=listing["id"],
            name=listing["name"],
            homepage=listing.get("homepage") or "",
            imageId=listing.get("image_id") or "",
            native=mobile.get("native") or None,
            universal=mobile.get("universal") or None,
        )


class ExplorerClient:
    """Async explorer API client.

    A shared ``httpx.AsyncClient`` may be injected (tests pass one built on
    ``httpx.MockTransport``); otherwise each request opens its own.
    """

    def __init__(
        self,
        url: str = DEFAULT_EXPLORER_URL,
        timeout: float = 5,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.client = client

    async def getMobileWallets(
        self, projectId: str, version: int = 2, page: int = 1, entries: int = 100
    ) -> tuple[list[WalletListing], int]:
        """Fetch one page of mobile wallet listings. Returns (listings, total)."""
        params = dict(projectId=projectId, version=version, page=page, entries=entries)

        try:
            if self.client:
                r = await self.client.get(f"{self.url}/w3m/v1/getMobileListings", params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.get(f"{self.url}/w3m/v1/getMobileListings", params=params)
        except httpx.HTTPError as e:
            raise PeripheralFetchFailure(f"Wallet listing request failed: {e}") from e

        if r.status_code != 200:
            raise PeripheralFetchFailure(
                f"Wallet listing request returned HTTP {r.status_code}", status=r.status_code
            )

        try:
            body = r.json()
            listings = [WalletListing.fromListing(x) for x in body["listings"].values()]
            total = int(body.get("total", len(listings)))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise PeripheralFetchFailure(f"Malformed wallet listing payload: {e}") from e

        logger.info("[explorer] Fetched {} of {} mobile wallets", len(listings), total)
        return listings, total
