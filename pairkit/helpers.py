"""Configuration types and process-level settings shared by the app and engine."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final, Literal

from dotenv import dotenv_values

ThemeMode = Literal["light", "dark"]
THEME_MODES: Final = ("light", "dark")

# The W3M explorer serves the mobile wallet listings used by the pairing screen
DEFAULT_EXPLORER_URL: Final = "https://explorer-api.walletconnect.com"

PAIRKIT_DEFAULT = dict(
    PAIRKIT_EXPLORER_URL=DEFAULT_EXPLORER_URL,
    PAIRKIT_CACHE_DIR="./cache-pairkit",
    PAIRKIT_LOGDIR="runlogs",
)
PAIRKIT_CONFIG = {**PAIRKIT_DEFAULT, **dotenv_values(".env.pairkit"), **os.environ}  # type: ignore


@dataclass(slots=True, frozen=True)
class ProviderMetadata:
    """Descriptor of the hosting application shown to the remote wallet."""

    name: str
    description: str = ""
    url: str = ""
    icons: tuple[str, ...] = ()

    # deep link schemes the wallet uses to return to the app after approval
    native: str | None = None
    universal: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Provider metadata requires a name")

    def asdict(self) -> dict:
        """Wire shape of the metadata (what connection factories expect)."""
        out = dict(
            name=self.name,
            description=self.description,
            url=self.url,
            icons=list(self.icons),
        )

        if self.native or self.universal:
            out["redirect"] = {
                k: v
                for k, v in (("native", self.native), ("universal", self.universal))
                if v
            }

        return out


@dataclass(slots=True, frozen=True)
class Configuration:
    """Caller-supplied configuration for one initialization attempt.

    Frozen and hashable: a change to any field is a distinct configuration.
    """

    projectId: str
    metadata: ProviderMetadata | None
    relayUrl: str | None = None
    themeModeOverride: ThemeMode | None = None

    def __post_init__(self) -> None:
        if self.themeModeOverride not in (None, *THEME_MODES):
            raise ValueError(
                f"Theme mode must be one of {THEME_MODES} (got {self.themeModeOverride!r})"
            )

    @property
    def complete(self) -> bool:
        """True when the fields required to create a connection are present."""
        return bool(self.projectId) and self.metadata is not None

    @classmethod
    def fromEnv(cls, config: Mapping[str, str | None] | None = None) -> Configuration:
        """Build a Configuration from ``PAIRKIT_*`` settings.

        Reads the merged defaults / ``.env.pairkit`` / environment mapping
        unless an explicit mapping is given.
        """
        if config is None:
            config = PAIRKIT_CONFIG

        name = config.get("PAIRKIT_APP_NAME") or ""
        metadata = None
        if name:
            icons = config.get("PAIRKIT_APP_ICONS") or ""
            metadata = ProviderMetadata(
                name=name,
                description=config.get("PAIRKIT_APP_DESCRIPTION") or "",
                url=config.get("PAIRKIT_APP_URL") or "",
                icons=tuple(i.strip() for i in icons.split(",") if i.strip()),
                native=config.get("PAIRKIT_APP_NATIVE") or None,
                universal=config.get("PAIRKIT_APP_UNIVERSAL") or None,
            )

        return cls(
            projectId=config.get("PAIRKIT_PROJECT_ID") or "",
            metadata=metadata,
            relayUrl=config.get("PAIRKIT_RELAY_URL") or None,
            themeModeOverride=config.get("PAIRKIT_THEME_MODE") or None,  # type: ignore
        )
