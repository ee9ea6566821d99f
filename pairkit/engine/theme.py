"""Theme mode mirroring from configuration and OS appearance."""
from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from loguru import logger

from pairkit.engine.stores import ThemeStore

if TYPE_CHECKING:
    from pairkit.helpers import ThemeMode


class ThemeSync:
    """Applies the configured override, else follows the system appearance.

    ``systemAppearance`` returns the current OS color scheme (``"light"``,
    ``"dark"``, or None when the host cannot tell).
    """

    def __init__(
        self,
        theme: ThemeStore,
        systemAppearance: Callable[[], ThemeMode | None] = lambda: None,
    ):
        self.theme = theme
        self.systemAppearance = systemAppearance
        self.override: ThemeMode | None = None

    def apply(self, override: ThemeMode | None) -> None:
        self.override = override
        self.theme.setThemeMode(override or self.systemAppearance() or "light")

    def onAppearanceChange(self, colorScheme: ThemeMode | None) -> bool:
        """OS appearance changed. Returns True if the theme store was updated."""
        if self.override or not colorScheme:
            logger.trace("[theme] Ignoring appearance change to {} (override {})", colorScheme, self.override)
            return False

        self.theme.setThemeMode(colorScheme)
        return True
