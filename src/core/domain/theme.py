"""Theme options for terminal rendering.

The theme is plain configuration handed to the renderer. Nothing in the Core
reads or mutates it, so it lives in the domain layer next to the models without
creating imports from adapters or the CLI.
"""

from __future__ import annotations

from enum import Enum


class Theme(str, Enum):
    """Supported color themes for user-facing output."""

    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def default(cls) -> "Theme":
        """Return the default theme used across the application."""

        return cls.DARK

    def label(self) -> str:
        """Human readable label for prompts and logging."""

        return "Dark" if self is Theme.DARK else "Light"
