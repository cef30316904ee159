"""
User interface components for ffbatch.

Provides both Rich-based and plain text progress displays.
"""

import importlib.util

from ffbatch.ui.legacy_ui import LegacyProgressUI, UIState

# Check if Rich is available using importlib
RICH_AVAILABLE = importlib.util.find_spec("rich") is not None

__all__ = [
    "RICH_AVAILABLE",
    "LegacyProgressUI",
    "UIState",
]

if RICH_AVAILABLE:
    from ffbatch.ui.simple_rich import SimpleRichUI  # noqa: F401

    __all__.append("SimpleRichUI")
