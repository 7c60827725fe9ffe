"""
Selectors package
-----------------
Playwright side of the executor: turns Selector models into Locators and
wraps a page as an engine with robust fallback across multiple strategies.
"""

from .locator import resolve_locator
from .playwright_engine import AsyncPlaywrightEngine, PlaywrightEngine
from .strategy import LocatorStrategy

__all__ = [
    "resolve_locator",
    "PlaywrightEngine",
    "AsyncPlaywrightEngine",
    "LocatorStrategy",
]
