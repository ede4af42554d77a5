"""Browser-backed scraping of the upstream mobile catalog."""

from gamefeed.browser._extract import (
    STRATEGIES,
    extract_games,
    find_cards,
    is_blocked,
    page_stats,
    rank_games,
)
from gamefeed.browser._navigate import RenderedPage, navigate
from gamefeed.browser._select import select_provider, wait_for_catalog
from gamefeed.browser._session import (
    BrowserSession,
    acquire_session,
    is_desktop_url,
    release,
)

__all__ = [
    "BrowserSession",
    "RenderedPage",
    "STRATEGIES",
    "acquire_session",
    "extract_games",
    "find_cards",
    "is_blocked",
    "is_desktop_url",
    "navigate",
    "page_stats",
    "rank_games",
    "release",
    "select_provider",
    "wait_for_catalog",
]
