"""gamefeed -- Resilient casino game catalog ingestion."""

import logging
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gamefeed")
except PackageNotFoundError:
    __version__ = "0.0.0"

from gamefeed._cache import (
    CacheEntry,
    CacheManager,
    MemoryCache,
    NullStore,
    cache_key,
)
from gamefeed._config import DEFAULT_HEADERS, Settings
from gamefeed._errors import (
    CacheUnavailable,
    DeadlineExceeded,
    ExtractionEmpty,
    GamefeedError,
    NavigationError,
    SelectionError,
)
from gamefeed._fallback import generate_fallback
from gamefeed._models import GameRecord
from gamefeed._pipeline import fetch_catalog, scrape_providers
from gamefeed._providers import (
    CATALOG_VERSION,
    PROVIDERS,
    ProviderDescriptor,
    get_provider,
    list_providers,
)
from gamefeed._result import Degraded, Fatal, Ok, ScrapeOutcome
from gamefeed._service import CatalogService, health_check

__all__ = [
    "__version__",
    "CatalogService",
    "Settings",
    "GameRecord",
    "ProviderDescriptor",
    "PROVIDERS",
    "CATALOG_VERSION",
    "CacheManager",
    "CacheEntry",
    "MemoryCache",
    "NullStore",
    "Ok",
    "Degraded",
    "Fatal",
    "ScrapeOutcome",
    "GamefeedError",
    "NavigationError",
    "SelectionError",
    "ExtractionEmpty",
    "DeadlineExceeded",
    "CacheUnavailable",
    "DEFAULT_HEADERS",
    "cache_key",
    "fetch_catalog",
    "generate_fallback",
    "get_provider",
    "health_check",
    "list_providers",
    "scrape_providers",
    "get_games",
]

# Silent by default; callers opt in via logging.getLogger("gamefeed").setLevel(...)
logging.getLogger("gamefeed").addHandler(logging.NullHandler())


async def get_games(
    provider_id: str | None = None, settings: Settings | None = None
):
    """Module-level convenience: one-shot catalog request."""
    service = CatalogService(settings or Settings.from_env())
    try:
        return await service.get_games(provider_id)
    finally:
        await service.close()
