"""Static catalog of upstream providers and their on-page selectors.

Must stay in sync with the provider strip on the upstream site. Bump
``CATALOG_VERSION`` whenever an entry is added, removed or re-selected.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger("gamefeed")

CATALOG_VERSION = 1


@dataclass(frozen=True)
class ProviderDescriptor:
    """One selectable provider.

    ``name`` is the label the upstream site uses (and matches in
    ``selector``); ``display_name`` is what records carry downstream.
    """

    id: str
    name: str
    display_name: str
    selector: str
    image: str = ""


PROVIDERS: tuple[ProviderDescriptor, ...] = (
    ProviderDescriptor(
        id="pg-soft",
        name="PG Soft",
        display_name="PG Soft",
        selector='img[alt="PG Soft"]',
        image=(
            "https://cdn.eaeaea.click/img/sportsbook/assets/provider/"
            "PG-Soft.png"
        ),
    ),
    ProviderDescriptor(
        id="pragmatic-play",
        name="PragmaticPlay Slot",
        display_name="Pragmatic Play",
        selector='img[alt="PragmaticPlay Slot"]',
        image=(
            "https://cdn.eaeaea.click/img/sportsbook/provider/PMTS/"
            "PMTS_1697034113.png"
        ),
    ),
    ProviderDescriptor(
        id="jili",
        name="Jili",
        display_name="Jili",
        selector='img[alt="Jili"]',
        image=(
            "https://cdn.eaeaea.click/img/sportsbook/assets/provider/"
            "Jili.png"
        ),
    ),
    ProviderDescriptor(
        id="microgaming",
        name="Microgaming Slot",
        display_name="Microgaming",
        selector='img[alt="Microgaming Slot"]',
        image=(
            "https://cdn.eaeaea.click/img/sportsbook/provider/MGS/"
            "MGS_1695290029.png"
        ),
    ),
)

_BY_ID: dict[str, ProviderDescriptor] = {p.id: p for p in PROVIDERS}


def list_providers() -> list[ProviderDescriptor]:
    return list(PROVIDERS)


def get_provider(
    provider_id: str | None, default: str = "pg-soft"
) -> ProviderDescriptor:
    """Resolve a provider id, falling back to *default* when unknown.

    An unknown *default* resolves to the first catalog entry, so this
    never raises.
    """
    if provider_id and provider_id in _BY_ID:
        return _BY_ID[provider_id]
    if provider_id:
        logger.info(
            "Unknown provider %r, using default %r", provider_id, default
        )
    return _BY_ID.get(default, PROVIDERS[0])
