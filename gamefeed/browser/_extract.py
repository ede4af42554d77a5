"""DOM extraction: locate game cards and turn them into GameRecords.

Cards are located by an ordered tuple of strategies, each an async
function ``page -> list[ElementHandle]``. The first strategy returning
at least one element wins, so markup churn upstream degrades to a
looser selector instead of an empty catalog.

Each card is read with a single in-page evaluation that returns raw
strings; all parsing and defaulting happens in ``gamefeed._parse``.
"""

import logging
import random

from gamefeed._config import Settings
from gamefeed._models import GameRecord
from gamefeed._parse import build_game_record
from gamefeed._providers import ProviderDescriptor

logger = logging.getLogger("gamefeed")

BLOCKED_MAX_DIVS = 5
BLOCKED_MAX_TEXT = 20

IMAGE_HEURISTIC = (
    '.img-game, img[src*="game"], img[src*="slot"], img[alt*="game"]'
)

_PAGE_STATS_JS = """() => ({
    divs: document.querySelectorAll('div').length,
    images: document.querySelectorAll('img').length,
    links: document.querySelectorAll('a').length,
    bodyTextLength: (document.body && document.body.innerText)
        ? document.body.innerText.length : 0,
    title: document.title,
})"""

_CARD_FIELDS_JS = """(el) => {
    const text = (node) => (node && node.textContent || '').trim();
    const img = el.querySelector('.img-game') || el.querySelector('img');
    return {
        name: text(el.querySelector('.game-name')),
        imageAlt: img ? (img.getAttribute('alt') || '') : '',
        imageTitle: img ? (img.getAttribute('title') || '') : '',
        imageSrc: img ? (img.getAttribute('src')
            || img.getAttribute('data-src')
            || img.getAttribute('data-original') || '') : '',
        players: text(el.querySelector('.text-online, [class*="text-online"]')),
        provider: text(el.querySelector('[class*="provider"]')),
        category: text(el.querySelector('[class*="category"]')),
        badges: Array.from(
            el.querySelectorAll('[class*="hot"], [class*="new"], [class*="badge"]')
        ).map(text),
        percent: text(el.querySelector(
            '.rtp-box .percent, .percent, [class*="percent"]'
        )),
        text: el.textContent || '',
    };
}"""

_CLOSEST_CARD_JS = """(img) =>
    img.closest('.game-item') || img.closest('div') || img.parentElement"""


# ---------------------------------------------------------------------------
# Card-location strategies (priority order)
# ---------------------------------------------------------------------------


async def by_game_item(page) -> list:
    return await page.query_selector_all(".game-item")


async def by_game_item_substring(page) -> list:
    return await page.query_selector_all('[class*="game-item"]')


async def by_game_div(page) -> list:
    return await page.query_selector_all('div[class*="game"]')


async def by_image(page) -> list:
    """Map game-looking images to their enclosing card."""
    cards = []
    for img in await page.query_selector_all(IMAGE_HEURISTIC):
        try:
            handle = await img.evaluate_handle(_CLOSEST_CARD_JS)
        except Exception:
            logger.debug("Could not resolve card for image", exc_info=True)
            continue
        card = handle.as_element()
        if card is not None:
            cards.append(card)
    return cards


STRATEGIES = (by_game_item, by_game_item_substring, by_game_div, by_image)


async def find_cards(page, strategies=STRATEGIES) -> list:
    """Run *strategies* in order; return the first non-empty match."""
    for strategy in strategies:
        try:
            cards = await strategy(page)
        except Exception:
            logger.debug("Strategy %s failed", strategy.__name__, exc_info=True)
            continue
        if cards:
            logger.info(
                "Found %d cards with strategy %s", len(cards), strategy.__name__
            )
            return cards
    return []


# ---------------------------------------------------------------------------
# Blocked / unrendered page detection
# ---------------------------------------------------------------------------


async def page_stats(page) -> dict:
    return await page.evaluate(_PAGE_STATS_JS)


def is_blocked(stats: dict, loading_title: str = "Loading") -> bool:
    """True when the page is effectively empty and still 'loading'."""
    return (
        stats.get("divs", 0) <= BLOCKED_MAX_DIVS
        and stats.get("images", 0) == 0
        and stats.get("bodyTextLength", 0) <= BLOCKED_MAX_TEXT
        and stats.get("title") == loading_title
    )


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def rank_games(records: list[GameRecord], limit: int) -> list[GameRecord]:
    """Sort by RTP descending (unknown RTP last) and keep the top *limit*."""
    ranked = sorted(
        records,
        key=lambda r: (r.rtp_value is None, -(r.rtp_value or 0.0)),
    )
    return ranked[:limit]


async def extract_games(
    rendered,
    provider: ProviderDescriptor,
    settings: Settings,
    limit: int | None = None,
    rng: random.Random | None = None,
) -> list[GameRecord]:
    """Extract the catalog from a rendered page.

    Returns an empty list for a blocked/unrendered page or when no
    strategy matches; the caller decides what to serve instead. A card
    that fails to evaluate is skipped. With *limit*, results are ranked
    by RTP and truncated.
    """
    page = rendered.page
    stats = await page_stats(page)
    logger.debug("Page stats: %s", stats)
    if is_blocked(stats, settings.loading_title):
        logger.warning("Page appears blocked or unrendered: %s", stats)
        return []

    cards = await find_cards(page)
    records: list[GameRecord] = []
    for index, card in enumerate(cards):
        try:
            raw = await card.evaluate(_CARD_FIELDS_JS)
        except Exception:
            logger.info("Error reading card %d, skipping", index, exc_info=True)
            continue
        try:
            record = build_game_record(
                raw,
                index=index,
                provider_id=provider.id,
                provider_name=provider.display_name,
                origin=settings.site_origin,
                rng=rng,
            )
        except ValueError as e:
            logger.info("Card %d rejected: %s", index, e)
            continue
        records.append(record)

    logger.info("Extracted %d games for %s", len(records), provider.id)
    if limit is not None:
        records = rank_games(records, limit)
    return records
