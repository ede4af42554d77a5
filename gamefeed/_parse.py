"""Parse/validate boundary between scraped DOM strings and GameRecord.

Pure logic, no I/O. Every field has an explicit defaulting rule so a
malformed card degrades field by field instead of being dropped:

- name: card title -> image alt -> image title -> ``"Game N"``
- players: parsed count -> random plausible value
- rtp: dedicated node -> whole card text -> None
- category: card text -> ``"slot"``
"""

import logging
import random
import re
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from urllib.parse import urljoin, urlparse

from gamefeed._models import GameRecord

logger = logging.getLogger("gamefeed")

# Spaced suffix must stand alone ("1 more"); glued one need not ("1.2Kplay")
_COUNT_RE = re.compile(
    r"(\d+(?:\.\d+)?)(?:\s*([kKmM])(?![a-zA-Z])|([kKmM]))?"
)
_SUFFIX_MULTIPLIERS = {"": 1, "k": 1_000, "m": 1_000_000}

# 2-3 digit number not glued to a longer number
_RTP_PERCENT_RE = re.compile(r"(?<![\d.])(\d{2,3}(?:\.\d+)?)\s*%")
_RTP_BARE_RE = re.compile(r"(?<![\d.])(\d{2,3}(?:\.\d+)?)(?![\d.])")

HOT_MARKERS = ("hot", "火", "热")
NEW_MARKERS = ("new", "新")

PLAYERS_FALLBACK_RANGE = (200, 3200)

DEFAULT_CATEGORY = "slot"


def _clean(value) -> str:
    if not value:
        return ""
    return " ".join(str(value).split())


def parse_player_count(raw: str | None) -> int | None:
    """Parse a human-readable player count.

    ``"1,234"`` -> 1234, ``"1.2K"`` -> 1200, ``"2.3M"`` -> 2300000.
    Rounds half-up to the nearest integer. Returns None when no number
    is present.
    """
    if not raw:
        return None
    match = _COUNT_RE.search(raw.replace(",", ""))
    if match is None:
        return None
    try:
        base = Decimal(match.group(1))
    except InvalidOperation:
        return None
    suffix = match.group(2) or match.group(3) or ""
    multiplier = _SUFFIX_MULTIPLIERS[suffix.lower()]
    value = (base * multiplier).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(value)


def random_player_count(rng: random.Random | None = None) -> int:
    low, high = PLAYERS_FALLBACK_RANGE
    return (rng or random).randrange(low, high)


def normalize_rtp(percent_text: str | None, card_text: str | None = "") -> str | None:
    """Resolve an RTP percentage string.

    The dedicated percent node wins: a ``NN.NN%`` substring is returned
    as is, a bare ``NN.NN`` gets ``%`` appended. Otherwise the whole card
    text is scanned for a percentage. Returns None when nothing resolves.
    """
    value = (percent_text or "").strip()
    if value:
        match = _RTP_PERCENT_RE.search(value)
        if match:
            return f"{match.group(1)}%"
        match = _RTP_BARE_RE.search(value)
        if match:
            return f"{match.group(1)}%"

    match = _RTP_PERCENT_RE.search(card_text or "")
    if match:
        return f"{match.group(1)}%"
    return None


def badge_flags(badges: Iterable[str] | str | None) -> tuple[bool, bool]:
    """Return ``(is_hot, is_new)`` from badge texts."""
    if not badges:
        return False, False
    if isinstance(badges, str):
        badges = [badges]
    is_hot = False
    is_new = False
    for badge in badges:
        text = (badge or "").lower()
        if any(m in text for m in HOT_MARKERS):
            is_hot = True
        if any(m in text for m in NEW_MARKERS):
            is_new = True
    return is_hot, is_new


def resolve_image_url(raw: str | None, origin: str) -> str:
    """Make an image reference absolute against the site origin."""
    src = (raw or "").strip()
    if not src:
        return ""
    if src.startswith("data:"):
        return src
    if src.startswith("//"):
        return "https:" + src
    if urlparse(src).scheme in ("http", "https"):
        return src
    return urljoin(origin.rstrip("/") + "/", src)


def build_game_record(
    raw: Mapping,
    *,
    index: int,
    provider_id: str,
    provider_name: str,
    origin: str,
    rng: random.Random | None = None,
) -> GameRecord:
    """Convert one card's raw field dict into a GameRecord.

    *raw* is the dict produced by the in-page card probe (see
    ``gamefeed.browser._extract``); missing keys are treated as empty.
    """
    name = (
        _clean(raw.get("name"))
        or _clean(raw.get("imageAlt"))
        or _clean(raw.get("imageTitle"))
        or f"Game {index + 1}"
    )

    players = parse_player_count(_clean(raw.get("players")))
    if players is None:
        players = random_player_count(rng)
        logger.debug(
            "Card %d (%s): unparsable player count %r, using %d",
            index,
            name,
            raw.get("players"),
            players,
        )

    is_hot, is_new = badge_flags(raw.get("badges"))

    return GameRecord(
        id=f"{provider_id}-game-{index + 1}",
        name=name,
        image_url=resolve_image_url(raw.get("imageSrc"), origin),
        category=_clean(raw.get("category")) or DEFAULT_CATEGORY,
        provider=_clean(raw.get("provider")) or provider_name or "Unknown",
        players=players,
        rtp=normalize_rtp(raw.get("percent"), raw.get("text")),
        is_hot=is_hot,
        is_new=is_new,
    )
