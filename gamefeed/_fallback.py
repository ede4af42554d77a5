"""Synthetic catalog served when live extraction is impossible.

Shape, names, providers, categories, RTPs and badges are fixed; only the
player counts vary, each drawn from its own bounded range so the list
looks alive across refreshes.
"""

import random

from gamefeed._models import GameRecord

# (name, category, provider, rtp, is_hot, is_new, players_low, players_span)
_FALLBACK_CATALOG = (
    ("Gates of Olympus", "slot", "Pragmatic Play", "96.50%", True, False, 800, 2000),
    ("Sweet Bonanza", "slot", "Pragmatic Play", "96.48%", False, False, 600, 1500),
    ("Mahjong Ways 2", "mahjong", "PG Soft", "96.42%", False, True, 400, 1200),
    ("Fortune Tiger", "slot", "PG Soft", "96.81%", True, False, 700, 1800),
    ("Crazy Time", "live", "Evolution", "96.08%", True, False, 1500, 3000),
    ("Lightning Roulette", "live", "Evolution", "97.30%", True, False, 1000, 2500),
    ("Dragon Tiger", "card", "Evolution", "96.27%", False, True, 200, 800),
    ("Spaceman", "crash", "Pragmatic Play", "96.50%", False, True, 400, 1100),
    ("Fortune Ox", "slot", "PG Soft", "96.75%", True, False, 500, 1600),
    ("Starlight Princess", "slot", "Pragmatic Play", "96.50%", True, False, 600, 1400),
    ("Baccarat", "live", "Evolution", "98.94%", False, False, 800, 2200),
)

FALLBACK_SIZE = len(_FALLBACK_CATALOG)


def generate_fallback(rng: random.Random | None = None) -> list[GameRecord]:
    """Return the fallback catalog with freshly randomized player counts."""
    rng = rng or random
    return [
        GameRecord(
            id=f"fallback-{i}",
            name=name,
            image_url="",
            category=category,
            provider=provider,
            players=low + rng.randrange(span),
            rtp=rtp,
            is_hot=is_hot,
            is_new=is_new,
        )
        for i, (name, category, provider, rtp, is_hot, is_new, low, span)
        in enumerate(_FALLBACK_CATALOG, start=1)
    ]
