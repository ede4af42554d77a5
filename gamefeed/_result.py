"""Scrape outcomes threaded from the pipeline to the service.

- ``Ok`` -- live extraction produced records.
- ``Degraded`` -- the scrape failed; fallback records are served instead.
- ``Fatal`` -- the scrape failed and nothing can be served.
"""

from dataclasses import dataclass, field

from gamefeed._models import GameRecord


@dataclass(frozen=True)
class Ok:
    games: list[GameRecord]
    source: str


@dataclass(frozen=True)
class Degraded:
    games: list[GameRecord]
    reason: str
    source: str = field(default="fallback")


@dataclass(frozen=True)
class Fatal:
    reason: str


ScrapeOutcome = Ok | Degraded | Fatal
