"""GameRecord and the catalog response payload."""

import datetime
import re
from dataclasses import dataclass
from typing import Any

RTP_PATTERN = re.compile(r"^\d{2,3}(?:\.\d+)?%$")


@dataclass(frozen=True)
class GameRecord:
    """One catalog entry, validated on construction.

    Built only through ``gamefeed._parse.build_game_record`` (live
    scrape) or ``gamefeed._fallback`` (synthetic catalog), so a record
    that exists always satisfies the invariants below.
    """

    id: str
    name: str
    image_url: str
    category: str
    provider: str
    players: int
    rtp: str | None = None
    is_hot: bool = False
    is_new: bool = False

    def __post_init__(self):
        if not self.id:
            raise ValueError("GameRecord.id must not be empty")
        if not self.name:
            raise ValueError("GameRecord.name must not be empty")
        if self.players < 0:
            raise ValueError(
                f"GameRecord.players must be >= 0, got {self.players}"
            )
        if self.rtp is not None and not RTP_PATTERN.match(self.rtp):
            raise ValueError(f"GameRecord.rtp malformed: {self.rtp!r}")

    @property
    def rtp_value(self) -> float | None:
        """RTP as a float (``"96.50%"`` -> 96.5), or None."""
        if self.rtp is None:
            return None
        return float(self.rtp[:-1])

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "imageUrl": self.image_url,
            "category": self.category,
            "provider": self.provider,
            "players": self.players,
            "rtp": self.rtp,
            "isHot": self.is_hot,
            "isNew": self.is_new,
        }


def utc_timestamp() -> str:
    """Current instant as ISO-8601 UTC with millisecond precision."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_response(
    *,
    success: bool,
    games: list[GameRecord],
    source: str,
    error: str | None = None,
) -> dict[str, Any]:
    """Shape a catalog response for the presentation layer.

    ``fromCache`` is always False here; the service flips it when the
    payload is served from either cache tier.
    """
    response: dict[str, Any] = {
        "success": success,
        "timestamp": utc_timestamp(),
        "source": source,
        "totalGames": len(games),
        "games": [g.to_dict() for g in games],
        "fromCache": False,
    }
    if error is not None:
        response["error"] = error
    return response
