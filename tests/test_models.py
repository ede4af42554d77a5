"""Tests for GameRecord, the response builder and the fallback catalog."""

import random
import re

import pytest

from gamefeed._fallback import FALLBACK_SIZE, generate_fallback
from gamefeed._models import (
    RTP_PATTERN,
    GameRecord,
    build_response,
    utc_timestamp,
)


def _record(**overrides):
    fields = dict(
        id="pg-soft-game-1",
        name="Fortune Tiger",
        image_url="https://cdn.example.com/tiger.png",
        category="slot",
        provider="PG Soft",
        players=1200,
        rtp="96.81%",
        is_hot=True,
    )
    fields.update(overrides)
    return GameRecord(**fields)


# ---------------------------------------------------------------------------
# GameRecord
# ---------------------------------------------------------------------------


class TestGameRecord:
    def test_valid_record(self):
        record = _record()
        assert record.rtp_value == 96.81

    def test_rtp_optional(self):
        assert _record(rtp=None).rtp_value is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"id": ""},
            {"name": ""},
            {"players": -1},
            {"rtp": "96.81"},
            {"rtp": "9%"},
            {"rtp": "1000%"},
            {"rtp": "abc%"},
        ],
    )
    def test_invariants_enforced(self, overrides):
        with pytest.raises(ValueError):
            _record(**overrides)

    def test_frozen(self):
        record = _record()
        with pytest.raises(AttributeError):
            record.players = 5

    def test_to_dict_uses_camel_case(self):
        data = _record().to_dict()
        assert data == {
            "id": "pg-soft-game-1",
            "name": "Fortune Tiger",
            "imageUrl": "https://cdn.example.com/tiger.png",
            "category": "slot",
            "provider": "PG Soft",
            "players": 1200,
            "rtp": "96.81%",
            "isHot": True,
            "isNew": False,
        }


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class TestBuildResponse:
    def test_success_shape(self):
        response = build_response(
            success=True, games=[_record()], source="https://m.amigo.love"
        )
        assert response["success"] is True
        assert response["totalGames"] == 1
        assert response["fromCache"] is False
        assert response["games"][0]["name"] == "Fortune Tiger"
        assert "error" not in response

    def test_error_included(self):
        response = build_response(
            success=False, games=[], source="none", error="boom"
        )
        assert response["error"] == "boom"
        assert response["totalGames"] == 0

    def test_timestamp_is_utc_iso(self):
        ts = utc_timestamp()
        assert re.fullmatch(
            r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", ts
        )


# ---------------------------------------------------------------------------
# Fallback catalog
# ---------------------------------------------------------------------------


def _without_players(games):
    return [
        {k: v for k, v in g.to_dict().items() if k != "players"}
        for g in games
    ]


class TestFallback:
    def test_fixed_cardinality(self):
        assert len(generate_fallback()) == FALLBACK_SIZE == 11

    def test_structure_stable_across_calls(self):
        first = generate_fallback(random.Random(1))
        second = generate_fallback(random.Random(2))
        assert _without_players(first) == _without_players(second)

    def test_ids_unique_and_stable(self):
        ids = [g.id for g in generate_fallback()]
        assert ids == [f"fallback-{i}" for i in range(1, 12)]

    def test_players_bounded(self):
        for seed in range(25):
            for game in generate_fallback(random.Random(seed)):
                assert 200 <= game.players < 4500

    def test_rtps_well_formed(self):
        for game in generate_fallback():
            assert RTP_PATTERN.match(game.rtp)

    def test_first_record(self):
        game = generate_fallback(random.Random(0))[0]
        assert game.name == "Gates of Olympus"
        assert game.provider == "Pragmatic Play"
        assert 800 <= game.players < 2800
        assert game.is_hot is True
