"""Tests for identity normalisation."""

from __future__ import annotations

import pytest

from opponent_radar.identity import (
    BLOCKED_TOKENS,
    identity_from_path,
    normalize,
    normalize_all,
)


class TestNormalize:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Hikaru", "hikaru"),
            ("  @MagnusCarlsen \n", "magnuscarlsen"),
            ("some_player-99", "some_player-99"),
            ("abc", "abc"),
            ("a" * 20, "a" * 20),
        ],
    )
    def test_canonical_form(self, raw, expected):
        assert normalize(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "ab",
            "a" * 21,
            "",
            "   ",
            "@",
            "@@double",
            "has space",
            "dot.name",
            "émile",
            "name!",
            "12:34",
        ],
    )
    def test_malformed_is_rejected(self, raw):
        assert normalize(raw) is None

    @pytest.mark.parametrize("token", sorted(BLOCKED_TOKENS))
    def test_blocked_tokens_rejected(self, token):
        assert normalize(token) is None
        assert normalize(token.upper()) is None
        assert normalize(f"@{token}") is None

    @pytest.mark.parametrize("raw", [None, 42, 3.5, ["hikaru"], {"u": "x"}, b"hikaru"])
    def test_non_strings_never_raise(self, raw):
        assert normalize(raw) is None

    def test_idempotent(self):
        once = normalize(" @Some_User ")
        assert once is not None
        assert normalize(once) == once


class TestNormalizeAll:
    def test_dedupes_and_keeps_first_seen_order(self):
        raws = ["Opp", "me", "@opp", "white", "ME", "x", "third"]
        assert normalize_all(raws) == ["opp", "me", "third"]

    def test_empty_inputs(self):
        assert normalize_all(None) == []
        assert normalize_all([]) == []
        assert normalize_all(["", None, "game"]) == []


class TestIdentityFromPath:
    def test_member_page(self):
        assert identity_from_path("/member/Hikaru") == "hikaru"
        assert identity_from_path("/member/hikaru/games") == "hikaru"

    def test_game_page_has_no_identity(self):
        assert identity_from_path("/game/live/123456789") is None
        assert identity_from_path("/play/online") is None

    def test_missing_path(self):
        assert identity_from_path(None) is None
        assert identity_from_path("") is None
