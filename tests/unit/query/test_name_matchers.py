from __future__ import annotations

import pytest

from torrentdb.query import build_name_matcher


@pytest.mark.parametrize(
    ("mode", "text", "name", "matched"),
    [
        ("ordered", "big buck", "Big.Buck.Bunny", True),
        ("ordered", "buck big", "Big.Buck.Bunny", False),
        ("ordered", "bun bun", "Bunny Bunny", True),
        ("ordered", "bun bun", "Bunny", False),
        ("unordered", "buck big", "Big.Buck.Bunny", True),
        ("unordered", "buck cat", "Big.Buck.Bunny", False),
        ("any", "cat bunny", "Big.Buck.Bunny", True),
        ("any", "cat dog", "Big.Buck.Bunny", False),
        ("any", "", "anything", True),
        ("ordered", "", "anything", True),
        ("regexp", r"^Big\.\w+\.Bunny$", "Big.Buck.Bunny", True),
        ("regexp", r"^buck", "Big.Buck.Bunny", False),
    ],
)
def test_match_modes(mode: str, text: str, name: str, matched: bool) -> None:
    assert build_name_matcher(text, mode)(name) is matched


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_name_matcher("x", "fuzzy")


def test_bad_regexp_is_rejected() -> None:
    with pytest.raises(ValueError) as error:
        build_name_matcher("(unclosed", "regexp")
    assert "Invalid regular expression" in str(error.value)
