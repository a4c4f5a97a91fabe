"""Unit tests for ABC token rendering, dynamics and score assembly."""

import random

import pytest

from sightread.score import apply_dynamics, assemble
from sightread.sheet_models import ScoreToken, render_bar

DYNAMICS = ("p", "mp", "mf", "f")


def _bars(count: int) -> list[list[ScoreToken]]:
    return [[ScoreToken(4, ("c",)), ScoreToken(2, ("d",)), ScoreToken(2, ("e",))] for _ in range(count)]


def _marks(bars) -> list[str]:
    return [mark for bar in bars for token in bar for mark in (*token.decorations, *token.trailing)]


# ---------------------------------------------------------------------------
# Token rendering
# ---------------------------------------------------------------------------

def test_token_to_abc() -> None:
    assert ScoreToken(1, ("c",)).to_abc() == "c"
    assert ScoreToken(2).to_abc() == "z2"
    assert ScoreToken(0.5, ("e",)).to_abc() == "e/2"
    assert ScoreToken(4, ("C,", "E,", "G,")).to_abc() == "[C,E,G,]4"


def test_token_decorations_wrap_the_note() -> None:
    token = ScoreToken(2, ("c",), decorations=("p", "<("), trailing=("<)",))
    assert token.to_abc() == "!p!!<(!c2!<)!"


def test_render_bar_joins_with_spaces() -> None:
    assert render_bar([ScoreToken(4, ("c",)), ScoreToken(4)]) == "c4 z4"


# ---------------------------------------------------------------------------
# assemble
# ---------------------------------------------------------------------------

def test_assemble_header() -> None:
    abc = assemble(_bars(2), _bars(2), meter="3/4", base_unit="1/8", key="Bb", bars_per_line=4)
    lines = abc.splitlines()
    assert lines[:7] == [
        "X:1",
        "M:3/4",
        "L:1/8",
        "K:Bb",
        "%%staves {RH LH}",
        "V:RH clef=treble",
        "V:LH clef=bass",
    ]


def test_assemble_title_line() -> None:
    abc = assemble(_bars(1), _bars(1), meter="4/4", base_unit="1/8", key="C", bars_per_line=4, title="Etude")
    assert abc.splitlines()[1] == "T:Etude"


def test_assemble_groups_bars_into_systems() -> None:
    abc = assemble(_bars(10), _bars(10), meter="4/4", base_unit="1/8", key="C", bars_per_line=4)
    body = [line for line in abc.splitlines() if line.startswith("[V:")]
    assert len(body) == 6
    assert [line[:6] for line in body] == ["[V:RH]", "[V:LH]"] * 3
    assert body[0].count("|") == 4
    assert body[-1].count("|") == 2


def test_assemble_final_barline() -> None:
    abc = assemble(_bars(8), _bars(8), meter="4/4", base_unit="1/8", key="C", bars_per_line=4)
    body = [line for line in abc.splitlines() if line.startswith("[V:")]
    assert all(line.endswith(" |") for line in body[:2])
    assert all(line.endswith(" |]") for line in body[2:])


def test_assemble_rejects_mismatched_staves() -> None:
    with pytest.raises(ValueError):
        assemble(_bars(3), _bars(2), meter="4/4", base_unit="1/8", key="C", bars_per_line=4)


def test_assemble_rejects_zero_bars_per_line() -> None:
    with pytest.raises(ValueError):
        assemble(_bars(2), _bars(2), meter="4/4", base_unit="1/8", key="C", bars_per_line=0)


# ---------------------------------------------------------------------------
# apply_dynamics
# ---------------------------------------------------------------------------

def test_opening_dynamic_on_first_token() -> None:
    for seed in range(20):
        bars = _bars(8)
        apply_dynamics(bars, DYNAMICS, random.Random(seed))
        assert bars[0][0].decorations[0] in DYNAMICS


def test_short_piece_gets_only_opening_dynamic() -> None:
    for seed in range(20):
        bars = _bars(3)
        apply_dynamics(bars, DYNAMICS, random.Random(seed))
        assert len(_marks(bars)) == 1


def test_hairpins_are_closed() -> None:
    seen_hairpin = False
    for seed in range(60):
        bars = _bars(8)
        apply_dynamics(bars, DYNAMICS, random.Random(seed))
        marks = _marks(bars)
        assert marks.count("<(") == marks.count("<)")
        assert marks.count(">(") == marks.count(">)")
        assert not any(m in {"<(", ">("} for m in bars[0][0].decorations)
        seen_hairpin = seen_hairpin or "<(" in marks or ">(" in marks
    assert seen_hairpin


def test_hairpins_can_be_disabled() -> None:
    for seed in range(30):
        bars = _bars(8)
        apply_dynamics(bars, DYNAMICS, random.Random(seed), allow_hairpins=False)
        assert not {"<(", "<)", ">(", ">)"} & set(_marks(bars))


def test_dynamics_leave_notes_untouched() -> None:
    bars = _bars(8)
    before = [[(t.units, t.pitches) for t in bar] for bar in bars]
    apply_dynamics(bars, DYNAMICS, random.Random(3))
    assert [[(t.units, t.pitches) for t in bar] for bar in bars] == before


def test_middle_dynamic_differs_from_opening() -> None:
    for seed in range(40):
        bars = _bars(8)
        apply_dynamics(bars, DYNAMICS, random.Random(seed), allow_hairpins=False)
        opening = bars[0][0].decorations[0]
        middle = [m for m in bars[4][0].decorations if m in DYNAMICS]
        assert opening not in middle
