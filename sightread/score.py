"""Score assembler: dynamics markings and ABC serialisation of both staves."""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from dataclasses import replace
from typing import Final

from sightread.sheet_models import ScoreBar, render_bar

logger = logging.getLogger(__name__)

MID_DYNAMIC_PROBABILITY: Final[float] = 0.5
HAIRPIN_PROBABILITY: Final[float] = 0.4
#: Pieces shorter than this get only the opening dynamic.
MIN_BARS_FOR_CHANGES: Final[int] = 4

CRESCENDO: Final[tuple[str, str]] = ("<(", "<)")
DIMINUENDO: Final[tuple[str, str]] = (">(", ">)")


def _mark_first(bar: ScoreBar, mark: str) -> None:
    bar[0] = replace(bar[0], decorations=(mark, *bar[0].decorations))


def _mark_last(bar: ScoreBar, mark: str) -> None:
    bar[-1] = replace(bar[-1], trailing=(*bar[-1].trailing, mark))


def apply_dynamics(
    rh_bars: list[ScoreBar],
    dynamics: Sequence[str],
    rng: random.Random | None = None,
    allow_hairpins: bool = True,
) -> None:
    """
    Attach dynamic and hairpin marks to melody tokens in place.

    - An opening dynamic on the first bar.
    - From four bars up, a different dynamic at the middle bar half the time.
    - From four bars up, a crescendo or diminuendo 40% of the time, starting
      after the first bar and spanning one or two bars.

    Marks are presentational only; pitches and durations are untouched.
    """
    if not rh_bars or not dynamics:
        return
    rng = rng or random.Random()
    bars = len(rh_bars)

    opening = rng.choice(list(dynamics))
    _mark_first(rh_bars[0], opening)

    if bars >= MIN_BARS_FOR_CHANGES and rng.random() < MID_DYNAMIC_PROBABILITY:
        others = [mark for mark in dynamics if mark != opening]
        if others:
            _mark_first(rh_bars[bars // 2], rng.choice(others))

    if allow_hairpins and bars >= MIN_BARS_FOR_CHANGES and rng.random() < HAIRPIN_PROBABILITY:
        start = 1 + rng.randrange(bars - 3)
        end = start + 1 if rng.random() < 0.5 else start
        opener, closer = CRESCENDO if rng.random() < 0.5 else DIMINUENDO
        _mark_first(rh_bars[start], opener)
        _mark_last(rh_bars[end], closer)
        logger.debug("Hairpin %s over bars %d-%d.", opener, start + 1, end + 1)


def _staff_line(bars: Sequence[ScoreBar], is_last: bool) -> str:
    return " | ".join(render_bar(bar) for bar in bars) + (" |]" if is_last else " |")


def assemble(
    rh_bars: Sequence[ScoreBar],
    lh_bars: Sequence[ScoreBar],
    *,
    meter: str,
    base_unit: str,
    key: str,
    bars_per_line: int,
    title: str | None = None,
) -> str:
    """
    Serialise both staves into one ABC tune.

    Bars are grouped ``bars_per_line`` to a system; each system prints the
    treble (``RH``) line followed by the bass (``LH``) line, and the last
    system closes with ``|]``.

    Raises:
        ValueError: If the staves differ in length or ``bars_per_line`` < 1.
    """
    if len(rh_bars) != len(lh_bars):
        raise ValueError(f"Staff length mismatch: {len(rh_bars)} RH bars vs {len(lh_bars)} LH bars.")
    if bars_per_line < 1:
        raise ValueError("bars_per_line must be at least 1.")

    header = ["X:1"]
    if title:
        header.append(f"T:{title}")
    header += [
        f"M:{meter}",
        f"L:{base_unit}",
        f"K:{key}",
        "%%staves {RH LH}",
        "V:RH clef=treble",
        "V:LH clef=bass",
    ]

    total = len(rh_bars)
    systems: list[str] = []
    for start in range(0, total, bars_per_line):
        stop = start + bars_per_line
        is_last = stop >= total
        systems.append(f"[V:RH] {_staff_line(rh_bars[start:stop], is_last)}")
        systems.append(f"[V:LH] {_staff_line(lh_bars[start:stop], is_last)}")

    return "\n".join(header + systems)
