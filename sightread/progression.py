"""Chord progression planner: one diatonic scale degree per bar, closing V-I."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Final

from sightread.tables import clamp_grade
from sightread.weighted import pick_weighted

logger = logging.getLogger(__name__)

#: Dominant then tonic; every plan of two or more bars ends with it.
CADENCE: Final[tuple[int, int]] = (5, 1)


@dataclass(frozen=True)
class ProgressionDefinition:
    """A short degree sequence (1=I ... 7=vii°) with its grade gate and weight."""

    degrees: tuple[int, ...]
    min_grade: int
    weight: float


PROGRESSIONS: Final[tuple[ProgressionDefinition, ...]] = (
    # I, IV and V only
    ProgressionDefinition((1, 5, 1), 1, 3.0),
    ProgressionDefinition((1, 4, 1), 1, 2.5),
    ProgressionDefinition((1, 4, 5, 1), 1, 3.5),
    ProgressionDefinition((1, 5, 4, 1), 1, 2.0),
    ProgressionDefinition((1, 4, 5), 1, 2.5),
    ProgressionDefinition((4, 5, 1), 1, 2.0),
    # ii
    ProgressionDefinition((1, 2, 5, 1), 2, 2.8),
    ProgressionDefinition((1, 4, 2, 5), 2, 2.5),
    ProgressionDefinition((2, 5, 1), 2, 2.2),
    ProgressionDefinition((1, 2, 4, 5), 2, 2.0),
    # vi
    ProgressionDefinition((1, 6, 4, 5), 3, 3.0),
    ProgressionDefinition((1, 5, 6, 4), 3, 2.8),
    ProgressionDefinition((6, 4, 1, 5), 3, 2.5),
    ProgressionDefinition((1, 4, 6, 5), 4, 2.0),
    ProgressionDefinition((1, 6, 4, 2), 4, 1.8),
    ProgressionDefinition((4, 1, 5, 6), 4, 1.5),
    # iii
    ProgressionDefinition((1, 3, 4, 5), 5, 1.0),
    ProgressionDefinition((1, 3, 6, 4), 5, 0.9),
    ProgressionDefinition((1, 5, 3, 4), 5, 0.8),
    # turnarounds
    ProgressionDefinition((1, 6, 2, 5), 6, 2.0),
    ProgressionDefinition((3, 6, 2, 5), 7, 1.2),
    # vii° through the circle of fifths
    ProgressionDefinition((1, 4, 7, 3, 6, 2, 5, 1), 8, 0.8),
)


def progressions_available_at(grade: int) -> list[ProgressionDefinition]:
    g = clamp_grade(grade)
    return [prog for prog in PROGRESSIONS if prog.min_grade <= g]


def build_chord_plan(bars: int, grade: int, rng: random.Random | None = None) -> list[int]:
    """
    Return one scale degree per bar, ending on the ``[5, 1]`` cadence.

    Weighted progressions are chained until ``bars - 2`` degrees exist, the
    tail is cut to fit, and the cadence is appended. A single bar is just
    ``[1]``.
    """
    if bars < 2:
        return [1]

    rng = rng or random.Random()
    g = clamp_grade(grade)
    available = progressions_available_at(g)
    target = bars - len(CADENCE)

    degrees: list[int] = []
    while len(degrees) < target:
        chosen = pick_weighted(
            available,
            lambda prog: prog.weight * (1 + 0.1 * max(0, g - prog.min_grade)),
            rng,
        )
        degrees.extend(chosen.degrees)

    plan = degrees[:target] + list(CADENCE)
    logger.debug("Chord plan for %d bars at grade %d: %s", bars, g, plan)
    return plan
