"""Cadence finisher: force a resolved ending on both staves."""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import replace

from sightread.notation import diatonic_extension, pick_note_by_letter, triad_for_degree
from sightread.sheet_models import AccompanimentStyle, ScoreBar

logger = logging.getLogger(__name__)

#: Probability that the melody tries the third before the fifth. The root is
#: always tried first, so the order only matters when the pool lacks the root.
ROOT_THIRD_FIFTH_PROBABILITY = 0.7


# ── Final-chord voicing ─────────────────────────────────────────────────────

class CadenceVoicer(ABC):
    """
    Abstract Strategy choosing the letters of the closing left-hand chord.

    Concrete subclasses grow the chord with the grade: open fifth, triad,
    then diatonic seventh and ninth extensions.
    """

    @abstractmethod
    def letters(self, degree: int, tonic_letter: str) -> list[str]:
        """Letters of the final chord built on ``degree``."""


class FifthVoicer(CadenceVoicer):
    """Root and fifth only: a two-note shape for early grades."""

    def letters(self, degree: int, tonic_letter: str) -> list[str]:
        root, _third, fifth = triad_for_degree(degree, tonic_letter)
        return [root, fifth]


class TriadVoicer(CadenceVoicer):
    """Full root-position triad."""

    def letters(self, degree: int, tonic_letter: str) -> list[str]:
        return list(triad_for_degree(degree, tonic_letter))


class SeventhVoicer(CadenceVoicer):
    """Triad plus the diatonic seventh above the root."""

    def letters(self, degree: int, tonic_letter: str) -> list[str]:
        return [*triad_for_degree(degree, tonic_letter), diatonic_extension(tonic_letter, degree + 6)]


class NinthVoicer(SeventhVoicer):
    """Seventh chord plus the diatonic ninth."""

    def letters(self, degree: int, tonic_letter: str) -> list[str]:
        return [*super().letters(degree, tonic_letter), diatonic_extension(tonic_letter, degree + 1)]


def voicer_for_grade(grade: int) -> CadenceVoicer:
    """Return the appropriate CadenceVoicer for the requested grade."""
    if grade <= 3:
        return FifthVoicer()
    if grade <= 6:
        return TriadVoicer()
    if grade == 7:
        return SeventhVoicer()
    return NinthVoicer()


# ── Finisher ─────────────────────────────────────────────────────────────────

def _final_melody_pitch(
    triad: tuple[str, str, str], pitch_pool: Sequence[str], rng: random.Random
) -> str:
    root, third, fifth = triad
    if rng.random() < ROOT_THIRD_FIFTH_PROBABILITY:
        order = (root, third, fifth)
    else:
        order = (root, fifth, third)
    for letter in order:
        pitch = pick_note_by_letter(pitch_pool, letter, rng)
        if pitch is not None:
            return pitch
    logger.warning("Melody pool has no tone of the final chord %s; ending on any pool pitch.", triad)
    return rng.choice(list(pitch_pool))


def finish_cadence(
    rh_bars: list[ScoreBar],
    lh_bars: list[ScoreBar],
    chord_plan: Sequence[int],
    tonic_letter: str,
    grade: int,
    rh_pool: Sequence[str],
    lh_pool: Sequence[str],
    style: AccompanimentStyle,
    rng: random.Random | None = None,
) -> None:
    """
    Rewrite the last token of each staff in place so the piece resolves.

    The melody ends on a tone of the final chord; the accompaniment (unless
    silent) ends on a chord voiced for the grade. Durations are preserved so
    bar lengths are unchanged.
    """
    if not rh_bars:
        return
    rng = rng or random.Random()
    degree = chord_plan[-1] if chord_plan else 1
    triad = triad_for_degree(degree, tonic_letter)

    last_rh = rh_bars[-1][-1]
    rh_bars[-1][-1] = replace(last_rh, pitches=(_final_melody_pitch(triad, rh_pool, rng),))

    if style == AccompanimentStyle.NONE or not lh_bars:
        return

    letters = voicer_for_grade(grade).letters(degree, tonic_letter)
    pitches = [
        pitch
        for pitch in (pick_note_by_letter(lh_pool, letter, rng, prefer_lower=True) for letter in letters)
        if pitch is not None
    ]
    if not pitches:
        logger.warning("Accompaniment pool has no tone of %s; ending on any pool pitch.", letters)
        pitches = [rng.choice(list(lh_pool))]

    last_lh = lh_bars[-1][-1]
    lh_bars[-1][-1] = replace(last_lh, pitches=tuple(pitches))
