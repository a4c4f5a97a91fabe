"""AccompanimentStrategy: Strategy pattern for filling the left-hand staff."""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import ClassVar

from sightread.notation import pick_note_by_letter, triad_for_degree
from sightread.sheet_models import AccompanimentStyle, DurationCandidate, ScoreBar, ScoreToken
from sightread.weighted import floor_weight, pick_weighted, pick_weighted_map

logger = logging.getLogger(__name__)

# ── Chord-tone weighting (root, third, fifth) ───────────────────────────────

#: Bass lines lean on the root, then the fifth, with the third as colour.
ROOT_WEIGHT = 3.0
FIFTH_WEIGHT = 1.5
THIRD_WEIGHT = 0.8


# ── Abstract base ────────────────────────────────────────────────────────────

class AccompanimentStrategy(ABC):
    """
    Abstract Strategy for one accompaniment style.

    Concrete subclasses implement ``bar()`` for a single measure; ``generate()``
    walks the chord plan so every bar follows its own chord.
    """

    style: ClassVar[AccompanimentStyle]

    def pick_chord_note(
        self,
        chord_letters: tuple[str, str, str],
        pitch_pool: Sequence[str],
        rng: random.Random,
    ) -> str:
        """Draw a chord tone (root-heavy) and voice it in the lowest register available."""
        root, third, fifth = chord_letters
        letter = pick_weighted_map([root, fifth, third], [ROOT_WEIGHT, FIFTH_WEIGHT, THIRD_WEIGHT], rng)
        pitch = pick_note_by_letter(pitch_pool, letter, rng, prefer_lower=True)
        if pitch is None:
            logger.debug("No %s in accompaniment pool; using any pool pitch.", letter)
            pitch = rng.choice(list(pitch_pool))
        return pitch

    @abstractmethod
    def bar(
        self,
        chord_letters: tuple[str, str, str],
        pitch_pool: Sequence[str],
        units_per_bar: float,
        rng: random.Random,
    ) -> ScoreBar:
        """Build one bar summing to ``units_per_bar`` for the given chord."""

    def generate(
        self,
        pitch_pool: Sequence[str],
        units_per_bar: float,
        bars: int,
        chord_plan: Sequence[int],
        tonic_letter: str,
        rng: random.Random,
    ) -> list[ScoreBar]:
        out: list[ScoreBar] = []
        for bar_no in range(bars):
            degree = chord_plan[bar_no] if bar_no < len(chord_plan) else 1
            out.append(self.bar(triad_for_degree(degree, tonic_letter), pitch_pool, units_per_bar, rng))
        return out


# ── Concrete strategies ──────────────────────────────────────────────────────

class SilentAccompaniment(AccompanimentStrategy):
    """
    No left-hand notes: the bass staff is still printed, holding one
    full-bar rest per measure, so beginners read a grand staff from day one.
    """

    style = AccompanimentStyle.NONE

    def bar(self, chord_letters, pitch_pool, units_per_bar, rng) -> ScoreBar:
        return [ScoreToken(units_per_bar)]


class DroneAccompaniment(AccompanimentStrategy):
    """One sustained chord root per bar, in the lowest octave the pool offers."""

    style = AccompanimentStyle.DRONE

    def bar(self, chord_letters, pitch_pool, units_per_bar, rng) -> ScoreBar:
        pitch = pick_note_by_letter(pitch_pool, chord_letters[0], rng, prefer_lower=True)
        if pitch is None:
            pitch = self.pick_chord_note(chord_letters, pitch_pool, rng)
        return [ScoreToken(units_per_bar, (pitch,))]


class _RhythmicAccompaniment(AccompanimentStrategy):
    """Chord tones drawn against a fixed duration palette."""

    palette: ClassVar[tuple[DurationCandidate, ...]]

    def bar(self, chord_letters, pitch_pool, units_per_bar, rng) -> ScoreBar:
        tokens: ScoreBar = []
        used = 0.0
        previous_rest = False
        while used < units_per_bar:
            remaining = units_per_bar - used
            candidates = [d for d in self.palette if d.units <= remaining]
            if used == 0 or previous_rest:
                candidates = [d for d in candidates if not d.is_rest]
            if not candidates:
                # Odd bar lengths (3/8, 7/8) can leave a gap no palette value fits.
                tokens.append(ScoreToken(remaining, (self.pick_chord_note(chord_letters, pitch_pool, rng),)))
                break

            chosen = pick_weighted(candidates, lambda d: floor_weight(d.weight), rng)
            if chosen.is_rest:
                tokens.append(ScoreToken(chosen.units))
                previous_rest = True
            else:
                tokens.append(ScoreToken(chosen.units, (self.pick_chord_note(chord_letters, pitch_pool, rng),)))
                previous_rest = False
            used += chosen.units
        return tokens


class HalvesAccompaniment(_RhythmicAccompaniment):
    """Two-level density: mostly half notes with some quarters."""

    style = AccompanimentStyle.HALVES
    palette = (
        DurationCandidate(4, 0.55),
        DurationCandidate(2, 0.25),
        DurationCandidate(4, 0.12, is_rest=True),
        DurationCandidate(2, 0.08, is_rest=True),
    )


class QuartersAccompaniment(_RhythmicAccompaniment):
    """
    Four-level density. Half notes still lead so the bass stays stable;
    dotted quarters and rare eighths add motion.
    """

    style = AccompanimentStyle.QUARTERS
    palette = (
        DurationCandidate(4, 0.40),
        DurationCandidate(3, 0.15),
        DurationCandidate(2, 0.30),
        DurationCandidate(1, 0.05),
        DurationCandidate(4, 0.05, is_rest=True),
        DurationCandidate(2, 0.04, is_rest=True),
        DurationCandidate(1, 0.01, is_rest=True),
    )


_STRATEGIES: dict[AccompanimentStyle, type[AccompanimentStrategy]] = {
    AccompanimentStyle.NONE: SilentAccompaniment,
    AccompanimentStyle.DRONE: DroneAccompaniment,
    AccompanimentStyle.HALVES: HalvesAccompaniment,
    AccompanimentStyle.QUARTERS: QuartersAccompaniment,
}


def accompaniment_for(style: AccompanimentStyle | str) -> AccompanimentStrategy:
    """Return the strategy instance for an accompaniment style."""
    return _STRATEGIES[AccompanimentStyle(style)]()


def generate_accompaniment(
    style: AccompanimentStyle | str,
    pitch_pool: Sequence[str],
    units_per_bar: float,
    bars: int,
    chord_plan: Sequence[int],
    tonic_letter: str,
    rng: random.Random | None = None,
) -> list[ScoreBar]:
    """Generate ``bars`` left-hand bars in the requested style."""
    strategy = accompaniment_for(style)
    return strategy.generate(pitch_pool, units_per_bar, bars, chord_plan, tonic_letter, rng or random.Random())
