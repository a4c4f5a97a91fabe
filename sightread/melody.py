"""
Melody (right-hand) bar generator.

Each bar is filled left to right with weighted duration draws. Pitches follow
the bar's chord on strong beats, often on secondary beats, and otherwise roam
the scale with a strong bias toward stepwise motion.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Final

from sightread.notation import (
    diatonic_letters_from,
    pick_note_by_letter,
    pitch_letter,
    scale_distance,
    triad_for_degree,
)
from sightread.sheet_models import DurationCandidate, ScoreBar, ScoreToken
from sightread.weighted import floor_weight, pick_weighted, pick_weighted_map

logger = logging.getLogger(__name__)

#: Consecutive fastest values allowed before their weight is cut.
MAX_FAST_RUN: Final[int] = 3
FAST_RUN_PENALTY: Final[float] = 0.2
LONG_NOTE_BOOST: Final[float] = 3.0

CHORD_TONE_BOOST: Final[float] = 2.2
SECONDARY_BEAT_CHORD_PROBABILITY: Final[float] = 0.6

#: Weight multiplier by scale-step distance from the previous letter.
#: Repeated letters are discounted rather than forbidden.
STEP_WEIGHTS: Final[dict[int, float]] = {0: 0.15, 1: 1.4, 2: 0.9, 3: 0.4}
LEAP_WEIGHT: Final[float] = 0.2


def pick_melody_letter(
    scale: Sequence[str],
    preferred: Sequence[str],
    previous: str | None,
    rng: random.Random,
) -> str:
    """Draw the next scale letter, favouring ``preferred`` letters and small steps."""
    weights: list[float] = []
    for letter in scale:
        weight = CHORD_TONE_BOOST if letter in preferred else 1.0
        if previous is not None:
            distance = scale_distance(scale, previous, letter)
            weight *= STEP_WEIGHTS.get(distance, LEAP_WEIGHT)
        weights.append(weight)
    return pick_weighted_map(list(scale), weights, rng)


def beat_index(units_into_bar: float, units_per_beat: float) -> int:
    """1-based beat that a position (in base units) falls on."""
    return int(units_into_bar // units_per_beat) + 1


class _BarState:
    """Running counters for the bar currently being filled."""

    def __init__(self) -> None:
        self.used = 0.0
        self.fast_run = 0
        self.has_long = False
        self.previous_rest = False


def _duration_weight(candidate: DurationCandidate, state: _BarState, remaining: float, fastest: float) -> float:
    weight = candidate.weight
    if candidate.units == fastest and state.fast_run >= MAX_FAST_RUN:
        weight *= FAST_RUN_PENALTY
    if not state.has_long and remaining <= fastest * 2 and candidate.units > fastest:
        weight *= LONG_NOTE_BOOST
    return floor_weight(weight)


def _fitting_candidates(
    durations: Sequence[DurationCandidate], state: _BarState, remaining: float
) -> list[DurationCandidate]:
    """
    Candidates that fit the remaining space; rests are withheld at the start
    of the bar and right after another rest.
    """
    fitting = [d for d in durations if d.units <= remaining]
    if state.used == 0 or state.previous_rest:
        sounding = [d for d in fitting if not d.is_rest]
        if sounding:
            return sounding
    return fitting


def generate_melody(
    pitch_pool: Sequence[str],
    durations: Sequence[DurationCandidate],
    units_per_bar: float,
    bars: int,
    chord_plan: Sequence[int],
    tonic_letter: str,
    meter_num: int,
    strong_beats: Sequence[int],
    secondary_beats: Sequence[int],
    rng: random.Random | None = None,
) -> list[ScoreBar]:
    """
    Generate ``bars`` melody bars whose token lengths each sum to ``units_per_bar``.

    The previous pitch letter carries across bar lines so motion stays
    smooth through the whole exercise.
    """
    rng = rng or random.Random()
    scale = diatonic_letters_from(tonic_letter)
    fastest = min(d.units for d in durations)
    units_per_beat = units_per_bar / meter_num
    previous_letter: str | None = None
    out: list[ScoreBar] = []

    for bar_no in range(bars):
        degree = chord_plan[bar_no] if bar_no < len(chord_plan) else 1
        chord_letters = triad_for_degree(degree, tonic_letter)
        state = _BarState()
        tokens: ScoreBar = []

        while state.used < units_per_bar:
            remaining = units_per_bar - state.used
            candidates = _fitting_candidates(durations, state, remaining)
            if candidates:
                chosen = pick_weighted(
                    candidates,
                    lambda d: _duration_weight(d, state, remaining, fastest),
                    rng,
                )
            else:
                logger.debug("No duration fits %.1f remaining units; filling with one note.", remaining)
                chosen = DurationCandidate(remaining, 1.0)

            if chosen.is_rest:
                tokens.append(ScoreToken(chosen.units))
                state.previous_rest = True
            else:
                beat = beat_index(state.used, units_per_beat)
                prefer_chord = beat in strong_beats or (
                    beat in secondary_beats and rng.random() < SECONDARY_BEAT_CHORD_PROBABILITY
                )
                preferred = chord_letters if prefer_chord else scale
                letter = pick_melody_letter(scale, preferred, previous_letter, rng)
                pitch = pick_note_by_letter(pitch_pool, letter, rng)
                if pitch is None:
                    logger.debug("No %s in melody pool; using any pool pitch.", letter)
                    pitch = rng.choice(list(pitch_pool))
                tokens.append(ScoreToken(chosen.units, (pitch,)))
                state.previous_rest = False
                previous_letter = pitch_letter(pitch)

            state.used += chosen.units
            if chosen.units == fastest:
                state.fast_run += 1
            else:
                state.fast_run = 0
                state.has_long = True

        out.append(tokens)
    return out
