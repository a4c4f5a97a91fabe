"""
Exercise generator: runs the full pipeline for one request.

Preset -> chord plan -> melody and accompaniment -> cadence -> dynamics ->
ABC text. Every random draw comes from one ``random.Random`` so a seed
reproduces an exercise byte for byte.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from sightread.accompaniment import generate_accompaniment
from sightread.cadence import finish_cadence
from sightread.melody import generate_melody
from sightread.presets import build_preset
from sightread.progression import build_chord_plan
from sightread.score import apply_dynamics, assemble
from sightread.sheet_models import GeneratedScore, Preset, ScoreToken

logger = logging.getLogger(__name__)


def bar_units(bar: Sequence[ScoreToken]) -> float:
    """Total length of a bar in base units."""
    return sum(token.units for token in bar)


def generate_from_preset(
    preset: Preset,
    rng: random.Random,
    *,
    dynamics: bool = True,
    hairpins: bool = True,
    title: str | None = None,
) -> GeneratedScore:
    """Generate both staves for an already-resolved preset."""
    chord_plan = build_chord_plan(preset.total_bars, preset.grade, rng)

    rh_bars = generate_melody(
        preset.rh_pool,
        preset.durations,
        preset.units_per_bar,
        preset.total_bars,
        chord_plan,
        preset.tonic_letter,
        preset.meter_num,
        preset.meter.strong_beats,
        preset.meter.secondary_beats,
        rng,
    )
    lh_bars = generate_accompaniment(
        preset.accompaniment,
        preset.lh_pool,
        preset.units_per_bar,
        preset.total_bars,
        chord_plan,
        preset.tonic_letter,
        rng,
    )

    finish_cadence(
        rh_bars,
        lh_bars,
        chord_plan,
        preset.tonic_letter,
        preset.grade,
        preset.rh_pool,
        preset.lh_pool,
        preset.accompaniment,
        rng,
    )
    if dynamics:
        apply_dynamics(rh_bars, preset.dynamics, rng, allow_hairpins=hairpins)

    abc = assemble(
        rh_bars,
        lh_bars,
        meter=preset.meter_label,
        base_unit=preset.base_unit_label,
        key=preset.key_label,
        bars_per_line=preset.bars_per_line,
        title=title,
    )
    return GeneratedScore(
        abc=abc,
        preset=preset,
        chord_plan=tuple(chord_plan),
        rh_bars=tuple(tuple(bar) for bar in rh_bars),
        lh_bars=tuple(tuple(bar) for bar in lh_bars),
    )


def generate_exercise(
    grade: int,
    total_bars: int,
    bars_per_line: int,
    *,
    seed: int | None = None,
    rng: random.Random | None = None,
    dynamics: bool = True,
    hairpins: bool = True,
    title: str | None = None,
) -> GeneratedScore:
    """
    Generate one complete sight-reading exercise.

    Args:
        grade:         Difficulty 1-8; values outside are clamped.
        total_bars:    Number of bars, at least 1.
        bars_per_line: Bars per printed system, at least 1.
        seed:          Seed for a fresh random source (ignored if ``rng`` is given).
        rng:           Random source to draw from.
        dynamics:      Whether to add dynamic markings.
        hairpins:      Whether those markings may include hairpins.
        title:         Optional ``T:`` header line.

    Raises:
        ValueError: If ``total_bars`` or ``bars_per_line`` is below 1.
    """
    if rng is None:
        rng = random.Random(seed)
    preset = build_preset(grade, total_bars, bars_per_line, rng)
    score = generate_from_preset(preset, rng, dynamics=dynamics, hairpins=hairpins, title=title)
    logger.debug("Generated %d-bar exercise in %s, %s at %d BPM.",
                 total_bars, preset.key_label, preset.meter_label, preset.tempo)
    return score
