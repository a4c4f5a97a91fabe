"""Preset builder: resolve one exercise's key, meter, tempo, rhythm and pools."""

from __future__ import annotations

import logging
import random
from typing import Final

from sightread.sheet_models import AccompanimentStyle, KeyDefinition, MeterDefinition, Preset
from sightread.tables import (
    BASE_UNIT,
    clamp_grade,
    duration_palette_at,
    dynamics_at,
    effective_complexity,
    grade_fraction,
    keys_available_at,
    meters_available_at,
    tempo_range_at,
    tempo_scale,
    units_per_bar,
)
from sightread.weighted import pick_weighted

logger = logging.getLogger(__name__)

# Right hand centred on middle C; repeated entries weight the middle of the staff.
RH_BASE_POOL: Final[tuple[str, ...]] = (
    "G", "A", "B", "B", "c", "c", "c", "d", "d", "d", "e", "e", "f", "g",
)
# (complexity threshold, pitches unlocked once it is reached)
RH_EXTENSIONS: Final[list[tuple[float, tuple[str, ...]]]] = [
    (0.5, ("a", "b")),
    (0.7, ("c'",)),
    (0.85, ("d'",)),
]

LH_BASE_POOL: Final[tuple[str, ...]] = ("C,", "D,", "E,", "F,", "G,", "A,", "B,")
LH_EXTENSIONS: Final[list[tuple[float, tuple[str, ...]]]] = [
    (0.5, ("C", "D", "E", "F", "G", "A", "B")),
]

KEY_FAMILIARITY_BONUS: Final[float] = 0.1
METER_FAMILIARITY_BONUS: Final[float] = 0.15


def _key_weight(key: KeyDefinition, grade: int) -> float:
    """
    Blend a curve favouring plain signatures with one favouring wide ones.

    At grade 1 the "soft" curve dominates; by the top grade the "hard" curve
    has taken over, so busy signatures become the common case.
    """
    g01 = grade_fraction(grade)
    soft = 1 / (1 + key.hardness * 7)
    hard = 0.4 + key.hardness
    blend = (1 - g01) * soft + g01 * hard + 0.01
    familiarity = 1 + KEY_FAMILIARITY_BONUS * max(0, grade - key.min_grade)
    return key.weight * familiarity * blend


def pick_key(grade: int, rng: random.Random) -> KeyDefinition:
    g = clamp_grade(grade)
    return pick_weighted(keys_available_at(g), lambda key: _key_weight(key, g), rng)


def pick_meter(grade: int, rng: random.Random) -> MeterDefinition:
    g = clamp_grade(grade)
    return pick_weighted(
        meters_available_at(g),
        lambda meter: meter.weight * (1 + METER_FAMILIARITY_BONUS * max(0, g - meter.min_grade)),
        rng,
    )


def pick_tempo(grade: int, key: KeyDefinition, rng: random.Random) -> int:
    low, high = tempo_range_at(grade)
    scale = tempo_scale(key)
    return round(rng.uniform(round(low * scale), round(high * scale)))


def accompaniment_style_for(grade: int) -> AccompanimentStyle:
    """Step function from grade to left-hand density."""
    g = clamp_grade(grade)
    if g == 1:
        return AccompanimentStyle.NONE
    if g == 2:
        return AccompanimentStyle.DRONE
    if g <= 4:
        return AccompanimentStyle.HALVES
    return AccompanimentStyle.QUARTERS


def _pool_for(
    base: tuple[str, ...],
    extensions: list[tuple[float, tuple[str, ...]]],
    complexity: float,
) -> tuple[str, ...]:
    pool = list(base)
    for threshold, pitches in extensions:
        if complexity >= threshold:
            pool.extend(pitches)
    return tuple(pool)


def build_preset(
    grade: int,
    total_bars: int,
    bars_per_line: int,
    rng: random.Random | None = None,
) -> Preset:
    """
    Build a fresh, immutable preset for one exercise.

    Every sub-choice is an independent draw; an awkward combination (wide key
    and busy meter) is kept rather than re-rolled, since key hardness already
    tempers the rhythm and tempo.

    Raises:
        ValueError: If ``total_bars`` or ``bars_per_line`` is below 1.
    """
    if total_bars < 1:
        raise ValueError("total_bars must be at least 1.")
    if bars_per_line < 1:
        raise ValueError("bars_per_line must be at least 1.")

    rng = rng or random.Random()
    g = clamp_grade(grade)
    if g != grade:
        logger.debug("Grade %s clamped to %d.", grade, g)

    key = pick_key(g, rng)
    complexity = effective_complexity(g, key, rng)
    tempo = pick_tempo(g, key, rng)
    meter = pick_meter(g, rng)
    durations = tuple(duration_palette_at(complexity, meter.beat_unit, g))
    style = accompaniment_style_for(g)

    preset = Preset(
        grade=g,
        tempo=tempo,
        key=key,
        meter=meter,
        total_bars=total_bars,
        bars_per_line=bars_per_line,
        base_unit=BASE_UNIT,
        units_per_bar=units_per_bar(meter),
        durations=durations,
        rh_pool=_pool_for(RH_BASE_POOL, RH_EXTENSIONS, complexity),
        lh_pool=_pool_for(LH_BASE_POOL, LH_EXTENSIONS, complexity),
        accompaniment=style,
        effective_complexity=complexity,
        dynamics=dynamics_at(g),
    )
    logger.debug(
        "Preset grade=%d key=%s meter=%s tempo=%d complexity=%.2f style=%s",
        g, key.label, meter.label, tempo, complexity, style.value,
    )
    return preset
