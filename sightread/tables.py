"""
Static difficulty tables: keys, meters, tempo ranges and duration palettes.

Every catalog entry carries the first grade at which it becomes available,
so the option set at grade ``g`` always contains the set at ``g - 1``.
"""

from __future__ import annotations

import random
from typing import Final

from sightread.sheet_models import DurationCandidate, KeyDefinition, MeterDefinition

MIN_GRADE: Final[int] = 1
MAX_GRADE: Final[int] = 8

#: Base note length of every generated score (ABC ``L:1/8``).
BASE_UNIT: Final[int] = 8

#: How far key hardness pulls rhythmic complexity down.
KEY_COMPLEXITY_PENALTY: Final[float] = 0.35
#: Largest tempo reduction applied for a seven-accidental key.
KEY_TEMPO_PENALTY: Final[float] = 0.15
COMPLEXITY_JITTER: Final[float] = 0.05

# ── Keys ─────────────────────────────────────────────────────────────────────

MAJOR_KEYS: Final[tuple[KeyDefinition, ...]] = (
    KeyDefinition("C", 0, 1, 3.0),
    KeyDefinition("G", +1, 1, 3.0),
    KeyDefinition("F", -1, 1, 3.0),
    KeyDefinition("D", +2, 2, 3.0),
    KeyDefinition("A", +3, 3, 2.7),
    KeyDefinition("Bb", -2, 3, 2.7),
    KeyDefinition("Eb", -3, 3, 2.7),
    KeyDefinition("E", +4, 4, 2.4),
    KeyDefinition("Ab", -4, 4, 2.4),
    KeyDefinition("B", +5, 5, 2.1),
    KeyDefinition("Db", -5, 5, 2.1),
    KeyDefinition("F#", +6, 6, 1.8),
    KeyDefinition("Gb", -6, 6, 1.8),
    KeyDefinition("C#", +7, 8, 1.2),
    KeyDefinition("Cb", -7, 8, 1.2),
)

MINOR_KEYS: Final[tuple[KeyDefinition, ...]] = (
    KeyDefinition("Am", 0, 1, 3.0),
    KeyDefinition("Dm", -1, 1, 3.0),
    KeyDefinition("Em", +1, 2, 3.0),
    KeyDefinition("Gm", -2, 2, 3.0),
    KeyDefinition("Bm", +2, 3, 2.7),
    KeyDefinition("F#m", +3, 4, 2.4),
    KeyDefinition("Cm", -3, 4, 2.4),
    KeyDefinition("C#m", +4, 5, 2.1),
    KeyDefinition("Fm", -4, 5, 2.1),
    KeyDefinition("G#m", +5, 6, 1.8),
    KeyDefinition("Bbm", -5, 6, 1.8),
    KeyDefinition("D#m", +6, 7, 1.5),
    KeyDefinition("Ebm", -6, 7, 1.5),
    KeyDefinition("A#m", +7, 8, 1.2),
    KeyDefinition("Abm", -7, 8, 1.2),
)

KEY_DEFINITIONS: Final[tuple[KeyDefinition, ...]] = MAJOR_KEYS + MINOR_KEYS

# ── Meters ───────────────────────────────────────────────────────────────────

METER_DEFINITIONS: Final[tuple[MeterDefinition, ...]] = (
    MeterDefinition("2/4", 2, 4, 1, 3.5, (1,), ()),
    MeterDefinition("3/4", 3, 4, 1, 3.2, (1,), (3,)),
    MeterDefinition("4/4", 4, 4, 1, 5.0, (1,), (3,)),
    MeterDefinition("2/2", 2, 2, 2, 2.2, (1,), ()),
    MeterDefinition("6/8", 6, 8, 3, 2.4, (1,), (4,)),
    MeterDefinition("3/8", 3, 8, 3, 1.6, (1,), (3,)),
    MeterDefinition("4/8", 4, 8, 3, 1.3, (1,), (3,)),
    MeterDefinition("3/2", 3, 2, 4, 1.4, (1,), (3,)),
    MeterDefinition("4/2", 4, 2, 5, 1.0, (1,), (3,)),
    MeterDefinition("6/4", 6, 4, 5, 1.1, (1,), (4,)),
    MeterDefinition("9/8", 9, 8, 6, 1.2, (1,), (4, 7)),
    MeterDefinition("12/8", 12, 8, 7, 1.0, (1,), (4, 7, 10)),
    MeterDefinition("5/4", 5, 4, 7, 0.9, (1,), (4,)),
    MeterDefinition("7/8", 7, 8, 8, 0.8, (1,), (3, 5)),
)

# ── Tempo (quarter-note BPM) ─────────────────────────────────────────────────

TEMPO_RANGES: Final[dict[int, tuple[int, int]]] = {
    1: (60, 72),
    2: (60, 84),
    3: (60, 96),
    4: (70, 110),
    5: (70, 120),
    6: (80, 132),
    7: (80, 144),
    8: (80, 160),
}

# ── Dynamics ─────────────────────────────────────────────────────────────────

_DYNAMICS_BY_GRADE: Final[list[tuple[int, tuple[str, ...]]]] = [
    (7, ("pp", "p", "mp", "mf", "f", "ff")),
    (4, ("p", "mp", "mf", "f", "ff")),
    (2, ("p", "mp", "mf", "f")),
    (1, ("p", "f")),
]


def clamp_grade(grade: int) -> int:
    """Clamp a requested grade into ``MIN_GRADE..MAX_GRADE`` instead of rejecting it."""
    return max(MIN_GRADE, min(MAX_GRADE, int(grade)))


def grade_fraction(grade: int) -> float:
    """Position of a grade within the supported range, 0.0 (easiest) to 1.0."""
    return (clamp_grade(grade) - MIN_GRADE) / (MAX_GRADE - MIN_GRADE)


def keys_available_at(grade: int) -> list[KeyDefinition]:
    g = clamp_grade(grade)
    return [key for key in KEY_DEFINITIONS if key.min_grade <= g]


def meters_available_at(grade: int) -> list[MeterDefinition]:
    g = clamp_grade(grade)
    return [meter for meter in METER_DEFINITIONS if meter.min_grade <= g]


def tempo_range_at(grade: int) -> tuple[int, int]:
    return TEMPO_RANGES[clamp_grade(grade)]


def dynamics_at(grade: int) -> tuple[str, ...]:
    g = clamp_grade(grade)
    for min_grade, marks in _DYNAMICS_BY_GRADE:
        if g >= min_grade:
            return marks
    return _DYNAMICS_BY_GRADE[-1][1]


def tempo_scale(key: KeyDefinition) -> float:
    """Tempo multiplier for a key: up to 15% slower for the widest signatures."""
    return 1 - KEY_TEMPO_PENALTY * key.hardness


def effective_complexity(grade: int, key: KeyDefinition, rng: random.Random) -> float:
    """
    Rhythmic complexity in 0..1 for a grade once the key's difficulty is counted.

    Harder keys pull the value down so a wide signature and a busy rhythm
    rarely land on the same exercise; a small jitter keeps adjacent
    generations from feeling identical.
    """
    jitter = rng.uniform(-COMPLEXITY_JITTER, COMPLEXITY_JITTER)
    value = grade_fraction(grade) - KEY_COMPLEXITY_PENALTY * key.hardness + jitter
    return max(0.0, min(1.0, value))


def units_per_bar(meter: MeterDefinition, base_unit: int = BASE_UNIT) -> float:
    """Bar length in base units, e.g. 8 for 4/4 with an eighth-note base."""
    return meter.beats_per_bar * (base_unit / meter.beat_unit)


def duration_palette_at(complexity: float, beat_unit: int, grade: int) -> list[DurationCandidate]:
    """
    Weighted note and rest lengths for the melody, in eighth-note units.

    Meters counted in halves (``/2``) shift weight toward longer values and
    gain whole notes; sixteenths appear from grade 3 upward, scaled by
    ``complexity``, except in ``/2`` meters.
    """
    den_factor = 4 / beat_unit  # 2 for /2, 1 for /4, 0.5 for /8
    long_boost = (den_factor - 1) * 0.25 if den_factor > 1 else 0.0
    short_penalty = (den_factor - 1) * 0.15 if den_factor > 1 else 0.0

    whole_w = 0.06 * (den_factor - 1) if den_factor > 1 else 0.0
    half_w = 0.18 + long_boost
    dotted_quarter_w = 0.12 + long_boost * 0.3
    quarter_w = 0.28
    eighth_w = max(0.10, 0.22 - 0.08 * complexity - short_penalty)
    sixteenth_w = 0.06 * complexity if grade >= 3 and den_factor <= 1 else 0.0

    whole_rest_w = 0.02 * (den_factor - 1) if den_factor > 1 else 0.0
    half_rest_w = 0.06 + long_boost * 0.2
    quarter_rest_w = 0.08
    eighth_rest_w = max(0.02, 0.04 - short_penalty * 0.3)

    palette = [
        DurationCandidate(4, half_w),
        DurationCandidate(3, dotted_quarter_w),
        DurationCandidate(2, quarter_w),
        DurationCandidate(1, eighth_w),
        DurationCandidate(4, half_rest_w, is_rest=True),
        DurationCandidate(2, quarter_rest_w, is_rest=True),
        DurationCandidate(1, eighth_rest_w, is_rest=True),
    ]
    if whole_w > 0:
        palette.insert(0, DurationCandidate(8, whole_w))
        palette.append(DurationCandidate(8, whole_rest_w, is_rest=True))
    if sixteenth_w > 0:
        palette.append(DurationCandidate(0.5, sixteenth_w))
        palette.append(DurationCandidate(0.5, 0.02, is_rest=True))
    return palette
