"""Unit tests for the difficulty tables."""

import random

import pytest

from sightread.sheet_models import KeyDefinition, MeterDefinition
from sightread.tables import (
    KEY_DEFINITIONS,
    MAX_GRADE,
    MIN_GRADE,
    METER_DEFINITIONS,
    clamp_grade,
    duration_palette_at,
    dynamics_at,
    effective_complexity,
    keys_available_at,
    meters_available_at,
    tempo_range_at,
    units_per_bar,
)

GRADES = range(MIN_GRADE, MAX_GRADE + 1)


def _key(label: str) -> KeyDefinition:
    return next(key for key in KEY_DEFINITIONS if key.label == label)


def test_clamp_grade() -> None:
    assert clamp_grade(0) == MIN_GRADE
    assert clamp_grade(-5) == MIN_GRADE
    assert clamp_grade(99) == MAX_GRADE
    assert clamp_grade(4) == 4


def test_grade_one_keys() -> None:
    assert {key.label for key in keys_available_at(1)} == {"C", "G", "F", "Am", "Dm"}


def test_grade_one_meters() -> None:
    assert {meter.label for meter in meters_available_at(1)} == {"2/4", "3/4", "4/4"}


@pytest.mark.parametrize("grade", range(MIN_GRADE + 1, MAX_GRADE + 1))
def test_option_sets_only_grow(grade: int) -> None:
    keys_before = {key.label for key in keys_available_at(grade - 1)}
    keys_now = {key.label for key in keys_available_at(grade)}
    meters_before = {meter.label for meter in meters_available_at(grade - 1)}
    meters_now = {meter.label for meter in meters_available_at(grade)}
    assert keys_before <= keys_now
    assert meters_before <= meters_now
    assert set(dynamics_at(grade - 1)) <= set(dynamics_at(grade))


def test_top_grade_offers_every_key() -> None:
    labels = {key.label for key in keys_available_at(MAX_GRADE)}
    assert labels == {key.label for key in KEY_DEFINITIONS}
    assert {key.accidentals for key in KEY_DEFINITIONS} == set(range(-7, 8))


def test_key_definitions_within_signature_range() -> None:
    assert all(-7 <= key.accidentals <= 7 for key in KEY_DEFINITIONS)
    with pytest.raises(ValueError):
        KeyDefinition("X", 8, 1, 1.0)


def test_meter_definitions_mark_downbeat_strong() -> None:
    assert all(1 in meter.strong_beats for meter in METER_DEFINITIONS)
    with pytest.raises(ValueError):
        MeterDefinition("3/4", 3, 4, 1, 1.0, strong_beats=(2,))
    with pytest.raises(ValueError):
        MeterDefinition("4/4", 4, 4, 1, 1.0, strong_beats=(1, 3), secondary_beats=(3,))


def test_tempo_ranges_never_shrink() -> None:
    ranges = [tempo_range_at(g) for g in GRADES]
    for (low_a, high_a), (low_b, high_b) in zip(ranges, ranges[1:]):
        assert low_a <= low_b
        assert high_a <= high_b
    assert tempo_range_at(1) == (60, 72)


def test_units_per_bar() -> None:
    meters = {meter.label: meter for meter in METER_DEFINITIONS}
    assert units_per_bar(meters["4/4"]) == 8
    assert units_per_bar(meters["6/8"]) == 6
    assert units_per_bar(meters["3/2"]) == 12
    assert units_per_bar(meters["7/8"]) == 7


def test_effective_complexity_in_range_and_tempered_by_key() -> None:
    rng = random.Random(4)
    for grade in GRADES:
        for key in KEY_DEFINITIONS:
            assert 0.0 <= effective_complexity(grade, key, rng) <= 1.0
    assert effective_complexity(8, _key("C"), random.Random(1)) >= 0.95
    assert effective_complexity(8, _key("Cb"), random.Random(1)) < 0.75


def test_palette_has_no_sixteenths_below_grade_three() -> None:
    palette = duration_palette_at(1.0, 4, 2)
    assert all(candidate.units >= 1 for candidate in palette)


def test_palette_adds_sixteenths_from_grade_three() -> None:
    palette = duration_palette_at(0.8, 4, 3)
    assert any(candidate.units == 0.5 and not candidate.is_rest for candidate in palette)


def test_half_note_meters_get_whole_notes_and_no_sixteenths() -> None:
    palette = duration_palette_at(1.0, 2, 8)
    assert any(candidate.units == 8 for candidate in palette)
    assert all(candidate.units >= 1 for candidate in palette)


def test_palette_weights_positive() -> None:
    for beat_unit in (2, 4, 8):
        for candidate in duration_palette_at(0.5, beat_unit, 5):
            assert candidate.weight > 0


def test_dynamics_by_grade() -> None:
    assert dynamics_at(1) == ("p", "f")
    assert "ff" in dynamics_at(5)
    assert "pp" in dynamics_at(8)
