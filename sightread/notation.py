"""Diatonic letter arithmetic and ABC pitch/duration helpers."""

from __future__ import annotations

import random
from collections.abc import Sequence
from fractions import Fraction
from typing import Final

#: Natural pitch letters in alphabetical (A-rooted) order.
LETTERS: Final[tuple[str, ...]] = ("A", "B", "C", "D", "E", "F", "G")

# ── MIDI constants ──────────────────────────────────────────────────────────
SEMITONES_PER_OCTAVE = 12
MIDDLE_C_MIDI = 60  # ABC "C" (uppercase, no octave marks) is middle C

_LETTER_SEMITONES: Final[dict[str, int]] = {
    "C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11,
}

# Order in which sharps / flats enter a key signature.
SHARP_ORDER: Final[str] = "FCGDAEB"
FLAT_ORDER: Final[str] = "BEADGCF"


def parse_key_label(label: str) -> tuple[str, bool]:
    """
    Split a key label such as ``"F#m"`` or ``"Bb"`` into ``(tonic_letter, is_minor)``.

    The tonic letter is the bare natural letter; the accidental only matters
    to the key signature, not to diatonic letter arithmetic.
    """
    is_minor = label.endswith("m")
    return label[0].upper(), is_minor


def diatonic_letters_from(tonic_letter: str) -> list[str]:
    """Return the seven scale letters starting on ``tonic_letter``."""
    start = LETTERS.index(tonic_letter.upper())
    return [LETTERS[(start + i) % 7] for i in range(7)]


def diatonic_extension(tonic_letter: str, degree: int) -> str:
    """Return the letter of ``degree`` (wrapping past 7) above ``tonic_letter``."""
    scale = diatonic_letters_from(tonic_letter)
    return scale[(degree - 1) % 7]


def triad_for_degree(degree: int, tonic_letter: str) -> tuple[str, str, str]:
    """Return ``(root, third, fifth)`` letters of the triad on a scale degree."""
    scale = diatonic_letters_from(tonic_letter)
    i = (degree - 1) % 7
    return scale[i], scale[(i + 2) % 7], scale[(i + 4) % 7]


def scale_distance(scale: Sequence[str], from_letter: str, to_letter: str) -> int:
    """
    Shortest step count between two letters within ``scale``, up or down.

    Letters missing from the scale count as a third (3 steps).
    """
    try:
        from_idx = scale.index(from_letter.upper())
        to_idx = scale.index(to_letter.upper())
    except ValueError:
        return 3
    forward = (to_idx - from_idx) % 7
    backward = (from_idx - to_idx) % 7
    return min(forward, backward)


# ── ABC pitch strings ───────────────────────────────────────────────────────

def pitch_letter(pitch: str) -> str:
    """Natural letter (uppercase) of an ABC pitch such as ``"c'"`` or ``"G,"``."""
    return pitch[0].upper()


def pitch_octave(pitch: str) -> int:
    """
    Octave offset of an ABC pitch relative to the uppercase octave.

    ``C`` is 0, ``c`` is 1, each ``,`` lowers by one and each ``'`` raises by one.
    """
    octave = 1 if pitch[0].islower() else 0
    return octave - pitch.count(",") + pitch.count("'")


def pick_note_by_letter(
    pool: Sequence[str],
    letter: str,
    rng: random.Random,
    prefer_lower: bool = False,
) -> str | None:
    """
    Pick a pitch from ``pool`` whose letter is ``letter``.

    With ``prefer_lower`` the lowest matching register wins (bass voicing);
    otherwise the match is drawn uniformly, so duplicated pool entries weigh
    more. Returns ``None`` when no pitch in the pool carries the letter.
    """
    target = letter.upper()
    candidates = [p for p in pool if pitch_letter(p) == target]
    if not candidates:
        return None
    if not prefer_lower:
        return rng.choice(candidates)
    return min(candidates, key=pitch_octave)


def key_signature_alterations(accidentals: int) -> dict[str, int]:
    """Map each altered letter to its semitone shift for a signed accidental count."""
    if accidentals >= 0:
        return {letter: 1 for letter in SHARP_ORDER[:accidentals]}
    return {letter: -1 for letter in FLAT_ORDER[:-accidentals]}


def abc_pitch_to_midi(pitch: str, alterations: dict[str, int] | None = None) -> int:
    """
    Convert an ABC pitch string to an absolute MIDI note number.

    Args:
        pitch:       ABC pitch, e.g. ``"C,"``, ``"e"``, ``"d'"``.
        alterations: Key-signature shifts from :func:`key_signature_alterations`.
    """
    letter = pitch_letter(pitch)
    shift = (alterations or {}).get(letter, 0)
    return MIDDLE_C_MIDI + pitch_octave(pitch) * SEMITONES_PER_OCTAVE + _LETTER_SEMITONES[letter] + shift


# ── Durations ────────────────────────────────────────────────────────────────

def duration_suffix(units: float) -> str:
    """
    ABC length suffix for a duration measured in base units.

    One unit has no suffix, whole multiples print the integer and fractions
    print ``/2`` style (``3/2`` for one and a half units).
    """
    value = Fraction(units).limit_denominator(16)
    if value.denominator == 1:
        return "" if value.numerator == 1 else str(value.numerator)
    if value.numerator == 1:
        return f"/{value.denominator}"
    return f"{value.numerator}/{value.denominator}"
