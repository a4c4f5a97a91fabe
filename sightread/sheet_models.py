"""Data models for generated exercises and their score tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from sightread.notation import duration_suffix


class AccompanimentStyle(str, Enum):
    """Rhythmic density policy for the left-hand (bass) staff."""

    NONE = "none"
    DRONE = "drone"
    HALVES = "halves"
    QUARTERS = "quarters"


@dataclass(frozen=True)
class KeyDefinition:
    """
    A key the generator may write in.

    Attributes:
        label:       ABC key label, e.g. ``"Bb"`` or ``"F#m"``.
        accidentals: Signed key-signature size, + sharps / - flats.
        min_grade:   First grade at which the key is offered.
        weight:      Base selection weight.
    """

    label: str
    accidentals: int
    min_grade: int
    weight: float

    def __post_init__(self) -> None:
        if not -7 <= self.accidentals <= 7:
            raise ValueError(f"Key {self.label!r} has {self.accidentals} accidentals; expected -7..7.")

    @property
    def hardness(self) -> float:
        """Key-signature size normalised to 0..1."""
        return abs(self.accidentals) / 7


@dataclass(frozen=True)
class MeterDefinition:
    """
    A time signature with its beat-strength annotations (1-based beat indices).
    """

    label: str
    beats_per_bar: int
    beat_unit: int
    min_grade: int
    weight: float
    strong_beats: tuple[int, ...] = (1,)
    secondary_beats: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if 1 not in self.strong_beats:
            raise ValueError(f"Meter {self.label} must mark beat 1 as strong.")
        if set(self.strong_beats) & set(self.secondary_beats):
            raise ValueError(f"Meter {self.label} lists a beat as both strong and secondary.")


@dataclass(frozen=True)
class DurationCandidate:
    """One entry of a duration palette, measured in base (eighth-note) units."""

    units: float
    weight: float
    is_rest: bool = False

    @property
    def suffix(self) -> str:
        return duration_suffix(self.units)


@dataclass(frozen=True)
class ScoreToken:
    """
    A single note, chord or rest in one staff.

    Attributes:
        units:       Duration in base units.
        pitches:     ABC pitches; empty for a rest, several for a chord.
        decorations: Marks printed before the token (``!p!``, ``!<(!``).
        trailing:    Marks printed after the token (``!<)!``).
    """

    units: float
    pitches: tuple[str, ...] = ()
    decorations: tuple[str, ...] = ()
    trailing: tuple[str, ...] = ()

    @property
    def is_rest(self) -> bool:
        return not self.pitches

    @property
    def is_chord(self) -> bool:
        return len(self.pitches) > 1

    def to_abc(self) -> str:
        if self.is_rest:
            body = "z"
        elif self.is_chord:
            body = "[" + "".join(self.pitches) + "]"
        else:
            body = self.pitches[0]
        prefix = "".join(f"!{mark}!" for mark in self.decorations)
        suffix = "".join(f"!{mark}!" for mark in self.trailing)
        return f"{prefix}{body}{duration_suffix(self.units)}{suffix}"


#: One measure of one staff.
ScoreBar = list[ScoreToken]


def render_bar(bar: ScoreBar) -> str:
    """Space-separated ABC text of a bar."""
    return " ".join(token.to_abc() for token in bar)


@dataclass(frozen=True)
class Preset:
    """
    The fully resolved parameter bundle for one exercise.

    Built fresh for every generation and never mutated afterwards; the pitch
    pools and duration palette are tuples owned by this preset alone.
    """

    grade: int
    tempo: int
    key: KeyDefinition
    meter: MeterDefinition
    total_bars: int
    bars_per_line: int
    base_unit: int
    units_per_bar: float
    durations: tuple[DurationCandidate, ...]
    rh_pool: tuple[str, ...]
    lh_pool: tuple[str, ...]
    accompaniment: AccompanimentStyle
    effective_complexity: float
    dynamics: tuple[str, ...] = field(default=("p", "f"))

    @property
    def key_label(self) -> str:
        return self.key.label

    @property
    def tonic_letter(self) -> str:
        return self.key.label[0].upper()

    @property
    def is_minor(self) -> bool:
        return self.key.label.endswith("m")

    @property
    def meter_label(self) -> str:
        return self.meter.label

    @property
    def meter_num(self) -> int:
        return self.meter.beats_per_bar

    @property
    def meter_den(self) -> int:
        return self.meter.beat_unit

    @property
    def base_unit_label(self) -> str:
        return f"1/{self.base_unit}"


@dataclass(frozen=True)
class GeneratedScore:
    """
    Write-once result of a generation: the ABC text plus what produced it.

    Rendering collaborators consume :attr:`abc`; playback collaborators also
    need :attr:`tempo`, :attr:`meter_num` and :attr:`meter_den`.
    """

    abc: str
    preset: Preset
    chord_plan: tuple[int, ...]
    rh_bars: tuple[tuple[ScoreToken, ...], ...]
    lh_bars: tuple[tuple[ScoreToken, ...], ...]

    @property
    def tempo(self) -> int:
        return self.preset.tempo

    @property
    def meter_num(self) -> int:
        return self.preset.meter_num

    @property
    def meter_den(self) -> int:
        return self.preset.meter_den

    @property
    def key_label(self) -> str:
        return self.preset.key_label
