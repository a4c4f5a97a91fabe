"""MidiExporter: Converts a generated exercise into a 2-track MIDI file."""

from __future__ import annotations

import bisect
import math
from collections.abc import Sequence
from typing import BinaryIO

from midiutil import MIDIFile

from sightread.notation import abc_pitch_to_midi, key_signature_alterations
from sightread.sheet_models import GeneratedScore, ScoreToken

# In midiutil Format 1 MIDI, track 0 is the conductor/tempo track.
# Note data written to track 0 is ignored by most players and notation apps.
# Tracks 1 and 2 are the actual data tracks rendered as staves.
TRACK_CONDUCTOR = 0  # Tempo/time signature only, never receives notes
TRACK_RH = 1         # Right Hand / Melody:        top staff    → treble clef
TRACK_LH = 2         # Left Hand  / Accompaniment: bottom staff → bass clef

# General MIDI channel assignments
CHANNEL_RH = 0
CHANNEL_LH = 1

#: MIDI velocity for each printed dynamic mark.
DYNAMIC_VELOCITIES: dict[str, int] = {
    "pp": 36,
    "p": 48,
    "mp": 64,
    "mf": 80,
    "f": 96,
    "ff": 112,
}


class MidiExporter:
    """
    Writes a two-track MIDI file from a GeneratedScore.

    Track layout (Format 1, 3 internal tracks)
    ------------------------------------------
    Track 0: conductor track (tempo and time signature, no notes)

    Track 1: "Right Hand (Melody)"  →  top staff / treble clef

    Track 2: "Left Hand (Accompaniment)"  →  bottom staff / bass clef
        Silent-accompaniment exercises leave this track without notes.

    Timing
    ------
    Token lengths are in base units (``L:1/8``); midiutil counts quarter
    notes, so beats = units × 4 / base_unit. The exercise tempo is already a
    quarter-note BPM.

    Dynamics
    --------
    Dynamic marks on melody tokens set the velocity from that point on for
    both hands; the left hand plays slightly softer.
    """

    DEFAULT_VELOCITY = 80  # used until the first dynamic mark
    BASS_VELOCITY_OFFSET = 12

    def __init__(self, tempo: int | None = None, velocity: int = DEFAULT_VELOCITY) -> None:
        """
        Args:
            tempo:    Override for the exercise tempo, in quarter-note BPM.
            velocity: Velocity before any dynamic mark applies.
        """
        self.tempo = tempo
        self.velocity = velocity

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _units_to_beats(self, units: float, base_unit: int) -> float:
        """Convert a length in base units to quarter-note beats."""
        return units * 4 / base_unit

    def _dynamic_timeline(
        self, rh_bars: Sequence[Sequence[ScoreToken]], base_unit: int
    ) -> tuple[list[float], list[int]]:
        """Start beats and velocities of every dynamic change in the melody."""
        times: list[float] = [0.0]
        velocities: list[int] = [self.velocity]
        beat = 0.0
        for bar in rh_bars:
            for token in bar:
                for mark in token.decorations:
                    if mark in DYNAMIC_VELOCITIES:
                        times.append(beat)
                        velocities.append(DYNAMIC_VELOCITIES[mark])
                beat += self._units_to_beats(token.units, base_unit)
        return times, velocities

    def _write_staff(
        self,
        midi: MIDIFile,
        track: int,
        channel: int,
        bars: Sequence[Sequence[ScoreToken]],
        base_unit: int,
        alterations: dict[str, int],
        timeline: tuple[list[float], list[int]],
        velocity_offset: int = 0,
    ) -> None:
        times, velocities = timeline
        beat = 0.0
        for bar in bars:
            for token in bar:
                duration = self._units_to_beats(token.units, base_unit)
                if not token.is_rest:
                    velocity = velocities[bisect.bisect_right(times, beat) - 1] - velocity_offset
                    for pitch in token.pitches:
                        midi.addNote(
                            track=track,
                            channel=channel,
                            pitch=abc_pitch_to_midi(pitch, alterations),
                            time=beat,
                            duration=duration,
                            volume=max(1, min(127, velocity)),
                        )
                beat += duration

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, score: GeneratedScore) -> MIDIFile:
        """Render an exercise into an in-memory ``MIDIFile``."""
        preset = score.preset
        midi = MIDIFile(numTracks=3, removeDuplicates=False, deinterleave=False)

        # --- Track 0: conductor (tempo + meter, no notes) ---
        midi.addTempo(TRACK_CONDUCTOR, 0, self.tempo or score.tempo)
        midi.addTimeSignature(TRACK_CONDUCTOR, 0, score.meter_num, int(math.log2(score.meter_den)), 24)

        midi.addTrackName(TRACK_RH, 0, "Right Hand (Melody)")
        midi.addTrackName(TRACK_LH, 0, "Left Hand (Accompaniment)")

        alterations = key_signature_alterations(preset.key.accidentals)
        timeline = self._dynamic_timeline(score.rh_bars, preset.base_unit)

        self._write_staff(midi, TRACK_RH, CHANNEL_RH, score.rh_bars, preset.base_unit, alterations, timeline)
        self._write_staff(
            midi,
            TRACK_LH,
            CHANNEL_LH,
            score.lh_bars,
            preset.base_unit,
            alterations,
            timeline,
            velocity_offset=self.BASS_VELOCITY_OFFSET,
        )
        return midi

    def write(self, score: GeneratedScore, fh: BinaryIO) -> None:
        """Write the exercise as a Standard MIDI File to an open binary handle."""
        self.build(score).writeFile(fh)

    def export(self, score: GeneratedScore, output_path: str) -> None:
        """
        Render an exercise to a Standard MIDI File (SMF format 1, 2 data tracks).

        Args:
            score:       The generated exercise.
            output_path: Destination file path (e.g. "exercise.mid").

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        with open(output_path, "wb") as f:
            self.write(score, f)
