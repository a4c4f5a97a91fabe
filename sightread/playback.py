"""
Playback of generated exercises.

:class:`PlaybackSession` owns the "what is loaded / is it playing" state for
one audio session and notifies subscribers when it changes. The actual sound
comes from a :class:`Synthesizer`; :class:`MidiPlayerSynthesizer` renders the
exercise to a temporary MIDI file and hands it to an external player.

The player command comes from the ``player`` argument or the
``SIGHTREAD_PLAYER`` environment variable and is parsed with ``shlex.split``
so quoted paths containing spaces work.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from sightread.midi_exporter import MidiExporter
from sightread.sheet_models import GeneratedScore

__all__ = [
    "MidiPlayerSynthesizer",
    "MusicData",
    "PlaybackConfig",
    "PlaybackError",
    "PlaybackSession",
    "PlaybackState",
    "SynthConfig",
    "SynthResult",
    "Synthesizer",
]

logger = logging.getLogger(__name__)

PLAYER_ENV_VAR = "SIGHTREAD_PLAYER"


class PlaybackError(RuntimeError):
    """Raised when a synthesizer cannot be initialised, primed or started."""


@dataclass(frozen=True)
class PlaybackConfig:
    """Timing a synthesizer needs: quarter-note tempo and the meter."""

    tempo: int
    meter_num: int
    meter_den: int

    @classmethod
    def from_score(cls, score: GeneratedScore) -> PlaybackConfig:
        return cls(tempo=score.tempo, meter_num=score.meter_num, meter_den=score.meter_den)

    @property
    def milliseconds_per_measure(self) -> int:
        quarter_notes = 4 * self.meter_num / self.meter_den
        return round(60000 / self.tempo * quarter_notes)


@dataclass(frozen=True)
class MusicData:
    """An exercise loaded into a session, with the timing to play it at."""

    score: GeneratedScore
    config: PlaybackConfig

    @classmethod
    def from_score(cls, score: GeneratedScore) -> MusicData:
        return cls(score=score, config=PlaybackConfig.from_score(score))


@dataclass(frozen=True)
class PlaybackState:
    is_playing: bool
    can_play: bool


@dataclass(frozen=True)
class SynthResult:
    """Outcome of one synthesizer step."""

    ok: bool
    message: str = ""

    @classmethod
    def success(cls) -> SynthResult:
        return cls(True)

    @classmethod
    def failure(cls, message: str) -> SynthResult:
        return cls(False, message)


@dataclass
class SynthConfig:
    """What :meth:`Synthesizer.initialize` receives."""

    music: MusicData
    on_ended: Callable[[], None] = field(default=lambda: None)


class Synthesizer(ABC):
    """Capability interface for anything that can sound an exercise."""

    @abstractmethod
    def initialize(self, config: SynthConfig) -> SynthResult:
        """Load the music and remember the end-of-playback callback."""

    @abstractmethod
    def prime(self) -> SynthResult:
        """Prepare audio data so :meth:`start` can begin immediately."""

    @abstractmethod
    def start(self) -> SynthResult:
        """Begin playback; ``on_ended`` fires when it finishes on its own."""

    @abstractmethod
    def stop(self) -> None:
        """Stop playback. Safe to call when nothing is playing."""


class MidiPlayerSynthesizer(Synthesizer):
    """
    Render to a temporary MIDI file and play it with an external command.

    Each :meth:`start` gets its own stop event and owns its temporary file,
    so a player that is still shutting down after :meth:`stop` can neither
    report an end nor delete the file of the player that replaced it.
    """

    def __init__(self, player: str | None = None, exporter: MidiExporter | None = None) -> None:
        self.player = player
        self.exporter = exporter or MidiExporter()
        self._config: SynthConfig | None = None
        self._midi_path: str | None = None
        self._lock = threading.Lock()
        self._proc: subprocess.Popen[bytes] | None = None
        self._proc_stopped: threading.Event | None = None

    def _player_args(self) -> list[str] | None:
        command = self.player or os.environ.get(PLAYER_ENV_VAR)
        return shlex.split(command) if command else None

    @staticmethod
    def _remove(path: str) -> None:
        try:
            os.remove(path)
        except OSError as exc:
            logger.warning("Failed to delete temporary file %s: %s", path, exc)

    def _cleanup(self) -> None:
        """Delete a primed file that no player has taken over."""
        path, self._midi_path = self._midi_path, None
        if path is not None:
            self._remove(path)

    def initialize(self, config: SynthConfig) -> SynthResult:
        self.stop()
        self._cleanup()
        self._config = config
        return SynthResult.success()

    def prime(self) -> SynthResult:
        if self._config is None:
            return SynthResult.failure("Synthesizer primed before initialize().")
        if self._player_args() is None:
            return SynthResult.failure(
                f"No MIDI player configured. Set {PLAYER_ENV_VAR} (e.g. 'timidity' or 'fluidsynth -a alsa sf.sf2')."
            )
        fd, path = tempfile.mkstemp(suffix=".mid", prefix="sightread-")
        try:
            with os.fdopen(fd, "wb") as fh:
                self.exporter.write(self._config.music.score, fh)
        except OSError as exc:
            os.remove(path)
            return SynthResult.failure(f"Could not write MIDI data: {exc}")
        self._midi_path = path
        return SynthResult.success()

    def start(self) -> SynthResult:
        args = self._player_args()
        if self._config is None or self._midi_path is None or args is None:
            return SynthResult.failure("Synthesizer started before prime().")
        cmd = args + [self._midi_path]
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
        except OSError as exc:
            self._cleanup()
            return SynthResult.failure(f"Could not launch player {cmd[0]!r}: {exc}")

        # The watcher now owns the file.
        midi_path, self._midi_path = self._midi_path, None
        stopped = threading.Event()
        with self._lock:
            self._proc = proc
            self._proc_stopped = stopped
        watcher = threading.Thread(
            target=self._watch,
            args=(proc, midi_path, stopped, self._config.on_ended),
            daemon=True,
        )
        watcher.start()
        logger.debug("Started player: %s", cmd)
        return SynthResult.success()

    def _watch(
        self,
        proc: subprocess.Popen[bytes],
        midi_path: str,
        stopped: threading.Event,
        on_ended: Callable[[], None],
    ) -> None:
        """Wait for one player, delete its file, and report a natural end."""
        _, stderr = proc.communicate()
        if proc.returncode not in (0, None) and not stopped.is_set():
            logger.error("Player command failed (%s): %s", proc.returncode, stderr.decode(errors="replace").strip())
        self._remove(midi_path)
        with self._lock:
            if self._proc is proc:
                self._proc = None
                self._proc_stopped = None
        if not stopped.is_set():
            on_ended()

    def stop(self) -> None:
        with self._lock:
            proc, stopped = self._proc, self._proc_stopped
        if stopped is not None:
            stopped.set()
        if proc is not None and proc.poll() is None:
            proc.terminate()


class PlaybackSession:
    """
    The single owner of playback state for one audio session.

    Handlers that need to observe or control playback receive the session
    instead of reaching for module-level state. Listeners are called with the
    current :class:`PlaybackState` on subscription and after every change.
    """

    def __init__(self, synth: Synthesizer) -> None:
        self.synth = synth
        self._music: MusicData | None = None
        self._is_playing = False
        # Bumped by every play() and stop(); end reports from older runs are ignored.
        self._run = 0
        self._lock = threading.Lock()
        self._listeners: list[Callable[[PlaybackState], None]] = []
        self._generate_listeners: list[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # State and subscriptions
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return PlaybackState(is_playing=self._is_playing, can_play=self._music is not None)

    @property
    def music(self) -> MusicData | None:
        return self._music

    def _set_playing(self, playing: bool) -> None:
        with self._lock:
            self._is_playing = playing
        self._notify()

    def _notify(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            listener(state)

    def subscribe(self, listener: Callable[[PlaybackState], None]) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)
        listener(self.state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_generate_request(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a handler that produces a new exercise when one is requested."""
        self._generate_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._generate_listeners:
                self._generate_listeners.remove(listener)

        return unsubscribe

    def request_generate(self) -> None:
        for listener in list(self._generate_listeners):
            listener()

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def set_music(self, music: MusicData | None) -> None:
        """Load a new exercise (or clear it), stopping whatever is playing."""
        if self._is_playing:
            self.synth.stop()
        with self._lock:
            self._music = music
            self._is_playing = False
            self._run += 1
        self._notify()

    def play(self) -> None:
        """
        Start playback of the loaded exercise.

        Does nothing when nothing is loaded or playback is already running.

        Raises:
            PlaybackError: If the synthesizer fails to initialise, prime or
                start; the session is back to "not playing" when it is raised.
        """
        with self._lock:
            if self._music is None or self._is_playing:
                return
            # Claimed under the lock so a second play() cannot start a second synth.
            self._is_playing = True
            self._run += 1
            run = self._run
            music = self._music
        self._notify()

        try:
            steps = (
                lambda: self.synth.initialize(SynthConfig(music=music, on_ended=lambda: self._handle_ended(run))),
                self.synth.prime,
                self.synth.start,
            )
            for step in steps:
                result = step()
                if not result.ok:
                    raise PlaybackError(result.message)
        except Exception:
            self._set_playing(False)
            raise

    def stop(self) -> None:
        self.synth.stop()
        with self._lock:
            self._run += 1
        self._set_playing(False)

    def _handle_ended(self, run: int) -> None:
        with self._lock:
            if run != self._run:
                logger.debug("Ignoring end of superseded playback run %d.", run)
                return
            self._is_playing = False
        self._notify()
