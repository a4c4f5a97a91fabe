"""SightRead CLI entry point."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

import click

from sightread import __version__
from sightread.generator import generate_exercise
from sightread.midi_exporter import MidiExporter
from sightread.playback import MidiPlayerSynthesizer, MusicData, PlaybackError, PlaybackSession
from sightread.sheet_exporter import SheetExporter, describe_exercise
from sightread.sheet_models import GeneratedScore
from sightread.tables import MAX_GRADE, MIN_GRADE


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


def _play(score: GeneratedScore, player: str | None) -> None:
    """Play an exercise through the external MIDI player and wait for it to finish."""
    session = PlaybackSession(MidiPlayerSynthesizer(player=player))
    finished = threading.Event()
    session.subscribe(lambda state: None if state.is_playing else finished.set())
    session.set_music(MusicData.from_score(score))
    finished.clear()

    session.play()
    try:
        finished.wait()
    except KeyboardInterrupt:
        session.stop()


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"], "auto_envvar_prefix": "SIGHTREAD"})
@click.version_option(version=__version__, prog_name="sightread")
@click.option("--verbose", "-v", is_flag=True, help="Log generation decisions to stderr.")
def main(verbose: bool) -> None:
    """SightRead — graded piano sight-reading exercise generator."""
    _configure_logging(verbose)


# ── generate subcommand ────────────────────────────────────────────────────────

@main.command()
@click.option(
    "--grade",
    type=click.IntRange(MIN_GRADE, MAX_GRADE, clamp=True),
    default=1,
    show_default=True,
    help=(
        f"Difficulty ({MIN_GRADE}–{MAX_GRADE}). "
        "Higher grades unlock more keys, meters, faster tempi, shorter notes "
        "and a busier left hand."
    ),
)
@click.option(
    "--bars",
    type=click.IntRange(1, 256),
    default=8,
    show_default=True,
    help="Number of bars in the exercise.",
)
@click.option(
    "--bars-per-line",
    type=click.IntRange(1, 16),
    default=4,
    show_default=True,
    help="Bars per printed system.",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Random seed; the same seed and options give the same exercise.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["abc", "html"], case_sensitive=False),
    default="abc",
    show_default=True,
    help="Sheet output format: ABC text or self-contained HTML (verovio).",
)
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination sheet file. Prints the ABC tune to stdout when omitted.",
)
@click.option(
    "--midi",
    default=None,
    metavar="PATH",
    help="Also write the exercise as a MIDI file.",
)
@click.option(
    "--width",
    type=click.IntRange(200, 4000),
    default=840,
    show_default=True,
    help="Display width of the HTML score in pixels.",
)
@click.option(
    "--dynamics/--no-dynamics",
    default=True,
    show_default=True,
    help="Add dynamic marks.",
)
@click.option(
    "--hairpins/--no-hairpins",
    default=True,
    show_default=True,
    help="Allow crescendo and diminuendo hairpins among the dynamic marks.",
)
@click.option(
    "--title",
    default=None,
    metavar="TEXT",
    help="Title written into the tune header and the HTML page.",
)
@click.option("--play", is_flag=True, help="Play the exercise after generating it.")
@click.option(
    "--player",
    default=None,
    metavar="CMD",
    help="MIDI player command for --play (e.g. 'timidity'). Defaults to $SIGHTREAD_PLAYER.",
)
def generate(
    grade: int,
    bars: int,
    bars_per_line: int,
    seed: int | None,
    output_format: str,
    output: str | None,
    midi: str | None,
    width: int,
    dynamics: bool,
    hairpins: bool,
    title: str | None,
    play: bool,
    player: str | None,
) -> None:
    """
    Generate a sight-reading exercise.

    \b
    Examples:
      sightread generate --grade 1
      sightread generate --grade 4 --bars 16 --seed 7 -o exercise.abc
      sightread generate --grade 6 --format html -o exercise.html --midi exercise.mid
      sightread generate --grade 3 --play --player "fluidsynth -a alsa -i font.sf2"
    """
    normalized_format = output_format.lower()
    if output is None and normalized_format != "abc":
        click.echo("  ERROR: --format html needs --output.", err=True)
        sys.exit(1)

    try:
        score = generate_exercise(
            grade, bars, bars_per_line, seed=seed, dynamics=dynamics, hairpins=hairpins, title=title
        )
    except ValueError as exc:
        click.echo(f"  ERROR: Could not generate exercise — {exc}", err=True)
        sys.exit(1)

    if output is None:
        click.echo(score.abc)
    else:
        click.echo(f"sightread v{__version__}", err=True)
        click.echo(f"  {describe_exercise(score)}", err=True)

        exporter = SheetExporter(title=title or "", output_format=normalized_format, width=width)
        click.echo(f"Writing {normalized_format.upper()} sheet → '{output}'...", err=True)
        try:
            exporter.export(score, output)
        except OSError as exc:
            click.echo(f"  ERROR: Could not write output file — {exc}", err=True)
            sys.exit(1)
        except ValueError as exc:
            click.echo(f"  ERROR: Could not render score — {exc}", err=True)
            sys.exit(1)

    if midi is not None:
        click.echo(f"Writing MIDI file → '{midi}'...", err=True)
        try:
            MidiExporter().export(score, midi)
        except OSError as exc:
            click.echo(f"  ERROR: Could not write MIDI file — {exc}", err=True)
            sys.exit(1)

    if play:
        click.echo("Playing... (Ctrl+C to stop)", err=True)
        try:
            _play(score, player)
        except PlaybackError as exc:
            click.echo(f"  ERROR: Could not play exercise — {exc}", err=True)
            sys.exit(1)


# ── sheet subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("abc_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination HTML file. Defaults to the ABC file with an .html extension.",
)
@click.option(
    "--title",
    default=None,
    metavar="TEXT",
    help="Title shown in the page header. Defaults to the ABC filename stem.",
)
@click.option(
    "--width",
    type=click.IntRange(200, 4000),
    default=840,
    show_default=True,
    help="Display width of the score in pixels.",
)
def sheet(abc_file: str, output: str | None, title: str | None, width: int) -> None:
    """
    Render a saved ABC exercise as HTML sheet music.

    ABC_FILE is the path to an existing .abc file.

    \b
    Examples:
      sightread sheet exercise.abc
      sightread sheet exercise.abc -o score.html --title "Week 3"
    """
    abc_path = Path(abc_file)
    resolved_title = title if title is not None else abc_path.stem.replace("_", " ")
    resolved_output = output if output is not None else str(abc_path.with_suffix(".html"))

    click.echo(f"sightread v{__version__}")
    click.echo(f"  ABC    : {abc_file}")
    click.echo(f"  Title  : {resolved_title}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()
    click.echo("[1/2] Rendering notation to SVG with verovio...")
    click.echo("[2/2] Writing HTML file...")

    exporter = SheetExporter(title=resolved_title, output_format="html", width=width)
    try:
        exporter.export_abc_file(abc_file, resolved_output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file — {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not render score — {exc}", err=True)
        sys.exit(1)

    click.echo()
    click.echo(f"Done!  Open '{resolved_output}' in any browser. Use Print → Save as PDF.")
