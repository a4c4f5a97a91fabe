"""SheetExporter: writes generated exercises as ABC text or HTML sheet music."""

from __future__ import annotations

from typing import Final

from sightread.sheet_models import GeneratedScore
from sightread.sheet_renderers import AbcTextRenderer, SheetRenderer, VerovioHtmlRenderer

SUPPORTED_FORMATS: Final[set[str]] = {"abc", "html"}


def describe_exercise(score: GeneratedScore) -> str:
    """One-line summary printed under the title, e.g. ``Grade 3 · Key Bb · 6/8 · ♩ = 84``."""
    preset = score.preset
    return f"Grade {preset.grade} · Key {preset.key_label} · {preset.meter_label} · ♩ = {preset.tempo}"


class SheetExporter:
    """
    Convert an exercise into sheet output via a pluggable renderer.

    Supported formats:
    - ``abc``: the ABC tune as generated.
    - ``html``: ABC -> Verovio -> inline SVG in a self-contained HTML file.
    """

    def __init__(
        self,
        title: str = "",
        output_format: str = "abc",
        width: int = VerovioHtmlRenderer.DEFAULT_WIDTH,
    ) -> None:
        self.title = title
        normalized = output_format.strip().lower()
        if normalized not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
        self.output_format = normalized
        self.width = width
        self.renderer = self._build_renderer(normalized)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_renderer(self, output_format: str) -> SheetRenderer:
        if output_format == "html":
            return VerovioHtmlRenderer(width=self.width)
        return AbcTextRenderer()

    def _write(self, content: str, output_path: str) -> None:
        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(content)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def default_extension(self) -> str:
        return self.renderer.default_extension

    def render(self, score: GeneratedScore) -> str:
        """Render an exercise into the selected format."""
        return self.renderer.render(title=self.title, abc=score.abc, subtitle=describe_exercise(score))

    def export(self, score: GeneratedScore, output_path: str) -> None:
        """
        Render an exercise into the selected format and write it to disk.

        Raises:
            ValueError: If rendering fails.
            OSError: If the output file cannot be written.
        """
        self._write(self.render(score), output_path)

    def export_abc_file(self, abc_path: str, output_path: str) -> None:
        """
        Render an existing ``.abc`` file (e.g. a saved exercise) into the selected format.

        Raises:
            ValueError: If rendering fails.
            OSError: If either file cannot be read or written.
        """
        with open(abc_path, encoding="utf-8") as fh:
            abc = fh.read()
        self._write(self.renderer.render(title=self.title, abc=abc), output_path)
