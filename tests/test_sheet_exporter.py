"""Unit tests for SheetExporter; the HTML tests stub out verovio."""

from pathlib import Path

import pytest

from sightread import generate_exercise
from sightread.sheet_exporter import SheetExporter, describe_exercise
from sightread.sheet_renderers import AbcTextRenderer, VerovioHtmlRenderer


def test_html_exporter_passes_width_to_renderer() -> None:
    exporter = SheetExporter(output_format="html", width=500)
    assert isinstance(exporter.renderer, VerovioHtmlRenderer)
    assert exporter.renderer.width == 500
    assert exporter.renderer.page_width == 1250


def test_abc_exporter_uses_text_renderer() -> None:
    assert isinstance(SheetExporter(width=500).renderer, AbcTextRenderer)


def test_render_puts_description_under_title(monkeypatch: pytest.MonkeyPatch) -> None:
    score = generate_exercise(3, 4, 4, seed=21)
    exporter = SheetExporter(title="Scales & Arpeggios", output_format="html")
    monkeypatch.setattr(exporter.renderer, "render_svgs", lambda abc: ["<svg>p1</svg>", "<svg>p2</svg>"])

    html = exporter.render(score)

    heading = html.index("<h1>Scales &amp; Arpeggios</h1>")
    subtitle = html.index(f'<p class="subtitle">{describe_exercise(score)}</p>')
    first_page = html.index('<section class="page"><svg>p1</svg>')
    assert heading < subtitle < first_page
    assert html.count('<section class="page">') == 2


def test_unsupported_format_raises() -> None:
    with pytest.raises(ValueError, match="Unsupported output format"):
        SheetExporter(output_format="pdf")


def test_format_is_case_insensitive() -> None:
    assert SheetExporter(output_format=" HTML ").default_extension == ".html"
    assert SheetExporter().default_extension == ".abc"


def test_describe_exercise() -> None:
    score = generate_exercise(3, 4, 4, seed=21)
    summary = describe_exercise(score)
    assert summary.startswith("Grade 3 · Key ")
    assert score.preset.meter_label in summary
    assert summary.endswith(f"♩ = {score.tempo}")


def test_export_abc_writes_tune(tmp_path: Path) -> None:
    score = generate_exercise(4, 8, 4, seed=2)
    out = tmp_path / "exercise.abc"
    SheetExporter().export(score, str(out))
    content = out.read_text(encoding="utf-8")
    assert content == score.abc + "\n"


# ---------------------------------------------------------------------------
# Integration tests: render through verovio.
# Skipped by default; opt in with -m integration.
# ---------------------------------------------------------------------------

@pytest.mark.integration
def test_export_creates_html_file(tmp_path: Path) -> None:
    """Smoke test: export() produces an HTML file with inline SVG."""
    out = tmp_path / "score.html"
    exporter = SheetExporter(title="Integration Test", output_format="html")
    exporter.export(generate_exercise(4, 8, 4, seed=5), str(out))

    content = out.read_text(encoding="utf-8")
    assert "<!DOCTYPE html>" in content
    assert "<svg" in content


@pytest.mark.integration
def test_export_abc_file_to_html(tmp_path: Path) -> None:
    abc_path = tmp_path / "exercise.abc"
    SheetExporter().export(generate_exercise(2, 4, 4, seed=6), str(abc_path))
    out = tmp_path / "exercise.html"
    SheetExporter(title="Saved", output_format="html").export_abc_file(str(abc_path), str(out))
    assert "<svg" in out.read_text(encoding="utf-8")
