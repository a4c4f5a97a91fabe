"""Unit tests for renderers used by SheetExporter."""

from typing import Any

import pytest

from sightread.sheet_renderers import AbcTextRenderer, VerovioHtmlRenderer


class FakeToolkit:
    """Minimal verovio toolkit double: records options and returns fixed pages."""

    loads = True
    pages = 2

    def __init__(self) -> None:
        self.options: dict[str, Any] = {}
        self.data = ""

    def setOptions(self, options: dict[str, Any]) -> None:
        self.options = options

    def loadData(self, data: str) -> bool:
        self.data = data
        return self.loads

    def getPageCount(self) -> int:
        return self.pages

    def renderToSVG(self, pageNo: int = 1, xmlDeclaration: bool = False) -> str:
        return f"<svg>page {pageNo}</svg>"


def test_abc_renderer_passes_tune_through() -> None:
    renderer = AbcTextRenderer()
    assert renderer.default_extension == ".abc"
    assert renderer.render(title="x", abc="X:1\nK:C") == "X:1\nK:C\n"
    assert renderer.render(title="x", abc="X:1\n") == "X:1\n"


def test_html_renderer_rejects_bad_width() -> None:
    with pytest.raises(ValueError):
        VerovioHtmlRenderer(width=0)


def test_page_width_scales_with_display_width() -> None:
    assert VerovioHtmlRenderer(width=840).page_width == 2100
    assert VerovioHtmlRenderer(width=400).page_width == 1000


def test_html_column_follows_display_width() -> None:
    narrow = VerovioHtmlRenderer(width=600).build_html("T", ["<svg></svg>"])
    wide = VerovioHtmlRenderer(width=1000).build_html("T", ["<svg></svg>"])
    assert "main { max-width: 632px;" in narrow
    assert "main { max-width: 1032px;" in wide


def test_html_without_title_or_subtitle_has_no_header() -> None:
    html = VerovioHtmlRenderer().build_html("", ["<svg></svg>"])
    assert "<header>" not in html
    assert "<title></title>" in html


def test_html_subtitle_without_title() -> None:
    html = VerovioHtmlRenderer().build_html("", ["<svg></svg>"], subtitle="Grade 1 <easy>")
    assert '<header><p class="subtitle">Grade 1 &lt;easy&gt;</p></header>' in html
    assert "<h1>" not in html


def test_render_svgs_reads_abc(monkeypatch: pytest.MonkeyPatch) -> None:
    import verovio

    created: list[FakeToolkit] = []

    def factory() -> FakeToolkit:
        tk = FakeToolkit()
        created.append(tk)
        return tk

    monkeypatch.setattr(verovio, "toolkit", factory)
    svgs = VerovioHtmlRenderer().render_svgs("X:1\nK:C\nC")

    assert svgs == ["<svg>page 1</svg>", "<svg>page 2</svg>"]
    assert created[0].options["inputFrom"] == "abc"
    assert created[0].data == "X:1\nK:C\nC"


def test_render_svgs_load_failure_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    import verovio

    class BrokenToolkit(FakeToolkit):
        loads = False

    monkeypatch.setattr(verovio, "toolkit", BrokenToolkit)
    with pytest.raises(ValueError, match="could not load"):
        VerovioHtmlRenderer().render_svgs("not abc")


def test_render_wraps_pages_in_html(monkeypatch: pytest.MonkeyPatch) -> None:
    import verovio

    monkeypatch.setattr(verovio, "toolkit", FakeToolkit)
    html = VerovioHtmlRenderer().render(title="Etude", abc="X:1", subtitle="Grade 2")
    assert html.count('<section class="page">') == 2
    assert "<h1>Etude</h1>" in html
    assert "Grade 2" in html
