"""Renderer implementations for sheet music output formats."""

from __future__ import annotations

from abc import ABC, abstractmethod
from html import escape
from string import Template

_PAGE_PADDING_PX = 16

# $column is the display width plus the page padding on both sides.
_STYLESHEET = Template("""
body { margin: 0; padding: 24px 12px; background: #ececec; font-family: Georgia, serif; color: #222; }
main { max-width: ${column}px; margin: 0 auto; }
header { text-align: center; margin-bottom: 20px; }
header h1 { font-size: 1.5rem; margin: 0; }
header .subtitle { margin: 6px 0 0; color: #555; font-size: 0.95rem; }
.page { background: #fff; padding: ${padding}px; margin-bottom: 32px; border-radius: 2px; }
.page svg { display: block; width: 100%; height: auto; }
@media print {
  body { padding: 0; background: none; }
  main { max-width: none; }
  .page { padding: 0; margin: 0; break-after: page; }
  .page:last-child { break-after: auto; }
}
""")


class SheetRenderer(ABC):
    """Abstract sheet renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(self, *, title: str, abc: str, subtitle: str = "") -> str:
        """Render an ABC tune into a file content string."""


class AbcTextRenderer(SheetRenderer):
    """Write the ABC tune unchanged, for abcjs, EasyABC or abcm2ps."""

    @property
    def default_extension(self) -> str:
        return ".abc"

    def render(self, *, title: str, abc: str, subtitle: str = "") -> str:
        return abc if abc.endswith("\n") else abc + "\n"


class VerovioHtmlRenderer(SheetRenderer):
    """Render ABC text into a self-contained HTML document with inline SVG."""

    # Verovio layout constants (verovio abstract units; ~1 unit ≈ 0.1 mm)
    _PAGE_HEIGHT: int = 2970  # A4 portrait height
    _SCALE: int = 40  # 40%, a grand staff fits comfortably on A4
    _PAGE_MARGIN: int = 100  # uniform margin on all four sides
    DEFAULT_WIDTH: int = 840  # target display width in CSS pixels

    def __init__(self, width: int = DEFAULT_WIDTH) -> None:
        """
        Args:
            width: Target display width in pixels; the page width is chosen
                   so a system fills it at the renderer's scale.
        """
        if width <= 0:
            raise ValueError("width must be positive.")
        self.width = width

    @property
    def default_extension(self) -> str:
        return ".html"

    @property
    def page_width(self) -> int:
        """Verovio page width that renders ``width`` pixels wide at ``_SCALE``."""
        return round(self.width * 100 / self._SCALE)

    def render(self, *, title: str, abc: str, subtitle: str = "") -> str:
        svgs = self.render_svgs(abc)
        return self.build_html(title, svgs, subtitle)

    def render_svgs(self, abc: str) -> list[str]:
        """
        Render an ABC tune to a list of SVG strings via verovio.

        Raises:
            ValueError: If verovio cannot load the ABC data.
        """
        import verovio

        tk = verovio.toolkit()
        tk.setOptions(
            {
                "inputFrom": "abc",
                "pageHeight": self._PAGE_HEIGHT,
                "pageWidth": self.page_width,
                "scale": self._SCALE,
                "pageMarginTop": self._PAGE_MARGIN,
                "pageMarginBottom": self._PAGE_MARGIN,
                "pageMarginLeft": self._PAGE_MARGIN,
                "pageMarginRight": self._PAGE_MARGIN,
                "adjustPageHeight": True,
                "font": "Leipzig",
            }
        )

        loaded: bool = tk.loadData(abc)
        if not loaded:
            raise ValueError("verovio could not load the ABC data.")

        page_count: int = tk.getPageCount()
        return [tk.renderToSVG(page_no) for page_no in range(1, page_count + 1)]

    def build_html(self, title: str, svgs: list[str], subtitle: str = "") -> str:
        """
        Wrap SVG pages in a self-contained HTML document.

        The pages sit in a ``<main>`` column as wide as :attr:`width` plus
        its padding. The title and subtitle share a ``<header>`` above the
        first page, and every page but the last breaks when printed.
        """
        header_lines = []
        if title:
            header_lines.append(f"<h1>{escape(title, quote=False)}</h1>")
        if subtitle:
            header_lines.append(f'<p class="subtitle">{escape(subtitle, quote=False)}</p>')
        header = f"<header>{''.join(header_lines)}</header>\n" if header_lines else ""
        pages = "".join(f'<section class="page">{svg}</section>\n' for svg in svgs)
        style = _STYLESHEET.substitute(column=self.width + 2 * _PAGE_PADDING_PX, padding=_PAGE_PADDING_PX)
        return (
            "<!DOCTYPE html>\n"
            '<html lang="en">\n'
            '<head>\n<meta charset="UTF-8" />\n'
            '<meta name="viewport" content="width=device-width, initial-scale=1.0" />\n'
            f"<title>{escape(title, quote=False)}</title>\n"
            f"<style>{style}</style>\n"
            "</head>\n"
            f"<body>\n<main>\n{header}{pages}</main>\n</body>\n"
            "</html>\n"
        )
