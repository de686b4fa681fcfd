"""
ReportLab renderer

Replays a Layout onto a canvas. Layout coordinates are top-down; the
canvas origin is bottom-left, so every y is flipped against the page height.
"""
from io import BytesIO
from typing import Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from quotedesk.services.pdf.layout import Layout, Line, Rect, Text

LINE_SPACING = 1.15


def reportlab_text_height(text: str, font: str, size: float, width: float) -> float:
    """Height of text wrapped to width with the renderer's line spacing"""
    if not text:
        return 0
    return len(wrap(text, font, size, width)) * size * LINE_SPACING


def wrap(text: str, font: str, size: float, width: Optional[float]):
    lines = []
    for paragraph in str(text).split("\n"):
        if width:
            lines.extend(simpleSplit(paragraph, font, size, width) or [""])
        else:
            lines.append(paragraph)
    return lines


class PdfRenderer:

    def __init__(self, pagesize=A4):
        self.pagesize = pagesize

    def render(self, layout: Layout, title: str = "") -> bytes:
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=self.pagesize)
        if title:
            c.setTitle(title)

        for page in range(layout.page_count):
            for placed in layout.on_page(page):
                self.draw(c, placed.command)
            c.showPage()

        c.save()
        return buffer.getvalue()

    def draw(self, c, command) -> None:
        if isinstance(command, Rect):
            self._rect(c, command)
        elif isinstance(command, Text):
            self._text(c, command)
        elif isinstance(command, Line):
            self._line(c, command)
        else:
            raise TypeError(f"Unknown draw command: {type(command).__name__}")

    def _flip(self, y: float) -> float:
        return self.pagesize[1] - y

    def _rect(self, c, rect: Rect) -> None:
        fill = 1 if rect.fill else 0
        stroke = 1 if rect.stroke else 0
        if rect.fill:
            c.setFillColor(HexColor(rect.fill))
        if rect.stroke:
            c.setStrokeColor(HexColor(rect.stroke))
            c.setLineWidth(rect.line_width)
        y = self._flip(rect.y) - rect.height
        if rect.radius > 0:
            c.roundRect(rect.x, y, rect.width, rect.height, rect.radius, stroke=stroke, fill=fill)
        else:
            c.rect(rect.x, y, rect.width, rect.height, stroke=stroke, fill=fill)

    def _text(self, c, text: Text) -> None:
        if not text.text:
            return
        c.setFont(text.font, text.size)
        c.setFillColor(HexColor(text.color))

        # y is the top of the first line; drawString wants the baseline
        baseline = text.y + text.size
        for line in wrap(text.text, text.font, text.size, text.width):
            y = self._flip(baseline)
            if text.align == "center" and text.width:
                c.drawCentredString(text.x + text.width / 2, y, line)
            elif text.align == "right" and text.width:
                c.drawRightString(text.x + text.width, y, line)
            else:
                c.drawString(text.x, y, line)
            baseline += text.size * LINE_SPACING

    def _line(self, c, line: Line) -> None:
        c.setStrokeColor(HexColor(line.color))
        c.setLineWidth(line.line_width)
        c.line(line.x1, self._flip(line.y1), line.x2, self._flip(line.y2))


pdf_renderer = PdfRenderer()
