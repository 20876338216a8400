from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO, Union

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .document import Document, DrawCommand, ImageCommand, LineCommand, RectCommand, TextCommand


def _hex(value: str, default=colors.black) -> colors.Color:
    if not value:
        return default
    try:
        return colors.HexColor("#" + str(value).lstrip("#"))
    except Exception:
        return default


def _draw_text(canv: canvas.Canvas, cmd: TextCommand, ph: float) -> None:
    canv.setFont(cmd.font, cmd.size)
    canv.setFillColor(_hex(cmd.color))
    x = cmd.x * mm
    y = (ph - cmd.y) * mm
    if cmd.align == "center":
        canv.drawCentredString(x, y, cmd.content)
    elif cmd.align == "right":
        canv.drawRightString(x, y, cmd.content)
    else:
        canv.drawString(x, y, cmd.content)


def _draw_line(canv: canvas.Canvas, cmd: LineCommand, ph: float) -> None:
    canv.setStrokeColor(_hex(cmd.color))
    canv.setLineWidth(cmd.width * mm)
    canv.line(cmd.x1 * mm, (ph - cmd.y1) * mm, cmd.x2 * mm, (ph - cmd.y2) * mm)


def _draw_rect(canv: canvas.Canvas, cmd: RectCommand, ph: float) -> None:
    color = _hex(cmd.color)
    fill = 1 if cmd.mode == "fill" else 0
    if fill:
        canv.setFillColor(color)
    else:
        canv.setStrokeColor(color)
    canv.rect(cmd.x * mm, (ph - cmd.y - cmd.h) * mm, cmd.w * mm, cmd.h * mm, stroke=1 - fill, fill=fill)


def _draw_image(canv: canvas.Canvas, cmd: ImageCommand, ph: float) -> None:
    reader = ImageReader(io.BytesIO(cmd.data))
    canv.drawImage(
        reader,
        cmd.x * mm,
        (ph - cmd.y - cmd.h) * mm,
        width=cmd.w * mm,
        height=cmd.h * mm,
        mask="auto",
    )


def _draw(canv: canvas.Canvas, cmd: DrawCommand, ph: float) -> None:
    if isinstance(cmd, TextCommand):
        _draw_text(canv, cmd, ph)
    elif isinstance(cmd, LineCommand):
        _draw_line(canv, cmd, ph)
    elif isinstance(cmd, RectCommand):
        _draw_rect(canv, cmd, ph)
    elif isinstance(cmd, ImageCommand):
        _draw_image(canv, cmd, ph)
    else:
        raise ValueError(f"Unknown draw command: {type(cmd).__name__}")


def render_pdf(doc: Document, output: Union[Path, BinaryIO]) -> None:
    pw, ph = doc.page_size()
    target = str(output) if isinstance(output, Path) else output
    # invariant=1 drops timestamps and random ids, so equal documents give equal bytes
    canv = canvas.Canvas(target, pagesize=(pw * mm, ph * mm), invariant=1)

    for page in doc.pages:
        for cmd in page.body:
            _draw(canv, cmd, ph)
        for cmd in page.decorations:
            _draw(canv, cmd, ph)
        canv.showPage()

    canv.save()


def render_pdf_bytes(doc: Document) -> bytes:
    buffer = io.BytesIO()
    render_pdf(doc, buffer)
    return buffer.getvalue()
