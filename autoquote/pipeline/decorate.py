from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from .. import config
from ..config import load_style_preset
from .compose import fit_image
from .document import BODY, DECORATIONS, Document, ResolvedImage


def _s(style: dict, key: str, default):
    return style.get(key, default)


@dataclass(frozen=True)
class HeaderContent:
    company_name: str = config.COMPANY_NAME
    title: str = config.DOCUMENT_TITLE
    date_text: str = ""
    logo: Optional[ResolvedImage] = None


@dataclass(frozen=True)
class FooterContent:
    lines: List[str] = field(default_factory=list)


def format_date_es(value: date) -> str:
    return f"{value.day} de {config.MONTHS_ES[value.month - 1]} de {value.year}"


def default_footer() -> FooterContent:
    return FooterContent(
        lines=[
            config.COMPANY_NAME,
            config.COMPANY_ADDRESS,
            f"Tel: {config.COMPANY_PHONE} | Email: {config.COMPANY_EMAIL}",
            f"Web: {config.COMPANY_WEBSITE}",
        ]
    )


def _draw_header(doc: Document, header: HeaderContent, style: dict) -> None:
    pw, _ = doc.page_size()
    font = str(_s(style, "font_name", "Helvetica"))
    bold = str(_s(style, "font_bold", "Helvetica-Bold"))
    primary = str(_s(style, "primary_color", "#000000"))
    muted = str(_s(style, "muted_color", "#646464"))

    if header.logo is not None and header.logo.width > 0 and header.logo.height > 0:
        box_w, box_h = config.LOGO_BOX
        w, h, _ = fit_image(header.logo.width, header.logo.height, box_w, box_h)
        doc.image(header.logo.data, header.logo.format, config.CONTENT_LEFT, 8 + (box_h - h) / 2, w, h)

    doc.text(
        header.company_name,
        pw / 2,
        15,
        font=bold,
        size=float(_s(style, "company_size", 16)),
        color=primary,
        align="center",
    )
    doc.text(
        header.title,
        pw / 2,
        23,
        font=bold,
        size=float(_s(style, "title_size", 12)),
        color=primary,
        align="center",
    )
    if header.date_text:
        doc.text(
            f"Fecha: {header.date_text}",
            config.CONTENT_RIGHT,
            23,
            font=font,
            size=float(_s(style, "date_size", 9)),
            color=muted,
            align="right",
        )
    rule_y = config.HEADER_HEIGHT - 2
    doc.line(config.CONTENT_LEFT, rule_y, config.CONTENT_RIGHT, rule_y, color=primary, width=0.5)


def _draw_footer(doc: Document, footer: FooterContent, page_number: int, page_total: int, style: dict) -> None:
    pw, ph = doc.page_size()
    font = str(_s(style, "font_name", "Helvetica"))
    bold = str(_s(style, "font_bold", "Helvetica-Bold"))
    size = float(_s(style, "footer_size", 8))
    muted = str(_s(style, "muted_color", "#646464"))

    top = ph - config.FOOTER_RESERVE + 6
    doc.line(config.CONTENT_LEFT, top, config.CONTENT_RIGHT, top, color=muted, width=0.3)

    yy = top + 5
    for i, line in enumerate(footer.lines[:4]):
        doc.text(line, pw / 2, yy, font=bold if i == 0 else font, size=size, color=muted, align="center")
        yy += 4

    doc.text(
        f"Página {page_number} de {page_total}",
        config.CONTENT_RIGHT,
        ph - 6,
        font=font,
        size=size,
        color=muted,
        align="right",
    )


def decorate(
    doc: Document,
    header: HeaderContent,
    footer: Optional[FooterContent] = None,
    style: Optional[dict] = None,
) -> Document:
    """
    Stamp header and footer bands on every page of a finished layout.

    Each page's decoration layer is rebuilt from scratch, so running this
    again (or on pages in any order) gives the same result.
    """
    style = style if style is not None else load_style_preset()
    footer = footer if footer is not None else default_footer()
    total = doc.page_count()
    restore = doc.current_index

    doc.set_layer(DECORATIONS)
    try:
        for index in range(total):
            doc.set_page(index)
            doc.current_page.decorations.clear()
            _draw_header(doc, header, style)
            _draw_footer(doc, footer, index + 1, total, style)
    finally:
        doc.set_layer(BODY)
        doc.set_page(restore)
    return doc
