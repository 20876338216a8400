from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple

from .. import config
from ..config import load_style_preset
from .currency import Formatter, format_currency, format_rate
from .document import BODY, Document, ResolvedImage, text_width
from .quote import TARIFF_AWARE, QuoteInputs, QuoteTotals, VehicleType
from .terms import WARRANTY_LINE, is_heading


VEHICLE_TYPE_LABELS = {
    VehicleType.ELECTRIC.value: "Eléctrico",
    VehicleType.HYBRID.value: "Híbrido",
    VehicleType.COMBUSTION.value: "Combustión",
}


def _s(style: dict, key: str, default):
    return style.get(key, default)


@dataclass
class QuoteDetails:
    customer_name: str = ""
    customer_phone: str = ""
    customer_email: str = ""
    car_model: str = ""
    car_description: str = ""
    packing_info: str = ""
    delivery_time: str = ""
    seller_comments: str = ""
    terms_text: str = ""


@dataclass
class LayoutCursor:
    y: float
    top_margin: float
    max_content_y: float
    page_breaks: int = 0


@dataclass
class Composition:
    document: Document
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AccessoryLine:
    key: str
    label: str
    amount: Decimal
    inclusion: str


def new_cursor(doc: Document) -> LayoutCursor:
    _, page_h = doc.page_size()
    return LayoutCursor(
        y=config.TOP_MARGIN,
        top_margin=config.TOP_MARGIN,
        max_content_y=page_h - config.FOOTER_RESERVE,
    )


def ensure_space(doc: Document, cursor: LayoutCursor, required: float) -> bool:
    """Start a new page when `required` would run past the content area."""
    if cursor.y + required > cursor.max_content_y:
        doc.add_page()
        cursor.y = cursor.top_margin
        cursor.page_breaks += 1
        return True
    return False


# -------------------- Wrapping --------------------


def _split_long_word(word: str, font: str, size: float, width: float) -> List[str]:
    pieces: List[str] = []
    cur = ""
    for ch in word:
        if cur and text_width(cur + ch, font, size) > width:
            pieces.append(cur)
            cur = ch
        else:
            cur += ch
    if cur:
        pieces.append(cur)
    return pieces


def soft_wrap(line: str, font: str, size: float, width: float) -> List[str]:
    """Word wrap one line to `width` millimetres of rendered text."""
    words = line.split()
    if not words:
        return [""]

    lines: List[str] = []
    cur: List[str] = []

    for w in words:
        test = " ".join(cur + [w])
        if text_width(test, font, size) <= width:
            cur.append(w)
            continue

        if cur:
            lines.append(" ".join(cur))
            cur = []

        if text_width(w, font, size) <= width:
            cur = [w]
        else:
            # a single word wider than the column is cut by characters
            pieces = _split_long_word(w, font, size, width)
            lines.extend(pieces[:-1])
            cur = [pieces[-1]]

    if cur:
        lines.append(" ".join(cur))

    return lines


def split_lines(text: str) -> List[str]:
    return (text or "").replace("\r\n", "\n").replace("\r", "\n").split("\n")


def wrap_text(text: str, font: str, size: float, width: float, default: str = "N/A") -> List[str]:
    """
    Explicit line breaks first, then soft wrapping per line.

    Blank lines come back as "" so callers keep the vertical rhythm;
    an entirely blank text yields [default].
    """
    if not (text or "").strip():
        return [default]
    out: List[str] = []
    for raw in split_lines(text):
        if not raw.strip():
            out.append("")
            continue
        out.extend(soft_wrap(raw, font, size, width))
    return out


# -------------------- Image --------------------


def fit_image(img_w: float, img_h: float, max_w: float, max_h: float) -> Tuple[float, float, float]:
    """Scale into the box without ever enlarging; returns (draw_w, draw_h, scale)."""
    scale = min(max_w / img_w, max_h / img_h, 1.0)
    return img_w * scale, img_h * scale, scale


def place_image(doc: Document, cursor: LayoutCursor, image: ResolvedImage) -> Optional[str]:
    if image.width <= 0 or image.height <= 0:
        return config.IMAGE_WARNING
    max_w, max_h = config.IMAGE_MAX_BOX
    draw_w, draw_h, _ = fit_image(image.width, image.height, max_w, max_h)

    ensure_space(doc, cursor, draw_h + config.IMAGE_SPACING_TOP + config.IMAGE_SPACING_BOTTOM)
    top = cursor.y - config.LINE_HEIGHT + config.IMAGE_SPACING_TOP
    center_x = (config.CONTENT_LEFT + config.CONTENT_RIGHT) / 2
    doc.image(image.data, image.format, center_x - draw_w / 2, top, draw_w, draw_h)
    cursor.y = top + draw_h + config.IMAGE_SPACING_BOTTOM + config.LINE_HEIGHT
    return None


# -------------------- Rows --------------------


def heading(doc: Document, cursor: LayoutCursor, text: str, style: dict) -> None:
    # keep a heading together with at least its first row
    ensure_space(doc, cursor, config.HEADING_HEIGHT + config.LINE_HEIGHT)
    doc.text(
        text,
        config.HEADING_X,
        cursor.y,
        font=str(_s(style, "font_bold", "Helvetica-Bold")),
        size=float(_s(style, "heading_size", 13)),
        color=str(_s(style, "primary_color", "#000000")),
    )
    cursor.y += config.HEADING_HEIGHT


def label_value_row(doc: Document, cursor: LayoutCursor, label: str, value: str, style: dict) -> int:
    font = str(_s(style, "font_name", "Helvetica"))
    bold = str(_s(style, "font_bold", "Helvetica-Bold"))
    size = float(_s(style, "body_size", 10))
    color = str(_s(style, "text_color", "#000000"))

    lines = wrap_text(value, font, size, config.VALUE_WIDTH)

    ensure_space(doc, cursor, config.LINE_HEIGHT)
    doc.text(label, config.LABEL_X, cursor.y, font=bold, size=size, color=color)
    if lines[0]:
        doc.text(lines[0], config.VALUE_X, cursor.y, font=font, size=size, color=color)
    cursor.y += config.LINE_HEIGHT

    for line in lines[1:]:
        ensure_space(doc, cursor, config.LINE_HEIGHT)
        if line:
            doc.text(line, config.VALUE_X, cursor.y, font=font, size=size, color=color)
        cursor.y += config.LINE_HEIGHT
    return len(lines)


def currency_row(
    doc: Document,
    cursor: LayoutCursor,
    label: str,
    amount: str,
    style: dict,
    bold: bool = False,
) -> None:
    font = str(_s(style, "font_bold", "Helvetica-Bold")) if bold else str(_s(style, "font_name", "Helvetica"))
    size = float(_s(style, "body_size", 10))
    color = str(_s(style, "primary_color", "#000000")) if bold else str(_s(style, "text_color", "#000000"))

    ensure_space(doc, cursor, config.COST_ROW_HEIGHT)
    doc.text(label, config.LABEL_X, cursor.y, font=font, size=size, color=color)
    doc.text(amount, config.AMOUNT_RIGHT_X, cursor.y, font=font, size=size, color=color, align="right")
    cursor.y += config.COST_ROW_HEIGHT


def paragraph(doc: Document, cursor: LayoutCursor, text: str, style: dict, width: float) -> None:
    font = str(_s(style, "font_name", "Helvetica"))
    size = float(_s(style, "body_size", 10))
    color = str(_s(style, "text_color", "#000000"))
    for line in wrap_text(text, font, size, width):
        ensure_space(doc, cursor, config.PARAGRAPH_LINE_HEIGHT)
        if line:
            doc.text(line, config.LABEL_X, cursor.y, font=font, size=size, color=color)
        cursor.y += config.PARAGRAPH_LINE_HEIGHT


# -------------------- Cost lines --------------------


def extra_charger_sets(totals: QuoteTotals) -> int:
    return int(totals.extra_chargers_cost / config.EXTRA_CHARGER_SET_PRICE)


def accessory_lines(totals: QuoteTotals, formatter: Formatter = format_currency) -> List[AccessoryLine]:
    """Optional accessories actually priced in `totals`; only amounts > 0 are listed."""
    lines: List[AccessoryLine] = []
    if totals.portable_charger_cost > 0:
        lines.append(
            AccessoryLine("portable_charger", "Cargador Portátil", totals.portable_charger_cost, "Cargador Portátil")
        )
    if totals.residential_charger_cost > 0:
        lines.append(
            AccessoryLine(
                "residential_charger",
                "Cargador Residencial + Instalación",
                totals.residential_charger_cost,
                "Cargador Residencial con Instalación",
            )
        )
    if totals.extra_chargers_cost > 0:
        n = extra_charger_sets(totals)
        plural = n > 1
        lines.append(
            AccessoryLine(
                "extra_chargers",
                f"Conjuntos Adicionales ({n})",
                totals.extra_chargers_cost,
                f"{n} Conjunto{'s' if plural else ''} Adicional{'es' if plural else ''} de Cargadores",
            )
        )
    if totals.additional_accessories_cost > 0:
        lines.append(
            AccessoryLine(
                "additional_accessories",
                "Accesorios Adicionales",
                totals.additional_accessories_cost,
                f"Accesorios Adicionales ({formatter(totals.additional_accessories_cost)})",
            )
        )
    return lines


def cost_rows(totals: QuoteTotals, formatter: Formatter = format_currency) -> List[Tuple[str, str]]:
    rows: List[Tuple[str, str]] = [
        ("Costo Total del Auto (FOB)", formatter(totals.total_car_cost)),
        ("Comisión (5% sobre FOB)", formatter(totals.commission)),
    ]
    if totals.profile == TARIFF_AWARE:
        rows.append(("Gestión de Compra (5% sobre FOB)", formatter(totals.purchase_management)))
    rows.append(("Flete Marítimo (incluye seguro)", formatter(totals.freight)))
    if totals.profile == TARIFF_AWARE:
        rows.append(
            (
                f"Arancel ({format_rate(totals.tariff_rate)} sobre CIF {formatter(totals.cif)})",
                formatter(totals.tariff),
            )
        )
    rows.extend(
        [
            ("Inspección Técnica", formatter(config.INSPECTION_FEE)),
            ("Gastos de Llegada", formatter(config.ARRIVAL_FEE)),
            ("Registro y Placa", formatter(config.REGISTRATION_FEE)),
        ]
    )
    for line in accessory_lines(totals, formatter):
        rows.append((line.label, formatter(line.amount)))
    return rows


# -------------------- Sections --------------------


def _or_default(value: str) -> str:
    return value if (value or "").strip() else config.NOT_SPECIFIED


def section_customer(doc: Document, cursor: LayoutCursor, details: QuoteDetails, style: dict) -> None:
    heading(doc, cursor, "INFORMACIÓN DEL CLIENTE", style)
    label_value_row(doc, cursor, "Cliente:", _or_default(details.customer_name), style)
    label_value_row(doc, cursor, "Teléfono:", _or_default(details.customer_phone), style)
    label_value_row(doc, cursor, "Email:", _or_default(details.customer_email), style)
    cursor.y += config.SECTION_GAP


def section_vehicle(
    doc: Document,
    cursor: LayoutCursor,
    details: QuoteDetails,
    totals: QuoteTotals,
    inputs: Optional[QuoteInputs],
    style: dict,
    formatter: Formatter,
) -> None:
    heading(doc, cursor, "INFORMACIÓN DEL VEHÍCULO", style)
    rows: List[Tuple[str, str]] = [
        ("Modelo:", _or_default(details.car_model)),
        ("Descripción:", details.car_description),
    ]
    if inputs is not None:
        rows.append(("Cantidad:", str(inputs.quantity)))
        rows.append(("Precio Unitario (FOB):", formatter(inputs.unit_cost)))
    rows.append(("Precio Total (FOB):", formatter(totals.total_car_cost)))
    rows.append(("Embalaje:", _or_default(details.packing_info)))
    rows.append(("Tiempo de Entrega:", _or_default(details.delivery_time)))
    if inputs is not None and totals.profile == TARIFF_AWARE:
        kind = VEHICLE_TYPE_LABELS[VehicleType(inputs.vehicle_type).value]
        rows.append(("Tipo de Vehículo:", f"{kind} (arancel {format_rate(totals.tariff_rate)})"))

    for label, value in rows:
        label_value_row(doc, cursor, label, value, style)


def section_costs(doc: Document, cursor: LayoutCursor, totals: QuoteTotals, style: dict, formatter: Formatter) -> None:
    cursor.y += config.SECTION_GAP
    heading(doc, cursor, "DESGLOSE DE COSTOS", style)
    for label, amount in cost_rows(totals, formatter):
        currency_row(doc, cursor, label, amount, style)

    ensure_space(doc, cursor, config.COST_ROW_HEIGHT * 2 + 4)
    rule_y = cursor.y - 3
    doc.line(
        config.CONTENT_LEFT,
        rule_y,
        config.CONTENT_RIGHT,
        rule_y,
        color=str(_s(style, "secondary_color", "#0C0A0A")),
    )
    cursor.y += 3
    currency_row(doc, cursor, "Subtotal", formatter(totals.subtotal), style, bold=True)
    currency_row(doc, cursor, "ITBMS (7%)", formatter(totals.tax), style)

    band_h = 12.0
    ensure_space(doc, cursor, band_h)
    top = cursor.y - 4
    doc.rect(
        config.CONTENT_LEFT,
        top,
        config.CONTENT_RIGHT - config.CONTENT_LEFT,
        band_h,
        "fill",
        color=str(_s(style, "primary_color", "#000000")),
    )
    bold = str(_s(style, "font_bold", "Helvetica-Bold"))
    size = float(_s(style, "total_size", 15))
    inverse = str(_s(style, "inverse_color", "#FFFFFF"))
    doc.text("TOTAL A PAGAR", config.LABEL_X, top + 8.5, font=bold, size=size, color=inverse)
    doc.text(
        formatter(totals.total),
        config.AMOUNT_RIGHT_X,
        top + 8.5,
        font=bold,
        size=size,
        color=inverse,
        align="right",
    )
    cursor.y = top + band_h + config.HEADING_HEIGHT


def section_payment(doc: Document, cursor: LayoutCursor, totals: QuoteTotals, style: dict, formatter: Formatter) -> None:
    heading(doc, cursor, "CONDICIONES DE PAGO", style)
    currency_row(doc, cursor, "30% para Reservar", formatter(totals.deposit30), style, bold=True)
    currency_row(doc, cursor, "70% antes del Embarque", formatter(totals.balance70), style)
    cursor.y += config.SECTION_GAP


def section_comments(doc: Document, cursor: LayoutCursor, comments: str, style: dict) -> None:
    if not (comments or "").strip():
        return
    heading(doc, cursor, "COMENTARIOS DEL VENDEDOR", style)
    paragraph(doc, cursor, comments, style, config.CONTENT_RIGHT - config.LABEL_X)
    cursor.y += config.SECTION_GAP


def section_inclusions(doc: Document, cursor: LayoutCursor, totals: QuoteTotals, style: dict, formatter: Formatter) -> None:
    heading(doc, cursor, "INCLUYE:", style)
    font = str(_s(style, "font_name", "Helvetica"))
    size = float(_s(style, "body_size", 10))
    color = str(_s(style, "text_color", "#000000"))
    items = [WARRANTY_LINE] + [line.inclusion for line in accessory_lines(totals, formatter)]
    for item in items:
        ensure_space(doc, cursor, config.LINE_HEIGHT)
        doc.text(f"• {item}", config.LABEL_X, cursor.y, font=font, size=size, color=color)
        cursor.y += config.LINE_HEIGHT
    cursor.y += config.SECTION_GAP


def terms_block(doc: Document, cursor: LayoutCursor, terms_text: str, style: dict) -> None:
    """Free-text terms: numbered headings in bold, everything wrapped to the terms column."""
    font = str(_s(style, "font_name", "Helvetica"))
    bold = str(_s(style, "font_bold", "Helvetica-Bold"))
    size = float(_s(style, "terms_size", 9))
    color = str(_s(style, "text_color", "#000000"))

    if not (terms_text or "").strip():
        ensure_space(doc, cursor, config.TERMS_LINE_HEIGHT)
        doc.text("N/A", config.TERMS_X, cursor.y, font=font, size=size, color=color)
        cursor.y += config.TERMS_LINE_HEIGHT
        return

    body_x = config.TERMS_X + config.TERMS_INDENT
    body_w = config.TERMS_WIDTH - config.TERMS_INDENT
    for raw in split_lines(terms_text):
        line = raw.strip()
        if not line:
            cursor.y += config.TERMS_BLANK_GAP
            continue
        if is_heading(line):
            pieces = soft_wrap(line, bold, size, config.TERMS_WIDTH)
            # a sub-heading never ends a page without its first line of text
            ensure_space(doc, cursor, config.TERMS_HEADING_LEADING * len(pieces) + config.TERMS_LINE_HEIGHT)
            for piece in pieces:
                ensure_space(doc, cursor, config.TERMS_HEADING_LEADING)
                doc.text(piece, config.TERMS_X, cursor.y, font=bold, size=size, color=color)
                cursor.y += config.TERMS_HEADING_LEADING
            continue
        for wrapped in soft_wrap(line, font, size, body_w):
            ensure_space(doc, cursor, config.TERMS_LINE_HEIGHT)
            doc.text(wrapped, body_x, cursor.y, font=font, size=size, color=color)
            cursor.y += config.TERMS_LINE_HEIGHT


def section_terms(doc: Document, cursor: LayoutCursor, terms_text: str, style: dict) -> None:
    heading(doc, cursor, "TÉRMINOS Y CONDICIONES", style)
    terms_block(doc, cursor, terms_text, style)


def closing_note(doc: Document, cursor: LayoutCursor, style: dict) -> None:
    cursor.y += config.SECTION_GAP
    ensure_space(doc, cursor, config.LINE_HEIGHT)
    pw, _ = doc.page_size()
    doc.text(
        config.VALIDITY_NOTE,
        pw / 2,
        cursor.y,
        font=str(_s(style, "font_name", "Helvetica")),
        size=float(_s(style, "terms_size", 9)),
        color=str(_s(style, "muted_color", "#646464")),
        align="center",
    )
    cursor.y += config.LINE_HEIGHT


# -------------------- Entry point --------------------


def compose_quote(
    totals: QuoteTotals,
    details: QuoteDetails,
    *,
    image: Optional[ResolvedImage] = None,
    inputs: Optional[QuoteInputs] = None,
    style: Optional[dict] = None,
    formatter: Formatter = format_currency,
) -> Composition:
    """Lay out the body of a quote; header and footer are added later by the decorator."""
    style = style if style is not None else load_style_preset()
    doc = Document(config.PAGE_SIZE)
    doc.set_layer(BODY)
    cursor = new_cursor(doc)
    result = Composition(document=doc)

    section_customer(doc, cursor, details, style)
    section_vehicle(doc, cursor, details, totals, inputs, style, formatter)
    if image is not None:
        warning = place_image(doc, cursor, image)
        if warning:
            result.warnings.append(warning)
    section_costs(doc, cursor, totals, style, formatter)
    section_payment(doc, cursor, totals, style, formatter)
    section_comments(doc, cursor, details.seller_comments, style)
    section_inclusions(doc, cursor, totals, style, formatter)
    section_terms(doc, cursor, details.terms_text, style)
    closing_note(doc, cursor, style)
    return result
