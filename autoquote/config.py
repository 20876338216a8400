from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Dict, List
import json


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = BASE_DIR / "out"
DB_PATH = OUT_DIR / "quotes.db"
STYLE_PRESET_PATH = Path(__file__).resolve().parent / "assets" / "quote_style.json"

# Seller identity (header + footer bands)
COMPANY_NAME = "Shanghai Autos Pty"
COMPANY_PHONE = "6937-0170"
COMPANY_EMAIL = "ventas@shanghai-autospty.com"
COMPANY_ADDRESS = "Centro Comercial Costa Sur - Local 28, Panamá"
COMPANY_WEBSITE = "shanghai-autospty.com"
DOCUMENT_TITLE = "COTIZACIÓN DE IMPORTACIÓN"

# Pricing
INSPECTION_FEE = Decimal("250")
ARRIVAL_FEE = Decimal("850")
REGISTRATION_FEE = Decimal("260")
FIXED_FEES: List[Decimal] = [INSPECTION_FEE, ARRIVAL_FEE, REGISTRATION_FEE]
COMMISSION_RATE = Decimal("0.05")
PURCHASE_MANAGEMENT_RATE = Decimal("0.05")
TAX_RATE = Decimal("0.07")
DEPOSIT_RATE = Decimal("0.3")
BALANCE_RATE = Decimal("0.7")
PORTABLE_CHARGER_PRICE = Decimal("30")
RESIDENTIAL_CHARGER_PRICE = Decimal("300")
EXTRA_CHARGER_SET_PRICE = Decimal("330")
TARIFF_RATES: Dict[str, Decimal] = {
    "electric": Decimal("0"),
    "hybrid": Decimal("0.10"),
    "combustion": Decimal("0.25"),
}
DEFAULT_FREIGHT = Decimal("1300")
FREIGHT_RANGE = (Decimal("1300"), Decimal("2000"))

# Page geometry, millimetres, origin top-left
PAGE_SIZE = (210.0, 297.0)
HEADER_HEIGHT = 32.0
TOP_MARGIN = 42.0
FOOTER_RESERVE = 32.0
HEADING_X = 20.0
LABEL_X = 25.0
VALUE_X = 72.0
VALUE_WIDTH = 116.0
AMOUNT_RIGHT_X = 185.0
CONTENT_LEFT = 20.0
CONTENT_RIGHT = 190.0
LINE_HEIGHT = 6.0
COST_ROW_HEIGHT = 7.0
SECTION_GAP = 5.0
HEADING_HEIGHT = 10.0
PARAGRAPH_LINE_HEIGHT = 5.0
TERMS_X = 20.0
TERMS_WIDTH = 170.0
TERMS_INDENT = 3.0
TERMS_LINE_HEIGHT = 4.5
TERMS_HEADING_LEADING = 5.5
TERMS_BLANK_GAP = 2.0
IMAGE_MAX_BOX = (170.0, 70.0)
IMAGE_SPACING_TOP = 6.0
IMAGE_SPACING_BOTTOM = 4.0
LOGO_BOX = (24.0, 16.0)

# Image resolution
MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_FETCH_TIMEOUT = 12
IMAGE_CACHE_CONTROL = "public, max-age=86400"
IMAGE_MAX_REDIRECTS = 5

NOT_SPECIFIED = "No especificado"
IMAGE_WARNING = "No se pudo incluir la imagen en el PDF. Se generó la cotización sin imagen."
NOT_AN_IMAGE_WARNING = "El archivo seleccionado no es una imagen."
VALIDITY_NOTE = "Cotización válida por 15 días. Para más información, contáctenos."

MONTHS_ES = [
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
]


def load_style_preset() -> dict:
    with STYLE_PRESET_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "quotes.db"
