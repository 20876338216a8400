from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .. import config
from ..models import QuoteRecord
from ..storage import output_path, quote_filename, record_quote
from .compose import QuoteDetails, compose_quote
from .decorate import HeaderContent, decorate, default_footer, format_date_es
from .image_fetch import fetch_image
from .quote import TARIFF_AWARE, QuoteInputs, QuoteTotals, can_generate, compute
from .render_pdf import render_pdf_bytes
from .resolve import Fetcher, ImageSource, resolve_image, resolve_logo


logger = logging.getLogger(__name__)


@dataclass
class QuoteRequest:
    inputs: QuoteInputs
    details: QuoteDetails = field(default_factory=QuoteDetails)
    image: ImageSource = None
    logo: Optional[Path] = None
    profile: str = TARIFF_AWARE
    company_name: str = config.COMPANY_NAME
    generated_at: Optional[datetime] = None


@dataclass
class QuoteResult:
    pdf_bytes: bytes
    filename: str
    totals: QuoteTotals
    page_count: int
    warnings: List[str] = field(default_factory=list)


def build_quote(request: QuoteRequest, fetcher: Fetcher = fetch_image, style: Optional[dict] = None) -> QuoteResult:
    """
    resolve -> compute -> compose -> decorate -> render, all in memory.

    Image problems only add warnings; raises ValueError when the inputs
    cannot produce a quote (no unit cost).
    """
    if not can_generate(request.inputs):
        raise ValueError("Unit cost must be greater than zero to generate a quote")

    generated_at = request.generated_at or datetime.now()

    # Everything that may block or fail happens before layout starts.
    resolution = resolve_image(request.image, fetcher=fetcher)
    logo = resolve_logo(request.logo)

    totals = compute(request.inputs, profile=request.profile)
    composition = compose_quote(
        totals,
        request.details,
        image=resolution.image,
        inputs=request.inputs,
        style=style,
    )
    warnings = list(composition.warnings)
    if resolution.warning:
        warnings.insert(0, resolution.warning)

    header = HeaderContent(
        company_name=request.company_name,
        title=config.DOCUMENT_TITLE,
        date_text=format_date_es(generated_at.date()),
        logo=logo,
    )
    doc = decorate(composition.document, header, default_footer(), style=style)

    return QuoteResult(
        pdf_bytes=render_pdf_bytes(doc),
        filename=quote_filename(request.company_name, generated_at),
        totals=totals,
        page_count=doc.page_count(),
        warnings=warnings,
    )


def generate_quote(
    request: QuoteRequest,
    out_dir: Path | None = None,
    fetcher: Fetcher = fetch_image,
    record: bool = True,
) -> tuple[Path, QuoteResult]:
    try:
        result = build_quote(request, fetcher=fetcher)
    except ValueError:
        raise
    except Exception:
        logger.exception("Quote generation failed for %s", request.details.car_model or "unnamed vehicle")
        raise

    path = output_path(result.filename, base_dir=out_dir)
    path.write_bytes(result.pdf_bytes)
    logger.info("Wrote %s (%d pages)", path, result.page_count)

    if record:
        record_quote(
            QuoteRecord(
                company=request.company_name,
                customer=request.details.customer_name,
                car_model=request.details.car_model,
                vehicle_type=str(getattr(request.inputs.vehicle_type, "value", request.inputs.vehicle_type)),
                profile=result.totals.profile,
                total=str(result.totals.total),
                page_count=result.page_count,
                path=str(path),
            )
        )
    return path, result
