from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List

from slugify import slugify
from sqlmodel import select

from . import config
from .models import QuoteRecord, get_session, init_db


def quote_filename(company: str, now: datetime) -> str:
    """Cotizacion_<Company_Name>_<epoch ms>.pdf"""
    name = slugify(company or "", separator="_", lowercase=False) or "Cotizacion"
    stamp = int(now.timestamp() * 1000)
    return f"Cotizacion_{name}_{stamp}.pdf"


def output_path(filename: str, base_dir: Path | None = None) -> Path:
    if ".." in filename or "/" in filename or "\\" in filename:
        raise ValueError(f"Invalid output filename: {filename}")
    root = base_dir or config.OUT_DIR
    root.mkdir(parents=True, exist_ok=True)
    return root / filename


def record_quote(record: QuoteRecord) -> QuoteRecord:
    init_db()
    with get_session() as session:
        session.add(record)
        session.commit()
        session.refresh(record)
    return record


def list_quotes(limit: int = 20) -> List[QuoteRecord]:
    init_db()
    with get_session() as session:
        statement = select(QuoteRecord).order_by(QuoteRecord.created_at.desc()).limit(limit)
        return list(session.exec(statement))
