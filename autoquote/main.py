from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .models import reset_engine
from .pipeline.compose import QuoteDetails, cost_rows
from .pipeline.currency import format_currency
from .pipeline.quote import PROFILES, TARIFF_AWARE, can_generate, compute, freight_in_suggested_range, inputs_from_form
from .pipeline.render_preview import render_previews
from .pipeline.run import QuoteRequest, generate_quote
from .pipeline.terms import DEFAULT_TERMS
from .storage import list_quotes

app = typer.Typer(help="Vehicle import quote calculator and PDF generator")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _form(
    unit_cost: str,
    quantity: str,
    freight: str,
    portable_charger: bool,
    residential_charger: bool,
    extra_chargers: str,
    accessories: str,
    vehicle_type: str,
) -> dict:
    return {
        "unit_cost": unit_cost,
        "quantity": quantity,
        "freight": freight,
        "portable_charger": portable_charger,
        "residential_charger": residential_charger,
        "extra_charger_sets": extra_chargers,
        "additional_accessories_cost": accessories,
        "vehicle_type": vehicle_type,
    }


def _check_profile(profile: str) -> None:
    if profile not in PROFILES:
        typer.echo(f"Unknown profile: {profile} (choose from {', '.join(PROFILES)})", err=True)
        raise typer.Exit(code=2)


@app.command()
def quote(
    unit_cost: str = typer.Option(..., "--unit-cost", help="Unit price USD FOB"),
    quantity: str = typer.Option("1", "--quantity"),
    freight: str = typer.Option(str(config.DEFAULT_FREIGHT), "--freight", help="Ocean freight incl. insurance"),
    portable_charger: bool = typer.Option(False, "--portable-charger"),
    residential_charger: bool = typer.Option(False, "--residential-charger"),
    extra_chargers: str = typer.Option("0", "--extra-chargers", help="Extra charger sets"),
    accessories: str = typer.Option("0", "--accessories", help="Additional accessories cost"),
    vehicle_type: str = typer.Option("electric", "--vehicle-type", help="electric | hybrid | combustion"),
    profile: str = typer.Option(TARIFF_AWARE, "--profile", help="tariff-aware | legacy"),
) -> None:
    _check_profile(profile)
    inputs = inputs_from_form(
        _form(unit_cost, quantity, freight, portable_charger, residential_charger, extra_chargers, accessories, vehicle_type)
    )
    totals = compute(inputs, profile=profile)
    for label, amount in cost_rows(totals):
        typer.echo(f"{label:<48}{amount:>16}")
    typer.echo(f"{'Subtotal':<48}{format_currency(totals.subtotal):>16}")
    typer.echo(f"{'ITBMS (7%)':<48}{format_currency(totals.tax):>16}")
    typer.echo(f"{'TOTAL A PAGAR':<48}{format_currency(totals.total):>16}")
    typer.echo(f"{'30% para Reservar':<48}{format_currency(totals.deposit30):>16}")
    typer.echo(f"{'70% antes del Embarque':<48}{format_currency(totals.balance70):>16}")
    if not freight_in_suggested_range(inputs.freight):
        typer.echo("Note: freight outside the usual 1300-2000 range", err=True)


@app.command()
def generate(
    unit_cost: str = typer.Option(..., "--unit-cost", help="Unit price USD FOB"),
    quantity: str = typer.Option("1", "--quantity"),
    freight: str = typer.Option(str(config.DEFAULT_FREIGHT), "--freight"),
    portable_charger: bool = typer.Option(False, "--portable-charger"),
    residential_charger: bool = typer.Option(False, "--residential-charger"),
    extra_chargers: str = typer.Option("0", "--extra-chargers"),
    accessories: str = typer.Option("0", "--accessories"),
    vehicle_type: str = typer.Option("electric", "--vehicle-type"),
    profile: str = typer.Option(TARIFF_AWARE, "--profile"),
    model: str = typer.Option("", "--model", help="Vehicle model name"),
    description: str = typer.Option("", "--description"),
    customer: str = typer.Option("", "--customer"),
    phone: str = typer.Option("", "--phone"),
    email: str = typer.Option("", "--email"),
    packing: str = typer.Option("", "--packing"),
    delivery: str = typer.Option("", "--delivery"),
    comments: str = typer.Option("", "--comments", help="Seller comments"),
    terms_file: Optional[Path] = typer.Option(None, "--terms-file", help="Text file with terms and conditions"),
    image: Optional[str] = typer.Option(None, "--image", help="Vehicle image file or URL"),
    logo: Optional[Path] = typer.Option(None, "--logo", help="Logo image file for the header"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    preview: bool = typer.Option(False, "--preview", help="Also write a PNG of page 1"),
) -> None:
    _check_profile(profile)
    if out:
        config.set_out_dir(out)
        reset_engine()

    inputs = inputs_from_form(
        _form(unit_cost, quantity, freight, portable_charger, residential_charger, extra_chargers, accessories, vehicle_type)
    )
    if not can_generate(inputs):
        typer.echo("Unit cost must be greater than zero", err=True)
        raise typer.Exit(code=1)

    terms = DEFAULT_TERMS
    if terms_file:
        if not terms_file.exists():
            typer.echo(f"Terms file not found: {terms_file}", err=True)
            raise typer.Exit(code=1)
        terms = terms_file.read_text(encoding="utf-8")

    details = QuoteDetails(
        customer_name=customer,
        customer_phone=phone,
        customer_email=email,
        car_model=model,
        car_description=description,
        packing_info=packing,
        delivery_time=delivery,
        seller_comments=comments,
        terms_text=terms,
    )
    request = QuoteRequest(inputs=inputs, details=details, image=image, logo=logo, profile=profile)
    path, result = generate_quote(request, out_dir=config.OUT_DIR)

    typer.echo(f"Wrote {path} ({result.page_count} pages)")
    typer.echo(f"TOTAL A PAGAR: {format_currency(result.totals.total)}")
    for warning in result.warnings:
        typer.echo(f"WARNING: {warning}", err=True)
    if preview:
        for png in render_previews(path, path.parent):
            typer.echo(f"Preview: {png}")


@app.command()
def history(
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    limit: int = typer.Option(20, "--limit"),
) -> None:
    if out:
        config.set_out_dir(out)
        reset_engine()
    records = list_quotes(limit=limit)
    if not records:
        typer.echo("No quotes generated yet")
        return
    for record in records:
        stamp = record.created_at.strftime("%Y-%m-%d %H:%M")
        typer.echo(f"{stamp}  {record.car_model or '-':<24} {record.total:>12}  {record.path}")


if __name__ == "__main__":
    app()
