from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Mapping

from .. import config


TARIFF_AWARE = "tariff-aware"
LEGACY = "legacy"
PROFILES = (TARIFF_AWARE, LEGACY)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

TRUTHY = {"true", "1", "yes", "on", "si", "sí", "y"}


class VehicleType(str, Enum):
    ELECTRIC = "electric"
    HYBRID = "hybrid"
    COMBUSTION = "combustion"


@dataclass(frozen=True)
class QuoteInputs:
    unit_cost: Decimal
    quantity: int = 1
    freight: Decimal = config.DEFAULT_FREIGHT
    portable_charger: bool = False
    residential_charger: bool = False
    extra_charger_sets: int = 0
    additional_accessories_cost: Decimal = ZERO
    vehicle_type: VehicleType = VehicleType.ELECTRIC


@dataclass(frozen=True)
class QuoteTotals:
    total_car_cost: Decimal
    commission: Decimal
    purchase_management: Decimal
    freight: Decimal
    portable_charger_cost: Decimal
    residential_charger_cost: Decimal
    extra_chargers_cost: Decimal
    additional_accessories_cost: Decimal
    accessories_cost: Decimal
    cif: Decimal
    tariff_rate: Decimal
    tariff: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    deposit30: Decimal
    balance70: Decimal
    profile: str = TARIFF_AWARE

    @property
    def fixed_fees(self) -> Decimal:
        return sum(config.FIXED_FEES, ZERO)


def round2(value: Decimal) -> Decimal:
    """Round to cents, half-up on the scaled value."""
    return _dec(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _dec(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _charger_costs(inputs: QuoteInputs) -> tuple[Decimal, Decimal, Decimal]:
    portable = config.PORTABLE_CHARGER_PRICE if inputs.portable_charger else ZERO
    residential = config.RESIDENTIAL_CHARGER_PRICE if inputs.residential_charger else ZERO
    extra = config.EXTRA_CHARGER_SET_PRICE * max(0, int(inputs.extra_charger_sets))
    return portable, residential, extra


def _compute_tariff_aware(inputs: QuoteInputs) -> QuoteTotals:
    # Every step consumes the already-rounded values of the steps before it.
    freight = _dec(inputs.freight)
    total_car_cost = round2(_dec(inputs.unit_cost) * inputs.quantity)
    commission = round2(total_car_cost * config.COMMISSION_RATE)
    # Same base and rate as the commission; both lines are charged.
    purchase_management = round2(total_car_cost * config.PURCHASE_MANAGEMENT_RATE)

    portable, residential, extra = _charger_costs(inputs)
    additional = round2(max(ZERO, _dec(inputs.additional_accessories_cost)))
    accessories_cost = round2(portable + residential + extra + additional)

    cif = round2(total_car_cost + accessories_cost + freight)
    tariff_rate = config.TARIFF_RATES[VehicleType(inputs.vehicle_type).value]
    tariff = round2(cif * tariff_rate)

    subtotal = round2(
        total_car_cost
        + commission
        + purchase_management
        + freight
        + accessories_cost
        + tariff
        + sum(config.FIXED_FEES, ZERO)
    )
    tax = round2(subtotal * config.TAX_RATE)
    total = round2(subtotal + tax)
    deposit30 = round2(total * config.DEPOSIT_RATE)
    balance70 = round2(total - deposit30)

    return QuoteTotals(
        total_car_cost=total_car_cost,
        commission=commission,
        purchase_management=purchase_management,
        freight=round2(freight),
        portable_charger_cost=round2(portable),
        residential_charger_cost=round2(residential),
        extra_chargers_cost=round2(extra),
        additional_accessories_cost=additional,
        accessories_cost=accessories_cost,
        cif=cif,
        tariff_rate=tariff_rate,
        tariff=tariff,
        subtotal=subtotal,
        tax=tax,
        total=total,
        deposit30=deposit30,
        balance70=balance70,
        profile=TARIFF_AWARE,
    )


def _compute_legacy(inputs: QuoteInputs) -> QuoteTotals:
    freight = _dec(inputs.freight)
    total_car_cost = round2(_dec(inputs.unit_cost) * inputs.quantity)
    commission = round2(total_car_cost * config.COMMISSION_RATE)
    portable, residential, extra = _charger_costs(inputs)
    chargers = round2(portable + residential + extra)

    subtotal = round2(
        total_car_cost + commission + freight + chargers + sum(config.FIXED_FEES, ZERO)
    )
    tax = round2(subtotal * config.TAX_RATE)
    total = round2(subtotal + tax)
    deposit30 = round2(total * config.DEPOSIT_RATE)
    # Not derived from the deposit; the two halves can drift by a cent.
    balance70 = round2(total * config.BALANCE_RATE)

    return QuoteTotals(
        total_car_cost=total_car_cost,
        commission=commission,
        purchase_management=ZERO,
        freight=round2(freight),
        portable_charger_cost=round2(portable),
        residential_charger_cost=round2(residential),
        extra_chargers_cost=round2(extra),
        additional_accessories_cost=ZERO,
        accessories_cost=chargers,
        cif=ZERO,
        tariff_rate=Decimal("0"),
        tariff=ZERO,
        subtotal=subtotal,
        tax=tax,
        total=total,
        deposit30=deposit30,
        balance70=balance70,
        profile=LEGACY,
    )


def compute(inputs: QuoteInputs, profile: str = TARIFF_AWARE) -> QuoteTotals:
    """
    Derive every total for one set of inputs.

    Inputs are expected to be sanitized already (see inputs_from_form);
    this function never raises for in-range values.
    """
    if profile == LEGACY:
        return _compute_legacy(inputs)
    if profile != TARIFF_AWARE:
        raise ValueError(f"Unknown quote profile: {profile}")
    return _compute_tariff_aware(inputs)


def can_generate(inputs: QuoteInputs) -> bool:
    return _dec(inputs.unit_cost) > 0


# -------------------- Form coercion --------------------


def parse_decimal(value: Any, default: Decimal) -> Decimal:
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    text = str(value).strip().replace(",", "")
    if not text:
        return default
    try:
        number = Decimal(text)
    except InvalidOperation:
        return default
    if not number.is_finite():
        return default
    return number


def parse_int(value: Any, default: int) -> int:
    number = parse_decimal(value, Decimal(default))
    return int(number)


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY


def parse_vehicle_type(value: Any) -> VehicleType:
    text = str(value or "").strip().lower()
    try:
        return VehicleType(text)
    except ValueError:
        return VehicleType.ELECTRIC


def inputs_from_form(form: Mapping[str, Any]) -> QuoteInputs:
    """Map raw form values to QuoteInputs, replacing anything unusable with its default."""
    unit_cost = parse_decimal(form.get("unit_cost"), ZERO)
    if unit_cost < 0:
        unit_cost = ZERO

    quantity = parse_int(form.get("quantity"), 1)
    if quantity < 1:
        quantity = 1

    freight = parse_decimal(form.get("freight"), config.DEFAULT_FREIGHT)
    if freight == 0:
        freight = config.DEFAULT_FREIGHT

    extra_sets = parse_int(form.get("extra_charger_sets"), 0)
    additional = parse_decimal(form.get("additional_accessories_cost"), ZERO)

    return QuoteInputs(
        unit_cost=unit_cost,
        quantity=quantity,
        freight=freight,
        portable_charger=parse_bool(form.get("portable_charger")),
        residential_charger=parse_bool(form.get("residential_charger")),
        extra_charger_sets=max(0, extra_sets),
        additional_accessories_cost=max(ZERO, additional),
        vehicle_type=parse_vehicle_type(form.get("vehicle_type")),
    )


def freight_in_suggested_range(freight: Decimal) -> bool:
    low, high = config.FREIGHT_RANGE
    return low <= _dec(freight) <= high
