from __future__ import annotations

from decimal import Decimal
import itertools
import unittest

from autoquote.pipeline.quote import (
    LEGACY,
    TARIFF_AWARE,
    QuoteInputs,
    VehicleType,
    can_generate,
    compute,
    inputs_from_form,
    round2,
)


D = Decimal


def _inputs(**overrides) -> QuoteInputs:
    base = dict(
        unit_cost=D("35000"),
        quantity=1,
        freight=D("1300"),
        portable_charger=True,
        residential_charger=False,
        extra_charger_sets=0,
        additional_accessories_cost=D("0"),
        vehicle_type=VehicleType.ELECTRIC,
    )
    base.update(overrides)
    return QuoteInputs(**base)


class QuoteEngineTests(unittest.TestCase):
    def test_electric_scenario(self) -> None:
        totals = compute(_inputs())
        self.assertEqual(totals.total_car_cost, D("35000.00"))
        self.assertEqual(totals.commission, D("1750.00"))
        self.assertEqual(totals.purchase_management, D("1750.00"))
        self.assertEqual(totals.accessories_cost, D("30.00"))
        self.assertEqual(totals.cif, D("36330.00"))
        self.assertEqual(totals.tariff, D("0.00"))
        self.assertEqual(totals.subtotal, D("41190.00"))
        self.assertEqual(totals.tax, D("2883.30"))
        self.assertEqual(totals.total, D("44073.30"))
        self.assertEqual(totals.deposit30, D("13221.99"))
        self.assertEqual(totals.balance70, D("30851.31"))
        self.assertEqual(totals.profile, TARIFF_AWARE)

    def test_combustion_scenario_rounds_tax_half_up(self) -> None:
        totals = compute(_inputs(vehicle_type=VehicleType.COMBUSTION))
        self.assertEqual(totals.tariff_rate, D("0.25"))
        self.assertEqual(totals.tariff, D("9082.50"))
        self.assertEqual(totals.subtotal, D("50272.50"))
        # 50272.50 * 0.07 = 3519.075
        self.assertEqual(totals.tax, D("3519.08"))
        self.assertEqual(totals.total, D("53791.58"))
        self.assertEqual(totals.deposit30, D("16137.47"))
        self.assertEqual(totals.balance70, D("37654.11"))

    def test_hybrid_tariff(self) -> None:
        totals = compute(_inputs(vehicle_type=VehicleType.HYBRID))
        self.assertEqual(totals.tariff_rate, D("0.10"))
        self.assertEqual(totals.tariff, D("3633.00"))
        self.assertEqual(totals.subtotal, D("44823.00"))
        self.assertEqual(totals.tax, D("3137.61"))
        self.assertEqual(totals.total, D("47960.61"))

    def test_tariff_applies_to_cif_not_car_cost(self) -> None:
        totals = compute(
            _inputs(
                vehicle_type=VehicleType.COMBUSTION,
                residential_charger=True,
                extra_charger_sets=1,
                freight=D("2000"),
            )
        )
        # 35000 + (30 + 300 + 330) + 2000
        self.assertEqual(totals.cif, D("37660.00"))
        self.assertEqual(totals.tariff, D("9415.00"))
        self.assertNotEqual(totals.tariff, round2(totals.total_car_cost * D("0.25")))

    def test_rates_by_vehicle_type(self) -> None:
        expected = {"electric": D("0"), "hybrid": D("0.10"), "combustion": D("0.25")}
        for kind, rate in expected.items():
            self.assertEqual(compute(_inputs(vehicle_type=VehicleType(kind))).tariff_rate, rate)

    def test_rounding_happens_at_each_step(self) -> None:
        totals = compute(_inputs(unit_cost=D("10.10"), portable_charger=False))
        # 0.505 rounds half-up on its own line
        self.assertEqual(totals.commission, D("0.51"))
        self.assertEqual(totals.purchase_management, D("0.51"))
        self.assertEqual(totals.subtotal, D("2671.12"))
        self.assertEqual(totals.tax, D("186.98"))
        self.assertEqual(totals.total, D("2858.10"))

        closed_form = round2(
            (D("10.10") + D("10.10") * D("0.05") * 2 + D("1300") + D("1360")) * D("1.07")
        )
        self.assertEqual(closed_form, D("2858.09"))
        self.assertNotEqual(totals.total, closed_form)

    def test_accessories_sum(self) -> None:
        totals = compute(
            _inputs(
                residential_charger=True,
                extra_charger_sets=2,
                additional_accessories_cost=D("99.995"),
            )
        )
        self.assertEqual(totals.portable_charger_cost, D("30.00"))
        self.assertEqual(totals.residential_charger_cost, D("300.00"))
        self.assertEqual(totals.extra_chargers_cost, D("660.00"))
        self.assertEqual(totals.additional_accessories_cost, D("100.00"))
        self.assertEqual(totals.accessories_cost, D("1090.00"))

    def test_negative_accessories_clamped(self) -> None:
        totals = compute(_inputs(additional_accessories_cost=D("-50")))
        self.assertEqual(totals.additional_accessories_cost, D("0.00"))
        self.assertEqual(totals.accessories_cost, D("30.00"))

    def test_invariants_hold_across_inputs(self) -> None:
        costs = [D("0.01"), D("10.10"), D("12345.67"), D("35000"), D("99999.99")]
        quantities = [1, 3, 7]
        kinds = list(VehicleType)
        for cost, qty, kind in itertools.product(costs, quantities, kinds):
            totals = compute(
                _inputs(
                    unit_cost=cost,
                    quantity=qty,
                    vehicle_type=kind,
                    freight=D("1475.35"),
                    additional_accessories_cost=D("12.345"),
                )
            )
            self.assertEqual(totals.total, totals.subtotal + totals.tax)
            self.assertEqual(totals.deposit30 + totals.balance70, totals.total)
            self.assertEqual(
                totals.subtotal,
                totals.total_car_cost
                + totals.commission
                + totals.purchase_management
                + D("1475.35")
                + totals.accessories_cost
                + totals.tariff
                + D("1360"),
            )

    def test_compute_is_deterministic(self) -> None:
        inputs = _inputs(vehicle_type=VehicleType.HYBRID, extra_charger_sets=3)
        self.assertEqual(compute(inputs), compute(inputs))

    def test_unknown_profile(self) -> None:
        with self.assertRaises(ValueError):
            compute(_inputs(), profile="nope")


class LegacyProfileTests(unittest.TestCase):
    def test_legacy_has_no_tariff_or_management_fee(self) -> None:
        totals = compute(_inputs(vehicle_type=VehicleType.COMBUSTION), profile=LEGACY)
        self.assertEqual(totals.profile, LEGACY)
        self.assertEqual(totals.purchase_management, D("0.00"))
        self.assertEqual(totals.tariff, D("0.00"))
        self.assertEqual(totals.cif, D("0.00"))
        self.assertEqual(totals.subtotal, D("39440.00"))
        self.assertEqual(totals.tax, D("2760.80"))
        self.assertEqual(totals.total, D("42200.80"))
        self.assertEqual(totals.deposit30, D("12660.24"))
        self.assertEqual(totals.balance70, D("29540.56"))

    def test_legacy_balance_is_independent_of_deposit(self) -> None:
        inputs = _inputs(unit_cost=D("100"), portable_charger=False)
        legacy = compute(inputs, profile=LEGACY)
        self.assertEqual(legacy.total, D("2958.55"))
        self.assertEqual(legacy.deposit30, D("887.57"))
        self.assertEqual(legacy.balance70, D("2070.99"))
        self.assertEqual(legacy.deposit30 + legacy.balance70, D("2958.56"))

        current = compute(inputs)
        self.assertEqual(current.deposit30 + current.balance70, current.total)


class FormCoercionTests(unittest.TestCase):
    def test_invalid_values_fall_back_to_defaults(self) -> None:
        inputs = inputs_from_form(
            {
                "unit_cost": "abc",
                "quantity": "",
                "freight": "not a number",
                "extra_charger_sets": "-2",
                "additional_accessories_cost": "-15",
                "vehicle_type": "diesel",
            }
        )
        self.assertEqual(inputs.unit_cost, D("0"))
        self.assertEqual(inputs.quantity, 1)
        self.assertEqual(inputs.freight, D("1300"))
        self.assertEqual(inputs.extra_charger_sets, 0)
        self.assertEqual(inputs.additional_accessories_cost, D("0"))
        self.assertEqual(inputs.vehicle_type, VehicleType.ELECTRIC)
        self.assertFalse(can_generate(inputs))

    def test_valid_values_are_kept(self) -> None:
        inputs = inputs_from_form(
            {
                "unit_cost": "35,000.50",
                "quantity": "2.7",
                "freight": "1450",
                "portable_charger": "on",
                "residential_charger": "no",
                "extra_charger_sets": "3",
                "additional_accessories_cost": "120.5",
                "vehicle_type": "Hybrid",
            }
        )
        self.assertEqual(inputs.unit_cost, D("35000.50"))
        self.assertEqual(inputs.quantity, 2)
        self.assertEqual(inputs.freight, D("1450"))
        self.assertTrue(inputs.portable_charger)
        self.assertFalse(inputs.residential_charger)
        self.assertEqual(inputs.extra_charger_sets, 3)
        self.assertEqual(inputs.additional_accessories_cost, D("120.5"))
        self.assertEqual(inputs.vehicle_type, VehicleType.HYBRID)
        self.assertTrue(can_generate(inputs))

    def test_zero_quantity_and_freight(self) -> None:
        inputs = inputs_from_form({"unit_cost": "1000", "quantity": "0", "freight": "0"})
        self.assertEqual(inputs.quantity, 1)
        self.assertEqual(inputs.freight, D("1300"))


if __name__ == "__main__":
    unittest.main()
