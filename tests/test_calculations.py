"""
Tests for the CAPEX, OPEX, financial and efficiency calculations.

Run with: pytest tests/test_calculations.py -v
"""

import copy
import math

import numpy as np
import pytest
from numpy.testing import assert_allclose


SCENARIO = {
    "air_cooling": {"rack_count": 100, "power_per_rack_kw": 12},
    "immersion_cooling": {"target_power_kw": 1200, "coolant_type": "synthetic"},
    "financial": {"analysis_years": 5, "discount_rate": 0.08, "currency": "USD", "region": "US"},
}


def load(raw=None, **sections):
    from ictco import validate_configuration

    raw = copy.deepcopy(raw or SCENARIO)
    for name, values in sections.items():
        raw[name].update(values)
    result = validate_configuration(raw)
    assert result.ok, result.errors
    return result.config


class TestCapex:
    """Test CAPEX sizing and pricing."""

    def test_air_cooling_capex(self):
        from ictco import compute_capex

        capex = compute_capex(load())
        air = capex.air_cooling

        assert_allclose(air.equipment, 100 * 18_000)
        assert_allclose(air.installation, 0.25 * air.equipment)
        assert_allclose(air.infrastructure, 0.15 * air.equipment)
        assert air.coolant == 0.0
        assert_allclose(air.total, 2_520_000)

    def test_immersion_cooling_capex(self):
        from ictco import compute_capex

        capex = compute_capex(load())
        immersion = capex.immersion_cooling

        # 26 x 23U + 1 x 2U
        equipment = 26 * 35_000 + 35_000 * 2 / 23
        coolant_liters = 26 * 23 * 25 + 2 * 25
        assert_allclose(immersion.equipment, equipment)
        assert_allclose(immersion.installation, 0.25 * equipment)
        assert_allclose(immersion.infrastructure, 0.10 * equipment)
        assert_allclose(immersion.coolant, coolant_liters * 25.0)
        assert_allclose(
            immersion.total,
            immersion.equipment + immersion.installation + immersion.infrastructure + immersion.coolant,
        )

    def test_scenario_capex_savings_positive(self):
        from ictco import compute_capex

        capex = compute_capex(load())
        assert capex.savings > 0
        assert capex.capex_delta == -capex.savings
        assert 0 < capex.savings_percent < 100

    def test_coolant_multiplier(self):
        from ictco import compute_capex

        synthetic = compute_capex(load()).immersion_cooling.coolant
        mineral = compute_capex(load(immersion_cooling={"coolant_type": "mineral_oil"})).immersion_cooling.coolant
        dielectric = compute_capex(load(immersion_cooling={"coolant_type": "dielectric"})).immersion_cooling.coolant

        assert_allclose(mineral, 0.6 * synthetic)
        assert_allclose(dielectric, 1.8 * synthetic)

    def test_total_power_mode_derives_rack_count(self):
        from ictco import compute_capex

        raw = copy.deepcopy(SCENARIO)
        raw["air_cooling"] = {"total_power_kw": 1000, "rack_type": "42U_HIGH_DENSITY"}
        capex = compute_capex(load(raw))

        assert capex.air_system.rack_count == 40  # ceil(1000 / 25)
        assert_allclose(capex.air_cooling.equipment, 40 * 26_000)

    def test_manual_tanks(self):
        from ictco import compute_capex

        raw = copy.deepcopy(SCENARIO)
        raw["immersion_cooling"] = {"tank_configurations": [
            {"size": "23U", "quantity": 10, "power_density_kw_per_u": 2.0},
            {"size": "12U", "quantity": 2, "power_density_kw_per_u": 1.5},
        ]}
        capex = compute_capex(load(raw))
        system = capex.immersion_system

        assert not system.auto_optimized
        assert system.tank_count == 12
        assert_allclose(system.it_power_kw, 10 * 23 * 2.0 + 2 * 12 * 1.5)
        assert_allclose(capex.immersion_cooling.equipment, 10 * 35_000 + 2 * 35_000 * 12 / 23)

    def test_currency_prices(self):
        from ictco import compute_capex

        usd = compute_capex(load())
        eur = compute_capex(load(financial={"currency": "EUR"}))

        assert_allclose(eur.air_cooling.total, usd.air_cooling.total * 0.85)
        assert_allclose(eur.immersion_cooling.total, usd.immersion_cooling.total * 0.85)

    def test_facility_power(self):
        from ictco import compute_capex

        capex = compute_capex(load())

        assert_allclose(capex.air_system.facility_power_kw, 1200 / 0.85)
        expected = 1200 * (1 + 0.015 / 0.92 + 0.005 / 0.95)
        assert_allclose(capex.immersion_system.facility_power_kw, expected)

    def test_missing_rack_price_raises(self):
        from ictco import Catalog, ConfigurationCatalogError, compute_capex

        catalog = Catalog.default()
        del catalog.price_lists["USD"].rack_equipment["42U_STANDARD"]

        with pytest.raises(ConfigurationCatalogError):
            compute_capex(load(), catalog)

    def test_negative_cost_clamped(self):
        from ictco import Catalog, CostFactors, compute_capex

        catalog = Catalog.default()
        catalog.factors = CostFactors(air_installation_fraction=-0.5)
        capex = compute_capex(load(), catalog)

        assert capex.air_cooling.installation == 0.0
        assert [a.invariant for a in capex.anomalies] == ["non_negative_cost"]
        assert capex.anomalies[0].action == "clamped"


class TestOpex:
    """Test the annual OPEX projection."""

    def test_series_length(self):
        from ictco import compute_capex, compute_opex_series

        for years in (1, 5, 10):
            config = load(financial={"analysis_years": years})
            series = compute_opex_series(config, compute_capex(config))
            assert len(series) == years
            assert [r.year for r in series] == list(range(1, years + 1))

    def test_first_year_values(self):
        from ictco import compute_capex, compute_opex_series

        config = load()
        capex = compute_capex(config)
        first = compute_opex_series(config, capex)[0]

        assert_allclose(first.air_cooling.energy, (1200 / 0.85) * 8760 * 0.12)
        assert_allclose(first.air_cooling.maintenance, 1_800_000 * 0.08)
        assert_allclose(first.air_cooling.labor, 100 * 24 * 75)
        assert_allclose(first.immersion_cooling.labor, 27 * 8 * 75)
        assert_allclose(first.immersion_cooling.maintenance, capex.immersion_cooling.equipment * 0.03)
        assert first.immersion_cooling.coolant == 0.0

    def test_energy_escalation_monotonic(self):
        from ictco import compute_capex, compute_opex_series

        config = load(financial={"analysis_years": 10, "energy_escalation_rate": 0.05})
        series = compute_opex_series(config, compute_capex(config))

        for method in ("air_cooling", "immersion_cooling"):
            energy = np.array([getattr(r, method).energy for r in series])
            assert np.all(np.diff(energy) > 0)
            assert_allclose(energy[1:] / energy[:-1], 1.05)

    def test_maintenance_escalation(self):
        from ictco import compute_capex, compute_opex_series

        config = load(financial={"maintenance_escalation_rate": 0.10})
        series = compute_opex_series(config, compute_capex(config))

        assert_allclose(series[2].air_cooling.maintenance, series[0].air_cooling.maintenance * 1.1 ** 2)

    def test_labor_fixed_by_default(self):
        from ictco import compute_capex, compute_opex_series

        config = load()
        series = compute_opex_series(config, compute_capex(config))

        labor = [r.air_cooling.labor for r in series]
        assert_allclose(labor, labor[0])

    def test_coolant_topup_every_cycle(self):
        from ictco import compute_capex, compute_opex_series

        config = load()
        capex = compute_capex(config)
        series = compute_opex_series(config, capex)

        topups = [r.immersion_cooling.coolant for r in series]
        expected = 0.1 * capex.immersion_cooling.coolant
        assert_allclose(topups, [0.0, expected, 0.0, expected, 0.0])

    def test_custom_energy_cost_overrides_region(self):
        from ictco import compute_capex, compute_opex_series

        config = load(financial={"custom_energy_cost": 0.20})
        series = compute_opex_series(config, compute_capex(config))

        assert_allclose(series[0].energy_cost_per_kwh, 0.20)

    def test_regional_default_converted(self):
        from ictco import compute_capex, compute_opex_series

        config = load(financial={"currency": "EUR", "region": "US"})
        series = compute_opex_series(config, compute_capex(config))

        assert_allclose(series[0].energy_cost_per_kwh, 0.12 * 0.85)

    def test_scenario_opex_savings_positive(self):
        from ictco import compute_capex, compute_opex_series

        config = load()
        series = compute_opex_series(config, compute_capex(config))

        assert all(r.savings > 0 for r in series)
        assert all(0 < r.savings_percent < 100 for r in series)


class TestFinancial:
    """Test payback, ROI, NPV and IRR."""

    def test_payback_immediate(self):
        from ictco.financial import payback_period

        assert payback_period(-1000, [100, 100]) == (0.0, "immediate")
        assert payback_period(0, [100]) == (0.0, "immediate")

    def test_payback_interpolated(self):
        from ictco.financial import payback_period

        months, status = payback_period(150, [100, 100, 100])

        assert status == "reached"
        assert_allclose(months, 18.0)

    def test_payback_unreachable(self):
        from ictco.financial import payback_period

        months, status = payback_period(1000, [100, 100, 100])

        assert months is None
        assert status == "unreachable"

    def test_payback_with_negative_savings(self):
        from ictco.financial import payback_period

        assert payback_period(100, [-50, -50]) == (None, "unreachable")

    def test_payback_with_zero_savings(self):
        from ictco.financial import payback_period

        assert payback_period(100, [0.0, 0.0]) == (None, "unreachable")

    def test_irr(self):
        from ictco.financial import internal_rate_of_return

        # 1000 invested returning 1100 after one year
        assert_allclose(internal_rate_of_return(1000, [1100]), 10.0, rtol=1e-6)

    def test_irr_without_premium(self):
        from ictco.financial import internal_rate_of_return

        assert internal_rate_of_return(0, [100]) is None
        assert internal_rate_of_return(-10, [100]) is None

    def test_irr_no_root(self):
        from ictco.financial import internal_rate_of_return

        assert internal_rate_of_return(100, [0, 0]) is None

    def test_scenario_financials(self):
        from ictco import compute_capex, compute_financials, compute_opex_series

        config = load()
        capex = compute_capex(config)
        series = compute_opex_series(config, capex)
        summary = compute_financials(capex, series, 0.08)

        savings = np.array([r.savings for r in series])
        assert_allclose(summary.total_opex_savings_5yr, savings.sum())
        assert_allclose(summary.total_tco_savings_5yr, capex.savings + savings.sum())
        expected_npv = np.sum(savings / 1.08 ** np.arange(1, 6)) + capex.savings
        assert_allclose(summary.npv_savings, expected_npv)

        # Immersion is cheaper up front
        assert summary.payback_months == 0.0
        assert summary.payback_status == "immediate"
        assert summary.roi_percent is None
        assert summary.irr_percent is None

    def test_five_year_sum_with_longer_horizon(self):
        from ictco import compute_capex, compute_financials, compute_opex_series

        config = load(financial={"analysis_years": 10})
        capex = compute_capex(config)
        series = compute_opex_series(config, capex)
        summary = compute_financials(capex, series, 0.08)

        assert_allclose(summary.total_opex_savings_5yr, sum(r.savings for r in series[:5]))

    def test_tco_progression(self):
        from ictco import compute_capex, compute_financials, compute_opex_series

        config = load()
        capex = compute_capex(config)
        series = compute_opex_series(config, capex)
        progression = compute_financials(capex, series, 0.08).tco_progression

        assert len(progression) == 6
        assert progression[0].year == 0
        assert_allclose(progression[0].air_cooling, capex.air_cooling.total)
        assert_allclose(
            progression[-1].air_cooling,
            capex.air_cooling.total + sum(r.air_cooling.total for r in series),
        )
        assert_allclose(progression[-1].savings, progression[-1].air_cooling - progression[-1].immersion_cooling)

    def test_capex_premium_metrics(self):
        from ictco import Catalog, PriceList, compute_capex, compute_financials, compute_opex_series

        catalog = Catalog.default()
        usd = catalog.price_lists["USD"]
        catalog.price_lists["USD"] = PriceList(
            currency="USD",
            rack_equipment=usd.rack_equipment,
            tank_equipment={k: v * 1.5 for k, v in usd.tank_equipment.items()},
            coolant_per_liter=usd.coolant_per_liter * 3,
        )

        config = load()
        capex = compute_capex(config, catalog)
        series = compute_opex_series(config, capex, catalog)
        summary = compute_financials(capex, series, 0.08)

        assert capex.capex_delta > 0
        assert summary.payback_status == "reached"
        assert 0 < summary.payback_months < 60
        assert_allclose(summary.roi_percent, 100 * summary.total_opex_savings_5yr / capex.capex_delta)
        assert summary.irr_percent is not None and summary.irr_percent > 0


class TestEfficiency:
    """Test PUE and environmental metrics."""

    def test_scenario_pue(self):
        from ictco import compute_capex, compute_efficiency

        config = load()
        efficiency = compute_efficiency(config, compute_capex(config))

        assert_allclose(efficiency.pue.air_cooling, 1 / 0.85)
        assert_allclose(efficiency.pue.immersion_cooling, 1 + 0.015 / 0.92 + 0.005 / 0.95)
        assert efficiency.pue.immersion_cooling < efficiency.pue.air_cooling
        assert efficiency.pue.improvement_percent > 0

    def test_pue_never_below_one(self):
        from ictco import Catalog, CostFactors, compute_capex, compute_efficiency

        catalog = Catalog.default()
        catalog.factors = CostFactors(pump_base_overhead=-0.5)
        config = load()
        anomalies = []

        efficiency = compute_efficiency(config, compute_capex(config, catalog), catalog, anomalies)

        assert efficiency.pue.immersion_cooling == 1.0
        assert [a.invariant for a in anomalies] == ["pue_floor"]
        assert anomalies[0].value < 1.0

    def test_pue_exactly_one_not_flagged(self):
        from ictco import compute_capex, compute_efficiency

        config = load(air_cooling={"hvac_efficiency": 1.0})
        anomalies = []
        efficiency = compute_efficiency(config, compute_capex(config), anomalies=anomalies)

        assert efficiency.pue.air_cooling == 1.0
        assert anomalies == []

    def test_environmental_impact(self):
        from ictco import compute_capex, compute_efficiency

        config = load()
        capex = compute_capex(config)
        env = compute_efficiency(config, capex).environmental

        kwh = (capex.air_system.facility_power_kw - capex.immersion_system.facility_power_kw) * 8760
        assert_allclose(env.energy_savings_kwh_annual, kwh)
        assert_allclose(env.carbon_savings_kg_annual, kwh * 0.4)
        assert_allclose(env.water_savings_gallons_annual, kwh * 0.5)
        assert_allclose(env.carbon_savings_kg_total, kwh * 0.4 * 5)
        assert_allclose(
            env.carbon_footprint_reduction_percent,
            100 * kwh / (capex.air_system.facility_power_kw * 8760),
        )

    @pytest.mark.parametrize("region,intensity", [("US", 0.4), ("EU", 0.3), ("ME", 0.5)])
    def test_regional_carbon_intensity(self, region, intensity):
        from ictco import compute_capex, compute_efficiency

        config = load(financial={"region": region})
        env = compute_efficiency(config, compute_capex(config)).environmental

        assert_allclose(env.carbon_savings_kg_annual / env.energy_savings_kwh_annual, intensity)
        assert math.isfinite(env.carbon_savings_kg_total)
