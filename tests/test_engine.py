"""
Tests for the calculation engine, result assembly and reports.

Run with: pytest tests/test_engine.py -v
"""

import copy
import json

import pytest
from numpy.testing import assert_allclose


SCENARIO = {
    "airCooling": {"rackCount": 100, "powerPerRackKw": 12},
    "immersionCooling": {"targetPowerKw": 1200, "coolantType": "synthetic"},
    "financial": {"analysisYears": 5, "discountRate": 0.08, "currency": "USD", "region": "US"},
}


class TestScenario:
    """100 racks at 12 kW against a 1200 kW immersion target."""

    def test_scenario_result(self):
        from ictco import calculate_tco

        outcome = calculate_tco(SCENARIO)

        assert outcome.ok
        result = outcome.result
        assert result.summary_data["total_capex_savings"] > 0
        assert len(result.breakdown["opex_annual"]) == 5
        assert result.summary_data["total_tco_savings_5yr"] > result.summary_data["total_capex_savings"]
        assert result.summary_data["payback_status"] == "immediate"
        assert result.warnings == []

    def test_summary_figures(self):
        from ictco import calculate_tco

        s = calculate_tco(SCENARIO).result.summary_data

        assert_allclose(s["cost_per_kw_air_cooling"], 2_520_000 / 1200)
        assert s["cost_per_kw_immersion_cooling"] < s["cost_per_kw_air_cooling"]
        assert s["pue_immersion_cooling"] < s["pue_air_cooling"]
        assert s["energy_efficiency_improvement"] > 0
        assert s["npv_savings"] > 0

    def test_breakdown_sections(self):
        from ictco import calculate_tco

        breakdown = calculate_tco(SCENARIO).result.breakdown

        assert set(breakdown) >= {
            "capex", "opex_annual", "tco_cumulative", "maintenance_schedule", "tank_allocation",
        }
        assert breakdown["tank_allocation"]["auto_optimized"] is True
        assert breakdown["tank_allocation"]["total_tanks"] == 27
        assert len(breakdown["tco_cumulative"]) == 6

    def test_maintenance_schedule_overhaul(self):
        from ictco import calculate_tco

        raw = copy.deepcopy(SCENARIO)
        raw["financial"]["analysisYears"] = 10
        schedule = calculate_tco(raw).result.breakdown["maintenance_schedule"]

        overhauls = [s["year"] for s in schedule if s["major_overhauls"] > 0]
        assert overhauls == [5, 10]
        year5 = schedule[4]
        assert_allclose(
            year5["major_overhauls"],
            2 * (year5["air_cooling_maintenance"] + year5["immersion_cooling_maintenance"]),
        )

    def test_charts(self):
        from ictco import calculate_tco

        result = calculate_tco(SCENARIO).result
        charts = result.charts

        assert [p["year"] for p in charts["tco_progression"]] == list(range(6))
        assert set(charts["cost_categories"]) == {
            "Equipment", "Installation", "Infrastructure", "Coolant", "Annual Energy",
        }
        equipment = charts["cost_categories"]["Equipment"]
        assert_allclose(equipment["difference"], equipment["air_cooling"] - equipment["immersion_cooling"])
        assert charts["pue_comparison"]["air_cooling"] == result.summary_data["pue_air_cooling"]


class TestDeterminism:
    """Identical configurations give identical results."""

    def test_bit_for_bit(self):
        from ictco import calculate_tco

        first = calculate_tco(SCENARIO).result.to_json()
        second = calculate_tco(copy.deepcopy(SCENARIO)).result.to_json()

        assert first == second

    def test_key_style_does_not_change_hash(self):
        from ictco import calculate_tco

        snake = {
            "air_cooling": {"rack_count": 100, "power_per_rack_kw": 12},
            "immersion_cooling": {"target_power_kw": 1200, "coolant_type": "synthetic"},
            "financial": {"analysis_years": 5, "discount_rate": 0.08, "currency": "USD", "region": "US"},
        }

        a = calculate_tco(SCENARIO).result.metadata["configuration_hash"]
        b = calculate_tco(snake).result.metadata["configuration_hash"]
        assert a == b

    def test_different_config_different_hash(self):
        from ictco import calculate_tco

        raw = copy.deepcopy(SCENARIO)
        raw["airCooling"]["rackCount"] = 101

        a = calculate_tco(SCENARIO).result.metadata["configuration_hash"]
        b = calculate_tco(raw).result.metadata["configuration_hash"]
        assert a != b


class TestCalculator:
    """Test the engine facade."""

    def test_validation_errors_returned(self):
        from ictco import TCOCalculator

        raw = copy.deepcopy(SCENARIO)
        raw["airCooling"]["rackCount"] = 5000
        outcome = TCOCalculator().calculate(raw)

        assert not outcome.ok
        assert outcome.result is None
        assert outcome.validation_errors[0].field == "air_cooling.rack_count"
        assert outcome.to_dict()["success"] is False

    def test_catalog_errors_returned(self):
        from ictco import Catalog, TCOCalculator

        catalog = Catalog.default()
        assert "7U" not in catalog.tanks
        raw = copy.deepcopy(SCENARIO)
        raw["immersionCooling"] = {"tankConfigurations": [
            {"size": "7U", "quantity": 1, "powerDensityKwPerU": 2.0},
        ]}

        outcome = TCOCalculator(catalog).calculate(raw)

        assert not outcome.ok
        assert outcome.validation_errors == []
        error = outcome.catalog_errors[0]
        assert error.kind == "tank_size"
        assert error.key == "7U"
        assert error.field == "immersion_cooling.tank_configurations[0].size"

    def test_missing_region_in_catalog(self):
        from ictco import Catalog, TCOCalculator

        catalog = Catalog.default()
        del catalog.regions["ME"]
        raw = copy.deepcopy(SCENARIO)
        raw["financial"]["region"] = "ME"

        outcome = TCOCalculator(catalog).calculate(raw)

        assert [e.kind for e in outcome.catalog_errors] == ["region"]

    def test_missing_exchange_rate(self):
        from ictco import Catalog, TCOCalculator

        catalog = Catalog.default()
        catalog.exchange_rates = {}
        raw = copy.deepcopy(SCENARIO)
        raw["financial"]["region"] = "EU"

        outcome = TCOCalculator(catalog).calculate(raw)

        assert [e.kind for e in outcome.catalog_errors] == ["exchange_rate"]

    def test_anomalies_surface_as_warnings(self):
        from ictco import Catalog, CostFactors, TCOCalculator

        catalog = Catalog.default()
        catalog.factors = CostFactors(pump_base_overhead=-0.5)
        result = TCOCalculator(catalog).calculate(SCENARIO).result

        assert result.summary_data["pue_immersion_cooling"] == 1.0
        assert [w.invariant for w in result.warnings] == ["pue_floor"]
        assert result.to_dict()["warnings"][0]["action"] == "clamped"

    def test_unreachable_payback(self):
        from ictco import Catalog, PriceList, TCOCalculator

        catalog = Catalog.default()
        usd = catalog.price_lists["USD"]
        catalog.price_lists["USD"] = PriceList(
            currency="USD",
            rack_equipment=usd.rack_equipment,
            tank_equipment={k: v * 100 for k, v in usd.tank_equipment.items()},
            coolant_per_liter=usd.coolant_per_liter,
        )

        s = TCOCalculator(catalog).calculate(SCENARIO).result.summary_data

        assert s["payback_months"] is None
        assert s["payback_status"] == "unreachable"
        assert s["npv_savings"] < 0
        assert s["roi_percent"] is not None and s["roi_percent"] < 100


class TestResults:
    """Test result serialization."""

    def test_to_json_round_trip(self):
        from ictco import calculate_tco

        result = calculate_tco(SCENARIO).result
        data = json.loads(result.to_json())

        assert set(data) == {"summary", "breakdown", "environmental", "charts", "warnings", "metadata"}
        assert data["metadata"]["currency"] == "USD"
        assert data["metadata"]["calculation_version"] == "1.0"
        assert "timestamp" not in data["metadata"]

    def test_save(self, tmp_path):
        from ictco import calculate_tco

        result = calculate_tco(SCENARIO).result
        filepath = tmp_path / "result.json"
        result.save(str(filepath))

        assert json.loads(filepath.read_text(encoding="utf-8")) == result.to_dict()

    def test_summary_text(self):
        from ictco import calculate_tco

        text = calculate_tco(SCENARIO).result.summary()

        assert "IMMERSION COOLING TCO ANALYSIS" in text
        assert "Immediate" in text
        assert "$" in text

    def test_result_is_immutable(self):
        from dataclasses import FrozenInstanceError
        from ictco import calculate_tco

        result = calculate_tco(SCENARIO).result

        with pytest.raises(FrozenInstanceError):
            result.summary_data = {}
        with pytest.raises(FrozenInstanceError):
            result.metadata = {}

    def test_non_finite_values_replaced(self):
        from ictco.results import replace_non_finite

        anomalies = []
        cleaned = replace_non_finite(
            {"a": 1.0, "b": float("inf"), "c": [float("nan"), 2.0]}, anomalies, "summary"
        )

        assert cleaned == {"a": 1.0, "b": None, "c": [None, 2.0]}
        assert [a.invariant for a in anomalies] == ["non_finite", "non_finite"]
        assert "summary.b" in anomalies[0].message


class TestReport:
    """Test HTML report generation."""

    def test_generate_html_report(self):
        from ictco import calculate_tco, generate_html_report

        html = generate_html_report(calculate_tco(SCENARIO).result)

        assert html.startswith("<!DOCTYPE html>")
        assert "Executive Summary" in html
        assert "Capital Expenditure" in html
        assert "Environmental Impact" in html
        assert "Calculation Warnings" not in html

    def test_report_config_sections(self):
        from ictco import ReportConfig, calculate_tco, generate_html_report

        config = ReportConfig(title="Site A", include_opex=False, include_environmental=False)
        html = generate_html_report(calculate_tco(SCENARIO).result, config)

        assert "<title>Site A</title>" in html
        assert "Operating Expenditure" not in html
        assert "Environmental Impact" not in html

    def test_report_is_deterministic(self):
        from ictco import calculate_tco, generate_html_report

        assert generate_html_report(calculate_tco(SCENARIO).result) == \
            generate_html_report(calculate_tco(SCENARIO).result)

    def test_save_html_report(self, tmp_path):
        from ictco import calculate_tco, save_html_report

        filepath = tmp_path / "report.html"
        save_html_report(calculate_tco(SCENARIO).result, str(filepath))

        assert filepath.exists()
        assert "TCO Progression" in filepath.read_text(encoding="utf-8")


class TestCurrency:
    """Test currency conversion and formatting."""

    def test_convert_direct_and_inverse(self):
        from ictco import convert

        assert_allclose(convert(100, "USD", "EUR", {"USD_EUR": 0.85}), 85.0)
        assert_allclose(convert(85, "EUR", "USD", {"USD_EUR": 0.85}), 100.0)
        assert convert(42, "SAR", "SAR", {}) == 42

    def test_convert_missing_pair(self):
        from ictco import ConfigurationCatalogError, convert

        with pytest.raises(ConfigurationCatalogError) as exc:
            convert(1, "USD", "AED", {})
        assert exc.value.kind == "exchange_rate"

    def test_format_currency(self):
        from ictco import format_currency

        assert format_currency(1234.5, "USD") == "$1,234.50"
        assert format_currency(-1000, "USD", decimals=0) == "-$1,000"
        assert format_currency(1234.5, "EUR") == "1,234.50 €"


class TestCatalog:
    """Test catalog loading."""

    def test_default_catalog(self):
        from ictco import Catalog

        catalog = Catalog.default()

        assert catalog.tank("23U").max_power_kw == 46.0
        assert catalog.rack("45U_STANDARD").power_capacity_kw == 18.0
        assert catalog.coolant("dielectric").cost_multiplier == 1.8
        assert set(catalog.price_lists) == {"USD", "EUR", "SAR", "AED"}

    def test_lookup_missing(self):
        from ictco import Catalog, ConfigurationCatalogError

        with pytest.raises(ConfigurationCatalogError):
            Catalog.default().rack("48U_CUSTOM")

    def test_from_json(self, tmp_path):
        from ictco import Catalog

        filepath = tmp_path / "catalog.json"
        filepath.write_text(json.dumps({"factors": {"air_maintenance_fraction": 0.1}}), encoding="utf-8")
        catalog = Catalog.from_json(str(filepath))

        assert catalog.factors.air_maintenance_fraction == 0.1
        assert catalog.tank("23U").height_units == 23

    def test_dict_round_trip(self):
        from ictco import Catalog

        catalog = Catalog.default()
        restored = Catalog.from_dict(json.loads(json.dumps(catalog.to_dict())))

        assert restored == catalog


class TestCLI:
    """Test the command-line interface."""

    def run(self, monkeypatch, *argv):
        from ictco.cli import main

        monkeypatch.setattr("sys.argv", ["ictco", *argv])
        with pytest.raises(SystemExit) as exc:
            main()
        return exc.value.code

    def test_calculate(self, monkeypatch, tmp_path, capsys):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(SCENARIO), encoding="utf-8")
        output = tmp_path / "result.json"
        html = tmp_path / "report.html"

        code = self.run(monkeypatch, "calculate", str(config_path), "-o", str(output), "--html", str(html))

        assert code == 0
        assert json.loads(output.read_text(encoding="utf-8"))["summary"]["total_capex_savings"] > 0
        assert html.exists()

    def test_calculate_invalid(self, monkeypatch, tmp_path, capsys):
        raw = copy.deepcopy(SCENARIO)
        raw["financial"]["analysisYears"] = 0
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(raw), encoding="utf-8")

        code = self.run(monkeypatch, "calculate", str(config_path))

        assert code == 1
        assert "financial.analysis_years" in capsys.readouterr().out

    def test_validate(self, monkeypatch, tmp_path, capsys):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(SCENARIO), encoding="utf-8")

        assert self.run(monkeypatch, "validate", str(config_path)) == 0
        assert "valid" in capsys.readouterr().out

    def test_optimize(self, monkeypatch, capsys):
        assert self.run(monkeypatch, "optimize", "--target", "1200") == 0
        out = capsys.readouterr().out
        assert "23U" in out
        assert "27 tanks" in out


class TestVisualization:
    """Test visualization module."""

    def test_matplotlib_check(self):
        from ictco.visualization import HAS_MATPLOTLIB
        assert isinstance(HAS_MATPLOTLIB, bool)

    def test_colors_defined(self):
        from ictco.visualization import COLORS

        assert "air" in COLORS
        assert "immersion" in COLORS
        assert "savings" in COLORS

    def test_plots_saved(self, tmp_path):
        matplotlib = pytest.importorskip("matplotlib")
        matplotlib.use("Agg")
        from ictco import calculate_tco
        from ictco.visualization import (
            plot_cost_categories,
            plot_opex_breakdown,
            plot_pue_comparison,
            plot_tco_progression,
        )

        result = calculate_tco(SCENARIO).result
        charts = result.charts

        plot_tco_progression(charts["tco_progression"], save_path=str(tmp_path / "tco.png"))
        plot_cost_categories(charts["cost_categories"], save_path=str(tmp_path / "costs.png"))
        plot_pue_comparison(charts["pue_comparison"], save_path=str(tmp_path / "pue.png"))
        plot_opex_breakdown(result.breakdown["opex_annual"], save_path=str(tmp_path / "opex.png"))

        assert len(list(tmp_path.glob("*.png"))) == 4

    def test_dashboard(self):
        pytest.importorskip("plotly")
        from ictco import calculate_tco
        from ictco.visualization import create_tco_dashboard

        fig = create_tco_dashboard(calculate_tco(SCENARIO).result)
        assert len(fig.data) == 6
