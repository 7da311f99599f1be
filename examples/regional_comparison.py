#!/usr/bin/env python3
"""
Example: Comparing air and immersion cooling across regions and inputs.

This script demonstrates how to use the ICTCO library to run the
calculator with each input mode, in each region, and with a custom
catalog, then plot the results.

Usage:
    python examples/regional_comparison.py
"""

from ictco import (
    Catalog,
    CostFactors,
    TCOCalculator,
    calculate_tco,
    format_currency,
)


BASE = {
    "air_cooling": {"rack_count": 100, "power_per_rack_kw": 12},
    "immersion_cooling": {"target_power_kw": 1200, "coolant_type": "synthetic"},
    "financial": {"analysis_years": 5, "discount_rate": 0.08, "currency": "USD", "region": "US"},
}


def describe(outcome):
    if not outcome.ok:
        for e in outcome.validation_errors:
            print(f"   ❌ {e.field}: {e.message}")
        for e in outcome.catalog_errors:
            print(f"   ❌ {e.field or e.kind}: {e}")
        return

    s = outcome.result.summary_data
    currency = outcome.result.currency
    print(f"   CAPEX savings:      {format_currency(s['total_capex_savings'], currency, 0)}")
    print(f"   5-yr TCO savings:   {format_currency(s['total_tco_savings_5yr'], currency, 0)}")
    print(f"   NPV:                {format_currency(s['npv_savings'], currency, 0)}")
    print(f"   Payback:            {s['payback_status']}"
          + (f" ({s['payback_months']:.1f} months)" if s["payback_months"] is not None else ""))


def main():
    print("=" * 70)
    print("IMMERSION COOLING TCO - EXAMPLE")
    print("=" * 70)
    print()

    # =========================================================================
    # Example 1: Default scenario
    # =========================================================================
    print("1. DEFAULT SCENARIO")
    print("-" * 50)

    outcome = calculate_tco(BASE)
    describe(outcome)
    print()

    # =========================================================================
    # Example 2: Regions and currencies
    # =========================================================================
    print("2. REGIONS")
    print("-" * 50)

    for region, currency in [("US", "USD"), ("EU", "EUR"), ("ME", "SAR")]:
        raw = {**BASE, "financial": {**BASE["financial"], "region": region, "currency": currency}}
        print(f"   {region} ({currency}):")
        describe(calculate_tco(raw))
    print()

    # =========================================================================
    # Example 3: Total power and manual tank inputs
    # =========================================================================
    print("3. ALTERNATIVE INPUT MODES")
    print("-" * 50)

    raw = {
        "air_cooling": {"total_power_kw": 1200, "rack_type": "42U_HIGH_DENSITY"},
        "immersion_cooling": {"tank_configurations": [
            {"size": "23U", "quantity": 26, "power_density_kw_per_u": 2.0},
            {"size": "4U", "quantity": 1, "power_density_kw_per_u": 1.0},
        ]},
        "financial": BASE["financial"],
    }
    describe(calculate_tco(raw))
    print()

    # =========================================================================
    # Example 4: Custom catalog
    # =========================================================================
    print("4. CUSTOM CATALOG (cheaper air maintenance)")
    print("-" * 50)

    catalog = Catalog.default()
    catalog.factors = CostFactors(air_maintenance_fraction=0.04)
    describe(TCOCalculator(catalog).calculate(BASE))
    print()

    # =========================================================================
    # Example 5: Visualization (optional)
    # =========================================================================
    from ictco.visualization import HAS_MATPLOTLIB, plot_tco_progression, plot_cost_categories

    if not HAS_MATPLOTLIB:
        print("⚠️  matplotlib not installed. Skipping visualization demo.")
        print("   Install with: pip install matplotlib")
        return

    print("5. VISUALIZATIONS")
    print("-" * 50)
    charts = outcome.result.charts
    plot_tco_progression(charts["tco_progression"], save_path="tco_progression.png")
    print("   ✅ Saved: tco_progression.png")
    plot_cost_categories(charts["cost_categories"], save_path="cost_categories.png")
    print("   ✅ Saved: cost_categories.png")


if __name__ == "__main__":
    main()
