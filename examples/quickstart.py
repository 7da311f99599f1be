#!/usr/bin/env python3
"""
ICTCO Quickstart Example
========================
Demonstrates core functionality in 20 lines.
"""

from ictco import calculate_tco, optimize_tanks, Catalog, save_html_report

# 1. Full comparison (one call)
outcome = calculate_tco({
    "airCooling": {"rackCount": 100, "powerPerRackKw": 12},
    "immersionCooling": {"targetPowerKw": 1200, "coolantType": "synthetic"},
    "financial": {"analysisYears": 5, "discountRate": 0.08, "currency": "USD", "region": "US"},
})
s = outcome.result.summary_data
print(f"CAPEX savings: ${s['total_capex_savings']:,.0f} | 5-yr TCO savings: ${s['total_tco_savings_5yr']:,.0f}")

# 2. Tank mix for a power target
for a in optimize_tanks(1200, Catalog.default().tanks):
    print(f"{a.quantity} × {a.size} @ {a.power_density_kw_per_u:.2f} kW/U")

# 3. Efficiency
print(f"PUE: {s['pue_air_cooling']:.2f} → {s['pue_immersion_cooling']:.2f}")

# 4. HTML report
save_html_report(outcome.result, "tco_report.html")
