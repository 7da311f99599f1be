"""
FastAPI Backend for the Immersion Cooling TCO Calculator.

Provides REST API endpoints for:
- Running TCO calculations
- Validating configurations
- Suggesting immersion tank mixes
- Browsing the reference catalog
- Report generation

Results are cached in memory by configuration hash.

Run with: uvicorn main:app --reload --port 8000
"""

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field
from typing import Any, Dict, List
from collections import OrderedDict
from datetime import datetime
import logging
import os
import sys

# Add src directory to path for ictco imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from ictco import (
    __version__,
    CalculationResult,
    TCOCalculator,
    configuration_hash,
    generate_html_report,
    total_power_kw,
    total_tanks,
    optimize_tanks,
)

logger = logging.getLogger(__name__)


# ============================================================================
# FastAPI App Configuration
# ============================================================================

app = FastAPI(
    title="Immersion Cooling TCO API",
    description="Total cost of ownership comparison of air and immersion cooling",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS for React frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify actual origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

calculator = TCOCalculator()

# Calculation results keyed by configuration hash, least recently used first
MAX_CACHED_RESULTS = 256
results: "OrderedDict[str, CalculationResult]" = OrderedDict()


# ============================================================================
# Pydantic Models
# ============================================================================

class OptimizeRequest(BaseModel):
    """Request for an immersion tank mix."""

    target_power_kw: float = Field(..., ge=1, le=50_000, description="Target IT power in kW")


class TankAllocationModel(BaseModel):
    size: str
    quantity: int
    power_density_kw_per_u: float
    height_units: int
    power_kw: float


class OptimizeResponse(BaseModel):
    """Suggested tank mix."""

    target_power_kw: float
    allocations: List[TankAllocationModel]
    total_tanks: int
    total_power_kw: float


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/", response_class=HTMLResponse)
async def root():
    """Root endpoint with API information."""
    return """
    <html>
        <head>
            <title>ICTCO API</title>
            <style>
                body { font-family: system-ui; max-width: 800px; margin: 50px auto; padding: 20px; }
                h1 { color: #0ea5e9; }
                a { color: #0ea5e9; }
                code { background: #f1f5f9; padding: 2px 6px; border-radius: 4px; }
            </style>
        </head>
        <body>
            <h1>Immersion Cooling TCO API</h1>
            <p>Total cost of ownership comparison of air and immersion cooling.</p>
            <h2>Quick Links</h2>
            <ul>
                <li><a href="/docs">Interactive API Documentation (Swagger)</a></li>
                <li><a href="/redoc">API Reference (ReDoc)</a></li>
                <li><a href="/health">Health Check</a></li>
            </ul>
            <h2>Key Endpoints</h2>
            <ul>
                <li><code>POST /api/calculate</code> - Run TCO calculation</li>
                <li><code>POST /api/validate</code> - Validate a configuration</li>
                <li><code>POST /api/optimize</code> - Suggest immersion tank mix</li>
                <li><code>GET /api/catalog</code> - Reference catalog</li>
            </ul>
        </body>
    </html>
    """


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "cached_results": len(results),
    }


@app.post("/api/calculate")
async def calculate(configuration: Dict[str, Any] = Body(...)):
    """
    Run a TCO calculation.

    Invalid configurations and configurations referencing missing catalog
    entries are rejected with a structured 422 body.
    """
    validation = calculator.validate(configuration)
    if not validation.ok:
        raise HTTPException(status_code=422, detail={
            "validation_errors": [e.to_dict() for e in validation.errors],
            "catalog_errors": [],
        })

    catalog_errors = calculator.check_catalog(validation.config)
    if catalog_errors:
        raise HTTPException(status_code=422, detail={
            "validation_errors": [],
            "catalog_errors": [e.to_dict() for e in catalog_errors],
        })

    key = configuration_hash(validation.config)
    if key not in results:
        results[key] = calculator.compute(validation.config)
        while len(results) > MAX_CACHED_RESULTS:
            evicted, _ = results.popitem(last=False)
            logger.debug("Evicted cached result %s", evicted[:12])
    else:
        results.move_to_end(key)
        logger.debug("Serving cached result %s", key[:12])

    return results[key].to_dict()


@app.post("/api/validate")
async def validate(configuration: Dict[str, Any] = Body(...)):
    """Validate a configuration without calculating."""
    validation = calculator.validate(configuration)
    body = validation.to_dict()
    body["catalog_errors"] = (
        [e.to_dict() for e in calculator.check_catalog(validation.config)] if validation.ok else []
    )
    body["valid"] = validation.ok and not body["catalog_errors"]
    return body


@app.post("/api/optimize", response_model=OptimizeResponse)
async def optimize(request: OptimizeRequest):
    """Suggest an immersion tank mix for a power target."""
    catalog = calculator.catalog
    allocations = optimize_tanks(
        request.target_power_kw, catalog.tanks, catalog.factors.optimal_power_density_kw_per_u
    )
    return OptimizeResponse(
        target_power_kw=request.target_power_kw,
        allocations=[TankAllocationModel(**a.to_dict()) for a in allocations],
        total_tanks=total_tanks(allocations),
        total_power_kw=total_power_kw(allocations),
    )


@app.get("/api/catalog")
async def get_catalog():
    """Get the reference catalog."""
    return calculator.catalog.to_dict()


# ============================================================================
# Report Generation
# ============================================================================

@app.get("/api/report/html/{config_hash}")
async def generate_report(config_hash: str):
    """Generate HTML report for a calculated configuration."""
    if config_hash not in results:
        raise HTTPException(status_code=404, detail="Result not found")

    return HTMLResponse(content=generate_html_report(results[config_hash]))


# ============================================================================
# Run server
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
