"""
Command-line interface for the Immersion Cooling TCO Calculator.

Usage:
    ictco calculate CONFIG.json [--catalog FILE] [--output FILE] [--html FILE]
    ictco validate CONFIG.json
    ictco optimize --target KW [--catalog FILE]
    ictco server [--port PORT]
"""

from pathlib import Path
import argparse
import json
import logging
import sys


def _load_json(filepath):
    with open(filepath, encoding="utf-8") as f:
        return json.load(f)


def _load_catalog(args):
    from ictco import Catalog

    if getattr(args, "catalog", None):
        return Catalog.from_json(args.catalog)
    return Catalog.default()


def _print_errors(outcome):
    for e in outcome.validation_errors:
        print(f"  ❌ {e.field}: {e.message} [{e.code}]")
    for e in outcome.catalog_errors:
        print(f"  ❌ {e.field or e.kind}: {e}")


def cmd_calculate(args):
    """Run a TCO calculation."""
    from ictco import TCOCalculator, save_html_report

    calculator = TCOCalculator(_load_catalog(args))
    outcome = calculator.calculate(_load_json(args.config))

    if not outcome.ok:
        print("Configuration rejected:")
        _print_errors(outcome)
        return 1

    result = outcome.result
    if args.output:
        result.save(args.output)
        print(f"Results saved to {args.output}")
    if args.html:
        save_html_report(result, args.html)
        print(f"Report saved to {args.html}")
    if not args.output and not args.html:
        print(result.summary())

    return 0


def cmd_validate(args):
    """Validate a configuration file."""
    from ictco import TCOCalculator

    calculator = TCOCalculator(_load_catalog(args))
    validation = calculator.validate(_load_json(args.config))

    if not validation.ok:
        print("❌ Invalid configuration:")
        for e in validation.errors:
            print(f"  {e.field}: {e.message} [{e.code}]")
        return 1

    catalog_errors = calculator.check_catalog(validation.config)
    if catalog_errors:
        print("❌ Configuration references missing catalog entries:")
        for e in catalog_errors:
            print(f"  {e.field or e.kind}: {e}")
        return 1

    print("✅ Configuration is valid")
    print(json.dumps(validation.config.to_dict(), indent=2))
    return 0


def cmd_optimize(args):
    """Suggest an immersion tank mix for a power target."""
    from ictco import TankOptimizer, total_power_kw, total_tanks

    catalog = _load_catalog(args)
    optimizer = TankOptimizer(catalog.tanks, catalog.factors.optimal_power_density_kw_per_u)
    allocations = optimizer.optimize(args.target)

    print(f"Tank mix for {args.target:,.1f} kW:")
    for a in allocations:
        print(f"  {a.quantity:>4} × {a.size:<4} @ {a.power_density_kw_per_u:.2f} kW/U = {a.power_kw:,.1f} kW")
    print(f"  Total: {total_tanks(allocations)} tanks, {total_power_kw(allocations):,.1f} kW")
    return 0


def cmd_server(args):
    """Start web server."""
    try:
        import uvicorn
    except ImportError:
        print("Web dependencies not installed. Run: pip install immersion-cooling-tco[web]")
        return 1

    app_dir = Path(__file__).resolve().parents[2] / "web" / "backend"
    uvicorn.run(
        "main:app",
        app_dir=str(app_dir),
        host="0.0.0.0",
        port=args.port,
        reload=args.reload,
    )
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="ictco",
        description="Immersion Cooling TCO Calculator - compare air and immersion cooling costs",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # calculate
    p_calculate = subparsers.add_parser("calculate", help="Run TCO calculation")
    p_calculate.add_argument("config", help="Configuration JSON file")
    p_calculate.add_argument("--catalog", help="Catalog JSON file")
    p_calculate.add_argument("-o", "--output", help="Output JSON file")
    p_calculate.add_argument("--html", help="Output HTML report file")

    # validate
    p_validate = subparsers.add_parser("validate", help="Validate a configuration")
    p_validate.add_argument("config", help="Configuration JSON file")
    p_validate.add_argument("--catalog", help="Catalog JSON file")

    # optimize
    p_optimize = subparsers.add_parser("optimize", help="Suggest immersion tank mix")
    p_optimize.add_argument("-t", "--target", type=float, required=True, help="Target IT power (kW)")
    p_optimize.add_argument("--catalog", help="Catalog JSON file")

    # server
    p_server = subparsers.add_parser("server", help="Start web server")
    p_server.add_argument("-p", "--port", type=int, default=8000)
    p_server.add_argument("--reload", action="store_true")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "calculate":
        sys.exit(cmd_calculate(args))
    elif args.command == "validate":
        sys.exit(cmd_validate(args))
    elif args.command == "optimize":
        sys.exit(cmd_optimize(args))
    elif args.command == "server":
        sys.exit(cmd_server(args))
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
