"""
quantgrid -- Dashboard Flask application.

Local JSON API exposing the optimizer to a front end.  Rendering
(charts, tables, sliders) lives in the client; this app only generates
series and runs the grid search.

Usage:
    python dashboard/app.py
    -> Serves http://localhost:5050 (port from QG_DASHBOARD_PORT)

Settings are read from the repo-root ``.env`` when present.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, request, jsonify

# Load .env before quantgrid.config reads the environment
ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(ENV_PATH)

from quantgrid import config  # noqa: E402
from quantgrid.generator import generate_price_series  # noqa: E402
from quantgrid.models import InvalidArgumentError, bars_from_dicts  # noqa: E402
from quantgrid.optimizer import iter_grid, optimize_on_synthetic_data  # noqa: E402
from quantgrid.strategies import strategy_families  # noqa: E402

app = Flask(__name__)
logger = logging.getLogger(__name__)


def _error(message: str, status: int):
    return jsonify({"status": "error", "message": message}), status


# ======================================================================
# Configuration routes
# ======================================================================

@app.route("/api/config", methods=["GET"])
def api_get_config():
    """Return the defaults the front end should pre-fill."""
    return jsonify({
        "status": "ok",
        "series_length": config.get_series_length(),
        "step_years": config.get_step_years(),
        "top_k": config.get_top_k(),
    })


@app.route("/api/strategies", methods=["GET"])
def api_strategies():
    """Return strategy families and how many grid cells each contributes."""
    counts = {family: 0 for family in strategy_families()}
    for family, _params in iter_grid():
        counts[family] += 1
    return jsonify({
        "status": "ok",
        "strategies": [{"name": name, "grid_cells": n} for name, n in counts.items()],
    })


# ======================================================================
# Simulation routes
# ======================================================================

@app.route("/api/series", methods=["GET"])
def api_series():
    """Generate a synthetic price series.

    Query parameters ``length`` and ``step_years`` fall back to the
    configured defaults.
    """
    try:
        length = request.args.get("length", type=int, default=config.get_series_length())
        step_years = request.args.get("step_years", type=float, default=config.get_step_years())
        bars = generate_price_series(length, step_years)
        return jsonify({"status": "ok", "bars": [b.to_dict() for b in bars]})
    except InvalidArgumentError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.exception("Series generation failed")
        return _error(str(e), 500)


@app.route("/api/optimize", methods=["POST"])
def api_optimize():
    """Run the grid search and return the top agents.

    Expected JSON body (all fields optional)::

        {
            "top_k": 10,
            "length": 2000,          // used when "bars" is absent
            "bars": [{"open": ..., "high": ..., "low": ..., "close": ...}, ...]
        }
    """
    try:
        data = request.get_json(silent=True)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            return _error("Request body must be a JSON object", 400)
        top_k = int(data.get("top_k", config.get_top_k()))

        bars = None
        if data.get("bars"):
            bars = bars_from_dicts(data["bars"])
        elif data.get("length") is not None:
            bars = generate_price_series(int(data["length"]), config.get_step_years())

        result = optimize_on_synthetic_data(bars, top_k=top_k)
        return jsonify({
            "status": "ok",
            "run_id": result.run_id,
            "total_agents": len(result.agents),
            "agents": [agent.to_dict() for agent in result.top()],
        })
    except InvalidArgumentError as e:
        return _error(str(e), 400)
    except (KeyError, TypeError, ValueError) as e:
        return _error(f"Malformed request: {e}", 400)
    except Exception as e:
        logger.exception("Optimization failed")
        return _error(str(e), 500)


# ======================================================================
# Entry point
# ======================================================================

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = config.get_dashboard_port()
    print("=" * 50)
    print("  quantgrid Dashboard API")
    print(f"  http://localhost:{port}")
    print("=" * 50)
    app.run(host="127.0.0.1", port=port, debug=False)
