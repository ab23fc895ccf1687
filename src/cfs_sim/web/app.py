"""Flask application factory for the simulator API.

The ``create_app`` function returns a Flask app with two endpoints:

- ``GET /api/config`` — return the default configuration as JSON.
- ``POST /api/simulate`` — run a workload and return the event stream
  and termination summary as JSON.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, request

from cfs_sim.config import SchedulerConfig
from cfs_sim.errors import ConfigurationError
from cfs_sim.scheduler import simulate
from cfs_sim.workload import parse_workload

_HTTP_BAD_REQUEST = 400


def create_app() -> Flask:
    """Create and configure the Flask application.

    Returns:
        A configured Flask application ready to serve.

    """
    app = Flask(__name__)

    @app.route("/api/config")
    def default_config() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the default simulation parameters."""
        return jsonify(SchedulerConfig().to_dict())

    @app.route("/api/simulate", methods=["POST"])
    def run_simulation() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Run a workload and return JSON output.

        Expects JSON body: ``{"tasks": [...], "config": {...}}`` where
        ``config`` is optional.

        Returns:
            JSON with ``events`` and ``summary`` fields, or ``error``
            with status 400 for an invalid request.

        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "tasks" not in data:
            return jsonify({"error": "Missing 'tasks' field"}), _HTTP_BAD_REQUEST
        raw_config = data.get("config") or {}
        if not isinstance(raw_config, dict):
            return jsonify({"error": "'config' must be an object"}), _HTTP_BAD_REQUEST
        tasks = data["tasks"]
        if not isinstance(tasks, list):
            return jsonify({"error": "'tasks' must be a list"}), _HTTP_BAD_REQUEST

        try:
            config = SchedulerConfig.from_mapping(raw_config)
            specs = parse_workload(tasks, config=config)
        except ConfigurationError as e:
            return jsonify({"error": str(e)}), _HTTP_BAD_REQUEST

        result = simulate(specs, config=config)
        return jsonify(
            {
                "events": [event.to_dict() for event in result.events],
                "summary": result.summary.to_dict(),
            }
        )

    return app


def main() -> None:
    """Run the API development server.

    This is the ``cfs-sim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
