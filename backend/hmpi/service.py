"""
service.py - Pollution Index HTTP Service (Flask)
==================================================

Thin HTTP wrapper exposing the calculator to the web front-end and the
reporting collaborators. Request bodies are validated here (ingestion
side) before samples reach the calculation core.

Endpoints:
    GET  /health           - Service health check
    GET  /status           - Which models are loaded
    POST /calculate        - Analyse one sample
    POST /calculate/batch  - Analyse a list of samples + summary

Query parameter ``mode=standard`` on the calculate endpoints skips the
enhanced models.

Run:
    python -m backend.hmpi.service
    # Starts on port 5060 by default (configurable via HMPI_SERVICE_PORT env var)
"""

import logging

from flask import Flask, jsonify, request

from . import config
from .exceptions import InputError
from .pipeline import PollutionIndexCalculator, create_calculator
from .summary import summarize_results
from .utils import setup_logging, validate_sample

logger = logging.getLogger("hmpi.service")


def create_app(calculator: PollutionIndexCalculator = None) -> Flask:
    """
    Build the Flask application.

    Args:
        calculator: Calculator to serve. Loaded from config.SAVED_DIR when None.
    """
    app = Flask(__name__)
    calculator = calculator or create_calculator()

    def _use_enhanced() -> bool:
        return request.args.get("mode", "enhanced") != "standard"

    @app.errorhandler(InputError)
    def handle_input_error(e):
        logger.info(f"Rejected sample: {e}")
        return jsonify({"error": str(e), "field": e.field}), 400

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "OK",
            "service": "Heavy Metal Pollution Index",
        })

    @app.route("/status", methods=["GET"])
    def status():
        """Loaded model summary for both adapters."""
        return jsonify({
            "standard_models": calculator.standard_adapter.registry.status(),
            "enhanced_models": calculator.enhanced_adapter.registry.status(),
        })

    @app.route("/calculate", methods=["POST"])
    def calculate():
        """
        Analyse one sample.

        Expects JSON body:
            { sample_id, latitude, longitude, lead, arsenic, cadmium,
              chromium, copper, iron, zinc }
        """
        data = request.get_json(force=True, silent=True)
        if not data:
            return jsonify({"error": "No JSON body provided"}), 400

        sample = validate_sample(data)
        if _use_enhanced():
            result = calculator.calculate_enhanced(sample)
        else:
            result = calculator.calculate(sample)
        return jsonify({"status": "processed", "result": result.to_dict()})

    @app.route("/calculate/batch", methods=["POST"])
    def calculate_batch():
        """Analyse a list of samples. Expects JSON body: { samples: [...] }."""
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict) or not isinstance(data.get("samples"), list):
            return jsonify({"error": "Body must contain a 'samples' list"}), 400

        samples = [validate_sample(record) for record in data["samples"]]
        results = calculator.calculate_batch(samples, enhanced=_use_enhanced())
        return jsonify({
            "status": "processed",
            "results": [r.to_dict() for r in results],
            "summary": summarize_results(results),
        })

    return app


if __name__ == "__main__":
    setup_logging()
    port = config.SERVICE_PORT
    logger.info(f"Starting pollution index service on port {port}")
    create_app().run(host="0.0.0.0", port=port, debug=False)
