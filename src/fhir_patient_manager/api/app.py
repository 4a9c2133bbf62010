"""Flask application exposing the patient service over JSON HTTP."""

import logging
from datetime import datetime, timezone
from typing import Any

from flask import Flask, Response, jsonify, request

from fhir_patient_manager import __version__
from fhir_patient_manager.config.schema import Config
from fhir_patient_manager.service.patient_service import PatientService
from fhir_patient_manager.utils.exceptions import (
    PatientManagerError,
    ValidationError,
    http_status_for,
)

logger = logging.getLogger(__name__)

# Query parameters accepted as search filters
SEARCH_FILTERS = ("name", "phone", "birthdate", "id")


def error_response(message: str, http_status: int) -> tuple[Response, int]:
    """Build the JSON error body returned for failed requests.

    Args:
        message: Human-readable error description
        http_status: HTTP status code

    Returns:
        Tuple of (Response object, HTTP status code)
    """
    return jsonify({"error": message}), http_status


def create_app(service: PatientService) -> Flask:
    """Create the Flask app serving the patient API.

    Args:
        service: Patient service backing every route

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    app.config["PATIENT_SERVICE"] = service
    app.config["START_TIME"] = datetime.now(timezone.utc)
    app.config["REQUEST_COUNT"] = 0

    @app.before_request
    def log_request():
        """Log all incoming requests."""
        app.config["REQUEST_COUNT"] += 1
        logger.info(
            f"Request #{app.config['REQUEST_COUNT']}: {request.method} {request.path} "
            f"(Content-Length: {request.content_length or 0})"
        )

    @app.errorhandler(PatientManagerError)
    def handle_patient_error(error: PatientManagerError):
        http_status = http_status_for(error)
        if http_status >= 500:
            logger.error(f"{request.method} {request.path} failed: {error}")
        else:
            logger.warning(f"{request.method} {request.path} rejected: {error}")
        return error_response(str(error), http_status)

    @app.errorhandler(404)
    def not_found(error):
        return error_response("Not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response("Method not allowed", 405)

    @app.errorhandler(500)
    def internal_error(error):
        return error_response("Internal server error", 500)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Health check endpoint.

        Returns JSON with status, version, configured FHIR server, uptime,
        request count and timestamp.
        """
        uptime = datetime.now(timezone.utc) - app.config["START_TIME"]
        return jsonify({
            "status": "healthy",
            "version": __version__,
            "fhir_base_url": service.client.base_url,
            "uptime_seconds": int(uptime.total_seconds()),
            "request_count": app.config["REQUEST_COUNT"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200

    @app.route("/api/patients", methods=["GET"])
    def search_patients():
        filters = {key: request.args.get(key) for key in SEARCH_FILTERS}
        page = service.search(filters, page_url=request.args.get("pageUrl") or None)
        return jsonify(page.to_dict())

    @app.route("/api/patients", methods=["POST"])
    def create_patient():
        created = service.create(_json_body())
        return jsonify(created), 201

    @app.route("/api/patients/<patient_id>", methods=["GET"])
    def get_patient(patient_id: str):
        return jsonify(service.get(patient_id).to_dict())

    @app.route("/api/patients/<patient_id>", methods=["PUT"])
    def update_patient(patient_id: str):
        return jsonify(service.update(patient_id, _json_body()))

    @app.route("/api/patients/<patient_id>", methods=["DELETE"])
    def delete_patient(patient_id: str):
        return jsonify(service.remove(patient_id))

    logger.info("Patient API application initialized")
    return app


def _json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def run_server(
    config: Config,
    host: str | None = None,
    port: int | None = None,
    debug: bool = False,
) -> None:
    """Run the patient API with Flask's built-in server.

    Args:
        config: Application configuration
        host: Host address (default: config.api.host)
        port: Port number (default: config.api.port)
        debug: Enable debug mode (default: False)
    """
    host = host or config.api.host
    port = port or config.api.port

    service = PatientService.from_config(config)
    app = create_app(service)

    logger.info(f"Starting FHIR Patient Manager API on http://{host}:{port}")
    logger.info(f"Health check available at: http://{host}:{port}/health")

    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False)
    finally:
        service.client.close()
