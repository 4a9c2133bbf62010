"""CLI command for running the patient HTTP API."""

import logging
import sys
from typing import Optional

import click

from fhir_patient_manager.api.app import run_server

logger = logging.getLogger(__name__)


@click.command(name="serve")
@click.option("--host", default=None, help="Host address (default: from config, 127.0.0.1)")
@click.option(
    "--port",
    type=click.IntRange(1, 65535),
    default=None,
    help="Port number (default: from config, 3000)",
)
@click.option("--debug", is_flag=True, help="Enable Flask debug mode")
@click.pass_context
def serve_command(
    ctx: click.Context, host: Optional[str], port: Optional[int], debug: bool
) -> None:
    """Run the patient JSON API.

    Routes: /api/patients (GET search, POST create), /api/patients/<id>
    (GET, PUT, DELETE) and /health.

    Examples:

        # Serve on the configured host and port
        fhir-patient-manager serve

        # Serve on all interfaces, port 8000
        fhir-patient-manager serve --host 0.0.0.0 --port 8000
    """
    config = ctx.obj["config"]
    bind_host = host or config.api.host
    bind_port = port or config.api.port

    click.echo(f"Starting FHIR Patient Manager API on http://{bind_host}:{bind_port}")
    click.echo(f"FHIR server: {config.fhir.base_url}")
    click.echo("Press Ctrl+C to stop")

    try:
        run_server(config, host=bind_host, port=bind_port, debug=debug)
    except OSError as e:
        click.secho(f"Failed to start server: {e}", fg="red", err=True)
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)
