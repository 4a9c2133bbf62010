"""Main CLI entry point for FHIR Patient Manager.

This module provides the main Click command group for the fhir-patient-manager CLI.
"""

from pathlib import Path
from typing import Optional

import click

from fhir_patient_manager import __version__
from fhir_patient_manager.cli.patient_commands import patients_group
from fhir_patient_manager.cli.serve_commands import serve_command
from fhir_patient_manager.config import load_config
from fhir_patient_manager.logging_audit import configure_logging
from fhir_patient_manager.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="fhir-patient-manager")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact PII (patient names, phone numbers, birth dates) from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """FHIR Patient Manager - Manage Patient resources on a FHIR server.

    Search, view, create, update and delete patients from the command line,
    or serve the same operations as a JSON HTTP API.

    Common usage:

        # List the most recently updated patients
        fhir-patient-manager patients search

        # Create a patient
        fhir-patient-manager patients create --first Jane --last Doe --gender female

        # Run the HTTP API
        fhir-patient-manager serve --port 3000

        # Use custom configuration file
        fhir-patient-manager --config custom/config.json patients search

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
        ctx.obj["config"] = config_obj
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    ctx.obj["verbose"] = verbose
    ctx.obj["redact_pii"] = redact_pii
    ctx.obj["log_file"] = log_file

    # Precedence: CLI flags > config file > defaults
    log_level = "DEBUG" if verbose else config_obj.logging.level
    log_file_path = log_file if log_file else config_obj.logging.log_file
    redact_pii_setting = redact_pii if redact_pii else config_obj.logging.redact_pii

    configure_logging(
        level=log_level, log_file=log_file_path, redact_pii=redact_pii_setting
    )


cli.add_command(patients_group)
cli.add_command(serve_command)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        fhir-patient-manager config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)

        click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
        click.echo(f"\nConfiguration file: {config_file}")
        click.echo("\nFHIR server:")
        click.echo(f"  Base URL:    {config_obj.fhir.base_url}")
        click.echo(f"  Page size:   {config_obj.fhir.page_size}")
        click.echo(f"  Sort:        {config_obj.fhir.default_sort}")

        click.echo("\nTransport:")
        click.echo(f"  Verify TLS:  {config_obj.transport.verify_tls}")
        click.echo(f"  Timeouts:    {config_obj.transport.timeout_connect}s connect, {config_obj.transport.timeout_read}s read")
        click.echo(f"  Connections: {config_obj.transport.max_connections}")

        click.echo("\nLogging:")
        click.echo(f"  Level:       {config_obj.logging.level}")
        click.echo(f"  Log file:    {config_obj.logging.log_file}")
        click.echo(f"  Redact PII:  {config_obj.logging.redact_pii}")

        click.echo("\nAPI:")
        click.echo(f"  Listen:      {config_obj.api.host}:{config_obj.api.port}")

    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"fhir-patient-manager version {__version__}")


if __name__ == "__main__":
    cli()
