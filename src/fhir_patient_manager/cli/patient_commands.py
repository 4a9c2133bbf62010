"""Patient CLI commands for FHIR Patient Manager.

This module provides CLI commands for searching, viewing, creating, updating
and deleting Patient resources on the configured FHIR server.
"""

import json as json_lib
import logging
import sys
from typing import Any, Optional

import click

from fhir_patient_manager.models.search import SearchPage
from fhir_patient_manager.service.patient_service import PatientService
from fhir_patient_manager.utils.exceptions import (
    NotFoundError,
    PatientManagerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

NAME_USE_CHOICES = ["usual", "official", "temp", "nickname", "anonymous", "old", "maiden"]
GENDER_CHOICES = ["male", "female", "other", "unknown"]


def _build_service(ctx: click.Context) -> PatientService:
    """Create a patient service from the configuration loaded by the main group."""
    return PatientService.from_config(ctx.obj["config"])


def _fail(error: Exception) -> None:
    """Report a failed command on stderr and exit with status 1."""
    if isinstance(error, ValidationError):
        click.secho(f"Validation Error: {error}", fg="red", err=True)
    elif isinstance(error, NotFoundError):
        click.secho(f"Not found: {error}", fg="red", err=True)
    else:
        click.secho(f"Error: {error}", fg="red", err=True)
    logger.error(f"Command failed: {error}")
    sys.exit(1)


def _echo_json(data: Any) -> None:
    click.echo(json_lib.dumps(data, indent=2))


def _echo_page(page: SearchPage) -> None:
    """Print a search page as a human-readable listing."""
    if not page.patients:
        click.secho("No patients found", fg="yellow")
    else:
        click.echo(f"Patients ({len(page.patients)} of {page.total}):\n")
        for patient in page.patients:
            click.echo(f"  {click.style(str(patient.id), bold=True)}  {patient.name}")
            click.echo(
                f"      gender: {patient.gender}  birth date: {patient.birth_date}"
            )
            click.echo(f"      phone: {patient.phone}  email: {patient.email}")

    if page.current_search_params:
        filters = ", ".join(f"{k}={v}" for k, v in page.current_search_params.items())
        click.echo(f"\nFilters: {filters}")
    if page.next_link:
        click.echo(f"\nNext page:     --page-url '{page.next_link}'")
    if page.prev_link:
        click.echo(f"Previous page: --page-url '{page.prev_link}'")


@click.group(name="patients")
def patients_group() -> None:
    """Search and manage Patient resources on the FHIR server."""
    pass


@patients_group.command("search")
@click.option("--name", help="Name contains (any part of the name)")
@click.option("--phone", help="Phone number")
@click.option("--birthdate", help="Birth date (YYYY-MM-DD)")
@click.option("--id", "patient_id", help="Patient resource id")
@click.option("--page-url", help="Page link printed by an earlier search")
@click.option("--json", "json_output", is_flag=True, help="Output results as JSON")
@click.pass_context
def search_command(
    ctx: click.Context,
    name: Optional[str],
    phone: Optional[str],
    birthdate: Optional[str],
    patient_id: Optional[str],
    page_url: Optional[str],
    json_output: bool,
) -> None:
    """Search patients, most recently updated first.

    Examples:

        # List the latest patients
        fhir-patient-manager patients search

        # Search by partial name
        fhir-patient-manager patients search --name jan

        # Follow a page link from a previous search
        fhir-patient-manager patients search --page-url 'https://.../fhir?_getpages=...'
    """
    filters = {"name": name, "phone": phone, "birthdate": birthdate, "id": patient_id}
    service = _build_service(ctx)
    try:
        page = service.search(filters, page_url=page_url)
    except PatientManagerError as e:
        _fail(e)
    finally:
        service.client.close()

    if json_output:
        _echo_json(page.to_dict())
    else:
        _echo_page(page)


@patients_group.command("show")
@click.argument("patient_id")
@click.option("--json", "json_output", is_flag=True, help="Output patient as JSON")
@click.pass_context
def show_command(ctx: click.Context, patient_id: str, json_output: bool) -> None:
    """Show one patient by id."""
    service = _build_service(ctx)
    try:
        detail = service.get(patient_id)
    except PatientManagerError as e:
        _fail(e)
    finally:
        service.client.close()

    if json_output:
        _echo_json(detail.to_dict())
        return

    click.echo(f"Patient {click.style(str(detail.id), bold=True)}")
    click.echo(f"  Name:       {detail.name}")
    click.echo(f"  First:      {detail.first}")
    click.echo(f"  Middle:     {detail.middle}")
    click.echo(f"  Last:       {detail.last}")
    click.echo(f"  Gender:     {detail.gender}")
    click.echo(f"  Birth date: {detail.dob}")
    click.echo(f"  Phone:      {detail.phone}")
    click.echo(f"  Email:      {detail.email}")


@patients_group.command("create")
@click.option("--first", required=True, help="First given name")
@click.option("--middle", help="Middle name")
@click.option("--last", required=True, help="Family name")
@click.option("--gender", required=True, type=click.Choice(GENDER_CHOICES))
@click.option("--use", type=click.Choice(NAME_USE_CHOICES), help="Name use (default: official)")
@click.option("--phone", help="Phone number")
@click.option("--dob", help="Birth date (YYYY-MM-DD)")
@click.pass_context
def create_command(
    ctx: click.Context,
    first: str,
    middle: Optional[str],
    last: str,
    gender: str,
    use: Optional[str],
    phone: Optional[str],
    dob: Optional[str],
) -> None:
    """Create a patient.

    Example:

        fhir-patient-manager patients create --first Jane --last Doe --gender female --dob 1990-04-01
    """
    data = {
        "first": first,
        "middle": middle,
        "last": last,
        "gender": gender,
        "use": use,
        "phone": phone,
        "dob": dob,
    }
    service = _build_service(ctx)
    try:
        created = service.create(data)
    except PatientManagerError as e:
        _fail(e)
    finally:
        service.client.close()

    click.echo(click.style("✓", fg="green", bold=True) + f" Created patient {created.get('id')}")


@patients_group.command("update")
@click.argument("patient_id")
@click.option("--first", help="First given name")
@click.option("--middle", help="Middle name (empty string clears it)")
@click.option("--last", help="Family name")
@click.option("--gender", type=click.Choice(GENDER_CHOICES))
@click.option("--use", type=click.Choice(NAME_USE_CHOICES), help="Name use")
@click.option("--phone", help="Phone number (empty string clears it)")
@click.option("--dob", help="Birth date YYYY-MM-DD (empty string clears it)")
@click.pass_context
def update_command(ctx: click.Context, patient_id: str, **fields: Optional[str]) -> None:
    """Update selected fields of a patient.

    Only the options given are changed; everything else on the patient
    record is kept.

    Example:

        fhir-patient-manager patients update 123 --phone 555-0100
    """
    updates = {key: value for key, value in fields.items() if value is not None}
    if not updates:
        click.secho("Nothing to update: give at least one field option", fg="yellow", err=True)
        sys.exit(1)

    service = _build_service(ctx)
    try:
        service.update(patient_id, updates)
    except PatientManagerError as e:
        _fail(e)
    finally:
        service.client.close()

    click.echo(
        click.style("✓", fg="green", bold=True)
        + f" Updated patient {patient_id} ({', '.join(updates)})"
    )


@patients_group.command("delete")
@click.argument("patient_id")
@click.option("--yes", is_flag=True, help="Delete without confirmation")
@click.pass_context
def delete_command(ctx: click.Context, patient_id: str, yes: bool) -> None:
    """Delete a patient."""
    if not yes:
        click.confirm(f"Delete patient {patient_id}?", abort=True)

    service = _build_service(ctx)
    try:
        result = service.remove(patient_id)
    except PatientManagerError as e:
        _fail(e)
    finally:
        service.client.close()

    click.echo(click.style("✓", fg="green", bold=True) + f" {result['message']}")
