"""Entry point for running fhir_patient_manager as a module.

This allows the package to be executed as:
    python -m fhir_patient_manager
"""

from fhir_patient_manager.cli.main import cli

if __name__ == "__main__":
    cli()
