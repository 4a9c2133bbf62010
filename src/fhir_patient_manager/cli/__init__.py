"""Command-line interface for FHIR Patient Manager."""
