"""Unit tests for FHIR Patient Manager."""
