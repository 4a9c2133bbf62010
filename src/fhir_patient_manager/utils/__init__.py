"""Utility helpers shared across FHIR Patient Manager modules."""
