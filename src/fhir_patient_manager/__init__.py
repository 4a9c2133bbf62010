"""FHIR Patient Manager.

Patient CRUD and paginated search against a FHIR server, mapping between a
simplified patient shape and FHIR Patient resources.
"""

__version__ = "0.1.0"
