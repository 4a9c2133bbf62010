"""FHIR R4 resource shapes used by the patient mapper.

Only the elements this package reads or writes are declared; resources
returned by the server may carry any other FHIR element and those are
passed through untouched.
"""

from typing import TypedDict


class HumanName(TypedDict, total=False):
    use: str
    given: list[str]
    family: str
    text: str


class ContactPoint(TypedDict, total=False):
    system: str
    value: str
    use: str


class Patient(TypedDict, total=False):
    resourceType: str
    id: str
    name: list[HumanName]
    gender: str
    telecom: list[ContactPoint]
    birthDate: str


class BundleLink(TypedDict):
    relation: str
    url: str


class BundleEntry(TypedDict, total=False):
    fullUrl: str
    resource: dict


class Bundle(TypedDict, total=False):
    resourceType: str
    type: str
    total: int
    link: list[BundleLink]
    entry: list[BundleEntry]
