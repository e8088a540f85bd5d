"""
Patient and immunization records from a health card FHIR bundle.

Entry 0 of the bundle is the Patient; the remaining entries are the
Immunization resources in administration order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shc_decoder.claims import HealthCardClaims
from shc_decoder.errors import MissingPatientRecord, ParseError


def _optional_str(data: dict[str, Any], key: str, index: int) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ParseError(f"{key} must be a string", detail=f"entry {index}")
    return value


@dataclass
class Patient:
    """Patient identity."""

    family: str
    given: list[str] = field(default_factory=list)
    birth_date: str | None = None

    @property
    def name(self) -> str:
        """Family name followed by the given names, space separated."""
        return " ".join([self.family, *self.given]).strip()

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> Patient:
        names = resource.get("name")
        if not isinstance(names, list) or not names or not isinstance(names[0], dict):
            raise ParseError("Patient resource has no name")
        name = names[0]

        family = name.get("family", "")
        given = name.get("given", [])
        if not isinstance(family, str):
            raise ParseError("Patient family name must be a string")
        if not isinstance(given, list) or not all(isinstance(g, str) for g in given):
            raise ParseError("Patient given names must be an array of strings")

        birth_date = resource.get("birthDate")
        if birth_date is not None and not isinstance(birth_date, str):
            raise ParseError("Patient birthDate must be a string")

        return cls(family=family, given=given, birth_date=birth_date)


@dataclass
class Immunization:
    """One vaccination event."""

    occurrence_date_time: str | None
    vaccine_code: str | None
    vaccine_system: str | None
    lot_number: str | None = None
    status: str | None = None
    performer: str | None = None

    @classmethod
    def from_resource(cls, resource: dict[str, Any], index: int) -> Immunization:
        vaccine = resource.get("vaccineCode")
        coding = vaccine.get("coding") if isinstance(vaccine, dict) else None
        if not isinstance(coding, list) or not coding or not isinstance(coding[0], dict):
            raise ParseError("Immunization has no vaccineCode coding", detail=f"entry {index}")

        performer = None
        performers = resource.get("performer")
        if isinstance(performers, list) and performers and isinstance(performers[0], dict):
            actor = performers[0].get("actor")
            if isinstance(actor, dict):
                performer = _optional_str(actor, "display", index)

        return cls(
            occurrence_date_time=_optional_str(resource, "occurrenceDateTime", index),
            vaccine_code=_optional_str(coding[0], "code", index),
            vaccine_system=_optional_str(coding[0], "system", index),
            lot_number=_optional_str(resource, "lotNumber", index),
            status=_optional_str(resource, "status", index),
            performer=performer,
        )


@dataclass
class HealthRecord:
    """Patient plus immunizations, in bundle order."""

    patient: Patient
    immunizations: list[Immunization] = field(default_factory=list)


def extract_records(claims: HealthCardClaims) -> HealthRecord:
    """Extract the patient and immunizations from verified claims.

    Raises:
        MissingPatientRecord: If entry 0 is absent or not a Patient.
        ParseError: If a resource does not have the expected shape.
    """
    entries = claims.fhir_bundle.entries
    if not entries:
        raise MissingPatientRecord("FHIR bundle has no entries")

    patient_resource = entries[0].resource
    if patient_resource.get("resourceType", "Patient") != "Patient":
        raise MissingPatientRecord(
            "First bundle entry is not a Patient",
            detail=str(patient_resource.get("resourceType")),
        )

    patient = Patient.from_resource(patient_resource)
    immunizations = [
        Immunization.from_resource(entry.resource, index)
        for index, entry in enumerate(entries[1:], start=1)
    ]
    return HealthRecord(patient=patient, immunizations=immunizations)
