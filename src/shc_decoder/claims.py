"""
SMART Health Card claims.

The JWS payload is base64url(raw DEFLATE(JSON claims)). The claims are parsed
into typed structures; anything that does not have the expected shape is
rejected with ParseError here rather than failing later during extraction.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
import zlib
from dataclasses import dataclass, field
from typing import Any

from shc_decoder.errors import DecodeError, InflateError, ParseError


logger = logging.getLogger(__name__)

_B64URL_RE = re.compile(r"^[A-Za-z0-9_-]*$")


@dataclass
class BundleEntry:
    """One entry of the FHIR bundle."""

    resource: dict[str, Any]
    full_url: str | None = None

    @classmethod
    def from_dict(cls, data: Any, index: int) -> BundleEntry:
        if not isinstance(data, dict):
            raise ParseError("Bundle entry is not an object", detail=f"entry {index}")
        resource = data.get("resource")
        if not isinstance(resource, dict):
            raise ParseError("Bundle entry has no resource object", detail=f"entry {index}")
        full_url = data.get("fullUrl")
        if full_url is not None and not isinstance(full_url, str):
            raise ParseError("fullUrl must be a string", detail=f"entry {index}")
        return cls(resource=resource, full_url=full_url)


@dataclass
class FhirBundle:
    """FHIR Bundle embedded in the credential subject."""

    entries: list[BundleEntry] = field(default_factory=list)
    type: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FhirBundle:
        if not isinstance(data, dict):
            raise ParseError("fhirBundle is not an object")
        if data.get("resourceType", "Bundle") != "Bundle":
            raise ParseError(
                "fhirBundle is not a Bundle", detail=str(data.get("resourceType"))
            )
        raw_entries = data.get("entry", [])
        if not isinstance(raw_entries, list):
            raise ParseError("fhirBundle.entry must be an array")
        return cls(
            entries=[BundleEntry.from_dict(e, i) for i, e in enumerate(raw_entries)],
            type=data.get("type"),
        )


@dataclass
class CredentialSubject:
    """credentialSubject of a health card."""

    fhir_bundle: FhirBundle
    fhir_version: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> CredentialSubject:
        if not isinstance(data, dict):
            raise ParseError("credentialSubject is not an object")
        if "fhirBundle" not in data:
            raise ParseError("Missing credentialSubject.fhirBundle")
        return cls(
            fhir_bundle=FhirBundle.from_dict(data["fhirBundle"]),
            fhir_version=data.get("fhirVersion"),
        )


@dataclass
class VerifiableCredential:
    """The ``vc`` claim."""

    credential_subject: CredentialSubject
    type: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> VerifiableCredential:
        if not isinstance(data, dict):
            raise ParseError("vc claim is not an object")
        types = data.get("type", [])
        if not isinstance(types, list) or not all(isinstance(t, str) for t in types):
            raise ParseError("vc.type must be an array of strings")
        if "credentialSubject" not in data:
            raise ParseError("Missing vc.credentialSubject")
        return cls(
            credential_subject=CredentialSubject.from_dict(data["credentialSubject"]),
            type=types,
        )


@dataclass
class HealthCardClaims:
    """Decoded JWS payload of a SMART Health Card."""

    iss: str
    vc: VerifiableCredential
    nbf: float | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> HealthCardClaims:
        """Build typed claims from the decoded JSON mapping.

        Raises:
            ParseError: If a required claim is missing or mistyped.
        """
        if not isinstance(data, dict):
            raise ParseError("Claims payload is not a JSON object")

        iss = data.get("iss")
        if not isinstance(iss, str) or not iss:
            raise ParseError("Missing or invalid iss claim")

        nbf = data.get("nbf")
        if nbf is not None and (isinstance(nbf, bool) or not isinstance(nbf, (int, float))):
            raise ParseError("nbf claim must be a number")

        if "vc" not in data:
            raise ParseError("Missing vc claim")

        return cls(
            iss=iss,
            vc=VerifiableCredential.from_dict(data["vc"]),
            nbf=nbf,
            raw=data,
        )

    @property
    def fhir_bundle(self) -> FhirBundle:
        return self.vc.credential_subject.fhir_bundle


def b64url_decode(segment: str) -> bytes:
    """Decode unpadded base64url, rejecting characters outside the alphabet.

    Raises:
        DecodeError: If the segment is not valid base64url.
    """
    if not _B64URL_RE.match(segment) or len(segment) % 4 == 1:
        raise DecodeError("Invalid base64url segment", detail=f"length {len(segment)}")
    padded = segment + "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("Invalid base64url segment", detail=str(e)) from e


def inflate_claims(data: bytes) -> HealthCardClaims:
    """Raw-inflate payload bytes and parse them as claims.

    Raises:
        InflateError: If the bytes are not raw DEFLATE data.
        ParseError: If the inflated text is not the expected JSON.
    """
    try:
        inflated = zlib.decompress(data, -zlib.MAX_WBITS)
    except zlib.error as e:
        raise InflateError("Payload is not raw DEFLATE data", detail=str(e)) from e

    try:
        decoded = json.loads(inflated.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ParseError("Payload is not UTF-8 text", detail=str(e)) from e
    except json.JSONDecodeError as e:
        raise ParseError("Payload is not valid JSON", detail=str(e)) from e

    return HealthCardClaims.from_dict(decoded)


def decode_claims(segment: str) -> HealthCardClaims:
    """Decode the payload segment of a compact token into claims."""
    claims = inflate_claims(b64url_decode(segment))
    logger.debug("Decoded claims issued by %s", claims.iss)
    return claims

