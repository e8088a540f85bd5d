"""Shared fixtures: a P-256 issuer key and minted health cards."""

import copy
import json

import pytest

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from cryptography.hazmat.backends import default_backend

from helpers import ISSUER, FakeKeyFetcher, b64url, jwk_for, raw_deflate
from shc_decoder.keystore import KeyRecord, build_keystore


@pytest.fixture
def ec_key_pair():
    """Generate a test EC P-256 key pair."""
    private_key = ec.generate_private_key(ec.SECP256R1(), default_backend())
    return private_key, private_key.public_key()


@pytest.fixture
def public_key_jwk(ec_key_pair):
    """Issuer public key as JWK with kid k1."""
    _, public_key = ec_key_pair
    return jwk_for(public_key, "k1")


@pytest.fixture
def jwks_document(public_key_jwk):
    return {"keys": [public_key_jwk]}


@pytest.fixture
def keystore(public_key_jwk):
    return build_keystore([KeyRecord.from_dict(public_key_jwk)])


@pytest.fixture
def patient_resource():
    return {
        "resourceType": "Patient",
        "name": [{"family": "Anyperson", "given": ["John", "B."]}],
        "birthDate": "1951-01-20",
    }


@pytest.fixture
def immunization_resources():
    return [
        {
            "resourceType": "Immunization",
            "status": "completed",
            "vaccineCode": {"coding": [{"system": "http://hl7.org/fhir/sid/cvx", "code": "207"}]},
            "patient": {"reference": "resource:0"},
            "occurrenceDateTime": "2021-01-01",
            "performer": [{"actor": {"display": "ABC General Hospital"}}],
            "lotNumber": "0000001",
        },
        {
            "resourceType": "Immunization",
            "status": "completed",
            "vaccineCode": {"coding": [{"system": "http://hl7.org/fhir/sid/cvx", "code": "207"}]},
            "patient": {"reference": "resource:0"},
            "occurrenceDateTime": "2021-01-29",
            "performer": [{"actor": {"display": "ABC General Hospital"}}],
            "lotNumber": "0000007",
        },
    ]


@pytest.fixture
def claims_dict(patient_resource, immunization_resources):
    """Decoded payload of a two-dose COVID-19 health card."""
    entries = [{"fullUrl": "resource:0", "resource": patient_resource}]
    entries += [
        {"fullUrl": f"resource:{i}", "resource": r}
        for i, r in enumerate(immunization_resources, start=1)
    ]
    return {
        "iss": ISSUER,
        "nbf": 1620847989.837,
        "vc": {
            "type": [
                "https://smarthealth.cards#health-card",
                "https://smarthealth.cards#immunization",
                "https://smarthealth.cards#covid19",
            ],
            "credentialSubject": {
                "fhirVersion": "4.0.1",
                "fhirBundle": {
                    "resourceType": "Bundle",
                    "type": "collection",
                    "entry": entries,
                },
            },
        },
    }


@pytest.fixture
def patient_only_claims(claims_dict):
    claims = copy.deepcopy(claims_dict)
    bundle = claims["vc"]["credentialSubject"]["fhirBundle"]
    bundle["entry"] = bundle["entry"][:1]
    return claims


@pytest.fixture
def mint(ec_key_pair):
    """Return a function that signs claims into a compact JWS."""
    private_key, _ = ec_key_pair

    def _mint(claims: dict, kid: str = "k1", header: dict | None = None, key=None) -> str:
        protected = {"zip": "DEF", "alg": "ES256", "kid": kid}
        if header is not None:
            protected = header
        header_segment = b64url(json.dumps(protected, separators=(",", ":")).encode())
        payload_segment = b64url(raw_deflate(json.dumps(claims, separators=(",", ":")).encode()))
        signing_input = f"{header_segment}.{payload_segment}".encode("ascii")

        der = (key or private_key).sign(signing_input, ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        signature = r.to_bytes(32, byteorder="big") + s.to_bytes(32, byteorder="big")

        return f"{header_segment}.{payload_segment}.{b64url(signature)}"

    return _mint


@pytest.fixture
def to_numeric():
    """Return a function encoding a compact JWS as shc:/ numeric QR text."""

    def _to_numeric(token: str) -> str:
        return "shc:/" + "".join(f"{ord(ch) - 45:02d}" for ch in token)

    return _to_numeric


@pytest.fixture
def fake_fetcher(jwks_document):
    return FakeKeyFetcher({ISSUER: jwks_document})
