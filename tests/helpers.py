"""Test helpers: encoding utilities and a canned key discovery."""

import base64
import zlib

from shc_decoder.errors import KeyFetchError
from shc_decoder.keystore import KeyRecord, parse_jwks


ISSUER = "https://spec.smarthealth.cards/examples/issuer"
JWKS_URL = f"{ISSUER}/.well-known/jwks.json"


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def raw_deflate(data: bytes) -> bytes:
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    return compressor.compress(data) + compressor.flush()


def jwk_for(public_key, kid: str) -> dict:
    numbers = public_key.public_numbers()
    return {
        "kty": "EC",
        "kid": kid,
        "use": "sig",
        "alg": "ES256",
        "crv": "P-256",
        "x": b64url(numbers.x.to_bytes(32, byteorder="big")),
        "y": b64url(numbers.y.to_bytes(32, byteorder="big")),
    }


class FakeKeyFetcher:
    """Key discovery returning canned JWKS records."""

    def __init__(self, documents: dict[str, dict]) -> None:
        self.documents = documents
        self.requested: list[str] = []

    def fetch(self, issuer: str) -> list[KeyRecord]:
        self.requested.append(issuer)
        if issuer not in self.documents:
            raise KeyFetchError(f"No JWKS for {issuer}")
        return parse_jwks(self.documents[issuer])
