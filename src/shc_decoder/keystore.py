"""
Verification keystore built from an issuer's JWKS.

SMART Health Card issuers publish EC P-256 keys used with ES256.
https://spec.smarthealth.cards/#determining-keys-associated-with-an-issuer
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from cryptography.hazmat.primitives.asymmetric import ec

from shc_decoder.claims import b64url_decode
from shc_decoder.errors import DecodeError, EmptyKeySet, KeyFetchError, UnsupportedKey


logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHM = "ES256"
JWK_STRING_MEMBERS = ("kid", "kty", "crv", "x", "y", "alg", "use")


@dataclass
class KeyRecord:
    """EC public key entry from a JWKS document."""

    kid: str
    kty: str
    crv: str
    x: str
    y: str
    alg: str | None = None
    use: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KeyRecord:
        """Create a KeyRecord from a JWK dictionary.

        Raises:
            KeyFetchError: If a JWK member used here is not a string.
        """
        for name in JWK_STRING_MEMBERS:
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                raise KeyFetchError(
                    f"JWK member {name} must be a string",
                    detail=f"got {type(value).__name__}",
                )
        return cls(
            kid=data.get("kid", ""),
            kty=data.get("kty", ""),
            crv=data.get("crv", ""),
            x=data.get("x", ""),
            y=data.get("y", ""),
            alg=data.get("alg"),
            use=data.get("use"),
        )


class KeyStore(Mapping[str, ec.EllipticCurvePublicKey]):
    """Read-only mapping of key id to verification key."""

    def __init__(self, keys: dict[str, ec.EllipticCurvePublicKey]) -> None:
        self._keys = dict(keys)

    def __getitem__(self, kid: str) -> ec.EllipticCurvePublicKey:
        return self._keys[kid]

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"KeyStore(kids={sorted(self._keys)!r})"


def parse_jwks(document: Any) -> list[KeyRecord]:
    """Extract key records from a JWKS document.

    Raises:
        KeyFetchError: If the document is not a JWKS object.
    """
    if not isinstance(document, dict) or not isinstance(document.get("keys"), list):
        raise KeyFetchError("JWKS document has no keys array")

    records: list[KeyRecord] = []
    for index, item in enumerate(document["keys"]):
        if not isinstance(item, dict):
            raise KeyFetchError("JWKS key entry is not an object", detail=f"index {index}")
        records.append(KeyRecord.from_dict(item))
    return records


def _to_public_key(record: KeyRecord) -> ec.EllipticCurvePublicKey:
    """Convert a P-256 key record to a cryptography public key.

    Raises:
        UnsupportedKey: If the record is not a usable ES256 verification key.
    """
    if not record.kid:
        raise UnsupportedKey("Key record has no kid")
    if record.kty != "EC" or record.crv != "P-256":
        raise UnsupportedKey(
            "Only EC P-256 keys are supported",
            detail=f"kid {record.kid}: kty={record.kty or '?'} crv={record.crv or '?'}",
        )
    if record.alg is not None and record.alg != SUPPORTED_ALGORITHM:
        raise UnsupportedKey(
            f"Unsupported key algorithm: {record.alg}", detail=f"kid {record.kid}"
        )
    if record.use is not None and record.use != "sig":
        raise UnsupportedKey(
            f"Key is not a signing key: use={record.use}", detail=f"kid {record.kid}"
        )

    try:
        x_bytes = b64url_decode(record.x)
        y_bytes = b64url_decode(record.y)
    except DecodeError as e:
        raise UnsupportedKey("Invalid key coordinates", detail=f"kid {record.kid}") from e

    if len(x_bytes) != 32 or len(y_bytes) != 32:
        raise UnsupportedKey("Invalid key coordinate length", detail=f"kid {record.kid}")

    x = int.from_bytes(x_bytes, byteorder="big")
    y = int.from_bytes(y_bytes, byteorder="big")

    try:
        return ec.EllipticCurvePublicNumbers(x, y, ec.SECP256R1()).public_key()
    except ValueError as e:
        raise UnsupportedKey("Key is not a point on P-256", detail=f"kid {record.kid}") from e


def build_keystore(records: Iterable[KeyRecord]) -> KeyStore:
    """Build a keystore from key records.

    Args:
        records: Key records published by the issuer.

    Returns:
        KeyStore keyed by kid.

    Raises:
        EmptyKeySet: If no records are given.
        UnsupportedKey: If any record is not a usable ES256 key.
    """
    records = list(records)
    if not records:
        raise EmptyKeySet("Issuer published no keys")

    keys: dict[str, ec.EllipticCurvePublicKey] = {}
    for record in records:
        keys[record.kid] = _to_public_key(record)

    logger.debug("Built keystore with %d key(s)", len(keys))
    return KeyStore(keys)
