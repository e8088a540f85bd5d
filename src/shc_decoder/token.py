"""
Compact JWS tokens.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from shc_decoder.claims import b64url_decode
from shc_decoder.errors import MalformedToken, ParseError


@dataclass(frozen=True)
class CompactToken:
    """A compact JWS split into its three base64url segments."""

    header: str
    payload: str
    signature: str

    def __str__(self) -> str:
        return f"{self.header}.{self.payload}.{self.signature}"

    @property
    def signing_input(self) -> bytes:
        """The bytes covered by the signature: ``header.payload``."""
        return f"{self.header}.{self.payload}".encode("ascii")


@dataclass
class JWSHeader:
    """Protected JWS header of a health card."""

    alg: str
    kid: str
    zip: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> JWSHeader:
        if not isinstance(data, dict):
            raise ParseError("JWS header is not a JSON object")
        alg = data.get("alg")
        kid = data.get("kid")
        if not isinstance(alg, str) or not alg:
            raise ParseError("JWS header is missing alg")
        if not isinstance(kid, str) or not kid:
            raise ParseError("JWS header is missing kid")
        zip_ = data.get("zip")
        if zip_ is not None and not isinstance(zip_, str):
            raise ParseError("JWS header zip must be a string")
        return cls(alg=alg, kid=kid, zip=zip_)


def split_token(text: str) -> CompactToken:
    """Split a compact token into header, payload and signature.

    Raises:
        MalformedToken: If the token does not have exactly three segments.
    """
    segments = text.split(".")
    if len(segments) != 3:
        raise MalformedToken(
            "Compact token must have exactly three segments",
            detail=f"found {len(segments)}",
        )
    header, payload, signature = segments
    return CompactToken(header=header, payload=payload, signature=signature)


def parse_header(segment: str) -> JWSHeader:
    """Decode and parse the header segment.

    Raises:
        DecodeError: If the segment is not base64url.
        ParseError: If the header is not JSON or lacks alg/kid.
    """
    raw = b64url_decode(segment)
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError("JWS header is not valid JSON", detail=str(e)) from e
    return JWSHeader.from_dict(data)
