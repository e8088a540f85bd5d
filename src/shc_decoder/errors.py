"""
Error taxonomy for SMART Health Card decoding.

Each pipeline stage raises its own error kind so that the CLI can report
exactly which stage broke and exit with a distinct status code.
"""

from __future__ import annotations


class SHCError(Exception):
    """Base class for all decoding and verification failures."""

    exit_code = 1
    kind = "SHCError"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


class ImageReadError(SHCError):
    """The QR image could not be opened or read."""

    exit_code = 10
    kind = "ImageReadError"


class QRNotFound(SHCError):
    """No QR symbol was recognized in the image."""

    exit_code = 11
    kind = "QRNotFound"


class MalformedEncoding(SHCError):
    """The scanned numeric text is not a valid digit-pair encoding."""

    exit_code = 12
    kind = "MalformedEncoding"


class MalformedToken(SHCError):
    """The compact token does not have exactly three segments."""

    exit_code = 13
    kind = "MalformedToken"


class DecodeError(SHCError):
    """A segment is not valid base64url."""

    exit_code = 14
    kind = "DecodeError"


class InflateError(SHCError):
    """The payload is not valid raw DEFLATE data."""

    exit_code = 15
    kind = "InflateError"


class ParseError(SHCError):
    """Decoded text is not JSON or does not have the expected shape."""

    exit_code = 16
    kind = "ParseError"


class KeyFetchError(SHCError):
    """The issuer's JWKS document could not be retrieved."""

    exit_code = 17
    kind = "KeyFetchError"


class UnsupportedKey(SHCError):
    """A key or signing algorithm is not supported."""

    exit_code = 18
    kind = "UnsupportedKey"


class EmptyKeySet(SHCError):
    """The issuer published no keys."""

    exit_code = 19
    kind = "EmptyKeySet"


class UnknownKeyId(SHCError):
    """The token's key id is not present in the keystore."""

    exit_code = 20
    kind = "UnknownKeyId"


class SignatureMismatch(SHCError):
    """The token signature does not verify."""

    exit_code = 21
    kind = "SignatureMismatch"


class MissingPatientRecord(SHCError):
    """The FHIR bundle has no patient entry."""

    exit_code = 22
    kind = "MissingPatientRecord"


class CredentialMismatch(SHCError):
    """Claims decoded from the scan differ from the verified claims."""

    exit_code = 23
    kind = "CredentialMismatch"
