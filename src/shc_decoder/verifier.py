"""
SMART Health Card signature verifier.

Verifies the compact JWS of a health card and re-derives the claims from the
verified payload bytes.

Supported:
- Algorithm: ES256
- Curve: P-256 (secp256r1)
- Payload: raw DEFLATE compressed JSON ("zip": "DEF")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature

from shc_decoder.claims import HealthCardClaims, b64url_decode, inflate_claims
from shc_decoder.errors import (
    DecodeError,
    ParseError,
    SHCError,
    SignatureMismatch,
    UnknownKeyId,
    UnsupportedKey,
)
from shc_decoder.keystore import SUPPORTED_ALGORITHM, KeyStore
from shc_decoder.token import CompactToken, parse_header


logger = logging.getLogger(__name__)

# P-256 raw signature: 32-byte r || 32-byte s
ES256_SIGNATURE_LENGTH = 64


class VerificationStatus(Enum):
    """Outcome of signature verification."""

    VERIFIED = "verified"
    FAILED = "failed"


@dataclass(frozen=True)
class VerificationResult:
    """Verification verdict with the payload it applies to.

    Verified results carry the claims re-derived from the signed payload;
    failed results carry the error and no claims.
    """

    status: VerificationStatus
    claims: HealthCardClaims | None = None
    error: SHCError | None = None

    @classmethod
    def verified(cls, claims: HealthCardClaims) -> VerificationResult:
        return cls(status=VerificationStatus.VERIFIED, claims=claims)

    @classmethod
    def failed(cls, error: SHCError) -> VerificationResult:
        return cls(status=VerificationStatus.FAILED, error=error)

    @property
    def is_verified(self) -> bool:
        return self.status == VerificationStatus.VERIFIED and self.claims is not None

    @property
    def reason(self) -> str | None:
        return str(self.error) if self.error else None


class SignatureVerifier:
    """ES256 compact JWS verifier for health cards."""

    SUPPORTED_ALGORITHMS = {SUPPORTED_ALGORITHM}
    SUPPORTED_COMPRESSION = {"DEF"}

    def verify(self, keystore: KeyStore, token: CompactToken) -> VerificationResult:
        """Verify a token and decode its signed payload.

        Performs:
        1. Header parsing (alg, kid, zip)
        2. Key lookup by kid
        3. ECDSA P-256 / SHA-256 signature check over ``header.payload``
        4. Inflate and parse of the verified payload bytes

        Args:
            keystore: Keys published by the issuer.
            token: The compact token to verify.

        Returns:
            VerificationResult; never raises for verification failures.
        """
        try:
            claims = self._verify(keystore, token)
        except SHCError as e:
            logger.debug("Verification failed: %s: %s", e.kind, e)
            return VerificationResult.failed(e)

        logger.debug("Signature verified for issuer %s", claims.iss)
        return VerificationResult.verified(claims)

    def _verify(self, keystore: KeyStore, token: CompactToken) -> HealthCardClaims:
        header = parse_header(token.header)

        if header.alg not in self.SUPPORTED_ALGORITHMS:
            raise UnsupportedKey(f"Unsupported signing algorithm: {header.alg}")
        if header.zip not in self.SUPPORTED_COMPRESSION:
            raise ParseError(
                "Unsupported payload compression", detail=f"zip={header.zip}"
            )

        public_key = keystore.get(header.kid)
        if public_key is None:
            raise UnknownKeyId("Signing key not found in issuer keystore", detail=f"kid {header.kid}")

        try:
            signature = b64url_decode(token.signature)
        except DecodeError as e:
            raise SignatureMismatch("Signature segment is not base64url", detail=f"kid {header.kid}") from e

        self._verify_signature(public_key, token.signing_input, signature, header.kid)

        # Only the payload bytes that were covered by the signature are decoded.
        payload = token.signing_input.split(b".", 1)[1]
        return inflate_claims(b64url_decode(payload.decode("ascii")))

    def _verify_signature(
        self,
        public_key: ec.EllipticCurvePublicKey,
        message: bytes,
        signature: bytes,
        kid: str,
    ) -> None:
        """Verify a raw r||s ES256 signature.

        Raises:
            SignatureMismatch: If the signature does not verify.
        """
        if len(signature) != ES256_SIGNATURE_LENGTH:
            raise SignatureMismatch(
                "Invalid ES256 signature length",
                detail=f"kid {kid}: {len(signature)} bytes",
            )

        r = int.from_bytes(signature[:32], byteorder="big")
        s = int.from_bytes(signature[32:], byteorder="big")
        der_sig = encode_dss_signature(r, s)

        try:
            public_key.verify(der_sig, message, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature as e:
            raise SignatureMismatch("Signature does not verify", detail=f"kid {kid}") from e


def claims_match(unverified: HealthCardClaims, verified: HealthCardClaims) -> bool:
    """Compare claims decoded from the scan with the verified claims.

    Deep equality of the decoded JSON, independent of key order. The scanned
    claims are only trusted when this returns True.
    """
    return unverified.raw == verified.raw
