"""
Decode-and-verify pipeline for SMART Health Card QR codes.

scanned text -> compact token -> (header, payload, signature)
  -> unverified claims                      (direct decode of the scan)
  -> issuer JWKS -> keystore -> verified claims (signature checked)
  -> claims comparison -> patient and immunization records

The first failing stage aborts the run. Records are only extracted from
claims whose signature verified and which match the scanned claims.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from shc_decoder.claims import HealthCardClaims, decode_claims
from shc_decoder.errors import CredentialMismatch
from shc_decoder.jwks import JWKSFetcher
from shc_decoder.keystore import KeyRecord, build_keystore
from shc_decoder.numeric import decode_numeric
from shc_decoder.records import HealthRecord, extract_records
from shc_decoder.scanner import decode_qr, read_image
from shc_decoder.token import CompactToken, split_token
from shc_decoder.verifier import SignatureVerifier, VerificationResult, claims_match


logger = logging.getLogger(__name__)


@dataclass
class DecodedHealthCard:
    """Everything produced by one decode run."""

    scanned_text: str
    token: CompactToken
    claims: HealthCardClaims
    key_records: list[KeyRecord]
    verification: VerificationResult
    record: HealthRecord

    @property
    def issuer(self) -> str:
        return self.claims.iss


class HealthCardDecoder:
    """Runs the full decode, verify and extract pipeline."""

    def __init__(
        self,
        key_fetcher: JWKSFetcher | None = None,
        verifier: SignatureVerifier | None = None,
    ) -> None:
        """Initialize the decoder.

        Args:
            key_fetcher: Issuer key discovery. Any object with a
                ``fetch(issuer) -> list[KeyRecord]`` method. Created if not
                provided.
            verifier: Signature verifier. Created if not provided.
        """
        self.key_fetcher = key_fetcher or JWKSFetcher()
        self.verifier = verifier or SignatureVerifier()

    def decode_image(self, path: str | Path) -> DecodedHealthCard:
        """Read a QR image and decode the health card it carries."""
        logger.info("Reading QR image %s", path)
        image = read_image(path)
        scanned = decode_qr(image)
        return self.decode_text(scanned)

    def decode_text(self, scanned: str) -> DecodedHealthCard:
        """Decode and verify numeric QR text (``shc:/...``).

        Raises:
            SHCError: The error of the first stage that failed.
        """
        logger.debug("Scanned QR text: %s", scanned)
        token = split_token(decode_numeric(scanned))

        claims = decode_claims(token.payload)
        logger.info("Health card issued by %s", claims.iss)

        key_records = self.key_fetcher.fetch(claims.iss)
        keystore = build_keystore(key_records)

        verification = self.verifier.verify(keystore, token)
        if not verification.is_verified:
            logger.warning("Signature verification failed: %s", verification.reason)
            raise verification.error

        if not claims_match(claims, verification.claims):
            raise CredentialMismatch(
                "Scanned claims differ from verified claims", detail=f"iss {claims.iss}"
            )
        logger.info("Health card signature verified")

        record = extract_records(verification.claims)

        return DecodedHealthCard(
            scanned_text=scanned,
            token=token,
            claims=claims,
            key_records=key_records,
            verification=verification,
            record=record,
        )
