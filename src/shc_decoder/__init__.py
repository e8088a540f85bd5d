"""
SHC Decoder - SMART Health Card QR decoding and verification.

Supports:
- Numeric shc:/ QR payloads
- Compact JWS with raw DEFLATE compressed claims
- ES256 (ECDSA P-256) signatures against the issuer's published JWKS
- Patient and Immunization extraction from the embedded FHIR bundle
"""

from shc_decoder.claims import HealthCardClaims, decode_claims
from shc_decoder.errors import SHCError
from shc_decoder.jwks import JWKSFetcher
from shc_decoder.keystore import KeyRecord, KeyStore, build_keystore
from shc_decoder.numeric import decode_numeric
from shc_decoder.pipeline import DecodedHealthCard, HealthCardDecoder
from shc_decoder.records import HealthRecord, extract_records
from shc_decoder.token import CompactToken, split_token
from shc_decoder.verifier import (
    SignatureVerifier,
    VerificationResult,
    VerificationStatus,
    claims_match,
)

__version__ = "0.1.0"

__all__ = [
    "HealthCardDecoder",
    "DecodedHealthCard",
    "decode_numeric",
    "split_token",
    "CompactToken",
    "decode_claims",
    "HealthCardClaims",
    "KeyRecord",
    "KeyStore",
    "build_keystore",
    "JWKSFetcher",
    "SignatureVerifier",
    "VerificationResult",
    "VerificationStatus",
    "claims_match",
    "extract_records",
    "HealthRecord",
    "SHCError",
]
