"""
Issuer key discovery.

Fetches ``{iss}/.well-known/jwks.json`` per
https://spec.smarthealth.cards/#determining-keys-associated-with-an-issuer
"""

from __future__ import annotations

import logging

import httpx

from shc_decoder.errors import KeyFetchError
from shc_decoder.keystore import KeyRecord, parse_jwks


logger = logging.getLogger(__name__)


class JWKSFetcher:
    """Fetches the JWKS published by a health card issuer."""

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = True,
    ) -> None:
        """Initialize the fetcher.

        Args:
            timeout: HTTP request timeout in seconds.
            verify_ssl: Whether to verify SSL certificates.
        """
        self.timeout = timeout
        self.verify_ssl = verify_ssl

    def _issuer_to_url(self, issuer: str) -> str:
        """https://example.org/issuer -> https://example.org/issuer/.well-known/jwks.json"""
        return f"{issuer.rstrip('/')}/.well-known/jwks.json"

    def fetch(self, issuer: str) -> list[KeyRecord]:
        """Fetch the issuer's key records.

        Args:
            issuer: The ``iss`` claim of the health card.

        Returns:
            Key records from the JWKS document.

        Raises:
            KeyFetchError: On network failure, HTTP error status, or a
                malformed document.
        """
        url = self._issuer_to_url(issuer)
        logger.debug("Fetching JWKS from %s", url)

        try:
            with httpx.Client(timeout=self.timeout, verify=self.verify_ssl) as client:
                response = client.get(url, headers={"Accept": "application/json"})
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            raise KeyFetchError(
                f"HTTP error fetching JWKS from {url}", detail=str(e.response.status_code)
            ) from e
        except httpx.RequestError as e:
            raise KeyFetchError(f"Network error fetching JWKS from {url}", detail=str(e)) from e
        except ValueError as e:
            raise KeyFetchError(f"Invalid JSON in JWKS from {url}") from e

        return parse_jwks(data)
