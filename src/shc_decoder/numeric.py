"""
Numeric QR encoding used by SMART Health Cards.

The QR payload carries the JWS as pairs of decimal digits: each pair is the
character code minus 45. See
https://spec.smarthealth.cards/#encoding-chunks-as-qr-codes
"""

from __future__ import annotations

import logging
import string

from shc_decoder.errors import MalformedEncoding


logger = logging.getLogger(__name__)

SHC_PREFIX = "shc:/"
OFFSET = 45

# base64url alphabet plus the segment separator
TOKEN_ALPHABET = frozenset(string.ascii_letters + string.digits + "-_.")


def strip_scanned_text(scanned: str) -> str:
    """Remove whitespace, control characters and the ``shc:/`` prefix."""
    text = "".join(ch for ch in scanned if ch.isprintable() and not ch.isspace())
    if text.lower().startswith(SHC_PREFIX):
        text = text[len(SHC_PREFIX):]
    return text


def decode_numeric(scanned: str) -> str:
    """Decode the numeric QR text into a compact JWS.

    Args:
        scanned: Text read from the QR code, with or without ``shc:/``.

    Returns:
        The compact token text (``header.payload.signature``).

    Raises:
        MalformedEncoding: On odd length, non-digit characters, or a digit
            pair that maps outside the token alphabet.
    """
    digits = strip_scanned_text(scanned)

    if not digits:
        raise MalformedEncoding("Scanned text is empty")

    for position, ch in enumerate(digits):
        if ch not in string.digits:
            raise MalformedEncoding(
                "Non-digit character in scanned text",
                detail=f"{ch!r} at position {position}",
            )

    if len(digits) % 2:
        raise MalformedEncoding(
            "Scanned text has odd length", detail=f"{len(digits)} digits"
        )

    chars: list[str] = []
    for i in range(0, len(digits), 2):
        ch = chr(int(digits[i:i + 2]) + OFFSET)
        if ch not in TOKEN_ALPHABET:
            raise MalformedEncoding(
                "Digit pair decodes outside the token alphabet",
                detail=f"{digits[i:i + 2]} at position {i}",
            )
        chars.append(ch)

    token = "".join(chars)
    logger.debug("Decoded %d digit pairs", len(chars))
    return token

