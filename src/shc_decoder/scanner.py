"""
QR image reading.

Pillow opens the image and pyzbar locates and decodes the QR symbol.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from shc_decoder.errors import ImageReadError, QRNotFound
from shc_decoder.numeric import SHC_PREFIX


logger = logging.getLogger(__name__)


def read_image(path: str | Path) -> Image.Image:
    """Open a raster image and load its pixels.

    Raises:
        ImageReadError: If the file is missing or not a readable image.
    """
    path = Path(path)
    try:
        with Image.open(path) as image:
            image.load()
            return image.convert("RGBA")
    except FileNotFoundError as e:
        raise ImageReadError("Image file not found", detail=str(path)) from e
    except (UnidentifiedImageError, OSError) as e:
        raise ImageReadError("Could not read image", detail=f"{path}: {e}") from e


def _zbar_decode(image: Image.Image) -> list[str]:
    """Text of every QR symbol zbar finds in the image."""
    # libzbar is only loaded when an image is actually scanned
    from pyzbar import pyzbar

    symbols = pyzbar.decode(image, symbols=[pyzbar.ZBarSymbol.QRCODE])
    return [s.data.decode("utf-8", errors="replace") for s in symbols]


def decode_qr(image: Image.Image) -> str:
    """Return the text of the health card QR symbol in the image.

    The first symbol carrying an ``shc:/`` payload is preferred; otherwise the
    first QR symbol found is returned.

    Raises:
        QRNotFound: If the image contains no QR symbol.
    """
    texts = _zbar_decode(image)
    if not texts:
        raise QRNotFound("No QR code found in image")

    logger.debug("Found %d QR symbol(s)", len(texts))

    for text in texts:
        if text.lower().startswith(SHC_PREFIX):
            return text
    return texts[0]
