"""Tests for QR image reading."""

import pytest
from PIL import Image

from shc_decoder.errors import ImageReadError, QRNotFound
from shc_decoder.scanner import decode_qr, read_image


@pytest.fixture
def blank_image():
    return Image.new("RGBA", (100, 100), "white")


class TestReadImage:
    """Tests for opening QR images."""

    def test_read_png(self, tmp_path):
        path = tmp_path / "card.png"
        Image.new("RGB", (40, 40), "white").save(path)

        image = read_image(path)

        assert image.size == (40, 40)
        assert image.mode == "RGBA"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageReadError, match="not found"):
            read_image(tmp_path / "missing.png")

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "card.png"
        path.write_text("shc:/5676")

        with pytest.raises(ImageReadError, match="Could not read image"):
            read_image(path)


class TestDecodeQR:
    """Tests for QR symbol selection."""

    def test_shc_symbol_preferred(self, monkeypatch, blank_image):
        """Test that an shc:/ symbol wins over an earlier unrelated symbol."""
        monkeypatch.setattr(
            "shc_decoder.scanner._zbar_decode",
            lambda image: ["https://example.com/menu", "shc:/5676290152535401005012"],
        )

        assert decode_qr(blank_image) == "shc:/5676290152535401005012"

    def test_prefix_match_is_case_insensitive(self, monkeypatch, blank_image):
        monkeypatch.setattr(
            "shc_decoder.scanner._zbar_decode",
            lambda image: ["WIFI:S:cafe;;", "SHC:/56762901"],
        )

        assert decode_qr(blank_image) == "SHC:/56762901"

    def test_first_symbol_without_shc(self, monkeypatch, blank_image):
        monkeypatch.setattr(
            "shc_decoder.scanner._zbar_decode",
            lambda image: ["first", "second"],
        )

        assert decode_qr(blank_image) == "first"

    def test_no_symbols(self, monkeypatch, blank_image):
        monkeypatch.setattr("shc_decoder.scanner._zbar_decode", lambda image: [])

        with pytest.raises(QRNotFound):
            decode_qr(blank_image)

    def test_blank_image_with_zbar(self, blank_image):
        """Test a real zbar scan of an image without a QR code."""
        pytest.importorskip("pyzbar.pyzbar", exc_type=ImportError)

        with pytest.raises(QRNotFound):
            decode_qr(blank_image)
