"""
Unit tests for the image codec (real Pillow images, no files on disk except tmp).
"""
import base64
import io
import os
import tempfile
import unittest

from PIL import Image

from studio.utils.images import EncodedImage


def _image_bytes(fmt: str) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


class TestEncodedImage(unittest.TestCase):
    def test_from_bytes_sniffs_png(self):
        raw = _image_bytes("PNG")
        image = EncodedImage.from_bytes(raw)
        self.assertEqual(image.mime_type, "image/png")
        self.assertEqual(image.to_bytes(), raw)

    def test_from_bytes_sniffs_jpeg(self):
        image = EncodedImage.from_bytes(_image_bytes("JPEG"))
        self.assertEqual(image.mime_type, "image/jpeg")

    def test_from_bytes_rejects_non_image(self):
        with self.assertRaises(ValueError):
            EncodedImage.from_bytes(b"%PDF-1.4 not an image")
        with self.assertRaises(ValueError):
            EncodedImage.from_bytes(b"")

    def test_from_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "shoe.gif")
            Image.new("RGB", (4, 4)).save(path, format="GIF")
            image = EncodedImage.from_path(path)
        self.assertEqual(image.mime_type, "image/gif")

    def test_from_path_missing(self):
        with self.assertRaises(ValueError):
            EncodedImage.from_path("/nonexistent/shoe.png")

    def test_data_uri_parsing(self):
        payload = base64.b64encode(b"abc").decode()
        image = EncodedImage.from_data_uri(f"data:image/jpeg;base64,{payload}")
        self.assertEqual(image.mime_type, "image/jpeg")
        self.assertEqual(image.data, payload)
        self.assertEqual(image.to_data_uri(), f"data:image/jpeg;base64,{payload}")

    def test_bare_base64_defaults_to_png(self):
        image = EncodedImage.from_data_uri("YWJj")
        self.assertEqual(image.mime_type, "image/png")

    def test_invalid_data_uris(self):
        for uri in ("", "data:image/png,abc", "data:image/png;base64,"):
            with self.assertRaises(ValueError):
                EncodedImage.from_data_uri(uri)

    def test_to_part(self):
        self.assertEqual(
            EncodedImage(data="YWJj", mime_type="image/png").to_part(),
            {"inlineData": {"data": "YWJj", "mimeType": "image/png"}},
        )
