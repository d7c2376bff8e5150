"""
Image codec: user files -> EncodedImage (base64 + MIME) and back to data URI.
Pillow is used only to verify the payload is an image and read its real format.
"""
import base64
import binascii
import io
import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"


def _sniff_mime_type(raw: bytes) -> str:
    """Detect MIME type from image bytes; raises ValueError for non-images."""
    try:
        with Image.open(io.BytesIO(raw)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError("Payload is not a readable image") from e
    mime = Image.MIME.get(fmt or "")
    if not mime:
        raise ValueError(f"Unsupported image format: {fmt}")
    return mime


@dataclass(frozen=True)
class EncodedImage:
    """Image bytes in transport form: base64 text plus MIME type."""
    data: str
    mime_type: str = DEFAULT_MIME_TYPE

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str | None = None) -> "EncodedImage":
        if not raw:
            raise ValueError("Image payload is empty")
        mime = mime_type or _sniff_mime_type(raw)
        return cls(data=base64.standard_b64encode(raw).decode("ascii"), mime_type=mime)

    @classmethod
    def from_path(cls, path: str | Path) -> "EncodedImage":
        p = Path(path)
        if not p.exists():
            raise ValueError(f"Image not found: {path}")
        return cls.from_bytes(p.read_bytes())

    @classmethod
    def from_data_uri(cls, uri: str) -> "EncodedImage":
        """Parse 'data:<mime>;base64,<payload>'. A bare base64 string is taken as PNG."""
        value = (uri or "").strip()
        if not value:
            raise ValueError("Empty data URI")
        if not value.startswith("data:"):
            return cls(data=value, mime_type=DEFAULT_MIME_TYPE)
        header, sep, payload = value.partition(",")
        if not sep or ";base64" not in header:
            raise ValueError("Only base64 data URIs are supported")
        mime = header[len("data:"):].split(";", 1)[0] or DEFAULT_MIME_TYPE
        if not payload:
            raise ValueError("Data URI has no payload")
        return cls(data=payload, mime_type=mime)

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def to_bytes(self) -> bytes:
        try:
            return base64.standard_b64decode(self.data)
        except binascii.Error as e:
            raise ValueError("Image payload is not valid base64") from e

    def to_part(self) -> dict:
        """Content part in generateContent shape."""
        return {"inlineData": {"data": self.data, "mimeType": self.mime_type}}
