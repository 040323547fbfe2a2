"""
QR code rendering for guest links.

Renders SVG so no imaging library (Pillow) is needed, and returns a data
URI that can be dropped straight into an <img> tag.
"""

import base64
import io

import qrcode
import qrcode.image.svg


def qr_svg(text: str) -> bytes:
    """Encode text as an SVG QR code."""
    image = qrcode.make(text, image_factory=qrcode.image.svg.SvgPathImage)
    buffer = io.BytesIO()
    image.save(buffer)
    return buffer.getvalue()


def qr_data_uri(text: str) -> str:
    encoded = base64.b64encode(qr_svg(text)).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"
