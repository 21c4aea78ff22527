"""Utility functions for work card QR codes.

A work card's QR token is derived once, when the card is created, from its
card id plus a random suffix.  The token is what gets encoded in the printed
image and what the scanner page sends back for lookup.  Images are rendered
on request as PNG bytes or as a data URL the browser can drop into an
``<img>`` tag; nothing is written to disk.
"""

import base64
import secrets
import string
from io import BytesIO

import qrcode


TOKEN_ALPHABET = string.ascii_uppercase + string.digits
TOKEN_SUFFIX_LENGTH = 8


def make_qr_token(card_id: str) -> str:
    """Return a fresh ``QR-<card_id>-<8 uppercase alphanumerics>`` token."""
    suffix = "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_SUFFIX_LENGTH))
    return f"QR-{card_id}-{suffix}"


def make_qr_png(payload: str, box_size: int = 10, border: int = 2) -> bytes:
    """Render ``payload`` as a black on white PNG and return the bytes."""
    qr = qrcode.QRCode(box_size=box_size, border=border)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def qr_data_url(payload: str, box_size: int = 10, border: int = 2) -> str:
    png = make_qr_png(payload, box_size=box_size, border=border)
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
