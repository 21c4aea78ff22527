import base64
import re

from worktrack.qr_utils import make_qr_png, make_qr_token, qr_data_url


def test_token_format():
    token = make_qr_token("WC-123")
    assert re.fullmatch(r"QR-WC-123-[A-Z0-9]{8}", token)
    assert make_qr_token("WC-123") != token


def test_png_bytes():
    png = make_qr_png("QR-WC-1-ABCDEFGH")
    assert png[:8] == b"\x89PNG\r\n\x1a\n"


def test_data_url_embeds_png():
    url = qr_data_url("QR-WC-1-ABCDEFGH", box_size=4, border=1)
    prefix = "data:image/png;base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):])[:4] == b"\x89PNG"
