"""QR gate-pass encoding and decoding.

A gate pass is the JSON record `{"name", "type", "timestamp"}` rendered as a
PNG QR code and stored as a `data:image/png;base64,...` URL. Scanners send
back the raw decoded text, which :func:`decode` parses.

The record carries no visitor id or signature: verification matches on
`(name, type)` only, so two visitors sharing both collide and a pass can be
replayed.
"""


import base64
import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import qrcode
from qrcode.image.pil import PilImage

from gatepass.core.config import settings
from gatepass.core.exceptions import InvalidCredentialError

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"


@dataclass(frozen=True)
class QrCredential:
    name: str
    type: str
    timestamp: str | None = None


def encode_payload(name: str, visitor_type: str, timestamp: datetime | None = None) -> str:
    timestamp = timestamp or datetime.now(timezone.utc)
    return json.dumps(
        {"name": name, "type": visitor_type, "timestamp": timestamp.isoformat()},
        separators=(",", ":"),
    )


def render_png(payload: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=settings.qr_box_size,
        border=settings.qr_border,
        image_factory=PilImage,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_url(png: bytes) -> str:
    return DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")


def png_from_data_url(data_url: str) -> bytes:
    if not data_url.startswith(DATA_URL_PREFIX):
        raise ValueError("Not a PNG data URL")
    return base64.b64decode(data_url[len(DATA_URL_PREFIX):], validate=True)


def encode(name: str, visitor_type: str, timestamp: datetime | None = None) -> str:
    """Render a gate pass for the visitor as a PNG data URL."""
    return to_data_url(render_png(encode_payload(name, visitor_type, timestamp)))


def decode(raw: str) -> QrCredential:
    """Parse the raw text read by a scanner into a credential.

    Raises InvalidCredentialError for anything that is not a JSON object with
    non-empty string `name` and `type`.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.info("Rejected unparseable QR payload: %s", exc)
        raise InvalidCredentialError() from exc

    if not isinstance(data, dict):
        raise InvalidCredentialError()
    name, visitor_type = data.get("name"), data.get("type")
    if not isinstance(name, str) or not isinstance(visitor_type, str) or not name or not visitor_type:
        raise InvalidCredentialError()

    timestamp = data.get("timestamp")
    return QrCredential(
        name=name,
        type=visitor_type,
        timestamp=timestamp if isinstance(timestamp, str) else None,
    )
