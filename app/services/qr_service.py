import io
import logging

import qrcode

from app.core.config import settings

logger = logging.getLogger(__name__)


def attend_url(session_id: str) -> str:
    """Link students open to check in to a session."""
    return f"{settings.PUBLIC_BASE_URL}/attend/{session_id}"


def generate_session_qr(session_id: str) -> bytes:
    """PNG QR code encoding the session's check-in link."""
    url = attend_url(session_id)
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(url)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    logger.debug(f"Generated QR code for {url}")
    return buf.getvalue()
