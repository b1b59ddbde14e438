"""QR code rendering for the WhatsApp login handshake."""

import io

import qrcode
import qrcode.image.svg


def print_qr_to_terminal(payload: str) -> None:
    """Print a login QR code as ASCII art on stdout."""
    qr = qrcode.QRCode(border=1)
    qr.add_data(payload)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def render_qr_svg(payload: str) -> str:
    """Return the login QR code as an SVG document."""
    image = qrcode.make(payload, image_factory=qrcode.image.svg.SvgImage)
    buffer = io.BytesIO()
    image.save(buffer)
    return buffer.getvalue().decode("utf-8")
