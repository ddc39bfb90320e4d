# qr.py

"""Utility helpers to build QR targets and images for tables."""

from __future__ import annotations

import base64
import io

import qrcode


def table_url(base_url: str, tenant_code: str, table_identifier: str) -> str:
    """Return the customer URL encoded in a table's QR code."""

    return f"{base_url.rstrip('/')}/{tenant_code}/{table_identifier}"


def qr_png(target_url: str) -> bytes:
    """Render ``target_url`` as PNG bytes."""

    img = qrcode.make(target_url)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def qr_data_url(target_url: str) -> str:
    """Return ``target_url`` rendered as a ``data:image/png`` URL.

    Parameters
    ----------
    target_url:
        Link the printed code should open, usually from :func:`table_url`.
    """

    encoded = base64.b64encode(qr_png(target_url)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
