"""Conversions between stored image payloads and raw bytes."""

from __future__ import annotations

import base64
import binascii
import re

import requests

from wardrobe_app.errors import TerminalServiceError

DATA_URL_PATTERN = re.compile(r"^data:(image/[\w.+-]+);base64,", re.IGNORECASE)
DEFAULT_MIME_TYPE = "image/jpeg"


def clean_base64(payload: str) -> str:
    """Strip a ``data:image/...;base64,`` prefix if present."""

    return DATA_URL_PATTERN.sub("", payload.strip(), count=1)


def guess_mime_type(payload: str | bytes) -> str:
    if isinstance(payload, str):
        match = DATA_URL_PATTERN.match(payload.strip())
        if match:
            return match.group(1).lower()
    return DEFAULT_MIME_TYPE


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def fetch_image_bytes(url: str, timeout: float = 10.0) -> bytes:
    """Download an image reference such as an identity's profile photo."""

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise TerminalServiceError(f"Could not fetch image reference: {exc}") from exc
    return response.content


def decode_image(payload: str | bytes, timeout: float = 10.0) -> bytes:
    """Return raw bytes for a data URL, bare base64 string, http(s) URL or bytes."""

    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    stripped = payload.strip()
    if not stripped:
        raise ValueError("Image payload is empty")
    if stripped.lower().startswith(("http://", "https://")):
        return fetch_image_bytes(stripped, timeout=timeout)
    try:
        return base64.b64decode(clean_base64(stripped), validate=True)
    except binascii.Error as exc:
        raise ValueError("Image payload is not valid base64") from exc


__all__ = [
    "clean_base64",
    "decode_image",
    "fetch_image_bytes",
    "guess_mime_type",
    "to_data_url",
]
