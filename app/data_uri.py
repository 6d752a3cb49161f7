"""Encoding and decoding of self-contained ``data:`` audio payloads."""

import base64
import binascii
import mimetypes
from dataclasses import dataclass

DEFAULT_AUDIO_MIME = "audio/wav"


@dataclass
class DecodedAudio:
    mime_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return mimetypes.guess_extension(self.mime_type) or ".bin"


def encode_data_uri(data: bytes, mime_type: str = DEFAULT_AUDIO_MIME) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(uri: str) -> DecodedAudio:
    """Split a base64 data URI into mime type and bytes.

    Raises ValueError when the URI is not a non-empty base64 data URI.
    """
    if not uri.startswith("data:") or "," not in uri:
        raise ValueError("Not a data URI")
    header, payload = uri[5:].split(",", 1)
    parts = header.split(";")
    if "base64" not in parts[1:] or not payload:
        raise ValueError("Data URI is not base64 encoded")
    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    return DecodedAudio(mime_type=parts[0] or DEFAULT_AUDIO_MIME, data=data)
