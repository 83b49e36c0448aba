"""
Envelope Codec: bytes to transport-safe base64 text, and back.

Uses the standard base64 alphabet with padding. The alphabet contains no
``,`` so encoded fields can be joined by the envelope delimiter.
"""
import base64
import binascii

from .exceptions import DecodeError


def encode(data: bytes) -> str:
    """Encode bytes as standard base64 text.

    Args:
        data: Raw bytes (may be empty).

    Returns:
        ASCII base64 string with padding.
    """
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    """Decode standard base64 text strictly.

    Args:
        text: Base64 string produced by :func:`encode`.

    Returns:
        Decoded bytes.

    Raises:
        DecodeError: If ``text`` is not a string, contains characters outside
            the base64 alphabet, or has invalid length/padding.
    """
    if not isinstance(text, str):
        raise DecodeError(
            f"Encoded text must be str, got {type(text).__name__}"
        )
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as err:
        raise DecodeError(f"Invalid base64 encoding: {err}") from err
    # only the canonical form: exact padding, zero leftover bits
    if encode(data) != text:
        raise DecodeError("Invalid base64 length or padding")
    return data
