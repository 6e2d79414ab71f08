"""Lossless conversion between text and raw bytes."""

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def string_to_bytes(s: str) -> bytes:
    """Encode text as UTF-8, restoring any raw bytes held as surrogates."""
    return s.encode(_ENCODING, _ERRORS)


def bytes_to_string(b: bytes) -> str:
    """Decode bytes as UTF-8, keeping undecodable bytes as surrogates."""
    return bytes(b).decode(_ENCODING, _ERRORS)