"""Encode/decode script and metadata text between platform and bundle formats.

The platform stores script sources base64-encoded; bundles store them either
as a list of lines (readable diffs) or as a single JSON-encoded text blob.
SAML2 metadata XML travels base64url-encoded.
"""

import base64
import binascii
import json
import re

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


def decode_base64(value: str) -> str:
    return base64.standard_b64decode(value).decode("utf-8")


def encode_base64(text: str) -> str:
    return base64.standard_b64encode(text.encode("utf-8")).decode("ascii")


def decode_base64url(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8")


def encode_base64url(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def is_base64_encoded(value: str) -> bool:
    """Return whether value is valid standard base64 (strict alphabet and padding)."""
    if not value or len(value) % 4 != 0 or not _BASE64_RE.match(value):
        return False
    try:
        base64.standard_b64decode(value.encode("ascii"))
    except (binascii.Error, ValueError):
        return False
    return True


def text_to_lines(text: str) -> list[str]:
    """Split text into lines; tabs become four spaces."""
    return text.replace("\t", "    ").split("\n")


def base64_to_lines(value: str) -> list[str]:
    return text_to_lines(decode_base64(value))


def base64url_to_lines(value: str) -> list[str]:
    return text_to_lines(decode_base64url(value))


def lines_to_base64(lines: list[str]) -> str:
    return encode_base64("\n".join(lines))


def lines_to_base64url(lines: list[str]) -> str:
    return encode_base64url("\n".join(lines))


def script_to_bundle(value: str, use_string_arrays: bool) -> list[str] | str:
    """Convert a platform (base64) script source into its bundle representation."""
    if use_string_arrays:
        return base64_to_lines(value)
    return json.dumps(decode_base64(value))


def script_from_bundle(value: list[str] | str) -> str:
    """Convert a bundle script source (lines, base64, or JSON text) back to base64."""
    if isinstance(value, list):
        return lines_to_base64(value)
    if is_base64_encoded(value):
        return value
    return encode_base64(json.loads(value))
