import base64
import binascii
import math
import random
import re
import string
import time
from dataclasses import dataclass
from typing import Optional

from lawn_guardian.core.errors import ImageLoadError

DEFAULT_MIME_TYPE = "image/jpeg"
_MIME_PATTERN = re.compile(r":(.*?);")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_ASCII_WHITESPACE = re.compile(r"[\t\n\f\r ]+")


@dataclass(frozen=True)
class BinaryPayload:
    data: bytes
    mime_type: str


def _split_data_url(data_url: str):
    """Returns (header, base64 body). Header is empty when there is no data-URL prefix."""
    if "," in data_url:
        header, body = data_url.split(",", 1)
        return header, body
    return "", data_url


def base64_to_binary(data_url: str) -> BinaryPayload:
    """Decodes a base64 data URL into raw bytes plus its declared MIME type."""
    header, body = _split_data_url(data_url)
    match = _MIME_PATTERN.search(header)
    mime_type = match.group(1) if match and match.group(1) else DEFAULT_MIME_TYPE

    # Lenient like a browser: line breaks and missing padding are accepted
    body = _ASCII_WHITESPACE.sub("", body)
    if len(body.rstrip("=")) % 4 == 1:
        raise ImageLoadError("Invalid base64 payload: length cannot be valid")
    body += "=" * (-len(body) % 4)

    try:
        data = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(f"Invalid base64 payload: {e}") from e

    return BinaryPayload(data=data, mime_type=mime_type)


def to_data_url(data: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    b64 = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type};base64,{b64}"


def estimate_byte_size(base64_string: str) -> int:
    """
    Approximate decoded size of a base64 string or data URL.
    Assumes standard padding; not exact for malformed input.
    """
    _, body = _split_data_url(base64_string)
    padding = len(body) - len(body.rstrip("="))
    return math.floor(len(body) * 3 / 4) - padding


def format_human_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def build_storage_key(user_id: str, timestamp: Optional[int] = None, random_suffix: Optional[str] = None) -> str:
    """
    Upload path for a scan image: "<user_id>/<timestamp_ms>-<suffix>.jpg".
    Uniqueness by convention only, the suffix is not cryptographic.
    """
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    if random_suffix is None:
        random_suffix = "".join(random.choices(_SUFFIX_ALPHABET, k=6))
    return f"{user_id}/{timestamp}-{random_suffix}.jpg"
