import base64
import re

import pytest

from lawn_guardian.core.byte_utils import (
    base64_to_binary,
    build_storage_key,
    estimate_byte_size,
    format_human_size,
    to_data_url,
)
from lawn_guardian.core.errors import ImageLoadError


def test_estimate_single_padding_char():
    assert estimate_byte_size("AAA=") == 2


@pytest.mark.parametrize("n", [0, 1, 2, 3, 4, 5, 1000, 1001, 1002])
def test_estimate_matches_encoded_length(n):
    encoded = base64.b64encode(b"\x07" * n)

    assert estimate_byte_size(encoded.decode()) == n


def test_estimate_strips_data_url_prefix():
    assert estimate_byte_size("data:image/png;base64,AQI=") == 2


def test_binary_payload_and_mime():
    payload = base64_to_binary("data:image/png;base64," + base64.b64encode(b"\x89PNG").decode())

    assert payload.data == b"\x89PNG"
    assert payload.mime_type == "image/png"


def test_mime_defaults_to_jpeg():
    assert base64_to_binary("AQI=").mime_type == "image/jpeg"
    assert base64_to_binary("data:,AQI=").mime_type == "image/jpeg"


def test_invalid_base64_raises():
    with pytest.raises(ImageLoadError):
        base64_to_binary("data:image/png;base64,@@@@")


def test_data_url_roundtrip():
    url = to_data_url(b"lawn", "image/webp")

    assert url.startswith("data:image/webp;base64,")
    assert base64_to_binary(url).data == b"lawn"


@pytest.mark.parametrize("num_bytes,expected", [
    (0, "0 B"),
    (1023, "1023 B"),
    (1024, "1.0 KB"),
    (1536, "1.5 KB"),
    (1024 * 1024, "1.0 MB"),
    (int(2.5 * 1024 * 1024), "2.5 MB"),
])
def test_format_human_size(num_bytes, expected):
    assert format_human_size(num_bytes) == expected


def test_storage_key_explicit_parts():
    assert build_storage_key("user-1", 1700000000000, "abc123") == "user-1/1700000000000-abc123.jpg"


def test_storage_key_defaults():
    key = build_storage_key("u42")

    assert re.fullmatch(r"u42/\d{13}-[a-z0-9]{6}\.jpg", key)


def test_missing_padding_is_accepted():
    body = base64.b64encode(b"\x89PNG\r").decode()
    assert body.endswith("=")

    assert base64_to_binary("data:image/png;base64," + body.rstrip("=")).data == b"\x89PNG\r"


def test_wrapped_base64_is_accepted():
    raw = bytes(range(256))
    body = base64.b64encode(raw).decode()
    wrapped = "\n".join(body[i:i + 76] for i in range(0, len(body), 76))

    assert base64_to_binary("data:image/png;base64," + wrapped + "\r\n").data == raw


def test_impossible_length_rejected():
    with pytest.raises(ImageLoadError):
        base64_to_binary("data:image/png;base64,AAAAA")
