"""
Encoded payload codec

Payload bytes are gzip compressed at the best compression level, Ascii85
encoded (btoa alphabet, `z` for a group of four null bytes) and wrapped in a
pair of delimiters so the body can be found again in free text returned by a
monitoring system.
"""
import base64
import binascii
import gzip
import logging
import re
import zlib
from typing import Union

from .. import constants
from ..exceptions import (
    CompressedInputInvalidError,
    MissingValueError,
    PayloadInvalidError,
    PayloadNotFoundError,
    PayloadRegexInvalidError,
)

__module__ = "certcheck.nagios.payload"

logger = logging.getLogger(__name__)


def _as_bytes(data: Union[str, bytes]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def is_gzip_compressed(data: bytes) -> bool:
    return data[:2] == constants.GZIP_MAGIC


def compress(data: bytes) -> bytes:
    # mtime pinned so identical input yields identical output
    return gzip.compress(data, compresslevel=9, mtime=0)


def decompress(data: bytes) -> bytes:
    if not data:
        raise MissingValueError("failed to decompress payload from empty input")
    if not is_gzip_compressed(data):
        raise CompressedInputInvalidError("input is not gzip compressed")
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as ex:
        raise CompressedInputInvalidError(f"failed to decompress payload: {ex}") from ex


def encode_ascii85(data: bytes, left_delimiter: str = "", right_delimiter: str = "") -> str:
    if not data:
        return ""
    return left_delimiter + base64.a85encode(data).decode("ascii") + right_delimiter


def unescape_ascii85(encoded: bytes) -> bytes:
    """Undo one layer of backslash escaping added by JSON returning APIs"""
    if not encoded:
        raise MissingValueError("failed to unescape empty payload")
    return encoded.replace(b"\\\\", b"\\")


def decode_ascii85(encoded: Union[str, bytes]) -> bytes:
    encoded = _as_bytes(encoded)
    if not encoded:
        return b""
    try:
        return base64.a85decode(encoded)
    except (ValueError, binascii.Error) as ex:
        raise PayloadInvalidError(
            f"failed to decode {len(encoded)} bytes input payload: {ex}"
        ) from ex


def encode_payload(
    data: Union[str, bytes],
    left_delimiter: str = constants.DEFAULT_PAYLOAD_DELIMITER_LEFT,
    right_delimiter: str = constants.DEFAULT_PAYLOAD_DELIMITER_RIGHT,
) -> str:
    data = _as_bytes(data)
    if not data:
        return ""
    try:
        compressed = compress(data)
    except (OSError, zlib.error) as ex:
        logger.warning(f"failed to compress payload content, encoding as-is: {ex}")
        return encode_ascii85(data, left_delimiter, right_delimiter)
    logger.debug(f"compressed {len(data)} payload bytes to {len(compressed)} bytes")
    return encode_ascii85(compressed, left_delimiter, right_delimiter)


def decode_payload(
    encoded: Union[str, bytes],
    left_delimiter: str = constants.DEFAULT_PAYLOAD_DELIMITER_LEFT,
    right_delimiter: str = constants.DEFAULT_PAYLOAD_DELIMITER_RIGHT,
) -> bytes:
    """Reverses encode_payload, uncompressed payloads are returned as decoded

    The body is decoded as-is first since a backslash is a valid Ascii85
    character. Bodies holding escaped backslash pairs are unescaped only when
    the as-is decode fails or does not yield gzip data.
    """
    encoded = _as_bytes(encoded)
    if left_delimiter and encoded.startswith(left_delimiter.encode("utf-8")):
        encoded = encoded[len(left_delimiter.encode("utf-8")) :]
    if right_delimiter and encoded.endswith(right_delimiter.encode("utf-8")):
        encoded = encoded[: -len(right_delimiter.encode("utf-8"))]
    if not encoded:
        return b""

    candidates = [encoded]
    if b"\\\\" in encoded:
        candidates.append(unescape_ascii85(encoded))
    decoded = None
    last_error = None
    for candidate in candidates:
        try:
            attempt = decode_ascii85(candidate)
            if is_gzip_compressed(attempt):
                return decompress(attempt)
        except (PayloadInvalidError, CompressedInputInvalidError) as ex:
            last_error = ex
            continue
        if decoded is None:
            decoded = attempt
    if decoded is None:
        raise last_error
    return decoded


def extract_encoded_payload(
    text: str,
    pattern: str = None,
    left_delimiter: str = constants.DEFAULT_PAYLOAD_DELIMITER_LEFT,
    right_delimiter: str = constants.DEFAULT_PAYLOAD_DELIMITER_RIGHT,
) -> str:
    """First delimited payload body found in text, without its delimiters

    Without delimiters nearly any text matches the Ascii85 character range.
    """
    if not text:
        raise MissingValueError("failed to extract encoded payload from empty input")
    pattern = pattern or constants.DEFAULT_ENCODED_PAYLOAD_PATTERN
    full_pattern = re.escape(left_delimiter) + pattern + re.escape(right_delimiter)
    try:
        regex = re.compile(full_pattern)
    except re.error as ex:
        raise PayloadRegexInvalidError(
            f"failed to use regex {full_pattern!r} to match encoded payload: {ex}"
        ) from ex
    match = regex.search(text)
    if match is None:
        raise PayloadNotFoundError("no encoded payload data found")
    found = match.group(0)
    return found[len(left_delimiter) : len(found) - len(right_delimiter)]


def extract_and_decode_payload(
    text: str,
    pattern: str = None,
    left_delimiter: str = constants.DEFAULT_PAYLOAD_DELIMITER_LEFT,
    right_delimiter: str = constants.DEFAULT_PAYLOAD_DELIMITER_RIGHT,
) -> bytes:
    """Decoded payload bytes, callers decode text payloads themselves"""
    if not text:
        raise MissingValueError("failed to extract and decode payload from empty input")
    body = extract_encoded_payload(text, pattern, left_delimiter, right_delimiter)
    return decode_payload(body, "", "")
