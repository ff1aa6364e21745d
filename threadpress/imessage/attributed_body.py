"""Best-effort text extraction from iMessage ``attributedBody`` blobs.

Newer archives often leave ``message.text`` empty and keep the text only
inside a serialized NSAttributedString (typedstream). This does not parse
the format; it looks for the string payload that follows the ``NSString``
class name, then falls back to the first printable run after it.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

NSSTRING_MARKER = b"NSString"
# b"\x01+" precedes the length-prefixed UTF-8 payload
PAYLOAD_MARKER = b"\x01\x2b"
# Length byte 0x81 means a 2-byte little-endian length follows
LONG_LENGTH_PREFIX = 0x81
MARKER_SEARCH_WINDOW = 20

_CONTROL_RUN = re.compile(r"[\x00-\x1f]+")
_METADATA_CHUNK = re.compile(r"^(NS|IM|__k|streamtyped|iI)")


def _printable_ratio(text: str) -> float:
    if not text:
        return 0.0
    printable = sum(1 for c in text if 32 <= ord(c) <= 126 or ord(c) >= 128)
    return printable / len(text)


def _special_ratio(text: str) -> float:
    special = sum(1 for c in text if ord(c) < 32 or 126 < ord(c) < 160)
    return special / len(text)


def _read_payload(blob: bytes, start: int) -> Optional[str]:
    """Decode the length-prefixed string that starts at ``start``."""
    if start >= len(blob):
        return None

    length = blob[start]
    offset = start + 1
    if length == LONG_LENGTH_PREFIX:
        if offset + 2 > len(blob):
            return None
        length = int.from_bytes(blob[offset:offset + 2], "little")
        offset += 2

    if length == 0 or offset + length > len(blob):
        return None

    text = blob[offset:offset + length].decode("utf-8", errors="replace")
    if _printable_ratio(text) > 0.8:
        return text.strip()
    return None


def _first_text_chunk(blob: bytes) -> Optional[str]:
    """Fallback: first printable run that is not class-name metadata."""
    text = blob.decode("utf-8", errors="ignore")
    for chunk in _CONTROL_RUN.split(text):
        if len(chunk) < 3 or _printable_ratio(chunk) <= 0.8:
            continue
        if _METADATA_CHUNK.match(chunk):
            continue
        if _special_ratio(chunk) > 0.1:
            continue
        return chunk.strip()
    return None


def extract_text_from_attributed_body(blob: Optional[bytes]) -> Optional[str]:
    """
    Pull the message text out of an attributedBody blob.

    Returns:
        The text, or None if the blob is empty or nothing text-like is found
    """
    if not blob:
        return None

    marker = blob.find(NSSTRING_MARKER)
    if marker == -1:
        return None

    search_start = marker + len(NSSTRING_MARKER)
    window = blob[search_start:search_start + MARKER_SEARCH_WINDOW + 1]
    payload_at = window.find(PAYLOAD_MARKER)
    if payload_at != -1:
        text = _read_payload(blob, search_start + payload_at + len(PAYLOAD_MARKER))
        if text:
            return text

    text = _first_text_chunk(blob[search_start:])
    if text is None:
        logger.debug(f"No text found in attributedBody ({len(blob)} bytes)")
    return text
