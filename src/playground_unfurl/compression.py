from __future__ import annotations

import logging

from lzstring import LZString

logger = logging.getLogger(__name__)

_codec = LZString()


def compress_code(code: str) -> str:
    return _codec.compressToEncodedURIComponent(code)


def decompress_code(payload: str) -> str | None:
    """Decode a playground ``#code/`` payload, or ``None`` if it is unusable."""
    if not payload:
        return None
    try:
        code = _codec.decompressFromEncodedURIComponent(payload)
    except (KeyError, IndexError, ValueError, TypeError):
        logger.info("playground_payload_decode_failed payload_length=%d", len(payload))
        return None
    if not isinstance(code, str) or not code:
        return None
    return code
