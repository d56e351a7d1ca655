"""File handler module: encoding-aware decoding of file bytes.

Documents store file content as text while fingerprints are computed on
the raw bytes, so decoding never influences change detection.
"""

from charset_normalizer import from_bytes

# =============================================================================
# Decoding
# =============================================================================


def decode_content(raw: bytes) -> tuple[str, str]:
    """Decode file bytes with automatic encoding detection.

    Uses charset-normalizer to detect the encoding.  Defaults to UTF-8 for
    empty input, and decodes as UTF-8 with replacement characters when
    detection fails (typically binary files).

    Args:
        raw: File bytes.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        # Detection failed, fall back to utf-8
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # Normalize ascii to utf-8 (ascii is a strict subset of utf-8)
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)
