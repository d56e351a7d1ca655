"""Tests for the SHA-256 file fingerprint."""

import hashlib

from code_sync.sync.fingerprint import fingerprint


class TestFingerprint:
    def test_is_sha256_hex(self):
        assert fingerprint(b"hello") == hashlib.sha256(b"hello").hexdigest()
        assert len(fingerprint(b"hello")) == 64

    def test_deterministic(self):
        assert fingerprint(b"same bytes") == fingerprint(b"same bytes")

    def test_single_byte_change_differs(self):
        assert fingerprint(b"abc") != fingerprint(b"abd")

    def test_empty_content(self):
        assert fingerprint(b"") == hashlib.sha256(b"").hexdigest()

    def test_depends_on_bytes_not_text(self):
        """CRLF and LF versions of a file are different content."""
        assert fingerprint(b"line\n") != fingerprint(b"line\r\n")
