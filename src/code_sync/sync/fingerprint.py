"""Content fingerprinting.

The fingerprint is the SHA-256 hex digest of the exact file bytes.  No
normalisation is applied: any byte change is a content change, and file
metadata (name, mtime, permissions) never affects the result.
"""

from __future__ import annotations

import hashlib


def fingerprint(content: bytes) -> str:
    """Return the lowercase SHA-256 hex digest of *content*."""
    return hashlib.sha256(content).hexdigest()
