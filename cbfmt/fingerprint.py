"""Content fingerprints used to decide whether a codeblock changed."""

from __future__ import annotations

import hashlib

_DIGEST_SIZE = 8


def fingerprint(text: str) -> int:
    """Return a deterministic 64-bit fingerprint for ``text``."""
    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=_DIGEST_SIZE).digest()
    return int.from_bytes(digest, "big")


__all__ = ["fingerprint"]
