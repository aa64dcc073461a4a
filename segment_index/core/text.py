"""
Text fingerprinting for segment deduplication.

Dependencies: hashlib, unicodedata (stdlib)
System role: Content hash and token estimate computed at segment creation
"""

import hashlib
import math
import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")
_CJK = re.compile(r"[\u4e00-\u9fff]")


def normalize_text(text: str) -> str:
    """Apply NFKC, collapse whitespace runs and strip the ends."""
    return _WHITESPACE.sub(" ", unicodedata.normalize("NFKC", text)).strip()


def content_hash(text: str) -> str:
    """
    Fingerprint of the normalized text.

    Two texts differing only in whitespace or Unicode compatibility forms
    share a hash, so they collapse into one segment per parent document.

    Args:
        text: Raw segment text

    Returns:
        str: SHA-256 hex digest
    """
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()


def estimate_token_count(text: str) -> int:
    """Rough token count: 0.7 per character for CJK text, 1 per 4 characters otherwise."""
    if not text:
        return 0
    if _CJK.search(text):
        return math.ceil(len(text) * 0.7)
    return math.ceil(len(text) / 4)
