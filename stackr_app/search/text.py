"""Text normalization shared by the filter, scorer and deduplicator."""

import re

_PUNCTUATION = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize_text(text: str) -> str:
    """
    Lowercase, strip punctuation and collapse whitespace.

    No stemming or locale-aware folding.

    Examples:
        "Inception: The Cobol Job" -> "inception the cobol job"
        "Matrix, The" -> "matrix the"
    """
    if not text:
        return ""
    text = _PUNCTUATION.sub('', text.lower())
    return _WHITESPACE.sub(' ', text).strip()


def contains_phrase(text: str, phrase: str) -> bool:
    """Whole-word match of a normalized phrase inside normalized text."""
    text = normalize_text(text)
    phrase = normalize_text(phrase)
    if not text or not phrase:
        return False
    return re.search(rf'\b{re.escape(phrase)}\b', text) is not None
