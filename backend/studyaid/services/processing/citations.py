"""
Citation verification.

The model is asked to back each study note and question with a verbatim
quote from the source. Quotes rarely survive PDF/slide extraction intact
(split words, odd whitespace, ligatures), so verification tries
progressively looser strategies on normalized text:

1. exact substring
2. at least half of the quote's 3-word phrases appear
3. at least 60% of the quote's words appear in order, each within
   1000 characters of the previous match
4. at least 80% of the quote's longer words (4+ chars) appear anywhere

Usage:
    verified = verify_citation(quote, document_text)
    rate = citation_rate(citations)
"""

import re
import unicodedata
from typing import Iterable

from studyaid.models.processing import Citation
from studyaid.services.learning.sm2 import round_half_up

PHRASE_MATCH_RATIO = 0.5
SEQUENTIAL_MATCH_RATIO = 0.6
SEQUENTIAL_WINDOW = 1000
BAG_OF_WORDS_RATIO = 0.8

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lower-case, NFKC-normalize, replace punctuation with spaces, collapse whitespace."""
    text = unicodedata.normalize("NFKC", text.lower())
    text = _PUNCTUATION.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def _phrase_match(words: list[str], source: str) -> bool:
    if len(words) < 3:
        return False
    total = max(1, len(words) - 2)
    found = sum(
        1 for i in range(len(words) - 2) if " ".join(words[i : i + 3]) in source
    )
    return found / total >= PHRASE_MATCH_RATIO


def _sequential_match(words: list[str], source: str) -> bool:
    if len(words) < 4:
        return False
    matched = 0
    position = 0
    for word in words:
        window = source[position : position + SEQUENTIAL_WINDOW]
        found = window.find(word)
        if found != -1:
            matched += 1
            position += found + len(word)
    return matched / len(words) >= SEQUENTIAL_MATCH_RATIO


def _bag_of_words_match(words: list[str], source: str) -> bool:
    significant = [w for w in words if len(w) >= 4]
    if len(significant) < 3:
        return False
    found = sum(1 for w in significant if w in source)
    return found / len(significant) >= BAG_OF_WORDS_RATIO


def verify_citation(quote: str, source_text: str) -> bool:
    """True if ``quote`` can be located in ``source_text`` by any strategy."""
    if not quote or not source_text:
        return False

    normalized_quote = normalize_text(quote)
    normalized_source = normalize_text(source_text)

    if normalized_quote in normalized_source:
        return True

    words = [w for w in normalized_quote.split(" ") if len(w) > 2]
    return (
        _phrase_match(words, normalized_source)
        or _sequential_match(words, normalized_source)
        or _bag_of_words_match(words, normalized_source)
    )


def citation_rate(citations: Iterable[Citation]) -> int:
    """Percentage of verified citations (0 when there are none)."""
    citations = list(citations)
    if not citations:
        return 0
    verified = sum(1 for c in citations if c.verified)
    return int(round_half_up(verified / len(citations) * 100))


def compression_ratio(original_text: str, short_summary: str, detailed_summary: str) -> int:
    """How much shorter the summaries are than the source, as a 0-99 percentage."""
    original_words = len(original_text.split()) or 1
    summary_words = len(f"{short_summary} {detailed_summary}".split())
    ratio = round_half_up((1 - summary_words / original_words) * 100)
    return int(min(99, max(0, ratio)))
