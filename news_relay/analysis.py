"""
Headline keyword analysis.

Counts the words used across a cycle's headlines, for the cycle summary log.
"""

from __future__ import annotations

from collections import Counter
import logging
import re
from typing import Iterable

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({"в", "на", "и", "по", "за", "что", "из", "с", "как", "от", "о"})
MIN_WORD_LENGTH = 3

_NON_LETTERS = re.compile(r"[^a-zA-Zа-яА-ЯёЁ ]")


def top_keywords(headlines: Iterable[str], limit: int = 10) -> list[tuple[str, int]]:
    """Return the most frequent headline words, most frequent first.

    Words are lower-cased; punctuation and digits are dropped, as are stop
    words and words shorter than three letters. Ties keep first-seen order.
    """
    counts: Counter[str] = Counter()
    total = 0
    for headline in headlines:
        total += 1
        for word in _NON_LETTERS.sub("", headline).lower().split():
            if word in STOP_WORDS or len(word) < MIN_WORD_LENGTH:
                continue
            counts[word] += 1
    result = counts.most_common(limit)
    logger.debug("Analyzed %d headlines: %d distinct words", total, len(counts))
    return result
