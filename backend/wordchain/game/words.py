from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence


MIN_WORD_LENGTH = 2

# Precomposed Hangul syllables, 가 (U+AC00) .. 힣 (U+D7A3).
_HANGUL_SYLLABLES = re.compile(r"[가-힣]+")


class WordRejection(str, Enum):
    TOO_SHORT = "too_short"
    INVALID_CHARACTERS = "invalid_characters"
    CHAIN_MISMATCH = "chain_mismatch"
    ALREADY_USED = "already_used"


REJECTION_MESSAGES = {
    WordRejection.TOO_SHORT: "Word must be at least {min_length} characters long.",
    WordRejection.INVALID_CHARACTERS: "Word must contain only Korean characters.",
    WordRejection.CHAIN_MISMATCH: "Word must start with the last letter of the previous word.",
    WordRejection.ALREADY_USED: "This word has already been used.",
}


@dataclass(frozen=True)
class WordCheck:
    reason: WordRejection | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None


def is_hangul_word(word: str) -> bool:
    return bool(_HANGUL_SYLLABLES.fullmatch(word))


def validate(
    word: str,
    words: Sequence[str],
    last_word: str | None,
    min_length: int = MIN_WORD_LENGTH,
) -> WordCheck:
    """Check ``word`` against the chain rules. The first failing rule wins.

    Rules, in order: minimum length, Hangul-only characters, chaining from the
    final character of ``last_word`` (only once a word has been played), and
    no repeats within ``words``.
    """
    if len(word) < min_length:
        return WordCheck(WordRejection.TOO_SHORT)
    if not is_hangul_word(word):
        return WordCheck(WordRejection.INVALID_CHARACTERS)
    if words and last_word and not word.startswith(last_word[-1]):
        return WordCheck(WordRejection.CHAIN_MISMATCH)
    if word in words:
        return WordCheck(WordRejection.ALREADY_USED)
    return WordCheck()


def rejection_message(reason: WordRejection, min_length: int = MIN_WORD_LENGTH) -> str:
    return REJECTION_MESSAGES[reason].format(min_length=min_length)
