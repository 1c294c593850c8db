"""
Token estimation for context budget management.

This is an approximation, not a tokenizer: one token is taken to be about
four characters of English text. It is cheap enough to run on every
candidate block and consistent enough to keep prompts inside a budget.
"""

import math

CHARS_PER_TOKEN = 4

TRUNCATION_MARKER = "\n... [content truncated for context limit] ...\n"

# Share of the character budget kept from the start and the end of the text
HEAD_SHARE = 0.7
TAIL_SHARE = 0.1


def estimate_tokens(text: str) -> int:
    """Rough token count of a string"""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def exceeds_token_limit(text: str, limit: int) -> bool:
    """Check if text is estimated above a token limit"""
    return estimate_tokens(text) > limit


def truncate_to_token_limit(text: str, max_tokens: int) -> str:
    """Truncate text to fit a token limit, keeping its head and its tail.

    The earliest and the most recent part of a block both tend to carry
    signal, so the middle is elided behind a visible marker. When the budget
    is too small to hold the marker, the text is cut to a plain prefix.
    The result always satisfies ``estimate_tokens(result) <= max_tokens``.
    """

    if not text or estimate_tokens(text) <= max_tokens:
        return text or ""

    if max_tokens <= 0:
        return ""

    max_chars = max_tokens * CHARS_PER_TOKEN
    keep_start = int(max_chars * HEAD_SHARE)
    keep_end = int(max_chars * TAIL_SHARE)

    if keep_start + keep_end + len(TRUNCATION_MARKER) > max_chars:
        room = max_chars - len(TRUNCATION_MARKER)
        if room <= 0:
            return text[:max_chars]

        # Same head/tail proportions, scaled down to leave room for the marker
        keep_end = int(room * TAIL_SHARE / (HEAD_SHARE + TAIL_SHARE))
        keep_start = room - keep_end

    tail = text[len(text) - keep_end:] if keep_end > 0 else ""
    return text[:keep_start] + TRUNCATION_MARKER + tail
