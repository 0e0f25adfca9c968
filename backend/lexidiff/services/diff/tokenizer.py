"""
Tokenizer: splits text into alternating whitespace / non-whitespace runs.

Whitespace is kept as first-class tokens so that any subset of tokens
classified as kept can be joined back into the exact source text.
"""

from __future__ import annotations

import re

_WHITESPACE_SPLIT_RE = re.compile(r"(\s+)")


def tokenize(text: str) -> list[str]:
    """
    Split ``text`` into maximal whitespace and non-whitespace runs.

    Zero-length fragments produced by ``re.split`` at string boundaries
    are dropped, so ``tokenize("")`` is ``[]`` and
    ``"".join(tokenize(text)) == text`` always holds.
    """
    return [token for token in _WHITESPACE_SPLIT_RE.split(text) if token]

