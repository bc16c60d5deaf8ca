"""
Masking of known dynamic tokens before tokenization.

Substrings with a recognisable shape (host:port, IPv4 addresses, bare
numbers, plus any caller-supplied patterns) are replaced by the placeholder
marker so they never reach the n-gram tables as distinct tokens.
"""

import re
from collections import deque
from typing import Dict, Iterable, List, Pattern, Union

from .config import ConfigError
from .models import MaskResult, PLACEHOLDER


USER_LABEL = "manual_processed_dynamic_token"
BUILTIN_LABEL = "global_processed_dynamic_token"

BUILTIN_PATTERNS = [
    # host:port
    re.compile(r'([\w-]+\.)+[\w-]+(:\d+)'),
    # IPv4 with optional port
    re.compile(r'/?([0-9]+\.){3}[0-9]+(:[0-9]+)?(:|)'),
    # integers not glued to a word, or trailing the line
    re.compile(r'(?<=\W)(-?\+?\d+)(?=\W)|[0-9]+$'),
]


def compile_patterns(patterns: Iterable[Union[str, Pattern]]) -> List[Pattern]:
    """Compile user patterns, raising ConfigError on the first bad one."""
    compiled = []
    for pattern in patterns:
        if isinstance(pattern, re.Pattern):
            compiled.append(pattern)
            continue
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigError(f"Invalid regex {pattern!r}: {e}")
    return compiled


class DynamicTokenMasker:
    """
    Replaces known-shape substrings with the placeholder marker.

    User patterns run first, in the order given; built-in patterns run after
    them. Each replaced span is recorded under a sequential label tagged with
    its source, e.g. "manual_processed_dynamic_token_1" or
    "global_processed_dynamic_token_2".
    """

    def __init__(self, user_patterns: Iterable[Union[str, Pattern]] = ()):
        self.user_patterns = compile_patterns(user_patterns)

    def mask(self, content: str) -> MaskResult:
        return mask(content, self.user_patterns)


def mask(content: str, user_patterns: Iterable[Pattern]) -> MaskResult:
    masked_tokens: Dict[str, str] = {}
    # Original text behind each placeholder, in the order they appear
    spans = [PLACEHOLDER] * content.count(PLACEHOLDER)

    # A leading delimiter gives the boundary-sensitive patterns a left context
    masked = f" {content}"
    masked = _apply(masked, user_patterns, USER_LABEL, masked_tokens, spans)
    masked = _apply(masked, BUILTIN_PATTERNS, BUILTIN_LABEL, masked_tokens, spans)

    tokens = masked.split()
    return MaskResult(
        masked_content=masked,
        tokens=tokens,
        masked_tokens=masked_tokens,
        original_tokens=_unmask_tokens(tokens, spans),
    )


def _apply(text: str, patterns: Iterable[Pattern], label: str,
           masked_tokens: Dict[str, str], spans: List[str]) -> str:
    counter = 0

    for pattern in patterns:
        # Pair each placeholder already in the text with the value behind it
        pending = deque(zip(
            (m.start() for m in re.finditer(re.escape(PLACEHOLDER), text)),
            spans,
        ))
        pieces = []
        ordered = []
        pos = 0

        for match in pattern.finditer(text):
            while pending and pending[0][0] + len(PLACEHOLDER) <= match.start():
                ordered.append(pending.popleft()[1])
            # Placeholders overlapping a wider match are replaced along with it
            while pending and pending[0][0] < match.end():
                pending.popleft()

            counter += 1
            masked_tokens[f"{label}_{counter}"] = match.group(0)
            ordered.append(match.group(0))
            pieces.append(text[pos:match.start()])
            pieces.append(PLACEHOLDER)
            pos = match.end()

        pieces.append(text[pos:])
        ordered.extend(value for _, value in pending)
        spans[:] = ordered
        text = ''.join(pieces)
    return text


def _unmask_tokens(tokens: List[str], spans: List[str]) -> List[str]:
    """Tokens with each whole-token placeholder swapped back for the text it replaced."""
    remaining = iter(spans)
    original = []
    for token in tokens:
        if token == PLACEHOLDER:
            original.append(next(remaining, PLACEHOLDER))
            continue
        for _ in range(token.count(PLACEHOLDER)):
            next(remaining, None)
        original.append(token)
    return original
