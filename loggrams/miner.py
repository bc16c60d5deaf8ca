"""
Static/dynamic token classification and template rendering.

A token is judged by how predictable it is from its left context:

    index 1:   count(t0^t1) / count(t0)
    index i:   count(t[i-2]^t[i-1]^t[i]) / count(t[i-2]^t[i-1])

and when t[i-2] was itself dynamic the trigram context is meaningless, so
the bigram ratio on (t[i-1], t[i]) is used instead. A ratio at or below the
threshold, including the 0 of an unseen context, marks the token dynamic.
"""

import hashlib
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Set

from .gramdict import GramEngine, gram_key
from .models import PLACEHOLDER, TemplateEntry, TemplateResult


def event_id_for(template_string: str) -> str:
    """Content-derived short id, stable across processes."""
    return "e" + hashlib.md5(template_string.encode('utf-8')).hexdigest()[:4]


class TemplateRegistry:
    """
    Maps template strings to integer ids in first-seen order.

    Ids start at 0 and are never reassigned or reused. The registry is
    unbounded.
    """

    def __init__(self):
        self._ids: Dict[str, int] = {}
        self._entries: List[TemplateEntry] = []

    def get_or_assign(self, template_string: str) -> int:
        template_id = self._ids.get(template_string)
        if template_id is None:
            template_id = len(self._entries)
            self._ids[template_string] = template_id
            self._entries.append(TemplateEntry(
                template_id=template_id,
                template_string=template_string,
                event_id=event_id_for(template_string),
            ))
        self._entries[template_id].occurrences += 1
        return template_id

    def lookup(self, template_string: str) -> Optional[int]:
        return self._ids.get(template_string)

    def entry(self, template_id: int) -> TemplateEntry:
        return self._entries[template_id]

    def entries(self) -> List[TemplateEntry]:
        """All templates in id order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, template_string: str) -> bool:
        return template_string in self._ids


class TemplateMiner:
    """Classifies token positions against a GramEngine and registers templates."""

    def __init__(self, engine: GramEngine, registry: Optional[TemplateRegistry] = None):
        self.engine = engine
        self.registry = registry if registry is not None else TemplateRegistry()
        self._scores: Dict[float, int] = defaultdict(int)

    def bigram_frequency(self, a: str, b: str) -> float:
        double = self.engine.get(2, gram_key(a, b))
        single = self.engine.get(1, a)
        if double is None or single is None:
            return 0.0
        return double / single

    def trigram_frequency(self, a: str, b: str, c: str) -> float:
        triple = self.engine.get(3, gram_key(a, b, c))
        double = self.engine.get(2, gram_key(a, b))
        if triple is None or double is None:
            return 0.0
        return triple / double

    def classify(self, tokens: Sequence[str], threshold: float) -> Set[int]:
        """Return the indices of dynamic tokens. Index 0 is always static."""
        dynamic_indices: Set[int] = set()

        for index in range(1, len(tokens)):
            if tokens[index] == PLACEHOLDER:
                dynamic_indices.add(index)
                continue

            if index == 1 or (index - 2) in dynamic_indices:
                score = self.bigram_frequency(tokens[index - 1], tokens[index])
            else:
                score = self.trigram_frequency(tokens[index - 2], tokens[index - 1], tokens[index])

            self._scores[round(score, 4)] += 1
            if score <= threshold:
                dynamic_indices.add(index)

        return dynamic_indices

    @staticmethod
    def render(tokens: Sequence[str], dynamic_indices: Set[int]) -> str:
        """Each token followed by one space, dynamic ones as the placeholder."""
        return ''.join(
            f"{PLACEHOLDER} " if index in dynamic_indices else f"{token} "
            for index, token in enumerate(tokens)
        )

    def parse(self, tokens: Sequence[str], threshold: float,
              original_tokens: Optional[Sequence[str]] = None) -> TemplateResult:
        """
        Classify, render and register one token sequence.

        Dynamic values are taken from original_tokens when given, so a
        masked position reports the text it replaced rather than the marker.

        The caller must ingest the same tokens into the engine right after,
        so that a line never influences its own classification.
        """
        dynamic_indices = self.classify(tokens, threshold)
        template_string = self.render(tokens, dynamic_indices)
        values = original_tokens if original_tokens is not None else tokens
        dynamic_token_values = {
            f"dynamic_token_{index}": values[index] for index in sorted(dynamic_indices)
        }
        template_id = self.registry.get_or_assign(template_string)

        return TemplateResult(
            template_string=template_string,
            dynamic_token_values=dynamic_token_values,
            template_id=template_id,
            dynamic_indices=sorted(dynamic_indices),
        )

    def score_histogram(self) -> Dict[float, int]:
        """How often each frequency score was computed, by score."""
        return dict(sorted(self._scores.items()))
