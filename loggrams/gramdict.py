"""
Bounded n-gram frequency tables.

Unigram, bigram and trigram counts over the token stream seen so far. Each
table keeps at most `capacity` keys and evicts the least recently used key
when a new one arrives at capacity; reads and writes both count as use.
"""

from typing import TYPE_CHECKING, Dict, Optional, Sequence

from cachetools import LRUCache


GRAM_SEPARATOR = "^"
ORDERS = (1, 2, 3)

if TYPE_CHECKING:
    class _LRUCache(LRUCache[str, int]):
        ...
else:
    _LRUCache = LRUCache


def gram_key(*tokens: str) -> str:
    """Join consecutive tokens into a gram key."""
    return GRAM_SEPARATOR.join(tokens)


class GramFrequencyTable(_LRUCache):
    """LRU-bounded mapping from gram key to occurrence count."""

    def __init__(self, capacity: int, order: int):
        super().__init__(maxsize=capacity)
        self.order = order

    @property
    def capacity(self) -> int:
        return self.maxsize

    def increment(self, key: str) -> int:
        """Add one occurrence of key; a new key at capacity evicts the LRU key first."""
        count = self.get(key, 0) + 1
        self[key] = count
        return count

    def __repr__(self) -> str:
        return f"GramFrequencyTable(order={self.order}, size={len(self)}, capacity={self.maxsize})"


class GramEngine:
    """
    Online unigram/bigram/trigram statistics for one stream partition.

    Not thread-safe: one engine belongs to one single-threaded parser.
    """

    def __init__(self, maximum_gram_dict_size: int):
        if maximum_gram_dict_size <= 0:
            raise ValueError("maximum_gram_dict_size must be positive")
        self.maximum_gram_dict_size = maximum_gram_dict_size
        self.tables: Dict[int, GramFrequencyTable] = {
            order: GramFrequencyTable(maximum_gram_dict_size, order) for order in ORDERS
        }

    def table(self, order: int) -> GramFrequencyTable:
        try:
            return self.tables[order]
        except KeyError:
            raise ValueError(f"Gram order must be one of {ORDERS}, got {order}")

    def increment(self, order: int, key: str) -> int:
        return self.table(order).increment(key)

    def get(self, order: int, key: str) -> Optional[int]:
        """Count for key, or None when absent. Touches recency."""
        return self.table(order).get(key)

    def ingest(self, tokens: Sequence[str]) -> None:
        """Record one line's tokens. The only mutator of the tables."""
        for i, token in enumerate(tokens):
            self.increment(1, token)
            if i > 0:
                self.increment(2, gram_key(tokens[i - 1], token))
            if i > 1:
                self.increment(3, gram_key(tokens[i - 2], tokens[i - 1], token))

    def stats(self) -> Dict[str, int]:
        return {
            'unigrams': len(self.tables[1]),
            'bigrams': len(self.tables[2]),
            'trigrams': len(self.tables[3]),
            'capacity': self.maximum_gram_dict_size,
        }
