"""Bag-of-words vocabulary construction and document encoding.

Tokenization lower-cases the text and splits it on every character that is
not a Unicode letter or digit (underscore included). The same rule is used
when building a vocabulary and when encoding documents at inference time.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .errors import EmptyCorpusError
from .models import Document

logger = logging.getLogger(__name__)

# Sparse mapping of vocabulary index -> token count.
FeatureVector = dict[int, int]

_TOKEN_RE = re.compile(r"[^\W_]+")

_STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "shall", "can", "must",
    "not", "no", "nor", "so", "if", "then", "than", "that", "this",
    "these", "those", "it", "its", "he", "she", "they", "them", "their",
    "his", "her", "our", "your", "we", "you", "who", "whom", "which",
    "what", "where", "when", "how", "all", "each", "every", "both",
    "few", "more", "most", "other", "some", "such", "any", "only",
    "own", "same", "too", "very", "just", "about", "above", "after",
    "again", "also", "because", "before", "between", "during", "into",
    "through", "under", "until", "up", "out", "over", "here", "there",
    "i", "me", "my", "u", "ur", "im",
})


def tokenize(text: str) -> list[str]:
    """Split text into lowercase alphanumeric tokens."""
    return _TOKEN_RE.findall(text.lower())


@dataclass(frozen=True)
class Vocabulary:
    """Frozen token-to-index mapping.

    Indices are dense and follow the order of ``tokens``.
    """

    tokens: tuple[str, ...]
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index = {token: i for i, token in enumerate(self.tokens)}
        if len(index) != len(self.tokens):
            raise ValueError("Vocabulary tokens must be unique")
        object.__setattr__(self, "tokens", tuple(self.tokens))
        object.__setattr__(self, "_index", index)

    def __len__(self) -> int:
        return len(self.tokens)

    def __contains__(self, token: object) -> bool:
        return token in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self.tokens)

    def index(self, token: str) -> int:
        """Index of ``token``; raises ``KeyError`` if it is unknown."""
        return self._index[token]

    def get(self, token: str) -> int | None:
        return self._index.get(token)

    def token(self, index: int) -> str:
        return self.tokens[index]

    def decode(self, vector: FeatureVector) -> Counter[str]:
        """Map a feature vector back to token counts."""
        return Counter({self.tokens[idx]: count for idx, count in vector.items() if count})


def build_vocabulary(
    documents: Iterable[Document | str],
    use_stopwords: bool = False,
    min_count: int = 1,
) -> Vocabulary:
    """Build a vocabulary from a training corpus.

    Each distinct token gets the next free index in discovery order.

    Args:
        documents: Documents (or raw strings) to scan.
        use_stopwords: Leave English stop words out of the vocabulary.
        min_count: Minimum corpus-wide occurrences for a token to be kept.

    Returns:
        The frozen Vocabulary.

    Raises:
        EmptyCorpusError: If no tokens are discovered.
    """
    if min_count < 1:
        raise ValueError(f"min_count must be >= 1, got {min_count}")

    counts: Counter[str] = Counter()
    n_docs = 0
    for doc in documents:
        text = doc.text if isinstance(doc, Document) else doc
        tokens = tokenize(text)
        if use_stopwords:
            tokens = [t for t in tokens if t not in _STOP_WORDS]
        # Counter preserves first-insertion order
        counts.update(tokens)
        n_docs += 1

    tokens = tuple(t for t, c in counts.items() if c >= min_count)
    if not tokens:
        raise EmptyCorpusError(f"No tokens found in {n_docs} document(s)")

    logger.debug("Built vocabulary of %d tokens from %d documents", len(tokens), n_docs)
    return Vocabulary(tokens)


def encode(document: Document | str, vocabulary: Vocabulary) -> FeatureVector:
    """Count the in-vocabulary tokens of a document.

    Tokens missing from ``vocabulary`` are dropped; the vocabulary is never
    modified.
    """
    text = document.text if isinstance(document, Document) else document
    vector: FeatureVector = {}
    for token in tokenize(text):
        idx = vocabulary.get(token)
        if idx is None:
            continue
        vector[idx] = vector.get(idx, 0) + 1
    return vector
