"""High-level training and inference entry points.

Models are plain values: ``train_model`` returns a trained
``NaiveBayesModel`` (which carries its vocabulary) and every other call
takes that model as an argument. Nothing is cached at module level.

Example::

    model = train_model(documents)
    store.save(model, "spam.model")

    result = load_and_classify("spam.model", "Free entry to win cash")
    print(result.label, result.confidence)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Optional

from . import store
from .errors import CorruptModelError, DatasetError
from .models import Document, PredictionResult
from .naive_bayes import NaiveBayesModel
from .vectorizer import Vocabulary, build_vocabulary, encode

logger = logging.getLogger(__name__)


def train_model(
    documents: Sequence[Document],
    alpha: float = 1.0,
    labels: Optional[Iterable[str]] = None,
    use_stopwords: bool = False,
    min_count: int = 1,
) -> NaiveBayesModel:
    """Build a vocabulary from ``documents`` and train a model on it.

    Args:
        documents: Labelled training documents.
        alpha: Smoothing constant.
        labels: Optional closed label set every document must belong to.
        use_stopwords: Leave English stop words out of the vocabulary.
        min_count: Minimum corpus-wide occurrences for a token to be kept.

    Raises:
        DatasetError: If any document is unlabelled.
        EmptyCorpusError: If the documents contain no tokens.
        NoTrainingDataError: If ``documents`` is empty.
        MissingClassError: If ``labels`` is given and not matched.
    """
    docs = list(documents)
    unlabeled = sum(1 for doc in docs if not doc.is_labeled)
    if unlabeled:
        raise DatasetError(f"Training needs labelled documents; {unlabeled} have no label")

    vocabulary = build_vocabulary(docs, use_stopwords=use_stopwords, min_count=min_count)
    model = NaiveBayesModel(vocabulary, alpha=alpha)
    return model.train(
        ((doc.label, encode(doc, vocabulary)) for doc in docs),  # type: ignore[misc]
        labels=labels,
    )


def classify_text(
    raw_text: str,
    model: NaiveBayesModel,
    vocabulary: Optional[Vocabulary] = None,
) -> PredictionResult:
    """Encode ``raw_text`` against the model's vocabulary and predict its label.

    Raises:
        CorruptModelError: If ``vocabulary`` is given and is not the one
            ``model`` was trained with.
        UntrainedModelError: If the model has not been trained.
    """
    if vocabulary is not None and vocabulary != model.vocabulary:
        raise CorruptModelError("Vocabulary does not match the one the model was trained with")
    return model.predict(encode(raw_text, model.vocabulary))


def classify_batch(texts: Iterable[str], model: NaiveBayesModel) -> list[PredictionResult]:
    """Classify several texts with the same model."""
    return [classify_text(text, model) for text in texts]


def load_and_classify(model_path: str | Path, raw_text: str) -> PredictionResult:
    """Load a persisted model and classify one text with it."""
    model = store.load(model_path)
    result = classify_text(raw_text, model)
    logger.debug("Classified text as %s (%.4f)", result.label, result.confidence)
    return result
