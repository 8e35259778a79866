"""Multinomial Naive Bayes over bag-of-words counts.

The model keeps raw per-class token counts rather than probabilities, so a
persisted model can be restored exactly and re-derive identical scores.
Posterior scores are computed in log space:

    log P(c) + sum_t count(t) * log((N_ct + alpha) / (N_c + alpha * |V|))

and normalised with log-sum-exp. Ties go to the lexicographically smallest
label.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Optional

from .errors import (
    MissingClassError,
    ModelFrozenError,
    NoTrainingDataError,
    UntrainedModelError,
)
from .models import PredictionResult
from .vectorizer import FeatureVector, Vocabulary

logger = logging.getLogger(__name__)


def _check_feature(idx: int, count: int, vocab_size: int) -> None:
    if not 0 <= idx < vocab_size:
        raise ValueError(f"Feature index {idx} outside vocabulary of size {vocab_size}")
    if count < 0:
        raise ValueError(f"Negative count {count} for feature index {idx}")


@dataclass
class ClassStatistics:
    """Token statistics accumulated for one class label.

    ``document_count`` is only known for models trained in this process;
    restored models carry the prior instead, so it is left out of equality.
    """

    token_total: int = 0
    token_counts: dict[int, int] = field(default_factory=dict)
    document_count: Optional[int] = field(default=None, compare=False)

    def add(self, vector: FeatureVector) -> None:
        for idx, count in vector.items():
            if count:
                self.token_counts[idx] = self.token_counts.get(idx, 0) + count
                self.token_total += count
        self.document_count = (self.document_count or 0) + 1


class NaiveBayesModel:
    """Multinomial Naive Bayes classifier with additive smoothing.

    Example::

        vocab = build_vocabulary(docs)
        model = NaiveBayesModel(vocab).train(
            (doc.label, encode(doc, vocab)) for doc in docs
        )
        result = model.predict(encode("free money", vocab))

    Args:
        vocabulary: The frozen vocabulary feature indices refer to.
        alpha: Smoothing constant (1.0 = Laplace smoothing).
    """

    def __init__(self, vocabulary: Vocabulary, alpha: float = 1.0) -> None:
        if not alpha > 0:
            raise ValueError(f"alpha must be positive, got {alpha}")
        self.vocabulary = vocabulary
        self.alpha = float(alpha)
        self._priors: dict[str, float] = {}
        self._stats: dict[str, ClassStatistics] = {}
        self._log_probs: dict[str, dict[int, float]] = {}
        self._log_unseen: dict[str, float] = {}
        self._trained = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_trained(self) -> bool:
        return self._trained

    @property
    def labels(self) -> list[str]:
        """Known class labels, sorted."""
        return sorted(self._stats)

    @property
    def priors(self) -> dict[str, float]:
        return dict(self._priors)

    def statistics(self, label: str) -> ClassStatistics:
        """Token statistics for ``label``."""
        if label not in self._stats:
            raise KeyError(f"Unknown class: {label}. Known: {self.labels}")
        return self._stats[label]

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(
        self,
        examples: Iterable[tuple[str, FeatureVector]],
        labels: Optional[Iterable[str]] = None,
    ) -> "NaiveBayesModel":
        """Accumulate class statistics from labelled feature vectors.

        Args:
            examples: ``(label, vector)`` pairs.
            labels: Optional closed label set. Every listed label must have
                at least one example, and no other label may appear.

        Returns:
            Self (for method chaining).

        Raises:
            ModelFrozenError: If the model has already been trained.
            NoTrainingDataError: If ``examples`` is empty.
            MissingClassError: If the closed label set is not matched.
            ValueError: If a vector references an index outside the vocabulary.
        """
        if self._trained:
            raise ModelFrozenError("Model is already trained; build a new one to retrain.")

        required = set(labels) if labels is not None else None
        vocab_size = len(self.vocabulary)
        stats: dict[str, ClassStatistics] = {}
        n_total = 0

        for label, vector in examples:
            if required is not None and label not in required:
                raise MissingClassError(
                    f"Label {label!r} is not in the expected label set {sorted(required)}"
                )
            for idx, count in vector.items():
                _check_feature(idx, count, vocab_size)
            stats.setdefault(label, ClassStatistics()).add(vector)
            n_total += 1

        if n_total == 0:
            raise NoTrainingDataError("Cannot train on an empty set of documents.")

        if required is not None:
            missing = sorted(required - stats.keys())
            if missing:
                raise MissingClassError(f"No training documents for class(es): {missing}")

        self._stats = stats
        self._priors = {
            label: s.document_count / n_total  # type: ignore[operator]
            for label, s in stats.items()
        }
        self._finalize()

        logger.info(
            "Trained model on %d documents, %d classes, vocabulary size %d",
            n_total,
            len(stats),
            vocab_size,
        )
        return self

    @classmethod
    def from_statistics(
        cls,
        vocabulary: Vocabulary,
        alpha: float,
        priors: Mapping[str, float],
        statistics: Mapping[str, ClassStatistics],
    ) -> "NaiveBayesModel":
        """Rebuild a trained model from stored priors and class statistics."""
        if set(priors) != set(statistics):
            raise ValueError("priors and statistics must cover the same labels")
        if not priors:
            raise NoTrainingDataError("A trained model needs at least one class.")
        vocab_size = len(vocabulary)
        for s in statistics.values():
            for idx, count in s.token_counts.items():
                _check_feature(idx, count, vocab_size)
        model = cls(vocabulary, alpha=alpha)
        model._priors = dict(priors)
        model._stats = dict(statistics)
        model._finalize()
        return model

    def _finalize(self) -> None:
        """Precompute per-class log likelihoods and freeze the model."""
        vocab_size = len(self.vocabulary)
        for label, s in self._stats.items():
            denominator = s.token_total + self.alpha * vocab_size
            self._log_probs[label] = {
                idx: math.log((count + self.alpha) / denominator)
                for idx, count in s.token_counts.items()
            }
            self._log_unseen[label] = math.log(self.alpha / denominator)
        self._trained = True

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def log_scores(self, vector: FeatureVector) -> dict[str, float]:
        """Unnormalised log posterior score for each class.

        Raises:
            UntrainedModelError: If the model has not been trained.
            ValueError: If the vector references an index outside the vocabulary.
        """
        if not self._trained:
            raise UntrainedModelError("Model has not been trained. Call train() first.")

        vocab_size = len(self.vocabulary)
        for idx, count in vector.items():
            _check_feature(idx, count, vocab_size)

        scores: dict[str, float] = {}
        for label in self.labels:
            score = math.log(self._priors[label])
            log_probs = self._log_probs[label]
            unseen = self._log_unseen[label]
            for idx, count in vector.items():
                if count:
                    score += count * log_probs.get(idx, unseen)
            scores[label] = score
        return scores

    def predict(self, vector: FeatureVector) -> PredictionResult:
        """Predict the most probable label and the full distribution.

        Raises:
            UntrainedModelError: If the model has not been trained.
        """
        log_scores = self.log_scores(vector)

        best_label = None
        best_score = -math.inf
        for label in self.labels:
            if best_label is None or log_scores[label] > best_score:
                best_label, best_score = label, log_scores[label]

        # Log-sum-exp for numerical stability
        exp_scores = {cls: math.exp(s - best_score) for cls, s in log_scores.items()}
        total = sum(exp_scores.values())

        return PredictionResult(
            label=best_label,  # type: ignore[arg-type]
            probabilities={cls: score / total for cls, score in exp_scores.items()},
        )

    def most_informative_features(
        self,
        label: str,
        top_n: int = 20,
    ) -> list[tuple[str, float]]:
        """Return the tokens that most favour ``label`` over the other classes.

        Scores are the log likelihood of the token under ``label`` minus the
        mean log likelihood under the remaining classes.

        Raises:
            UntrainedModelError: If the model has not been trained.
            ValueError: If ``label`` is not a known class.
        """
        if not self._trained:
            raise UntrainedModelError("Model has not been trained. Call train() first.")
        if label not in self._stats:
            raise ValueError(f"Unknown class: {label}. Known: {self.labels}")

        others = [c for c in self.labels if c != label]
        ratios: list[tuple[str, float]] = []
        for idx, token in enumerate(self.vocabulary):
            target_lp = self._log_probs[label].get(idx, self._log_unseen[label])
            if others:
                other_lps = [self._log_probs[c].get(idx, self._log_unseen[c]) for c in others]
                target_lp -= sum(other_lps) / len(other_lps)
            ratios.append((token, round(target_lp, 4)))

        ratios.sort(key=lambda x: (-x[1], x[0]))
        return ratios[:top_n]

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NaiveBayesModel):
            return NotImplemented
        return (
            self._trained == other._trained
            and self.alpha == other.alpha
            and self.vocabulary == other.vocabulary
            and self._priors == other._priors
            and self._stats == other._stats
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"NaiveBayesModel(alpha={self.alpha}, labels={self.labels}, "
            f"vocabulary_size={len(self.vocabulary)})"
        )
