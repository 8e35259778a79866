"""Exception types raised by the classification pipeline.

Each error also derives from the builtin exception that best describes it,
so callers that only catch ``ValueError`` or ``RuntimeError`` keep working.
"""

from __future__ import annotations


class TextBayesError(Exception):
    """Base class for all text-bayes errors."""


class EmptyCorpusError(TextBayesError, ValueError):
    """No tokens were found while building a vocabulary."""


class NoTrainingDataError(TextBayesError, ValueError):
    """A model was asked to train on an empty set of feature vectors."""


class MissingClassError(TextBayesError, ValueError):
    """A closed label set was required but the training data does not match it."""


class UntrainedModelError(TextBayesError, RuntimeError):
    """Prediction was attempted before the model was trained."""


class ModelFrozenError(TextBayesError, RuntimeError):
    """A trained model was asked to train again."""


class InsufficientDataError(TextBayesError, ValueError):
    """Cross-validation was requested with too few folds or documents."""


class DatasetError(TextBayesError, ValueError):
    """A dataset file is missing, unreadable, or malformed."""


class ModelStoreError(TextBayesError):
    """Base class for persistence failures."""


class WriteError(ModelStoreError, OSError):
    """A model could not be written to its destination."""


class CorruptModelError(ModelStoreError, ValueError):
    """A persisted model failed header, version, or consistency checks."""
