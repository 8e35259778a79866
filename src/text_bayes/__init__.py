"""text-bayes -- bag-of-words Naive Bayes text classification."""

__version__ = "0.1.0"

from .datasets import export_arff, load_dataset, read_text
from .errors import (
    CorruptModelError,
    DatasetError,
    EmptyCorpusError,
    InsufficientDataError,
    MissingClassError,
    ModelFrozenError,
    ModelStoreError,
    NoTrainingDataError,
    TextBayesError,
    UntrainedModelError,
    WriteError,
)
from .evaluation import compute_metrics, confusion_matrix, cross_validate, stratified_k_fold
from .models import Document, EvaluationResult, PredictionResult
from .naive_bayes import ClassStatistics, NaiveBayesModel
from .pipeline import classify_batch, classify_text, load_and_classify, train_model
from .vectorizer import Vocabulary, build_vocabulary, encode, tokenize

__all__ = [
    # Data model
    "Document",
    "PredictionResult",
    "EvaluationResult",
    # Vectorization
    "Vocabulary",
    "tokenize",
    "build_vocabulary",
    "encode",
    # Classification
    "NaiveBayesModel",
    "ClassStatistics",
    "train_model",
    "classify_text",
    "classify_batch",
    "load_and_classify",
    # Evaluation
    "cross_validate",
    "stratified_k_fold",
    "confusion_matrix",
    "compute_metrics",
    # Datasets
    "load_dataset",
    "read_text",
    "export_arff",
    # Errors
    "TextBayesError",
    "EmptyCorpusError",
    "NoTrainingDataError",
    "MissingClassError",
    "UntrainedModelError",
    "ModelFrozenError",
    "InsufficientDataError",
    "DatasetError",
    "ModelStoreError",
    "WriteError",
    "CorruptModelError",
]
