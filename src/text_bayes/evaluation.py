"""Stratified k-fold cross-validation and classification metrics.

Every fold builds its own vocabulary and model from the documents outside
the fold, so folds share no state and can run on separate processes. Each
fold returns a partial confusion matrix; partials are merged once the folds
are done.
"""

from __future__ import annotations

import concurrent.futures
import logging
import random
import time
from collections import Counter, defaultdict
from collections.abc import Sequence
from typing import Optional

from .errors import DatasetError, InsufficientDataError
from .models import Document, EvaluationResult
from .naive_bayes import NaiveBayesModel
from .vectorizer import build_vocabulary, encode

logger = logging.getLogger(__name__)

ConfusionMatrix = dict[tuple[str, str], int]


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def confusion_matrix(y_true: Sequence[str], y_pred: Sequence[str]) -> ConfusionMatrix:
    """Count (true, predicted) label pairs."""
    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")
    return dict(Counter(zip(y_true, y_pred)))


def compute_metrics(
    matrix: ConfusionMatrix,
    folds_completed: int = 1,
    folds_requested: int = 1,
) -> EvaluationResult:
    """Derive accuracy and per-class scores from a confusion matrix.

    Precision, recall and F1 are reported as 0.0 when their denominator is
    zero, so every known class always has a score.
    """
    classes = sorted({t for t, _ in matrix} | {p for _, p in matrix})
    n = sum(matrix.values())

    correct = sum(count for (t, p), count in matrix.items() if t == p)
    accuracy = correct / n if n > 0 else 0.0

    per_class: dict[str, dict[str, float]] = {}
    support: dict[str, int] = {}

    for cls in classes:
        tp = matrix.get((cls, cls), 0)
        fp = sum(c for (t, p), c in matrix.items() if p == cls and t != cls)
        fn = sum(c for (t, p), c in matrix.items() if t == cls and p != cls)

        precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0
        recall = tp / (tp + fn) if (tp + fn) > 0 else 0.0
        f1 = (
            2 * precision * recall / (precision + recall)
            if (precision + recall) > 0
            else 0.0
        )

        per_class[cls] = {"precision": precision, "recall": recall, "f1": f1}
        support[cls] = tp + fn

    if classes:
        macro_p = sum(m["precision"] for m in per_class.values()) / len(classes)
        macro_r = sum(m["recall"] for m in per_class.values()) / len(classes)
        macro_f1 = sum(m["f1"] for m in per_class.values()) / len(classes)
    else:
        macro_p = macro_r = macro_f1 = 0.0

    weighted_f1 = (
        sum(per_class[cls]["f1"] * support[cls] for cls in classes) / n
        if n > 0
        else 0.0
    )

    return EvaluationResult(
        confusion_matrix=dict(matrix),
        accuracy=accuracy,
        per_class=per_class,
        support=support,
        macro_precision=macro_p,
        macro_recall=macro_r,
        macro_f1=macro_f1,
        weighted_f1=weighted_f1,
        folds_completed=folds_completed,
        folds_requested=folds_requested,
    )


# ---------------------------------------------------------------------------
# Cross-Validation
# ---------------------------------------------------------------------------

def stratified_k_fold(
    labels: Sequence[str],
    k: int = 10,
    seed: int = 1,
) -> list[tuple[list[int], list[int]]]:
    """Generate stratified k-fold train/test index splits.

    Labels are visited in sorted order. Within a label the indices are
    shuffled with a seeded generator and dealt round-robin across folds,
    carrying the round-robin position over from one label to the next so
    fold sizes differ by at most one.

    Args:
        labels: Class label of each document.
        k: Number of folds.
        seed: Random seed for reproducibility.

    Returns:
        List of (train_indices, test_indices) tuples, one per fold.

    Raises:
        InsufficientDataError: If ``k < 2`` or there are fewer labels than folds.
    """
    if k < 2:
        raise InsufficientDataError(f"Cross-validation needs at least 2 folds, got {k}")
    if len(labels) < k:
        raise InsufficientDataError(
            f"Cannot split {len(labels)} document(s) into {k} folds"
        )

    rng = random.Random(seed)

    class_indices: dict[str, list[int]] = defaultdict(list)
    for idx, label in enumerate(labels):
        class_indices[label].append(idx)

    fold_assignments: list[int] = [0] * len(labels)
    position = 0
    for label in sorted(class_indices):
        indices = class_indices[label]
        rng.shuffle(indices)
        for idx in indices:
            fold_assignments[idx] = position % k
            position += 1

    folds: list[tuple[list[int], list[int]]] = []
    for fold_idx in range(k):
        test_indices = [i for i, f in enumerate(fold_assignments) if f == fold_idx]
        train_indices = [i for i, f in enumerate(fold_assignments) if f != fold_idx]
        folds.append((train_indices, test_indices))

    return folds


def _run_fold(
    documents: Sequence[Document],
    train_idx: list[int],
    test_idx: list[int],
    alpha: float,
    use_stopwords: bool,
    min_count: int = 1,
) -> ConfusionMatrix:
    """Train on ``train_idx`` and return the confusion matrix for ``test_idx``."""
    train_docs = [documents[i] for i in train_idx]
    vocabulary = build_vocabulary(train_docs, use_stopwords=use_stopwords, min_count=min_count)
    model = NaiveBayesModel(vocabulary, alpha=alpha).train(
        (doc.label, encode(doc, vocabulary)) for doc in train_docs  # type: ignore[misc]
    )

    y_true = [documents[i].label for i in test_idx]
    y_pred = [model.predict(encode(documents[i], vocabulary)).label for i in test_idx]
    return confusion_matrix(y_true, y_pred)  # type: ignore[arg-type]


def _merge(partials: list[ConfusionMatrix]) -> ConfusionMatrix:
    merged: Counter[tuple[str, str]] = Counter()
    for partial in partials:
        merged.update(partial)
    return dict(merged)


def cross_validate(
    dataset: Sequence[Document],
    k: int = 10,
    seed: int = 1,
    alpha: float = 1.0,
    use_stopwords: bool = False,
    min_count: int = 1,
    workers: int = 1,
    deadline: Optional[float] = None,
) -> EvaluationResult:
    """Run stratified k-fold cross-validation.

    Args:
        dataset: Labelled documents.
        k: Number of folds.
        seed: Seed for the fold permutation.
        alpha: Smoothing constant for every fold's model.
        use_stopwords: Drop English stop words from each fold's vocabulary.
        min_count: Minimum occurrences for a token to enter a fold's vocabulary.
        workers: Number of worker processes; 1 runs folds in-process.
        deadline: Overall time budget in seconds. Folds not finished when
            it expires are skipped and the result covers the completed ones.

    Returns:
        EvaluationResult aggregated over the completed folds.

    Raises:
        InsufficientDataError: If ``k < 2`` or ``len(dataset) < k``.
        DatasetError: If any document is unlabelled.
    """
    documents = list(dataset)
    unlabeled = sum(1 for doc in documents if not doc.is_labeled)
    if unlabeled:
        raise DatasetError(f"Cross-validation needs labelled documents; {unlabeled} have no label")

    labels = [doc.label for doc in documents]
    folds = stratified_k_fold(labels, k=k, seed=seed)  # type: ignore[arg-type]
    started = time.monotonic()

    def remaining() -> Optional[float]:
        if deadline is None:
            return None
        return deadline - (time.monotonic() - started)

    if workers > 1:
        partials = _run_parallel(
            documents, folds, alpha, use_stopwords, min_count, workers, remaining
        )
    else:
        partials = []
        for fold_idx, (train_idx, test_idx) in enumerate(folds):
            left = remaining()
            if left is not None and left <= 0:
                break
            partials.append(
                _run_fold(documents, train_idx, test_idx, alpha, use_stopwords, min_count)
            )
            logger.debug("Fold %d/%d done (%d test documents)", fold_idx + 1, k, len(test_idx))

    if len(partials) < k:
        logger.warning(
            "Deadline of %.2fs expired; evaluated %d of %d folds",
            deadline,
            len(partials),
            k,
        )

    result = compute_metrics(_merge(partials), folds_completed=len(partials), folds_requested=k)
    logger.info("Cross-validation accuracy %.4f over %d documents", result.accuracy, result.total)
    return result


def _run_parallel(
    documents: list[Document],
    folds: list[tuple[list[int], list[int]]],
    alpha: float,
    use_stopwords: bool,
    min_count: int,
    workers: int,
    remaining,
) -> list[ConfusionMatrix]:
    executor = concurrent.futures.ProcessPoolExecutor(max_workers=workers)
    try:
        futures = [
            executor.submit(
                _run_fold, documents, train_idx, test_idx, alpha, use_stopwords, min_count
            )
            for train_idx, test_idx in folds
        ]
        for future in futures:
            left = remaining()
            if left is not None and left <= 0 and not future.done():
                break
            try:
                future.result(timeout=left)
            except concurrent.futures.TimeoutError:
                break
        return [f.result() for f in futures if f.done() and not f.cancelled()]
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
