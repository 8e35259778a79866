"""Data models shared across the classification pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Document:
    """A raw text document with an optional class label."""

    text: str
    label: Optional[str] = None

    @property
    def is_labeled(self) -> bool:
        return self.label is not None


@dataclass(frozen=True)
class PredictionResult:
    """Predicted label plus the normalised distribution over known labels."""

    label: str
    probabilities: dict[str, float]

    @property
    def confidence(self) -> float:
        """Probability assigned to the predicted label."""
        return self.probabilities[self.label]

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "confidence": round(self.confidence, 4),
            "probabilities": {
                k: round(v, 4) for k, v in sorted(
                    self.probabilities.items(),
                    key=lambda x: x[1],
                    reverse=True,
                )
            },
        }


@dataclass
class EvaluationResult:
    """Evaluation metrics aggregated over cross-validation folds.

    Attributes:
        confusion_matrix: Dict of {(true, predicted): count}.
        accuracy: Overall accuracy.
        per_class: Per-class precision, recall and F1 scores.
        support: Per-class sample counts in the true labels.
        macro_precision: Unweighted mean precision across classes.
        macro_recall: Unweighted mean recall across classes.
        macro_f1: Unweighted mean F1 across classes.
        weighted_f1: Support-weighted mean F1 across classes.
        folds_completed: Number of folds whose predictions are included.
        folds_requested: Number of folds the evaluation was asked to run.
    """

    confusion_matrix: dict[tuple[str, str], int] = field(default_factory=dict)
    accuracy: float = 0.0
    per_class: dict[str, dict[str, float]] = field(default_factory=dict)
    support: dict[str, int] = field(default_factory=dict)
    macro_precision: float = 0.0
    macro_recall: float = 0.0
    macro_f1: float = 0.0
    weighted_f1: float = 0.0
    folds_completed: int = 0
    folds_requested: int = 0

    @property
    def labels(self) -> list[str]:
        """All labels seen as either true or predicted, sorted."""
        seen: set[str] = set()
        for true, pred in self.confusion_matrix:
            seen.add(true)
            seen.add(pred)
        return sorted(seen)

    @property
    def total(self) -> int:
        return sum(self.confusion_matrix.values())

    @property
    def is_complete(self) -> bool:
        return self.folds_completed == self.folds_requested

    def to_dict(self) -> dict:
        labels = self.labels
        return {
            "accuracy": round(self.accuracy, 4),
            "macro_precision": round(self.macro_precision, 4),
            "macro_recall": round(self.macro_recall, 4),
            "macro_f1": round(self.macro_f1, 4),
            "weighted_f1": round(self.weighted_f1, 4),
            "per_class": {
                cls: {k: round(v, 4) for k, v in metrics.items()}
                for cls, metrics in self.per_class.items()
            },
            "support": dict(self.support),
            "confusion_matrix": {
                true: {pred: self.confusion_matrix.get((true, pred), 0) for pred in labels}
                for true in labels
            },
            "folds_completed": self.folds_completed,
            "folds_requested": self.folds_requested,
        }

    def summary(self) -> str:
        """Human-readable summary of metrics."""
        lines = [
            f"Accuracy: {self.accuracy:.2%}",
            f"Macro F1: {self.macro_f1:.4f}",
            f"Weighted F1: {self.weighted_f1:.4f}",
            "",
            f"{'Class':<20} {'Precision':>10} {'Recall':>10} {'F1':>10} {'Support':>10}",
            "-" * 62,
        ]
        for cls in sorted(self.per_class.keys()):
            m = self.per_class[cls]
            s = self.support.get(cls, 0)
            lines.append(
                f"{cls:<20} {m['precision']:>10.4f} {m['recall']:>10.4f} "
                f"{m['f1']:>10.4f} {s:>10}"
            )
        if not self.is_complete:
            lines.append("")
            lines.append(f"Partial result: {self.folds_completed}/{self.folds_requested} folds")
        return "\n".join(lines)
