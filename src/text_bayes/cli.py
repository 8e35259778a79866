"""Command-line interface for text-bayes.

Provides ``train``, ``evaluate``, ``classify``, ``vectorize`` and
``inspect`` commands with rich terminal output using the ``click`` and
``rich`` libraries.

Usage::

    text-bayes train sms.tsv spam.model
    text-bayes evaluate sms.tsv 10 --seed 1
    text-bayes classify spam.model message.txt
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import store
from .config import Settings
from .datasets import export_arff, load_dataset, read_text
from .errors import TextBayesError
from .evaluation import cross_validate
from .models import EvaluationResult, PredictionResult
from .pipeline import classify_text, train_model
from .vectorizer import build_vocabulary

console = Console()


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/] {escape(str(error))}")
    sys.exit(1)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(package_name="text-bayes")
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.pass_context
def main(ctx: click.Context, verbose: int) -> None:
    """📨 text-bayes: bag-of-words Naive Bayes text classification.

    Train a classifier on a labelled dataset, cross-validate it, and
    classify new text with a saved model.
    """
    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    level = {0: settings.log_level, 1: "INFO"}.get(verbose, "DEBUG")
    _setup_logging(level)
    ctx.obj = settings


@main.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("model_out", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--alpha", type=float, default=None, help="Smoothing constant.")
@click.option("--stopwords/--no-stopwords", default=None,
              help="Leave English stop words out of the vocabulary.")
@click.option("--min-count", type=click.IntRange(min=1), default=None,
              help="Minimum occurrences for a token to enter the vocabulary.")
@click.option("--label", "labels", multiple=True,
              help="Required class label (repeatable); fails if any is missing.")
@click.pass_obj
def train(
    settings: Settings,
    dataset: Path,
    model_out: Path,
    alpha: Optional[float],
    stopwords: Optional[bool],
    min_count: Optional[int],
    labels: tuple[str, ...],
) -> None:
    """Train a model on DATASET and save it to MODEL_OUT.

    Example: text-bayes train sms.tsv spam.model
    """
    with console.status("[bold blue]Training...", spinner="dots"):
        try:
            documents = load_dataset(dataset)
            model = train_model(
                documents,
                alpha=settings.alpha if alpha is None else alpha,
                labels=labels or None,
                use_stopwords=settings.use_stopwords if stopwords is None else stopwords,
                min_count=settings.min_count if min_count is None else min_count,
            )
            store.save(model, model_out)
        except (TextBayesError, ValueError) as e:
            _fail(e)

    console.print(
        f"Trained on [bold]{len(documents)}[/] documents "
        f"({', '.join(model.labels)}), vocabulary size [bold]{len(model.vocabulary)}[/]"
    )
    console.print(f"[dim]Model saved to {model_out}[/]")


@main.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("k", type=int, required=False)
@click.option("--seed", type=int, default=None, help="Seed for the fold permutation.")
@click.option("--alpha", type=float, default=None, help="Smoothing constant.")
@click.option("--stopwords/--no-stopwords", default=None,
              help="Leave English stop words out of each fold's vocabulary.")
@click.option("--min-count", type=click.IntRange(min=1), default=None,
              help="Minimum occurrences for a token to enter a fold's vocabulary.")
@click.option("--workers", type=click.IntRange(min=1), default=None,
              help="Number of worker processes.")
@click.option("--deadline", type=click.FloatRange(min=0), default=None,
              help="Overall time budget in seconds.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def evaluate(
    settings: Settings,
    dataset: Path,
    k: Optional[int],
    seed: Optional[int],
    alpha: Optional[float],
    stopwords: Optional[bool],
    min_count: Optional[int],
    workers: Optional[int],
    deadline: Optional[float],
    output: str,
) -> None:
    """Cross-validate a classifier on DATASET with K stratified folds.

    Example: text-bayes evaluate sms.tsv 10
    """
    with console.status("[bold blue]Cross-validating...", spinner="dots"):
        try:
            result = cross_validate(
                load_dataset(dataset),
                k=settings.folds if k is None else k,
                seed=settings.seed if seed is None else seed,
                alpha=settings.alpha if alpha is None else alpha,
                use_stopwords=settings.use_stopwords if stopwords is None else stopwords,
                min_count=settings.min_count if min_count is None else min_count,
                workers=settings.workers if workers is None else workers,
                deadline=deadline,
            )
        except (TextBayesError, ValueError) as e:
            _fail(e)

    if output == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _render_evaluation(result, dataset.name)


@main.command()
@click.argument("model_in", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("text_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
def classify(model_in: Path, text_file: Path, output: str) -> None:
    """Classify the text in TEXT_FILE with the model in MODEL_IN.

    Example: text-bayes classify spam.model message.txt
    """
    try:
        model = store.load(model_in)
        result = classify_text(read_text(text_file), model)
    except TextBayesError as e:
        _fail(e)

    if output == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _render_prediction(result, text_file.name)


@main.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("arff_out", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def vectorize(settings: Settings, dataset: Path, arff_out: Path) -> None:
    """Write the bag-of-words vectors of DATASET to a sparse ARFF file.

    Example: text-bayes vectorize sms.tsv sms-vectors.arff
    """
    try:
        documents = load_dataset(dataset)
        vocabulary = build_vocabulary(
            documents,
            use_stopwords=settings.use_stopwords,
            min_count=settings.min_count,
        )
        export_arff(documents, vocabulary, arff_out, relation=dataset.stem)
    except TextBayesError as e:
        _fail(e)

    console.print(
        f"Wrote {len(documents)} vectors over {len(vocabulary)} tokens to [bold]{arff_out}[/]"
    )


@main.command()
@click.argument("model_in", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--top", "-n", type=click.IntRange(min=1), default=10,
              help="Number of features to show per class.")
def inspect(model_in: Path, top: int) -> None:
    """Show the classes and most informative tokens of a saved model.

    Example: text-bayes inspect spam.model --top 15
    """
    try:
        model = store.load(model_in)
    except TextBayesError as e:
        _fail(e)

    priors = model.priors
    console.print(Panel(
        f"Alpha: {model.alpha} | Vocabulary: {len(model.vocabulary)} | "
        f"Classes: {', '.join(f'{lb} ({priors[lb]:.1%})' for lb in model.labels)}",
        title=f"📦 {model_in.name}",
        border_style="blue",
    ))

    for label in model.labels:
        table = Table(title=f"Most informative — {label}")
        table.add_column("Token", style="cyan")
        table.add_column("Score", justify="right")
        for token, score in model.most_informative_features(label, top):
            table.add_row(token, f"{score:.4f}")
        console.print(table)


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_prediction(result: PredictionResult, source: str) -> None:
    """Render a prediction with its probability distribution."""
    table = Table(title=f"Classification — {source}")
    table.add_column("Class", style="cyan")
    table.add_column("Probability", justify="right")

    for label, prob in sorted(result.probabilities.items(), key=lambda x: x[1], reverse=True):
        style = "bold green" if label == result.label else ""
        table.add_row(f"[{style}]{escape(label)}[/]" if style else escape(label), f"{prob:.4f}")

    console.print(f"Class predicted: [bold green]{escape(result.label)}[/]")
    console.print(table)


def _render_evaluation(result: EvaluationResult, source: str) -> None:
    """Render cross-validation metrics and the confusion matrix."""
    console.print()
    console.print(Panel(
        f"Documents: {result.total} | Folds: {result.folds_completed}/{result.folds_requested}\n"
        f"Accuracy: [bold]{result.accuracy:.2%}[/] | "
        f"Macro F1: {result.macro_f1:.4f} | Weighted F1: {result.weighted_f1:.4f}",
        title=f"📊 Cross-validation — {source}",
        border_style="blue",
    ))

    table = Table(title="Per-class metrics")
    table.add_column("Class", style="cyan")
    for name in ("Precision", "Recall", "F1", "Support"):
        table.add_column(name, justify="right")
    for cls in sorted(result.per_class):
        m = result.per_class[cls]
        table.add_row(
            cls,
            f"{m['precision']:.4f}",
            f"{m['recall']:.4f}",
            f"{m['f1']:.4f}",
            str(result.support.get(cls, 0)),
        )
    console.print(table)

    labels = result.labels
    matrix = Table(title="Confusion matrix (rows: true, columns: predicted)")
    matrix.add_column("", style="cyan")
    for label in labels:
        matrix.add_column(label, justify="right")
    for true in labels:
        matrix.add_row(true, *(str(result.confusion_matrix.get((true, p), 0)) for p in labels))
    console.print(matrix)

    if not result.is_complete:
        console.print("[bold yellow]Deadline expired: partial result[/]")
    console.print()


if __name__ == "__main__":
    main()
