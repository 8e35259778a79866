"""Shared test fixtures for text-bayes tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from text_bayes.models import Document
from text_bayes.pipeline import train_model

SPAM_DOCS = [
    "WINNER! You have won a free cash prize. Call now to claim your prize.",
    "Free entry to win a cash prize draw. Text WIN to claim.",
    "Urgent! Claim your free prize now, cash waiting for the winner.",
    "Congratulations, you won a free holiday. Call now to claim cash.",
    "Win free cash today! Text CLAIM to receive your prize money.",
    "You are a winner: free ringtones and a cash prize, claim now.",
    "Final notice: claim your free cash prize before it expires. Call now.",
    "Free money offer! Win cash now, text PRIZE to claim.",
]

HAM_DOCS = [
    "Are we still meeting for lunch tomorrow at noon?",
    "I will be late for the meeting, traffic is terrible.",
    "Can you pick up some milk on the way home tonight?",
    "Lunch tomorrow sounds good, see you at the cafe at noon.",
    "The meeting moved to Thursday afternoon, see you then.",
    "Mum says dinner is at seven tonight, come home early.",
    "See you at lunch, I will bring the notes from the meeting.",
    "Thanks for the lift home, see you tomorrow at work.",
]


@pytest.fixture
def tiny_dataset() -> list[Document]:
    """The four-message spam/ham example corpus."""
    return [
        Document("win money now", "spam"),
        Document("meeting at noon", "ham"),
        Document("free money offer", "spam"),
        Document("lunch at noon", "ham"),
    ]


@pytest.fixture
def sms_dataset() -> list[Document]:
    """A separable corpus of sixteen SMS-style messages."""
    return [Document(t, "spam") for t in SPAM_DOCS] + [Document(t, "ham") for t in HAM_DOCS]


@pytest.fixture
def tiny_model(tiny_dataset):
    """Model trained on the four-message corpus with Laplace smoothing."""
    return train_model(tiny_dataset, alpha=1.0)


@pytest.fixture
def tsv_dataset_path(tmp_path: Path, sms_dataset) -> Path:
    """The SMS corpus written as ``label<TAB>text`` lines."""
    path = tmp_path / "sms.tsv"
    path.write_text(
        "\n".join(f"{doc.label}\t{doc.text}" for doc in sms_dataset) + "\n",
        encoding="utf-8",
    )
    return path
