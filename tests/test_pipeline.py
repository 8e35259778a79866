"""Tests for the high-level train/classify entry points."""

from __future__ import annotations

import pytest

from text_bayes import store
from text_bayes.errors import (
    CorruptModelError,
    DatasetError,
    EmptyCorpusError,
    MissingClassError,
    UntrainedModelError,
)
from text_bayes.models import Document
from text_bayes.naive_bayes import NaiveBayesModel
from text_bayes.pipeline import classify_batch, classify_text, load_and_classify, train_model
from text_bayes.vectorizer import Vocabulary, build_vocabulary


class TestTrainModel:
    """Tests for train_model."""

    def test_builds_vocabulary_and_model(self, tiny_dataset):
        model = train_model(tiny_dataset)
        assert model.is_trained
        assert model.vocabulary == build_vocabulary(tiny_dataset)
        assert model.alpha == 1.0

    def test_options_forwarded(self, sms_dataset):
        model = train_model(sms_dataset, alpha=0.25, use_stopwords=True, min_count=2)
        assert model.alpha == 0.25
        assert "the" not in model.vocabulary
        assert "free" in model.vocabulary

    def test_unlabeled_rejected(self, tiny_dataset):
        with pytest.raises(DatasetError):
            train_model(tiny_dataset + [Document("no label here")])

    def test_closed_label_set(self, tiny_dataset):
        with pytest.raises(MissingClassError):
            train_model(tiny_dataset, labels=["spam", "ham", "phishing"])

    def test_no_tokens(self):
        with pytest.raises(EmptyCorpusError):
            train_model([Document("!!!", "spam")])


class TestClassify:
    """Tests for classification entry points."""

    def test_free_money(self, tiny_model):
        result = classify_text("free money", tiny_model)
        assert result.label == "spam"
        assert result.probabilities["spam"] > 0.5

    def test_matching_vocabulary_accepted(self, tiny_model, tiny_dataset):
        result = classify_text("free money", tiny_model, build_vocabulary(tiny_dataset))
        assert result.label == "spam"

    def test_mismatched_vocabulary_rejected(self, tiny_model):
        with pytest.raises(CorruptModelError):
            classify_text("free money", tiny_model, Vocabulary(("free", "money")))

    def test_untrained_model(self):
        with pytest.raises(UntrainedModelError):
            classify_text("free money", NaiveBayesModel(Vocabulary(("free",))))

    def test_batch(self, sms_dataset):
        model = train_model(sms_dataset)
        results = classify_batch(["free cash prize, claim now", "see you at lunch tomorrow"], model)
        assert [r.label for r in results] == ["spam", "ham"]

    def test_load_and_classify(self, tmp_path, tiny_model):
        path = tmp_path / "tiny.model"
        store.save(tiny_model, path)
        assert load_and_classify(path, "free money") == classify_text("free money", tiny_model)

    def test_result_to_dict(self, tiny_model):
        data = classify_text("free money", tiny_model).to_dict()
        assert data["label"] == "spam"
        assert list(data["probabilities"]) == ["spam", "ham"]
        assert data["confidence"] == round(6 / 7, 4)
