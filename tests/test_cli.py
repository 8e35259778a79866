"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from text_bayes import store
from text_bayes.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def model_path(tmp_path, runner, tsv_dataset_path):
    path = tmp_path / "sms.model"
    result = runner.invoke(main, ["train", str(tsv_dataset_path), str(path)])
    assert result.exit_code == 0, result.output
    return path


@pytest.fixture
def message_path(tmp_path):
    path = tmp_path / "message.txt"
    path.write_text("Claim your FREE cash prize\nnow!\n", encoding="utf-8")
    return path


class TestTrain:
    """Tests for the train command."""

    def test_writes_model(self, model_path):
        model = store.load(model_path)
        assert model.labels == ["ham", "spam"]

    def test_reports_summary(self, tmp_path, runner, tsv_dataset_path):
        result = runner.invoke(main, ["train", str(tsv_dataset_path), str(tmp_path / "m.model")])
        assert result.exit_code == 0
        assert "Trained on 16 documents" in result.output

    def test_options(self, tmp_path, runner, tsv_dataset_path):
        path = tmp_path / "m.model"
        result = runner.invoke(
            main,
            ["train", str(tsv_dataset_path), str(path), "--alpha", "0.5", "--stopwords"],
        )
        assert result.exit_code == 0, result.output
        model = store.load(path)
        assert model.alpha == 0.5
        assert "the" not in model.vocabulary

    def test_missing_required_label_fails(self, tmp_path, runner, tsv_dataset_path):
        result = runner.invoke(
            main,
            ["train", str(tsv_dataset_path), str(tmp_path / "m.model"),
             "--label", "spam", "--label", "ham", "--label", "phishing"],
        )
        assert result.exit_code == 1
        assert "phishing" in result.output

    def test_malformed_dataset_fails(self, tmp_path, runner):
        bad = tmp_path / "bad.tsv"
        bad.write_text("no tab here\n", encoding="utf-8")
        result = runner.invoke(main, ["train", str(bad), str(tmp_path / "m.model")])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestEvaluate:
    """Tests for the evaluate command."""

    def test_json(self, runner, tsv_dataset_path):
        result = runner.invoke(
            main, ["evaluate", str(tsv_dataset_path), "4", "--seed", "1", "-o", "json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["folds_completed"] == 4
        assert 0.0 <= data["accuracy"] <= 1.0
        total = sum(sum(row.values()) for row in data["confusion_matrix"].values())
        assert total == 16

    def test_rich(self, runner, tsv_dataset_path):
        result = runner.invoke(main, ["evaluate", str(tsv_dataset_path), "2"])
        assert result.exit_code == 0, result.output
        assert "Accuracy:" in result.output
        assert "spam" in result.output

    def test_too_many_folds(self, runner, tsv_dataset_path):
        result = runner.invoke(main, ["evaluate", str(tsv_dataset_path), "100"])
        assert result.exit_code == 1

    def test_vocabulary_options(self, runner, tsv_dataset_path):
        result = runner.invoke(main, [
            "evaluate", str(tsv_dataset_path), "4",
            "--stopwords", "--min-count", "2", "-o", "json",
        ])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["folds_completed"] == 4

    def test_min_count_leaving_no_tokens_fails(self, runner, tsv_dataset_path):
        result = runner.invoke(
            main, ["evaluate", str(tsv_dataset_path), "4", "--min-count", "10000"]
        )
        assert result.exit_code == 1
        assert "Error" in result.output


class TestClassify:
    """Tests for the classify command."""

    def test_json(self, runner, model_path, message_path):
        result = runner.invoke(main, ["classify", str(model_path), str(message_path), "-o", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["label"] == "spam"
        assert set(data["probabilities"]) == {"ham", "spam"}

    def test_rich(self, runner, model_path, message_path):
        result = runner.invoke(main, ["classify", str(model_path), str(message_path)])
        assert result.exit_code == 0, result.output
        assert "Class predicted: spam" in result.output

    def test_corrupt_model(self, tmp_path, runner, message_path):
        bad = tmp_path / "bad.model"
        bad.write_bytes(b"not a model")
        result = runner.invoke(main, ["classify", str(bad), str(message_path)])
        assert result.exit_code == 1
        assert "magic" in result.output


class TestVectorizeAndInspect:
    """Tests for the vectorize and inspect commands."""

    def test_vectorize(self, tmp_path, runner, tsv_dataset_path):
        out = tmp_path / "vectors.arff"
        result = runner.invoke(main, ["vectorize", str(tsv_dataset_path), str(out)])
        assert result.exit_code == 0, result.output
        text = out.read_text(encoding="utf-8")
        assert text.startswith("@relation sms")
        assert text.count("{0 spam") == 8

    def test_inspect(self, runner, model_path):
        result = runner.invoke(main, ["inspect", str(model_path), "--top", "3"])
        assert result.exit_code == 0, result.output
        assert "Vocabulary:" in result.output
        assert "ham" in result.output


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "version" in result.output
