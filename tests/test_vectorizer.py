"""Tests for tokenization, vocabulary construction and encoding."""

from __future__ import annotations

import pytest

from text_bayes.errors import EmptyCorpusError
from text_bayes.models import Document
from text_bayes.vectorizer import Vocabulary, build_vocabulary, encode, tokenize


class TestTokenize:
    """Tests for the tokenization rule."""

    def test_lowercases_and_splits_on_punctuation(self):
        assert tokenize("Win MONEY now!!! Call 0800-123") == ["win", "money", "now", "call", "0800", "123"]

    def test_underscore_is_a_boundary(self):
        assert tokenize("call_me") == ["call", "me"]

    def test_keeps_unicode_letters(self):
        assert tokenize("Café crème") == ["café", "crème"]

    def test_empty_and_symbol_only_text(self):
        assert tokenize("") == []
        assert tokenize("!!! ... ???") == []

    def test_deterministic(self):
        text = "Free entry in 2 a wkly comp to win FA Cup final tkts"
        assert tokenize(text) == tokenize(text)


class TestBuildVocabulary:
    """Tests for vocabulary construction."""

    def test_indices_follow_discovery_order(self):
        vocab = build_vocabulary(["b a", "c a b"])
        assert vocab.tokens == ("b", "a", "c")
        assert [vocab.index(t) for t in ("b", "a", "c")] == [0, 1, 2]

    def test_accepts_documents(self, tiny_dataset):
        vocab = build_vocabulary(tiny_dataset)
        assert vocab.tokens == (
            "win", "money", "now", "meeting", "at", "noon", "free", "offer", "lunch",
        )

    def test_empty_corpus_raises(self):
        with pytest.raises(EmptyCorpusError):
            build_vocabulary(["", "?!", "   "])

    def test_no_documents_raises(self):
        with pytest.raises(EmptyCorpusError):
            build_vocabulary([])

    def test_stopwords_are_dropped(self):
        vocab = build_vocabulary(["the money is here"], use_stopwords=True)
        assert vocab.tokens == ("money",)

    def test_min_count_prunes_rare_tokens(self):
        vocab = build_vocabulary(["a b", "a c", "d a"], min_count=2)
        assert vocab.tokens == ("a",)

    def test_min_count_must_be_positive(self):
        with pytest.raises(ValueError):
            build_vocabulary(["a"], min_count=0)


class TestVocabulary:
    """Tests for the frozen Vocabulary value."""

    def test_duplicate_tokens_rejected(self):
        with pytest.raises(ValueError):
            Vocabulary(("a", "b", "a"))

    def test_lookup(self):
        vocab = Vocabulary(("spam", "ham"))
        assert len(vocab) == 2
        assert "ham" in vocab
        assert "eggs" not in vocab
        assert vocab.token(1) == "ham"
        assert vocab.get("eggs") is None
        with pytest.raises(KeyError):
            vocab.index("eggs")

    def test_structural_equality(self):
        assert Vocabulary(("a", "b")) == Vocabulary(["a", "b"])
        assert Vocabulary(("a", "b")) != Vocabulary(("b", "a"))

    def test_is_immutable(self):
        vocab = Vocabulary(("a",))
        with pytest.raises(AttributeError):
            vocab.tokens = ("b",)  # type: ignore[misc]


class TestEncode:
    """Tests for document encoding."""

    def test_counts_in_vocabulary_tokens(self):
        vocab = build_vocabulary(["win money now"])
        assert encode("money MONEY lunch", vocab) == {vocab.index("money"): 2}

    def test_out_of_vocabulary_tokens_dropped(self):
        vocab = build_vocabulary(["win money now"])
        assert encode("meeting at noon", vocab) == {}

    def test_does_not_mutate_vocabulary(self):
        vocab = build_vocabulary(["win money now"])
        before = vocab.tokens
        encode("completely new words here", vocab)
        assert vocab.tokens == before

    def test_accepts_document(self):
        vocab = build_vocabulary(["win money now"])
        assert encode(Document("win win", "spam"), vocab) == {0: 2}

    @pytest.mark.parametrize("text", [
        "win money now",
        "free money, free MONEY!",
        "unrelated words entirely",
        "",
    ])
    def test_decoded_counts_never_exceed_tokenized_counts(self, tiny_dataset, text):
        vocab = build_vocabulary(tiny_dataset)
        decoded = vocab.decode(encode(text, vocab))
        direct = tokenize(text)
        assert sum(decoded.values()) <= len(direct)
        for token, count in decoded.items():
            assert count == direct.count(token)
