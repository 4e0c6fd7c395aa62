import pytest

from commentlens.sentiment import normalize_sentiment


@pytest.mark.parametrize("raw", ["positive", "Positive.", "  POSITIVE ", "très positif", "Positif"])
def test_positive_labels(raw):
    assert normalize_sentiment(raw) == "positive"


@pytest.mark.parametrize("raw", ["negative", "NEGATIVE (mostly)", "très négatif", "NÉGATIF", "negatif"])
def test_negative_labels(raw):
    assert normalize_sentiment(raw) == "negative"


@pytest.mark.parametrize("raw", ["neutral", "Neutre", "mixed", "", "   ", None])
def test_everything_else_is_neutral(raw):
    assert normalize_sentiment(raw) == "neutral"
