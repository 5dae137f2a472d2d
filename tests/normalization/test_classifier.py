"""
Tests for the Sentiment / Impact Classifier.

============================================================
PURPOSE
============================================================
1. Event type categorization
2. Numeric parsing of calendar cells
3. Deviation sign convention (inverted indicators)
4. Sentiment score buckets and labels
5. Keyword and label sentiment, confidence scoring

============================================================
"""

import math

import pytest

from normalization.classifier import (
    CPI_CORE,
    CPI_HEADLINE,
    GDP_QUARTERLY,
    INTEREST_RATE_DECISION,
    JOBLESS_CLAIMS,
    NFP,
    OTHER,
    PMI_SERVICES,
    UNEMPLOYMENT_RATE,
    categorize_event,
    clamp_confidence,
    compute_deviation,
    deviation_sentiment_score,
    infer_sentiment,
    is_credible_source,
    keyword_sentiment,
    parse_numeric,
    score_confidence,
    sentiment_from_label,
    sentiment_from_score,
)
from normalization.models import Impact, Sentiment


# ============================================================
# EVENT TYPE TESTS
# ============================================================

class TestCategorizeEvent:
    """Ordered keyword rules, first match wins."""

    @pytest.mark.parametrize("title,expected", [
        ("CPI m/m", CPI_HEADLINE),
        ("Core CPI m/m", CPI_CORE),
        ("Unemployment Claims", JOBLESS_CLAIMS),
        ("Unemployment Rate", UNEMPLOYMENT_RATE),
        ("Non-Farm Employment Change", NFP),
        ("ISM Services PMI", PMI_SERVICES),
        ("Federal Funds Rate", INTEREST_RATE_DECISION),
        ("Prelim GDP q/q", GDP_QUARTERLY),
        ("Bank Holiday", OTHER),
    ])
    def test_titles(self, title, expected):
        assert categorize_event(title) == expected

    def test_empty_title(self):
        assert categorize_event("") == OTHER
        assert categorize_event(None) == OTHER


# ============================================================
# NUMERIC PARSING TESTS
# ============================================================

class TestParseNumeric:
    """Calendar cell parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("3.1%", 3.1),
        ("-0.2%", -0.2),
        ("250K", 250_000.0),
        ("1.5B", 1_500_000_000.0),
        ("1,234.5", 1234.5),
        (42, 42.0),
    ])
    def test_values(self, text, expected):
        assert parse_numeric(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", "-", "—", "N/A", None, "pending", True])
    def test_missing(self, text):
        assert parse_numeric(text) is None


# ============================================================
# DEVIATION / SENTIMENT TESTS
# ============================================================

class TestDeviation:
    """Sign convention and thresholds."""

    def test_against_forecast(self):
        deviation, against_forecast = compute_deviation(3.1, 3.0)
        assert deviation == pytest.approx(10 / 3)
        assert against_forecast is True

    def test_falls_back_to_previous(self):
        deviation, against_forecast = compute_deviation(3.9, None, 3.7)
        assert deviation > 0
        assert against_forecast is False

    def test_zero_reference(self):
        assert compute_deviation(0.25, 0.0)[0] == 100.0
        assert compute_deviation(-0.1, 0.0)[0] == -100.0
        assert compute_deviation(0.0, 0.0)[0] == 0.0

    def test_missing_values(self):
        assert compute_deviation(None, 3.0) is None
        assert compute_deviation(3.0, None, None) is None

    def test_higher_cpi_is_bearish(self):
        assert infer_sentiment(CPI_HEADLINE, 3.1, 3.0) is Sentiment.BEARISH

    def test_higher_claims_is_bearish(self):
        assert infer_sentiment(JOBLESS_CLAIMS, 3.1, 3.0) is Sentiment.BEARISH

    def test_higher_gdp_is_bullish(self):
        assert infer_sentiment(GDP_QUARTERLY, 2.5, 2.0) is Sentiment.BULLISH

    def test_within_threshold_is_neutral(self):
        assert infer_sentiment(GDP_QUARTERLY, 2.01, 2.0) is Sentiment.NEUTRAL

    def test_previous_uses_wider_threshold(self):
        # +4% vs previous is inside the 5% band
        assert infer_sentiment(GDP_QUARTERLY, 2.08, None, 2.0) is Sentiment.NEUTRAL
        assert infer_sentiment(UNEMPLOYMENT_RATE, 3.9, None, 3.7) is Sentiment.BEARISH

    def test_no_data_is_neutral(self):
        assert infer_sentiment(CPI_HEADLINE, None, None) is Sentiment.NEUTRAL


class TestSentimentScore:
    """0-100 score buckets, symmetric around 50."""

    def test_cpi_beat_scores_bearish(self):
        score = deviation_sentiment_score(CPI_HEADLINE, 3.1, 3.0)
        assert score == 35.0
        assert sentiment_from_score(score) is Sentiment.BEARISH

    def test_buckets(self):
        assert deviation_sentiment_score(GDP_QUARTERLY, 2.5, 2.0) == 85.0
        assert deviation_sentiment_score(GDP_QUARTERLY, 2.14, 2.0) == 75.0
        assert deviation_sentiment_score(GDP_QUARTERLY, 2.06, 2.0) == 65.0
        assert deviation_sentiment_score(GDP_QUARTERLY, 2.02, 2.0) == 50.0
        assert deviation_sentiment_score(GDP_QUARTERLY, 1.5, 2.0) == 15.0

    def test_missing_is_neutral(self):
        assert deviation_sentiment_score(GDP_QUARTERLY, None, 2.0) == 50.0

    @pytest.mark.parametrize("score,expected", [
        (70, Sentiment.BULLISH),
        (65, Sentiment.BULLISH),
        (50, Sentiment.NEUTRAL),
        (35, Sentiment.BEARISH),
        (30, Sentiment.BEARISH),
    ])
    def test_labels(self, score, expected):
        assert sentiment_from_score(score) is expected


class TestKeywordSentiment:
    """Headline keyword counts."""

    def test_bullish(self):
        assert keyword_sentiment("Dollar rallies as yields rise") is Sentiment.BULLISH

    def test_bearish(self):
        assert keyword_sentiment("Yen slumps after BoJ signals further cuts") is Sentiment.BEARISH

    def test_word_boundaries(self):
        # "surprise" contains "rise" but is not a keyword
        assert keyword_sentiment("A surprise announcement") is Sentiment.NEUTRAL

    def test_tie_is_neutral(self):
        assert keyword_sentiment("Stocks rise while bonds fall") is Sentiment.NEUTRAL


class TestSentimentLabel:
    """Source-supplied labels."""

    @pytest.mark.parametrize("label,expected", [
        ("Bullish", Sentiment.BULLISH),
        ("Somewhat-Bullish", Sentiment.BULLISH),
        ("positive", Sentiment.BULLISH),
        ("Bearish", Sentiment.BEARISH),
        ("Somewhat-Bearish", Sentiment.BEARISH),
        ("NEGATIVE", Sentiment.BEARISH),
        ("Neutral", Sentiment.NEUTRAL),
    ])
    def test_labels(self, label, expected):
        assert sentiment_from_label(label) is expected

    @pytest.mark.parametrize("label", ["", None, "mixed"])
    def test_unknown(self, label):
        assert sentiment_from_label(label) is None


# ============================================================
# CONFIDENCE TESTS
# ============================================================

class TestConfidence:
    """Base by impact plus bonuses."""

    def test_high_impact_credible_complete(self):
        assert score_confidence(Impact.HIGH, "Forex Factory", 3.1, 3.0) == 95.0

    def test_low_impact_unknown_source(self):
        assert score_confidence(Impact.LOW, "Some Blog", None, None) == 45.0

    def test_medium_with_data(self):
        assert score_confidence(Impact.MEDIUM, "Investing.com", 1.0, 2.0) == 70.0

    def test_credible_sources(self):
        assert is_credible_source("Trading Economics")
        assert is_credible_source("FRED")
        assert not is_credible_source("MarketWatch")
        assert not is_credible_source(None)

    @pytest.mark.parametrize("value,expected", [
        (150, 100.0),
        (-5, 0.0),
        (55.5, 55.5),
        ("abc", 0.0),
        (None, 0.0),
        (math.nan, 0.0),
    ])
    def test_clamp(self, value, expected):
        assert clamp_confidence(value) == expected
