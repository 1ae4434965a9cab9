"""Tests for the sentiment scorer, event detector and score aggregator."""

import pytest

from conftest import make_headline
from weekly_picks.scoring.aggregate import aggregate, clamp_momentum
from weekly_picks.scoring.events import detect_events, headline_events
from weekly_picks.scoring.sentiment import headline_sentiment, score_sentiment


class TestSentiment:
    def test_empty_is_zero(self):
        assert score_sentiment([]) == 0.0

    def test_single_positive_keyword_scores_one(self):
        assert score_sentiment([make_headline("Apple posts record quarter")]) == 1.0

    def test_single_negative_keyword_scores_minus_one(self):
        assert score_sentiment([make_headline("Exxon faces lawsuit over spill")]) == -1.0

    def test_keywords_are_case_insensitive(self):
        assert headline_sentiment("NVIDIA SURGE CONTINUES") == 1

    def test_contributions_add_within_a_headline(self):
        # beat + growth + strong = 3, miss = -1
        assert headline_sentiment("Strong growth as sales beat; margins miss") == 2

    def test_average_over_headlines(self):
        headlines = [
            make_headline("Analyst upgrade lifts shares"),       # +1
            make_headline("Record revenue and strong demand"),   # +2
            make_headline("Regulatory probe announced"),         # -2
            make_headline("CEO speaks at conference"),           # 0
        ]
        assert score_sentiment(headlines) == pytest.approx(1 / 4)

    def test_blank_title_contributes_nothing(self):
        assert score_sentiment([make_headline(""), make_headline("bullish call")]) == 0.5


class TestEvents:
    def test_empty_is_zero(self):
        assert detect_events([]) == 0.0

    @pytest.mark.parametrize("title, expected", [
        ("Apple earnings beat expectations", 2.0),
        ("Earnings miss sends stock lower", -2.0),
        ("Goldman issues upgrade", 1.5),
        ("Morgan Stanley downgrade", -1.5),
        ("Merger talks confirmed", 1.0),
        ("Acquisition of startup closes", 1.0),
        ("DOJ probe widens", -2.0),
        ("Quiet week for the stock", 0.0),
    ])
    def test_single_rules(self, title, expected):
        assert headline_events(title) == expected

    def test_all_matching_rules_fire(self):
        # earnings+beat (+2), upgrade (+1.5), merger (+1)
        assert headline_events("Earnings beat and upgrade ahead of merger vote") == 4.5

    def test_or_rule_fires_once(self):
        # lawsuit and probe both in one headline still trigger the rule once
        assert headline_events("Lawsuit follows regulatory probe") == -2.0

    def test_sum_is_not_averaged(self):
        headlines = [make_headline("Earnings beat")] * 3
        assert detect_events(headlines) == 6.0

    def test_additive_across_headlines(self):
        h1 = make_headline("Earnings beat; analysts upgrade")
        h2 = make_headline("Lawsuit filed against the company")
        assert detect_events([h1, h2]) == detect_events([h1]) + detect_events([h2])


class TestAggregate:
    def test_unit_signals(self):
        assert aggregate(1, 1, 1) == pytest.approx(1.0)

    def test_weights(self):
        assert aggregate(1, 0, 0) == pytest.approx(0.5)
        assert aggregate(0, 1, 0) == pytest.approx(0.3)
        assert aggregate(0, 0, 1) == pytest.approx(0.2)

    def test_zero(self):
        assert aggregate(0, 0, 0) == 0.0

    def test_momentum_is_clamped(self):
        assert aggregate(0, 0, 5.0) == pytest.approx(0.2)
        assert aggregate(0, 0, -3.0) == pytest.approx(-0.2)

    @pytest.mark.parametrize("raw, expected", [
        (2.5, 1.0), (-1.7, -1.0), (0.3, 0.3), (1.0, 1.0), (-1.0, -1.0),
    ])
    def test_clamp_momentum(self, raw, expected):
        assert clamp_momentum(raw) == expected

    def test_nan_momentum_is_rejected(self):
        with pytest.raises(ValueError):
            clamp_momentum(float("nan"))
        with pytest.raises(ValueError):
            aggregate(0, 0, float("nan"))

    def test_infinite_momentum_is_clamped(self):
        assert clamp_momentum(float("inf")) == 1.0
        assert clamp_momentum(float("-inf")) == -1.0

    def test_deterministic(self):
        assert aggregate(0.25, -1.5, 0.4) == aggregate(0.25, -1.5, 0.4)
