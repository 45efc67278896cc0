import random

import pytest

from borrowers.models import CategoricalField
from errors import EmptyCorpusError
from feature_stats import CategoricalSummary, FeatureStatistics, summarize_continuous


def test_continuous_summary_uses_population_stddev(make_profile):
    corpus = [make_profile(credit_score=600), make_profile(credit_score=700)]
    stats = FeatureStatistics.build(corpus)
    summary = stats.continuous["credit_score"]
    assert summary.mean == 650
    assert summary.stddev == 50
    assert summary.min == 600
    assert summary.max == 700


def test_categorical_values_keep_first_seen_order(make_profile):
    corpus = [
        make_profile(employment_status="Self-Employed"),
        make_profile(employment_status="Employed"),
        make_profile(employment_status="Self-Employed"),
    ]
    stats = FeatureStatistics.build(corpus)
    summary = stats.categorical[CategoricalField.EMPLOYMENT_STATUS]
    assert summary.values == ("Self-Employed", "Employed")
    assert summary.counts == (2, 1)
    assert stats.primary_value(CategoricalField.EMPLOYMENT_STATUS, "Employed") == "Self-Employed"
    assert stats.size == 3


def test_empty_corpus_raises():
    with pytest.raises(EmptyCorpusError):
        FeatureStatistics.build([])
    with pytest.raises(EmptyCorpusError):
        summarize_continuous([])


def test_statistics_are_read_only(make_profile):
    stats = FeatureStatistics.build([make_profile()])
    with pytest.raises(TypeError):
        stats.continuous["credit_score"] = None


def test_categorical_sampling_follows_counts():
    summary = CategoricalSummary(values=("Home", "Auto"), counts=(3, 1))
    rng = random.Random(11)
    draws = [summary.sample(rng) for _ in range(4000)]
    share = draws.count("Home") / len(draws)
    assert 0.7 < share < 0.8
    assert summary.frequencies() == {"Home": 0.75, "Auto": 0.25}


def test_to_dict_reports_all_fields(make_profile):
    payload = FeatureStatistics.build([make_profile()]).to_dict()
    assert payload["size"] == 1
    assert "annual_income" in payload["continuous"]
    assert payload["categorical"]["loan_purpose"]["values"] == ["Home"]
