import math

import pytest

from borrowers.matcher import find_similar
from errors import ValidationError


@pytest.mark.parametrize(
    "kwargs",
    [
        {"top_k": 0},
        {"min_threshold": 1.5},
        {"min_threshold": -0.1},
        {"weights": (0, 0, 0)},
        {"weights": (1, -1, 1)},
        {"weights": (math.nan, 1, 1)},
        {"weights": (math.inf, 1, 1)},
        {"min_threshold": math.nan},
    ],
)
def test_invalid_arguments_raise(make_profile, kwargs):
    with pytest.raises(ValidationError):
        find_similar([make_profile()], 700, 80000, 20000, **kwargs)


def test_empty_samples_raise():
    with pytest.raises(ValidationError):
        find_similar([], 700, 80000, 20000)


def test_identical_axis_counts_as_full_similarity(make_profile):
    samples = [make_profile(credit_score=700, annual_income=income) for income in (50000, 90000)]
    results = find_similar(samples, 400, 0, 0, weights=(1, 0, 0), min_threshold=0)
    assert [score for _, score in results] == [1.0, 1.0]


def test_results_sorted_and_truncated(make_profile):
    samples = [make_profile(credit_score=cs) for cs in (600, 700, 800)]
    results = find_similar(samples, 800, 100000, 100000, weights=(1, 0, 0), top_k=2, min_threshold=0)
    assert [p.credit_score for p, _ in results] == [800, 700]
    assert results[0][1] == pytest.approx(1.0)
    assert results[1][1] == pytest.approx(0.5)


def test_threshold_filters_weak_matches(make_profile):
    samples = [make_profile(credit_score=cs) for cs in (600, 700, 800)]
    results = find_similar(samples, 800, 100000, 100000, weights=(2, 0, 0), min_threshold=0.6)
    assert [p.credit_score for p, _ in results] == [800]


def test_equal_scores_keep_input_order(make_profile):
    first = make_profile(credit_score=700, age=30)
    second = make_profile(credit_score=700, age=60)
    other = make_profile(credit_score=600)
    results = find_similar([first, other, second], 700, 100000, 100000, min_threshold=0)
    assert results[0][0] is first
    assert results[1][0] is second


def test_weights_are_normalized(make_profile):
    samples = [
        make_profile(credit_score=600, annual_income=40000),
        make_profile(credit_score=800, annual_income=80000),
    ]
    results = find_similar(samples, 800, 40000, 100000, weights=(3, 1, 0), min_threshold=0)
    scores = {p.credit_score: s for p, s in results}
    assert scores[800] == pytest.approx(0.75)
    assert scores[600] == pytest.approx(0.25)


def test_non_finite_target_raises(make_profile):
    with pytest.raises(ValidationError):
        find_similar([make_profile()], math.nan, 80000, 20000)
