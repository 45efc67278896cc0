import pytest

from approval_model import ApprovalModel
from feature_importance import (
    BANKRUPTCY_HISTORY,
    CREDIT_SCORE,
    DEBT_TO_INCOME,
    DEFAULT_HISTORY,
    EMPLOYMENT_STATUS,
    LOAN_PURPOSE,
    LOAN_TO_INCOME,
    TENURE_RECOMMENDATION,
    FeatureImportance,
    FeatureImportanceAnalyzer,
    strength,
)


def test_ranked_features_sorts_by_absolute_impact():
    importance = FeatureImportance(
        base_approval_probability=0.5,
        credit_score_impact=0.1,
        debt_to_income_impact=-0.3,
        loan_to_income_impact=0.05,
    )
    ranked = [name for name, _ in importance.ranked_features()]
    assert ranked[:3] == [DEBT_TO_INCOME, CREDIT_SCORE, LOAN_TO_INCOME]
    # zero impacts keep declaration order
    assert ranked[3:] == [DEFAULT_HISTORY, BANKRUPTCY_HISTORY, EMPLOYMENT_STATUS, LOAN_PURPOSE]


def test_ranked_features_ties_keep_declaration_order():
    importance = FeatureImportance(base_approval_probability=0.5, credit_score_impact=-0.1, loan_purpose_impact=0.1)
    ranked = [name for name, _ in importance.ranked_features()]
    assert ranked[:2] == [CREDIT_SCORE, LOAN_PURPOSE]


def test_recommendations_for_weak_credit_and_high_dti(make_profile):
    profile = make_profile(credit_score=640, debt_to_income_ratio=0.42)
    importance = FeatureImportance(
        base_approval_probability=0.4, credit_score_impact=0.08, debt_to_income_impact=0.05
    )
    recs = importance.generate_recommendations(profile)
    assert recs[0] == "Improve credit score by at least 50 points (current: 640) to increase approval odds by 8.00%"
    assert recs[1] == "Reduce debt-to-income ratio from 42.00% to below 36% to increase approval odds by 5.00%"
    assert importance.recommendations == recs


def test_loan_to_income_recommendation_targets_three_times_income(make_profile):
    profile = make_profile(annual_income=50000, loan_amount=200000)
    importance = FeatureImportance(base_approval_probability=0.3, loan_to_income_impact=0.04)
    recs = importance.generate_recommendations(profile)
    assert recs == [
        "Consider reducing loan amount from $200,000 to $150,000 to keep loan-to-income ratio below 3.0x"
    ]


def test_small_impacts_fall_back_to_outlook_message(make_profile):
    profile = make_profile()
    positive = FeatureImportance(base_approval_probability=0.8, credit_score_impact=0.02)
    negative = FeatureImportance(base_approval_probability=0.2, credit_score_impact=0.02)
    assert positive.generate_recommendations(profile) == [
        "Your profile has a positive approval outlook. No major changes needed."
    ]
    assert negative.generate_recommendations(profile) == [
        "Consider applying for a smaller loan amount or providing a larger down payment."
    ]


def test_analyze_with_heuristic_model(make_profile):
    profile = make_profile(
        credit_score=650,
        debt_to_income_ratio=0.4,
        employment_status="Unemployed",
        annual_income=50000,
        loan_amount=200000,
        loan_purpose="Auto",
    )
    importance = FeatureImportanceAnalyzer(ApprovalModel()).analyze(profile)

    assert importance.base_approval_probability == pytest.approx(0.15)
    assert importance.credit_score_impact == pytest.approx(0.1)
    assert importance.debt_to_income_impact == pytest.approx(0.1)
    assert importance.employment_status_impact == pytest.approx(0.2)
    assert importance.loan_to_income_impact == pytest.approx(0.0)
    assert importance.default_history_impact == 0.0
    assert importance.loan_purpose_impact == pytest.approx(0.0)
    assert importance.decision == "DENIED"
    assert importance.recommendations[0] == "Securing employment would significantly improve approval odds"
    assert len(importance.recommendations) == 3
    # the analyzed profile itself is untouched
    assert profile.credit_score == 650


def test_analyze_measures_default_removal(make_profile):
    profile = make_profile(previous_loan_defaults=1, bankruptcy_history=1)
    importance = FeatureImportanceAnalyzer(ApprovalModel()).analyze(profile)
    assert importance.default_history_impact == pytest.approx(0.15)
    assert importance.bankruptcy_impact == pytest.approx(0.25)


def test_strength_labels():
    assert strength(0.01) == "Low"
    assert strength(-0.1) == "Medium"
    assert strength(0.2) == "High"


def test_to_dict_includes_ranking(make_profile):
    importance = FeatureImportanceAnalyzer(ApprovalModel()).analyze(make_profile(credit_score=600))
    payload = importance.to_dict()
    assert payload["decision"] in ("APPROVED", "DENIED")
    assert len(payload["ranked_features"]) == 7
    assert payload["ranked_features"][0]["feature"] == CREDIT_SCORE


def test_short_tenure_is_recommended_even_without_employment_impact(make_profile):
    analyzer = FeatureImportanceAnalyzer(ApprovalModel())
    newcomer = make_profile(job_tenure=1)

    importance = analyzer.analyze(newcomer)

    assert importance.employment_status_impact == 0.0
    assert TENURE_RECOMMENDATION in importance.recommendations
    unemployed = make_profile(employment_status="Unemployed", job_tenure=0)
    assert TENURE_RECOMMENDATION not in analyzer.analyze(unemployed).recommendations
