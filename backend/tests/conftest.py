import pytest

from borrowers.applications import build_application_profile


def _profile(**overrides):
    label = overrides.pop("loan_approved", None)
    fields = {
        "credit_score": 720,
        "annual_income": 100000,
        "loan_amount": 100000,
        "debt_to_income_ratio": 0.2,
        "employment_status": "Employed",
        "loan_purpose": "Home",
    }
    fields.update(overrides)
    profile = build_application_profile(**fields)
    if label is not None:
        profile = profile.with_overrides(loan_approved=label)
    return profile


@pytest.fixture
def make_profile():
    return _profile


@pytest.fixture
def separable_corpus():
    """Approved iff credit score >= 700 and DTI <= 0.3; loan-to-income fixed at 1."""
    corpus = []
    for cs in (700, 725, 750, 775, 800):
        for dti in (0.1, 0.15, 0.2, 0.25, 0.3):
            corpus.append(_profile(credit_score=cs, debt_to_income_ratio=dti, loan_approved=1))
    for cs in (520, 560, 600, 640, 680):
        for dti in (0.2, 0.3):
            corpus.append(_profile(credit_score=cs, debt_to_income_ratio=dti, loan_approved=0))
    for cs in (720, 760, 800):
        for dti in (0.4, 0.5):
            corpus.append(_profile(credit_score=cs, debt_to_income_ratio=dti, loan_approved=0))
    return corpus
