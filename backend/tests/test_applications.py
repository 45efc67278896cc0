import math

import pytest

from borrowers.applications import application_from_payload, build_application_profile, monthly_mortgage_payment
from borrowers.models import BorrowerProfile, loan_to_income
from errors import ValidationError


def test_defaults_and_derived_fields():
    profile = build_application_profile(credit_score=710, annual_income=120000, loan_amount=300000)
    assert profile.loan_duration == 30
    assert profile.employment_status == "Employed"
    assert profile.monthly_debt_payments == 3600
    # account balances plus an owned-home estimate of four times income
    assert profile.total_assets == 100000 + 480000
    assert profile.total_liabilities == 0
    assert profile.net_worth == profile.total_assets - profile.total_liabilities
    assert profile.annual_expenses == 84000
    assert profile.monthly_food_costs == 1500
    assert profile.loan_approved is None


def test_mortgage_sets_housing_cost():
    profile = build_application_profile(
        credit_score=700,
        annual_income=90000,
        loan_amount=250000,
        mortgage_balance=200000,
        interest_rate=0.06,
        loan_duration=30,
    )
    assert profile.monthly_housing_costs == int(monthly_mortgage_payment(200000, 0.06, 30))
    assert profile.total_liabilities == 200000


def test_renter_keeps_supplied_figures():
    profile = build_application_profile(
        credit_score=650,
        annual_income=48000,
        loan_amount=10000,
        home_ownership_status="Rent",
        rent_payments=1200,
        monthly_debt_payments=900,
        total_assets=5000,
    )
    assert profile.monthly_housing_costs == 1200
    assert profile.monthly_debt_payments == 900
    assert profile.total_assets == 5000


def test_mortgage_payment_known_value():
    assert monthly_mortgage_payment(100000, 0.06, 30) == pytest.approx(599.55, abs=0.01)
    assert monthly_mortgage_payment(12000, 0.0, 1) == 1000
    assert monthly_mortgage_payment(0, 0.05, 10) == 0


def test_payload_requires_core_fields():
    with pytest.raises(ValidationError) as exc:
        application_from_payload({"credit_score": 700})
    assert "annual_income" in str(exc.value)


def test_payload_ignores_unknown_keys_and_rejects_bad_numbers():
    profile = application_from_payload(
        {"credit_score": 700, "annual_income": 80000, "loan_amount": 20000, "nickname": "x", "age": None}
    )
    assert profile.age == 35
    with pytest.raises(ValidationError):
        application_from_payload({"credit_score": 700, "annual_income": "lots", "loan_amount": 20000})


@pytest.mark.parametrize("field", ["credit_score", "debt_to_income_ratio", "job_tenure"])
@pytest.mark.parametrize("value", [math.nan, math.inf])
def test_non_finite_numbers_are_rejected(field, value):
    payload = {"credit_score": 700, "annual_income": 80000, "loan_amount": 20000, field: value}
    with pytest.raises(ValidationError) as exc:
        application_from_payload(payload)
    assert field in str(exc.value)


@pytest.mark.parametrize("field", ["credit_score", "loan_duration"])
def test_profile_from_dict_rejects_non_finite_numbers(field):
    data = build_application_profile(700, 80000, 20000).to_dict()
    data[field] = math.nan
    with pytest.raises(ValidationError):
        BorrowerProfile.from_dict(data)


def test_loan_to_income_floors_income_at_one():
    assert loan_to_income(20000, 0) == 20000
    profile = build_application_profile(700, 0, 20000)
    assert profile.loan_to_income_ratio == loan_to_income(profile.loan_amount, profile.annual_income)
