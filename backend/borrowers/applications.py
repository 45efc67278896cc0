import inspect
from typing import Any, Dict

from errors import ValidationError
from .models import INSURED, BorrowerProfile, require_finite


def monthly_mortgage_payment(balance: float, annual_rate: float, years: int) -> float:
    """Level monthly payment that amortizes balance over the given term."""
    months = max(1, int(years) * 12)
    if balance <= 0:
        return 0.0
    rate = annual_rate / 12
    if rate <= 0:
        return balance / months
    factor = (1 + rate) ** months
    return balance * rate * factor / (factor - 1)


def build_application_profile(
    credit_score: float,
    annual_income: float,
    loan_amount: float,
    loan_duration: int = 30,
    employment_status: str = "Employed",
    marital_status: str = "Single",
    number_of_dependents: int = 0,
    education_level: str = "Bachelor",
    home_ownership_status: str = "Mortgage",
    debt_to_income_ratio: float = 0.36,
    monthly_debt_payments: float = 0,
    credit_card_utilization_rate: float = 0.3,
    number_of_open_credit_lines: int = 3,
    number_of_credit_inquiries: int = 1,
    previous_loan_defaults: int = 0,
    bankruptcy_history: int = 0,
    loan_purpose: str = "Home",
    interest_rate: float = 0.04,
    payment_history: float = 95,
    savings_account_balance: float = 10000,
    checking_account_balance: float = 5000,
    investment_account_balance: float = 20000,
    retirement_account_balance: float = 50000,
    emergency_fund_balance: float = 15000,
    total_assets: float = 0,
    total_liabilities: float = 0,
    length_of_credit_history: int = 8,
    mortgage_balance: float = 0,
    rent_payments: float = 0,
    auto_loan_balance: float = 0,
    personal_loan_balance: float = 0,
    student_loan_balance: float = 0,
    utility_bills_payment_history: float = 0.95,
    health_insurance_status: str = INSURED,
    life_insurance_status: str = INSURED,
    car_insurance_status: str = INSURED,
    home_insurance_status: str = INSURED,
    other_insurance_policies: int = 0,
    employer_type: str = "Private",
    job_tenure: int = 5,
    monthly_savings: float = 1000,
    annual_bonuses: float = 5000,
    age: int = 35,
) -> BorrowerProfile:
    """Complete an application from the fields a borrower typically supplies.

    Zero monthly debt payments, total assets or total liabilities are treated
    as "not provided" and estimated from income, balances and home ownership.
    Expense lines are rough shares of monthly income.
    """
    require_finite(locals())
    if annual_income < 0 or loan_amount < 0:
        raise ValidationError("annual_income and loan_amount must be non-negative")
    if monthly_debt_payments == 0:
        monthly_debt_payments = int(annual_income / 12 * debt_to_income_ratio)

    if total_assets == 0:
        total_assets = (
            savings_account_balance
            + checking_account_balance
            + investment_account_balance
            + retirement_account_balance
            + emergency_fund_balance
        )
        if home_ownership_status in ("Own", "Mortgage"):
            total_assets += int(annual_income * 4)

    if total_liabilities == 0:
        total_liabilities = mortgage_balance + auto_loan_balance + personal_loan_balance + student_loan_balance

    monthly_income = int(annual_income / 12)
    housing = rent_payments
    if home_ownership_status == "Mortgage" and mortgage_balance > 0:
        housing = int(monthly_mortgage_payment(mortgage_balance, interest_rate, loan_duration))

    return BorrowerProfile(
        credit_score=float(credit_score),
        annual_income=float(annual_income),
        loan_amount=float(loan_amount),
        loan_duration=int(loan_duration),
        age=int(age),
        employment_status=employment_status,
        marital_status=marital_status,
        number_of_dependents=int(number_of_dependents),
        education_level=education_level,
        home_ownership_status=home_ownership_status,
        monthly_debt_payments=float(monthly_debt_payments),
        credit_card_utilization_rate=float(credit_card_utilization_rate),
        number_of_open_credit_lines=int(number_of_open_credit_lines),
        number_of_credit_inquiries=int(number_of_credit_inquiries),
        debt_to_income_ratio=float(debt_to_income_ratio),
        bankruptcy_history=int(bankruptcy_history),
        loan_purpose=loan_purpose,
        previous_loan_defaults=int(previous_loan_defaults),
        interest_rate=float(interest_rate),
        payment_history=float(payment_history),
        savings_account_balance=float(savings_account_balance),
        checking_account_balance=float(checking_account_balance),
        investment_account_balance=float(investment_account_balance),
        retirement_account_balance=float(retirement_account_balance),
        emergency_fund_balance=float(emergency_fund_balance),
        total_assets=float(total_assets),
        total_liabilities=float(total_liabilities),
        net_worth=float(total_assets - total_liabilities),
        length_of_credit_history=int(length_of_credit_history),
        mortgage_balance=float(mortgage_balance),
        rent_payments=float(rent_payments),
        auto_loan_balance=float(auto_loan_balance),
        personal_loan_balance=float(personal_loan_balance),
        student_loan_balance=float(student_loan_balance),
        utility_bills_payment_history=float(utility_bills_payment_history),
        health_insurance_status=health_insurance_status,
        life_insurance_status=life_insurance_status,
        car_insurance_status=car_insurance_status,
        home_insurance_status=home_insurance_status,
        other_insurance_policies=int(other_insurance_policies),
        employer_type=employer_type,
        job_tenure=int(job_tenure),
        monthly_savings=float(monthly_savings),
        annual_bonuses=float(annual_bonuses),
        annual_expenses=float(int(annual_income * 0.7)),
        monthly_housing_costs=float(housing),
        monthly_transportation_costs=float(int(monthly_income * 0.1)),
        monthly_food_costs=float(int(monthly_income * 0.15)),
        monthly_healthcare_costs=float(int(monthly_income * 0.05)),
        monthly_entertainment_costs=float(int(monthly_income * 0.1)),
        loan_approved=None,
    )


REQUIRED_APPLICATION_FIELDS = ("credit_score", "annual_income", "loan_amount")


def application_from_payload(payload: Dict[str, Any]) -> BorrowerProfile:
    """Build an application from a JSON-like mapping, ignoring unknown keys."""
    data = {k: v for k, v in payload.items() if v is not None}
    missing = [name for name in REQUIRED_APPLICATION_FIELDS if name not in data]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    known = {k: v for k, v in data.items() if k in _APPLICATION_ARGS}
    try:
        return build_application_profile(**known)
    except (TypeError, ValueError, OverflowError) as exc:
        if isinstance(exc, ValidationError):
            raise
        raise ValidationError(f"Invalid application value: {exc}") from exc


_APPLICATION_ARGS = set(inspect.signature(build_application_profile).parameters)
