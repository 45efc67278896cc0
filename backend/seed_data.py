import argparse
import logging
import random
from typing import List, Optional

from approval_model import label_risk_score, logistic
from borrowers.applications import build_application_profile
from borrowers.loader import save_corpus
from borrowers.models import INSURED, SELF_EMPLOYED, UNEMPLOYED, UNINSURED, BorrowerProfile
from config import Config
from profile_generator import LOAN_DURATIONS, OTHER_LOAN_DURATION

logger = logging.getLogger(__name__)

EMPLOYMENT_CHOICES = (["Employed", SELF_EMPLOYED, UNEMPLOYED], [0.75, 0.15, 0.10])
MARITAL_CHOICES = (["Single", "Married", "Divorced", "Widowed"], [0.4, 0.45, 0.1, 0.05])
EDUCATION_CHOICES = (["High School", "Associate", "Bachelor", "Master", "Doctorate"], [0.25, 0.15, 0.35, 0.2, 0.05])
HOME_CHOICES = (["Rent", "Mortgage", "Own", "Other"], [0.35, 0.4, 0.2, 0.05])
PURPOSE_CHOICES = (["Home", "Auto", "Education", "Debt Consolidation", "Other"], [0.3, 0.25, 0.1, 0.25, 0.1])


def _pick(rng: random.Random, choices) -> str:
    values, weights = choices
    return rng.choices(values, weights=weights)[0]


def _insured(rng: random.Random, chance: float) -> str:
    return INSURED if rng.random() < chance else UNINSURED


def _seed_profile(rng: random.Random) -> BorrowerProfile:
    age = rng.randint(21, 70)
    employment = _pick(rng, EMPLOYMENT_CHOICES)
    marital = _pick(rng, MARITAL_CHOICES)
    home = _pick(rng, HOME_CHOICES)
    purpose = _pick(rng, PURPOSE_CHOICES)
    income = float(int(max(15000, rng.lognormvariate(11, 0.45))))  # median around 60k
    wealth = income / 60000
    credit_score = float(int(max(300, min(rng.gauss(680, 70), 850))))
    dti = round(max(0.02, min(rng.gauss(0.3, 0.12), 0.9)), 3)
    loan_multiple = rng.uniform(1.5, 4.5) if purpose == "Home" else rng.uniform(0.1, 1.2)
    low, high = LOAN_DURATIONS.get(purpose, OTHER_LOAN_DURATION)

    if employment == UNEMPLOYED:
        employer, tenure = "Other", 0
    elif employment == SELF_EMPLOYED:
        employer, tenure = SELF_EMPLOYED, rng.randint(0, max(0, min(40, age - 18)))
    else:
        employer, tenure = rng.choice(["Private", "Public"]), rng.randint(0, max(0, min(30, age - 18)))

    profile = build_application_profile(
        credit_score=credit_score,
        annual_income=income,
        loan_amount=float(max(1000, round(income * loan_multiple, -2))),
        loan_duration=rng.randint(low, high),
        employment_status=employment,
        marital_status=marital,
        number_of_dependents=rng.randint(0, 4 if marital == "Married" else 2),
        education_level=_pick(rng, EDUCATION_CHOICES),
        home_ownership_status=home,
        debt_to_income_ratio=dti,
        credit_card_utilization_rate=round(rng.uniform(0.0, 0.95), 3),
        number_of_open_credit_lines=rng.randint(1, 12),
        number_of_credit_inquiries=rng.randint(0, 8),
        previous_loan_defaults=1 if rng.random() < 0.1 else 0,
        bankruptcy_history=1 if rng.random() < 0.04 else 0,
        loan_purpose=purpose,
        interest_rate=round(rng.uniform(0.03, 0.15), 4),
        payment_history=float(rng.randint(70, 100)),
        savings_account_balance=float(int(rng.uniform(0, 30000) * wealth)),
        checking_account_balance=float(int(rng.uniform(500, 10000) * wealth)),
        investment_account_balance=float(int(rng.uniform(0, 60000) * wealth)),
        retirement_account_balance=float(int(rng.uniform(0, 150000) * wealth * age / 40)),
        emergency_fund_balance=float(int(rng.uniform(0, 25000) * wealth)),
        length_of_credit_history=rng.randint(0, age - 18),
        mortgage_balance=float(round(income * rng.uniform(1.5, 4), -2)) if home == "Mortgage" else 0.0,
        rent_payments=float(int(income / 12 * rng.uniform(0.2, 0.35))) if home == "Rent" else 0.0,
        auto_loan_balance=float(int(rng.uniform(5000, 30000))) if rng.random() < 0.4 else 0.0,
        personal_loan_balance=float(int(rng.uniform(1000, 15000))) if rng.random() < 0.25 else 0.0,
        student_loan_balance=float(int(rng.uniform(5000, 60000))) if rng.random() < 0.3 else 0.0,
        utility_bills_payment_history=round(rng.uniform(0.7, 1.0), 2),
        health_insurance_status=_insured(rng, 0.4 if employment == UNEMPLOYED else 0.85),
        life_insurance_status=_insured(rng, 0.5),
        car_insurance_status=_insured(rng, 0.8),
        home_insurance_status=_insured(rng, 0.9 if home in ("Own", "Mortgage") else 0.3),
        other_insurance_policies=rng.randint(0, 3),
        employer_type=employer,
        job_tenure=tenure,
        monthly_savings=float(int(income / 12 * rng.uniform(0, 0.2))),
        annual_bonuses=0.0 if employment == UNEMPLOYED else float(int(income * rng.uniform(0, 0.15))),
        age=age,
    )
    score = label_risk_score(
        profile.credit_score,
        profile.debt_to_income_ratio,
        profile.previous_loan_defaults,
        profile.bankruptcy_history,
        profile.employment_status,
        profile.loan_to_income_ratio,
    )
    approved = 1 if rng.random() < logistic(score) else 0
    return profile.with_overrides(loan_approved=approved)


def generate_seed_corpus(count: int, seed: Optional[int] = 42) -> List[BorrowerProfile]:
    """Labeled bootstrap corpus for environments without a loans CSV."""
    rng = random.Random(seed)
    return [_seed_profile(rng) for _ in range(count)]


def main(argv=None):
    parser = argparse.ArgumentParser(description="Write a labeled seed loan corpus to CSV.")
    parser.add_argument("--count", type=int, default=Config.SEED_CORPUS_SIZE)
    parser.add_argument("--out", default=Config.CORPUS_PATH)
    parser.add_argument("--seed", type=int, default=Config.RANDOM_SEED if Config.RANDOM_SEED is not None else 42)
    args = parser.parse_args(argv)

    logging.basicConfig(level=Config.LOG_LEVEL)
    corpus = generate_seed_corpus(args.count, seed=args.seed)
    path = save_corpus(corpus, args.out)
    approved = sum(p.loan_approved for p in corpus)
    print(f"Seeded {len(corpus)} borrower profiles ({approved} approved) to {path}")


if __name__ == "__main__":
    main()
