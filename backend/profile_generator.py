from __future__ import annotations

import logging
import math
import random
from typing import Any, Dict, List, Optional

from approval_model import label_risk_score, logistic
from borrowers.applications import monthly_mortgage_payment
from borrowers.models import INSURED, SELF_EMPLOYED, UNEMPLOYED, UNINSURED, BorrowerProfile, CategoricalField, loan_to_income
from errors import ValidationError
from feature_stats import CategoricalSummary, FeatureStatistics

logger = logging.getLogger(__name__)

CATEGORICAL_DEFAULTS = {
    CategoricalField.EMPLOYMENT_STATUS: "Employed",
    CategoricalField.MARITAL_STATUS: "Single",
    CategoricalField.EDUCATION_LEVEL: "Bachelor",
    CategoricalField.HOME_OWNERSHIP_STATUS: "Rent",
    CategoricalField.LOAN_PURPOSE: "Home",
    CategoricalField.EMPLOYER_TYPE: "Private",
}
# Sampled straight from the corpus frequencies in the first stage.
DEMOGRAPHIC_FIELDS = (
    CategoricalField.EMPLOYMENT_STATUS,
    CategoricalField.MARITAL_STATUS,
    CategoricalField.EDUCATION_LEVEL,
    CategoricalField.HOME_OWNERSHIP_STATUS,
    CategoricalField.LOAN_PURPOSE,
)

LOAN_FACTORS = {"Home": 3.0, "Auto": 0.5, "Education": 1.0, "Debt Consolidation": 0.7}
OTHER_LOAN_FACTOR = 0.3
LOAN_DURATIONS = {"Home": (15, 30), "Auto": (3, 7), "Education": (5, 15)}
OTHER_LOAN_DURATION = (1, 5)
RATE_ADJUSTMENTS = {"Home": -0.005, "Auto": 0.01, "Education": 0.02, "Debt Consolidation": 0.03}
OTHER_RATE_ADJUSTMENT = 0.04
STUDENT_LOAN_FACTORS = {"High School": 0.1, "Associate": 0.5, "Bachelor": 1.0, "Master": 1.5, "Doctorate": 2.0}
OTHER_STUDENT_LOAN_FACTOR = 0.5
BONUS_FACTORS = {"Private": 0.1, "Public": 0.05, SELF_EMPLOYED: 0.15}
OTHER_BONUS_FACTOR = 0.03

# (mean, std) used when the corpus has no statistic for a balance
BALANCE_FALLBACKS = {
    "savings_account_balance": (10000.0, 8000.0),
    "checking_account_balance": (5000.0, 3000.0),
    "investment_account_balance": (20000.0, 15000.0),
    "retirement_account_balance": (50000.0, 40000.0),
    "emergency_fund_balance": (15000.0, 10000.0),
}


def standard_normal(rng: random.Random) -> float:
    """Box-Muller draw; uses 1 - U so the logarithm never sees zero."""
    u1 = 1.0 - rng.random()
    u2 = 1.0 - rng.random()
    return math.sqrt(-2.0 * math.log(u1)) * math.sin(2.0 * math.pi * u2)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(value, hi))


def income_factor(annual_income: float) -> float:
    return clamp(annual_income / 60000, 0.5, 3.0)


def age_factor(age: int) -> float:
    return clamp(age / 40, 0.5, 2.0)


class SyntheticProfileGenerator:
    """Draws complete borrower profiles stage by stage, each stage reading only earlier fields."""

    def __init__(self, stats: FeatureStatistics, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self.stats = stats
        self.rng = rng or random.Random(seed)

    def generate(self, n: int) -> List[BorrowerProfile]:
        if n <= 0:
            raise ValidationError("Number of profiles to generate must be positive.")
        profiles = [self.generate_one() for _ in range(n)]
        approved = sum(p.loan_approved for p in profiles)
        logger.info("Generated %d synthetic profiles (%d approved)", n, approved)
        return profiles

    def generate_one(self) -> BorrowerProfile:
        p: Dict[str, Any] = {}
        self._demographics(p)
        self._dependents(p)
        self._credit_history_length(p)
        self._adverse_events(p)
        self._credit_usage(p)
        self._credit_score(p)
        self._debt(p)
        self._loan_terms(p)
        self._interest_rate(p)
        self._balances(p)
        self._liabilities(p)
        self._assets_and_expenses(p)
        self._approval(p)
        return BorrowerProfile(**p)

    # sampling helpers

    def _normal(self, mean: float, std: float, lo: float, hi: float) -> float:
        return clamp(mean + standard_normal(self.rng) * std, lo, hi)

    def _mean_std(self, name: str, fallback_mean: float, fallback_std: float):
        summary = self.stats.continuous_stat(name)
        if summary is None:
            return fallback_mean, fallback_std
        return summary.mean, summary.stddev

    def _from_stats(self, name: str, lo: float, hi: float, fallback_mean: float, fallback_std: float) -> float:
        mean, std = self._mean_std(name, fallback_mean, fallback_std)
        return self._normal(mean, std, lo, hi)

    def _within_observed(self, name: str, fallback_mean: float, fallback_std: float, lo: float, hi: float) -> float:
        summary = self.stats.continuous_stat(name)
        if summary is not None:
            lo, hi = summary.min, summary.max
        return self._from_stats(name, lo, hi, fallback_mean, fallback_std)

    def _categorical(self, field: CategoricalField) -> str:
        return self.stats.sample_categorical(field, self.rng, CATEGORICAL_DEFAULTS[field])

    def _chance(self, probability: float) -> bool:
        return self.rng.random() < probability

    # stages

    def _demographics(self, p: Dict[str, Any]) -> None:
        p["age"] = int(round(self._from_stats("age", 18, 85, 43, 15)))
        for field in DEMOGRAPHIC_FIELDS:
            p[field.value] = self._categorical(field)
        income = self.stats.continuous_stat("annual_income")
        floor = income.min if income is not None else 15000.0
        p["annual_income"] = float(int(self._from_stats("annual_income", floor, math.inf, 60000, 25000)))

    def _dependents(self, p: Dict[str, Any]) -> None:
        mean, std = self._mean_std("number_of_dependents", 1.0, 1.0)
        if p["marital_status"] == "Married":
            value = self._normal(mean + 0.5, std, 0, 5)
        else:
            value = self._normal(max(0.0, mean - 0.5), std, 0, 3)
        p["number_of_dependents"] = int(round(value))

    def _credit_history_length(self, p: Dict[str, Any]) -> None:
        max_length = max(0, p["age"] - 18)
        value = self._from_stats("length_of_credit_history", 0, max_length, max_length / 2, max(1.0, max_length / 4))
        p["length_of_credit_history"] = min(max_length, int(round(value)))

    def _adverse_events(self, p: Dict[str, Any]) -> None:
        multiplier = 1.0
        if p["employment_status"] == UNEMPLOYED:
            multiplier *= 2.0
        if p["age"] < 30:
            multiplier *= 1.5
        if p["education_level"] == "High School":
            multiplier *= 1.3
        p["previous_loan_defaults"] = 1 if self._chance(0.1 * multiplier) else 0
        p["bankruptcy_history"] = 1 if self._chance(0.05 * multiplier * p["age"] / 60) else 0

    def _credit_usage(self, p: Dict[str, Any]) -> None:
        history = p["length_of_credit_history"]
        p["number_of_open_credit_lines"] = int(
            round(self._from_stats("number_of_open_credit_lines", 0, 20, min(15, history / 2 + 2), 2))
        )
        p["credit_card_utilization_rate"] = self._from_stats("credit_card_utilization_rate", 0, 1, 0.5, 0.29)
        baseline = 6 if p["previous_loan_defaults"] else 3
        p["number_of_credit_inquiries"] = int(round(self._normal(baseline, 2, 0, 15)))

    def _credit_score(self, p: Dict[str, Any]) -> None:
        score = 650 + standard_normal(self.rng) * 60
        score += min(100, p["length_of_credit_history"] * 3)
        utilization = p["credit_card_utilization_rate"]
        if utilization > 0.7:
            score -= 150
        elif utilization > 0.5:
            score -= 100
        elif utilization > 0.3:
            score -= 50
        score -= p["previous_loan_defaults"] * 50 * (1 + self.rng.random())
        score -= p["bankruptcy_history"] * 150 * (1 + self.rng.random() / 2)
        score -= max(0, p["number_of_credit_inquiries"] - 3) * 5 * (1 + self.rng.random())
        p["credit_score"] = float(round(clamp(score, 300, 850)))

    def _debt(self, p: Dict[str, Any]) -> None:
        monthly_income = p["annual_income"] / 12
        ratio = 0.4 if p["credit_score"] < 600 else 0.3
        payments = int(self._normal(monthly_income * ratio, monthly_income * 0.1, 0, monthly_income * 0.6))
        p["monthly_debt_payments"] = float(payments)
        p["debt_to_income_ratio"] = min(1.0, payments / max(1.0, monthly_income))

    def _loan_terms(self, p: Dict[str, Any]) -> None:
        purpose = p["loan_purpose"]
        factor = LOAN_FACTORS.get(purpose, OTHER_LOAN_FACTOR)
        if p["credit_score"] < 600:
            factor *= 0.7
        elif p["credit_score"] > 750:
            factor *= 1.2
        amount = p["annual_income"] * factor * (0.8 + 0.4 * self.rng.random())
        p["loan_amount"] = float(max(1000, int(amount)))
        low, high = LOAN_DURATIONS.get(purpose, OTHER_LOAN_DURATION)
        p["loan_duration"] = self.rng.randint(low, high)

    def _interest_rate(self, p: Dict[str, Any]) -> None:
        score_gap = max(0.0, (750 - p["credit_score"]) / 150)
        rate = 0.03 + (1.5 ** score_gap - 1) * 0.15
        rate += RATE_ADJUSTMENTS.get(p["loan_purpose"], OTHER_RATE_ADJUSTMENT)
        rate += (self.rng.random() - 0.5) * 0.01
        p["interest_rate"] = clamp(rate, 0.01, 0.3)

    def _balances(self, p: Dict[str, Any]) -> None:
        inc = income_factor(p["annual_income"])
        ages = age_factor(p["age"])

        def draw(name: str, mean_scale: float, std_scale: float) -> float:
            mean, std = self._mean_std(name, *BALANCE_FALLBACKS[name])
            return float(int(self._normal(mean * mean_scale, std * std_scale, 0, math.inf)))

        emergency_boost = 1.5 if p["credit_score"] > 700 else 1.0
        p["savings_account_balance"] = draw("savings_account_balance", inc * ages, inc)
        p["checking_account_balance"] = draw("checking_account_balance", inc, math.sqrt(inc))
        p["investment_account_balance"] = draw("investment_account_balance", inc * ages * 1.2, inc * ages)
        p["retirement_account_balance"] = draw("retirement_account_balance", inc * ages ** 2, inc * ages)
        p["emergency_fund_balance"] = draw("emergency_fund_balance", inc * emergency_boost, inc)

    def _liabilities(self, p: Dict[str, Any]) -> None:
        income = p["annual_income"]
        inc = income_factor(income)
        ownership = p["home_ownership_status"]

        mortgage = 0.0
        if ownership == "Mortgage":
            multiple = 3 + (inc - 1) * 2
            mean = income * multiple * (0.7 + self.rng.random() * 0.6)
            mortgage = float(int(self._normal(mean, income * 0.5, 10000, 1_000_000)))
        p["mortgage_balance"] = mortgage

        auto_mean = min(income * 0.4, 35000) * self.rng.random()
        p["auto_loan_balance"] = float(int(self._normal(auto_mean, 5000, 0, 100_000)))

        factor = STUDENT_LOAN_FACTORS.get(p["education_level"], OTHER_STUDENT_LOAN_FACTOR)
        p["student_loan_balance"] = float(int(self._normal(20000 * factor, 10000 * factor, 0, 250_000)))

        personal_mean = 5000 * self.rng.random() * inc
        p["personal_loan_balance"] = float(int(self._normal(personal_mean, 2000, 0, 50_000)))

        rent = 0.0
        if ownership == "Rent":
            rent = float(int(income / 12 * (0.25 + self.rng.random() * 0.15)))
        p["rent_payments"] = rent

    def _assets_and_expenses(self, p: Dict[str, Any]) -> None:
        income = p["annual_income"]
        monthly_income = income / 12
        inc = income_factor(income)
        ages = age_factor(p["age"])
        ownership = p["home_ownership_status"]

        home_value = 0.0
        if ownership == "Own":
            home_value = float(int(income * 5 * (0.8 + 0.4 * self.rng.random())))
        elif ownership == "Mortgage":
            home_value = float(int(p["mortgage_balance"] * (1 + 0.5 * self.rng.random())))

        p["total_assets"] = (
            p["savings_account_balance"]
            + p["checking_account_balance"]
            + p["investment_account_balance"]
            + p["retirement_account_balance"]
            + p["emergency_fund_balance"]
            + home_value
        )
        p["total_liabilities"] = (
            p["mortgage_balance"] + p["auto_loan_balance"] + p["student_loan_balance"] + p["personal_loan_balance"]
        )
        p["net_worth"] = p["total_assets"] - p["total_liabilities"]

        self._employment_details(p)

        if ownership == "Rent":
            housing = p["rent_payments"]
        else:
            mortgage_payment = monthly_mortgage_payment(p["mortgage_balance"], p["interest_rate"], p["loan_duration"])
            housing = float(int(mortgage_payment + home_value * 0.015 / 12))
        p["monthly_housing_costs"] = housing
        p["monthly_transportation_costs"] = float(
            int(self._normal(max(100, monthly_income * 0.1), monthly_income * 0.03, 50, 2000))
        )
        p["monthly_food_costs"] = float(
            int(self._normal(max(200, monthly_income * 0.12), monthly_income * 0.04, 100, 2000))
        )
        p["monthly_healthcare_costs"] = float(
            int(self._normal(max(50, monthly_income * 0.06), monthly_income * 0.02, 0, 1500))
        )
        p["monthly_entertainment_costs"] = float(
            int(self._normal(max(50, monthly_income * 0.05), monthly_income * 0.02, 0, 1000))
        )
        monthly_outgoings = (
            p["monthly_housing_costs"]
            + p["monthly_transportation_costs"]
            + p["monthly_food_costs"]
            + p["monthly_healthcare_costs"]
            + p["monthly_entertainment_costs"]
            + p["monthly_debt_payments"]
        )
        p["annual_expenses"] = monthly_outgoings * 12 + int(income * 0.1)

        if p["credit_score"] > 750:
            savings_rate = 0.2
        elif p["credit_score"] > 650:
            savings_rate = 0.15
        else:
            savings_rate = 0.1
        available = max(0.0, monthly_income - monthly_outgoings)
        p["monthly_savings"] = float(int(min(available * 0.95, monthly_income * savings_rate)))

        if p["employment_status"] == UNEMPLOYED:
            p["annual_bonuses"] = 0.0
        else:
            factor = BONUS_FACTORS.get(p["employer_type"], OTHER_BONUS_FACTOR)
            if p["education_level"] in ("Master", "Doctorate"):
                factor *= 1.5
            p["annual_bonuses"] = float(int(income * factor * 2 * self.rng.random()))

        health_chance = 0.3 if p["employment_status"] == UNEMPLOYED else 0.7 + 0.1 * inc
        p["health_insurance_status"] = INSURED if self._chance(health_chance) else UNINSURED
        life_chance = 0.3 + 0.1 * p["number_of_dependents"] + 0.1 * ages + 0.1 * inc
        p["life_insurance_status"] = INSURED if self._chance(life_chance) else UNINSURED
        if p["auto_loan_balance"] > 0:
            p["car_insurance_status"] = INSURED
        else:
            p["car_insurance_status"] = INSURED if self._chance(0.8) else UNINSURED
        if ownership == "Mortgage":
            p["home_insurance_status"] = INSURED
        else:
            home_chance = 0.9 if ownership == "Own" else 0.4
            p["home_insurance_status"] = INSURED if self._chance(home_chance) else UNINSURED
        policies = int((inc + ages) / 2 * self.rng.randint(0, 3))
        p["other_insurance_policies"] = min(5, max(0, policies))

        p["payment_history"] = self._within_observed("payment_history", 95, 5, 0, 100)
        p["utility_bills_payment_history"] = self._within_observed("utility_bills_payment_history", 0.9, 0.08, 0, 1)

    def _employment_details(self, p: Dict[str, Any]) -> None:
        age = p["age"]
        status = p["employment_status"]
        if status == UNEMPLOYED:
            p["employer_type"] = "Other"
            p["job_tenure"] = 0
        elif status == SELF_EMPLOYED:
            p["employer_type"] = SELF_EMPLOYED
            p["job_tenure"] = int(round(self._normal(min(15, (age - 25) / 2), 5, 0, min(40, age - 18))))
        else:
            p["employer_type"] = self._employer_type()
            p["job_tenure"] = int(round(self._normal(min(10, (age - 22) / 3), 3, 0, min(30, age - 18))))

    def _employer_type(self) -> str:
        summary = self.stats.categorical_stat(CategoricalField.EMPLOYER_TYPE)
        default = CATEGORICAL_DEFAULTS[CategoricalField.EMPLOYER_TYPE]
        if summary is None:
            return default
        kept = [(v, c) for v, c in zip(summary.values, summary.counts) if v != SELF_EMPLOYED]
        if not kept:
            return default
        employed_only = CategoricalSummary(values=tuple(v for v, _ in kept), counts=tuple(c for _, c in kept))
        return employed_only.sample(self.rng)

    def _approval(self, p: Dict[str, Any]) -> None:
        score = label_risk_score(
            p["credit_score"],
            p["debt_to_income_ratio"],
            p["previous_loan_defaults"],
            p["bankruptcy_history"],
            p["employment_status"],
            loan_to_income(p["loan_amount"], p["annual_income"]),
        )
        p["loan_approved"] = 1 if self._chance(logistic(score)) else 0


def generate_profiles(n: int, stats: FeatureStatistics, seed: Optional[int] = None) -> List[BorrowerProfile]:
    return SyntheticProfileGenerator(stats, seed=seed).generate(n)
