from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from approval_model import ApprovalModel, decision
from borrowers.models import UNEMPLOYED, BorrowerProfile

logger = logging.getLogger(__name__)

CREDIT_SCORE = "Credit Score"
DEBT_TO_INCOME = "Debt-to-Income Ratio"
LOAN_TO_INCOME = "Loan-to-Income Ratio"
DEFAULT_HISTORY = "Default History"
BANKRUPTCY_HISTORY = "Bankruptcy History"
EMPLOYMENT_STATUS = "Employment Status"
LOAN_PURPOSE = "Loan Purpose"

RECOMMENDATION_THRESHOLD = 0.03
MIN_JOB_TENURE = 2
TENURE_RECOMMENDATION = "Maintaining current employment for at least 2 years would improve approval odds"


@dataclass
class FeatureImportance:
    base_approval_probability: float
    credit_score_impact: float = 0.0
    debt_to_income_impact: float = 0.0
    loan_to_income_impact: float = 0.0
    default_history_impact: float = 0.0
    bankruptcy_impact: float = 0.0
    employment_status_impact: float = 0.0
    loan_purpose_impact: float = 0.0
    recommendations: List[str] = field(default_factory=list)

    @property
    def decision(self) -> str:
        return decision(self.base_approval_probability)

    def impacts(self) -> List[Tuple[str, float]]:
        return [
            (CREDIT_SCORE, self.credit_score_impact),
            (DEBT_TO_INCOME, self.debt_to_income_impact),
            (LOAN_TO_INCOME, self.loan_to_income_impact),
            (DEFAULT_HISTORY, self.default_history_impact),
            (BANKRUPTCY_HISTORY, self.bankruptcy_impact),
            (EMPLOYMENT_STATUS, self.employment_status_impact),
            (LOAN_PURPOSE, self.loan_purpose_impact),
        ]

    def ranked_features(self) -> List[Tuple[str, float]]:
        """Features by descending absolute impact; ties keep declaration order."""
        return sorted(self.impacts(), key=lambda item: -abs(item[1]))

    def generate_recommendations(self, profile: BorrowerProfile) -> List[str]:
        recs: List[str] = []
        for name, impact in self.ranked_features():
            if abs(impact) < RECOMMENDATION_THRESHOLD:
                continue
            message = _recommendation_for(name, impact, profile)
            if message:
                recs.append(message)
        # Tenure has no perturbation of its own, so it is checked on the profile directly.
        if not profile.is_unemployed and profile.job_tenure < MIN_JOB_TENURE:
            recs.append(TENURE_RECOMMENDATION)
        if not recs:
            if self.base_approval_probability >= 0.5:
                recs.append("Your profile has a positive approval outlook. No major changes needed.")
            else:
                recs.append("Consider applying for a smaller loan amount or providing a larger down payment.")
        self.recommendations = recs
        return recs

    def to_dict(self) -> Dict:
        payload = asdict(self)
        payload["decision"] = self.decision
        payload["ranked_features"] = [
            {"feature": name, "impact": impact, "strength": strength(impact)} for name, impact in self.ranked_features()
        ]
        return payload


def strength(impact: float) -> str:
    magnitude = abs(impact)
    if magnitude < 0.05:
        return "Low"
    if magnitude < 0.15:
        return "Medium"
    return "High"


def _recommendation_for(name: str, impact: float, profile: BorrowerProfile) -> Optional[str]:
    if name == CREDIT_SCORE and profile.credit_score < 680:
        return (
            f"Improve credit score by at least 50 points (current: {profile.credit_score:.0f}) "
            f"to increase approval odds by {abs(impact):.2%}"
        )
    if name == DEBT_TO_INCOME and profile.debt_to_income_ratio > 0.36:
        return (
            f"Reduce debt-to-income ratio from {profile.debt_to_income_ratio:.2%} to below 36% "
            f"to increase approval odds by {abs(impact):.2%}"
        )
    if name == LOAN_TO_INCOME and profile.loan_to_income_ratio > 3:
        target = profile.annual_income * 3
        return (
            f"Consider reducing loan amount from ${profile.loan_amount:,.0f} to ${target:,.0f} "
            "to keep loan-to-income ratio below 3.0x"
        )
    if name == EMPLOYMENT_STATUS and profile.is_unemployed:
        return "Securing employment would significantly improve approval odds"
    return None


Perturbation = Callable[[BorrowerProfile, ApprovalModel], Optional[BorrowerProfile]]


def _better_credit(profile: BorrowerProfile, model: ApprovalModel) -> Optional[BorrowerProfile]:
    return profile.with_overrides(credit_score=min(850, profile.credit_score + 50))


def _lower_dti(profile: BorrowerProfile, model: ApprovalModel) -> Optional[BorrowerProfile]:
    return profile.with_overrides(debt_to_income_ratio=max(0.0, profile.debt_to_income_ratio - 0.05))


def _smaller_loan(profile: BorrowerProfile, model: ApprovalModel) -> Optional[BorrowerProfile]:
    return profile.with_overrides(loan_amount=profile.loan_amount * 0.9)


def _fewer_defaults(profile: BorrowerProfile, model: ApprovalModel) -> Optional[BorrowerProfile]:
    if profile.previous_loan_defaults <= 0:
        return None
    return profile.with_overrides(previous_loan_defaults=profile.previous_loan_defaults - 1)


def _fewer_bankruptcies(profile: BorrowerProfile, model: ApprovalModel) -> Optional[BorrowerProfile]:
    if profile.bankruptcy_history <= 0:
        return None
    return profile.with_overrides(bankruptcy_history=profile.bankruptcy_history - 1)


def _employed(profile: BorrowerProfile, model: ApprovalModel) -> Optional[BorrowerProfile]:
    if profile.employment_status != UNEMPLOYED:
        return None
    return profile.with_overrides(employment_status="Employed")


def _primary_purpose(profile: BorrowerProfile, model: ApprovalModel) -> Optional[BorrowerProfile]:
    purpose = model.primary_loan_purpose
    if profile.loan_purpose == purpose:
        return None
    return profile.with_overrides(loan_purpose=purpose)


# Attribute on FeatureImportance and the counterfactual that measures it.
PERTURBATIONS: Tuple[Tuple[str, Perturbation], ...] = (
    ("credit_score_impact", _better_credit),
    ("debt_to_income_impact", _lower_dti),
    ("loan_to_income_impact", _smaller_loan),
    ("default_history_impact", _fewer_defaults),
    ("bankruptcy_impact", _fewer_bankruptcies),
    ("employment_status_impact", _employed),
    ("loan_purpose_impact", _primary_purpose),
)


class FeatureImportanceAnalyzer:
    def __init__(self, model: ApprovalModel):
        self.model = model

    def analyze(self, profile: BorrowerProfile) -> FeatureImportance:
        base = self.model.predict(profile)
        impacts: Dict[str, float] = {}
        for attr, perturb in PERTURBATIONS:
            changed = perturb(profile, self.model)
            impacts[attr] = 0.0 if changed is None else self.model.predict(changed) - base
        importance = FeatureImportance(base_approval_probability=base, **impacts)
        importance.generate_recommendations(profile)
        logger.debug("Analyzed profile: base %.3f, top driver %s", base, importance.ranked_features()[0][0])
        return importance
