from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from borrowers.models import SELF_EMPLOYED, UNEMPLOYED, BorrowerProfile, CategoricalField, loan_to_income
from errors import EmptyCorpusError, PredictionTierFailure, ValidationError
from feature_stats import FeatureStatistics, summarize_continuous
from utils_modeling import classification_metrics, fit_logistic

logger = logging.getLogger(__name__)

GD_ITERATIONS = 1000
LEARNING_RATE = 0.01
APPROVAL_THRESHOLD = 0.5
DEFAULT_EMPLOYMENT_STATUS = "Employed"
DEFAULT_LOAN_PURPOSE = "Home"

NORMALIZED_FEATURES = (
    "credit_score",
    "debt_to_income_ratio",
    "loan_to_income_ratio",
    "previous_loan_defaults",
    "bankruptcy_history",
)
DIRECT_FEATURES = NORMALIZED_FEATURES + ("primary_employment_status", "primary_loan_purpose")
# Raw profile fields read by every tier.
RISK_INPUT_FIELDS = (
    "credit_score",
    "debt_to_income_ratio",
    "previous_loan_defaults",
    "bankruptcy_history",
    "loan_amount",
    "annual_income",
)

# (mean, stddev) used when a training column has no variance
DEFAULT_NORMALIZATION = {
    "credit_score": (680.0, 75.0),
    "debt_to_income_ratio": (0.36, 0.15),
    "loan_to_income_ratio": (2.5, 1.0),
    "previous_loan_defaults": (0.1, 0.3),
    "bankruptcy_history": (0.05, 0.2),
}


class PredictionTier(Enum):
    STRUCTURED = 1
    DIRECT = 2
    HEURISTIC = 3

    def next_tier(self) -> "PredictionTier":
        if self is PredictionTier.STRUCTURED:
            return PredictionTier.DIRECT
        return PredictionTier.HEURISTIC


@dataclass(frozen=True)
class ApprovalParameters:
    intercept: float
    coefficients: Tuple[float, ...]
    normalization: Tuple[Tuple[float, float], ...]
    primary_employment_status: str
    primary_loan_purpose: str
    risk_location: float
    risk_scale: float
    calibration_intercept: float
    calibration_slope: float

    def to_dict(self) -> Dict:
        return {
            "intercept": self.intercept,
            "coefficients": dict(zip(DIRECT_FEATURES, self.coefficients)),
            "normalization": {
                name: {"mean": mean, "std": std} for name, (mean, std) in zip(NORMALIZED_FEATURES, self.normalization)
            },
            "primary_employment_status": self.primary_employment_status,
            "primary_loan_purpose": self.primary_loan_purpose,
            "structured": {
                "risk_location": self.risk_location,
                "risk_scale": self.risk_scale,
                "calibration_intercept": self.calibration_intercept,
                "calibration_slope": self.calibration_slope,
            },
        }


def logistic(z: float) -> float:
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    e = math.exp(z)
    return e / (1.0 + e)


def decision(probability: float) -> str:
    return "APPROVED" if probability >= APPROVAL_THRESHOLD else "DENIED"


def structured_risk_score(
    credit_score: float,
    debt_to_income_ratio: float,
    previous_loan_defaults: float,
    bankruptcy_history: float,
    loan_amount: float,
    annual_income: float,
) -> float:
    """Latent risk of the structured model: fixed terms, higher means safer."""
    return (
        (credit_score - 500) / 350 * 5
        - debt_to_income_ratio * 10
        - previous_loan_defaults * 5
        - bankruptcy_history * 8
        - loan_to_income(loan_amount, annual_income) * 3
    )


def label_risk_score(
    credit_score: float,
    debt_to_income_ratio: float,
    previous_loan_defaults: float,
    bankruptcy_history: float,
    employment_status: str,
    loan_to_income_ratio: float,
) -> float:
    """Additive score behind synthetic approval labels (logit scale)."""
    score = (credit_score - 600) / 100 * 2
    if debt_to_income_ratio > 0.43:
        score -= 3
    else:
        score -= debt_to_income_ratio / 0.43 * 1.5
    score -= previous_loan_defaults * 2
    score -= bankruptcy_history * 3
    if employment_status == UNEMPLOYED:
        score -= 2
    elif employment_status == SELF_EMPLOYED:
        score -= 0.5
    if loan_to_income_ratio > 5:
        score -= 2
    elif loan_to_income_ratio > 3:
        score -= 1
    elif loan_to_income_ratio < 1:
        score += 0.5
    return score


def _finite_inputs(profile: BorrowerProfile) -> bool:
    return all(math.isfinite(getattr(profile, name)) for name in RISK_INPUT_FIELDS)


def heuristic_probability(profile: BorrowerProfile) -> float:
    """Rule-based approval probability used when no learned tier is usable."""
    prob = 0.5
    cs = profile.credit_score
    if cs >= 740:
        prob += 0.25
    elif cs >= 680:
        prob += 0.15
    elif cs >= 620:
        prob += 0.05
    elif cs < 580:
        prob -= 0.25

    dti = profile.debt_to_income_ratio
    if dti > 0.43:
        prob -= 0.2
    elif dti > 0.36:
        prob -= 0.1

    prob -= profile.previous_loan_defaults * 0.15
    prob -= profile.bankruptcy_history * 0.25
    if profile.is_unemployed:
        prob -= 0.2

    lti = profile.loan_to_income_ratio
    if lti > 5:
        prob -= 0.2
    elif lti > 3:
        prob -= 0.1
    return max(0.01, min(prob, 0.99))


class ApprovalModel:
    """Approval predictor that degrades from structured inference to direct estimation to heuristics."""

    def __init__(self, iterations: int = GD_ITERATIONS, learning_rate: float = LEARNING_RATE):
        self.iterations = iterations
        self.learning_rate = learning_rate
        self._params: Optional[ApprovalParameters] = None
        self._tier = PredictionTier.STRUCTURED
        self._tier_lock = threading.Lock()
        self.training_accuracy: Optional[float] = None
        self.training_metrics: Dict[str, float] = {}

    @property
    def is_trained(self) -> bool:
        return self._params is not None

    @property
    def tier(self) -> PredictionTier:
        return self._tier

    @property
    def parameters(self) -> Optional[ApprovalParameters]:
        return self._params

    @property
    def primary_loan_purpose(self) -> str:
        params = self._params
        return params.primary_loan_purpose if params else DEFAULT_LOAN_PURPOSE

    @property
    def primary_employment_status(self) -> str:
        params = self._params
        return params.primary_employment_status if params else DEFAULT_EMPLOYMENT_STATUS

    def downgrade(self, failed: PredictionTier) -> PredictionTier:
        """Move off a failed tier for the rest of this model's lifetime; returns the active tier."""
        with self._tier_lock:
            if self._tier is failed:
                self._tier = failed.next_tier()
                logger.warning("Approval model switched to %s tier", self._tier.name.lower())
            return self._tier

    def train(self, corpus: Sequence[BorrowerProfile]) -> Dict[str, float]:
        if not corpus:
            raise EmptyCorpusError("No labeled loan data available for training.")
        unlabeled = sum(1 for p in corpus if p.loan_approved is None)
        if unlabeled:
            raise ValidationError(f"{unlabeled} training profiles are missing a loan_approved label.")

        stats = FeatureStatistics.build(corpus)
        labels = np.array([p.loan_approved for p in corpus], dtype=float)
        primary_employment = stats.primary_value(CategoricalField.EMPLOYMENT_STATUS, DEFAULT_EMPLOYMENT_STATUS)
        primary_purpose = stats.primary_value(CategoricalField.LOAN_PURPOSE, DEFAULT_LOAN_PURPOSE)

        raw = {
            "credit_score": [p.credit_score for p in corpus],
            "debt_to_income_ratio": [p.debt_to_income_ratio for p in corpus],
            "loan_to_income_ratio": [p.loan_to_income_ratio for p in corpus],
            "previous_loan_defaults": [p.previous_loan_defaults for p in corpus],
            "bankruptcy_history": [p.bankruptcy_history for p in corpus],
        }
        normalization: List[Tuple[float, float]] = []
        columns = []
        for name in NORMALIZED_FEATURES:
            summary = summarize_continuous(raw[name])
            std = summary.stddev if summary.stddev > 0 else DEFAULT_NORMALIZATION[name][1]
            normalization.append((summary.mean, std))
            columns.append((np.asarray(raw[name], dtype=float) - summary.mean) / std)
        columns.append(np.array([1.0 if p.employment_status == primary_employment else 0.0 for p in corpus]))
        columns.append(np.array([1.0 if p.loan_purpose == primary_purpose else 0.0 for p in corpus]))
        X = np.column_stack(columns)

        intercept, coef = fit_logistic(X, labels, self.iterations, self.learning_rate)
        location, scale, cal_intercept, cal_slope = self._calibrate_structured(corpus, labels)

        self._params = ApprovalParameters(
            intercept=float(intercept),
            coefficients=tuple(float(c) for c in coef),
            normalization=tuple(normalization),
            primary_employment_status=primary_employment,
            primary_loan_purpose=primary_purpose,
            risk_location=location,
            risk_scale=scale,
            calibration_intercept=cal_intercept,
            calibration_slope=cal_slope,
        )

        probs = [self.predict(p) for p in corpus]
        hits = [(prob >= APPROVAL_THRESHOLD) == bool(label) for prob, label in zip(probs, labels)]
        self.training_accuracy = float(np.mean(hits))
        self.training_metrics = classification_metrics(labels, probs, threshold=APPROVAL_THRESHOLD)
        logger.info(
            "Trained approval model on %d profiles (accuracy %.3f, tier %s)",
            len(corpus),
            self.training_accuracy,
            self._tier.name.lower(),
        )
        return self.training_metrics

    def _calibrate_structured(self, corpus: Sequence[BorrowerProfile], labels: np.ndarray):
        """Fit location/scale of the latent risk and a logistic link on the observed labels."""
        risks = np.array(
            [
                structured_risk_score(
                    p.credit_score,
                    p.debt_to_income_ratio,
                    p.previous_loan_defaults,
                    p.bankruptcy_history,
                    p.loan_amount,
                    p.annual_income,
                )
                for p in corpus
            ]
        )
        location = float(risks.mean())
        scale = float(risks.std()) or 1.0
        z = ((risks - location) / scale).reshape(-1, 1)
        cal_intercept, cal_coef = fit_logistic(z, labels, self.iterations, self.learning_rate)
        return location, scale, float(cal_intercept), float(cal_coef[0])

    def predict(self, profile: BorrowerProfile) -> float:
        """Approval probability in [0, 1]; falls through tiers instead of raising."""
        params = self._params
        if params is None:
            return heuristic_probability(profile)
        if not _finite_inputs(profile):
            logger.warning("Non-finite model inputs; answering from the heuristic tier")
            return heuristic_probability(profile)
        tier = self._tier
        while tier is not PredictionTier.HEURISTIC:
            try:
                if tier is PredictionTier.STRUCTURED:
                    return self._structured_probability(profile, params)
                return self._direct_probability(profile, params)
            except PredictionTierFailure as exc:
                logger.warning("%s prediction failed: %s", tier.name.capitalize(), exc)
                tier = self.downgrade(tier)
        return heuristic_probability(profile)

    def _structured_probability(self, profile: BorrowerProfile, params: ApprovalParameters) -> float:
        try:
            risk = structured_risk_score(
                profile.credit_score,
                profile.debt_to_income_ratio,
                profile.previous_loan_defaults,
                profile.bankruptcy_history,
                profile.loan_amount,
                profile.annual_income,
            )
            z = params.calibration_intercept + params.calibration_slope * (risk - params.risk_location) / params.risk_scale
            if not math.isfinite(z):
                raise PredictionTierFailure(f"non-finite latent score {z}")
            return logistic(z)
        except (ArithmeticError, TypeError, ValueError) as exc:
            raise PredictionTierFailure(str(exc)) from exc

    def _direct_probability(self, profile: BorrowerProfile, params: ApprovalParameters) -> float:
        try:
            raw = (
                profile.credit_score,
                profile.debt_to_income_ratio,
                profile.loan_to_income_ratio,
                profile.previous_loan_defaults,
                profile.bankruptcy_history,
            )
            z = params.intercept
            for value, (mean, std), c in zip(raw, params.normalization, params.coefficients):
                z += c * (value - mean) / std
            if profile.employment_status == params.primary_employment_status:
                z += params.coefficients[5]
            if profile.loan_purpose == params.primary_loan_purpose:
                z += params.coefficients[6]
            if not math.isfinite(z):
                raise PredictionTierFailure(f"non-finite linear score {z}")
            return logistic(z)
        except (ArithmeticError, TypeError, ValueError) as exc:
            raise PredictionTierFailure(str(exc)) from exc

    def to_dict(self) -> Dict:
        params = self._params
        return {
            "trained": params is not None,
            "tier": self._tier.name.lower(),
            "training_accuracy": self.training_accuracy,
            "metrics": self.training_metrics,
            "parameters": params.to_dict() if params else None,
        }
