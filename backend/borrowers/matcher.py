import math
from typing import List, Sequence, Tuple

import numpy as np

from errors import ValidationError
from .models import BorrowerProfile

DEFAULT_WEIGHTS = (1.0, 1.0, 1.0)
DEFAULT_TOP_K = 5
DEFAULT_MIN_THRESHOLD = 0.5


def _axis_similarity(values: np.ndarray, target: float) -> np.ndarray:
    span = float(values.max() - values.min())
    if span <= 0:
        return np.ones_like(values)
    return 1.0 - np.abs(values - target) / span


def find_similar(
    samples: Sequence[BorrowerProfile],
    target_credit: float,
    target_income: float,
    target_loan: float,
    weights: Sequence[float] = DEFAULT_WEIGHTS,
    top_k: int = DEFAULT_TOP_K,
    min_threshold: float = DEFAULT_MIN_THRESHOLD,
) -> List[Tuple[BorrowerProfile, float]]:
    """Rank samples by weighted similarity on credit score, income and loan amount."""
    if not samples:
        raise ValidationError("samples must not be empty")
    if len(weights) != 3:
        raise ValidationError("weights must have exactly three entries")
    if not all(math.isfinite(w) for w in weights):
        raise ValidationError("weights must be finite")
    if any(w < 0 for w in weights):
        raise ValidationError("weights must be non-negative")
    total = float(sum(weights))
    if total <= 0:
        raise ValidationError("weights must have a positive sum")
    if top_k <= 0:
        raise ValidationError("top_k must be positive")
    if not 0 <= min_threshold <= 1:
        raise ValidationError("min_threshold must be between 0 and 1")
    if not all(math.isfinite(t) for t in (target_credit, target_income, target_loan)):
        raise ValidationError("targets must be finite")

    w = np.asarray(weights, dtype=float) / total
    credit = np.array([p.credit_score for p in samples], dtype=float)
    income = np.array([p.annual_income for p in samples], dtype=float)
    loan = np.array([p.loan_amount for p in samples], dtype=float)
    scores = (
        w[0] * _axis_similarity(credit, target_credit)
        + w[1] * _axis_similarity(income, target_income)
        + w[2] * _axis_similarity(loan, target_loan)
    )

    matches = [(profile, float(score)) for profile, score in zip(samples, scores) if score >= min_threshold]
    matches.sort(key=lambda item: -item[1])
    return matches[:top_k]
