from typing import Dict, Sequence

import numpy as np
from sklearn.metrics import accuracy_score, average_precision_score, precision_score, recall_score, roc_auc_score


def classification_metrics(y_true: Sequence[int], y_prob: Sequence[float], threshold: float = 0.5) -> Dict[str, float]:
    """Thresholded and ranking metrics for a set of approval probabilities."""
    y_true = np.asarray(y_true, dtype=int)
    y_prob = np.asarray(y_prob, dtype=float)
    y_pred = (y_prob >= threshold).astype(int)
    if len(np.unique(y_true)) < 2:
        # Degenerate; ranking metrics are undefined for a single class
        return {
            "accuracy": float(accuracy_score(y_true, y_pred)),
            "precision": float(precision_score(y_true, y_pred, zero_division=0)),
            "recall": float(recall_score(y_true, y_pred, zero_division=0)),
            "roc_auc": 0.0,
            "avg_precision": 0.0,
        }
    return {
        "accuracy": float(accuracy_score(y_true, y_pred)),
        "precision": float(precision_score(y_true, y_pred, zero_division=0)),
        "recall": float(recall_score(y_true, y_pred, zero_division=0)),
        "roc_auc": float(roc_auc_score(y_true, y_prob)),
        "avg_precision": float(average_precision_score(y_true, y_prob)),
    }


def fit_logistic(X: np.ndarray, y: np.ndarray, iterations: int, learning_rate: float):
    """Batch gradient descent for a logistic regression; returns (intercept, coefficients)."""
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    n, k = X.shape
    intercept = 0.0
    coef = np.zeros(k)
    for _ in range(iterations):
        z = intercept + X @ coef
        prob = 1.0 / (1.0 + np.exp(-np.clip(z, -500, 500)))
        error = prob - y
        intercept -= learning_rate * float(error.sum()) / n
        coef -= learning_rate * (X.T @ error) / n
    return intercept, coef
