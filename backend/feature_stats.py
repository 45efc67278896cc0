from __future__ import annotations

import random
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from borrowers.models import CONTINUOUS_FIELDS, BorrowerProfile, CategoricalField
from errors import EmptyCorpusError, ValidationError


class ContinuousSummary(NamedTuple):
    min: float
    max: float
    mean: float
    stddev: float


class CategoricalSummary(NamedTuple):
    values: Tuple[str, ...]
    counts: Tuple[int, ...]

    @property
    def total(self) -> int:
        return sum(self.counts)

    def frequencies(self) -> Dict[str, float]:
        total = self.total
        return {v: c / total for v, c in zip(self.values, self.counts)}

    def sample(self, rng: random.Random) -> str:
        """Draw a value with probability proportional to its observed count."""
        pick = rng.randrange(self.total)
        cumulative = 0
        for value, count in zip(self.values, self.counts):
            cumulative += count
            if pick < cumulative:
                return value
        return self.values[-1]


def summarize_continuous(values: Iterable[float]) -> ContinuousSummary:
    """Population summary (stddev divides by N) of one numeric column."""
    series = pd.Series(list(values), dtype=float)
    if series.empty:
        raise EmptyCorpusError("No values available to summarize.")
    return ContinuousSummary(
        min=float(series.min()),
        max=float(series.max()),
        mean=float(series.mean()),
        stddev=float(series.std(ddof=0)),
    )


def summarize_categorical(values: Iterable[str]) -> CategoricalSummary:
    series = pd.Series(list(values), dtype=object)
    if series.empty:
        raise EmptyCorpusError("No values available to summarize.")
    ordered = pd.unique(series)
    counts = series.value_counts()
    return CategoricalSummary(
        values=tuple(str(v) for v in ordered),
        counts=tuple(int(counts[v]) for v in ordered),
    )


@dataclass(frozen=True)
class FeatureStatistics:
    continuous: Mapping[str, ContinuousSummary]
    categorical: Mapping[CategoricalField, CategoricalSummary]
    size: int

    @classmethod
    def build(cls, corpus: Sequence[BorrowerProfile]) -> "FeatureStatistics":
        if not corpus:
            raise EmptyCorpusError("No borrower data available for statistics.")
        df = pd.DataFrame([p.to_dict() for p in corpus])
        continuous: Dict[str, ContinuousSummary] = {}
        for col in CONTINUOUS_FIELDS:
            values = df[col].astype(float)
            if not np.isfinite(values).all():
                raise ValidationError(f"Non-finite values in column {col}")
            continuous[col] = summarize_continuous(values)
        categorical: Dict[CategoricalField, CategoricalSummary] = {}
        for cat in CategoricalField:
            categorical[cat] = summarize_categorical(df[cat.value].astype(str))
        return cls(
            continuous=MappingProxyType(continuous),
            categorical=MappingProxyType(categorical),
            size=len(corpus),
        )

    def continuous_stat(self, name: str) -> Optional[ContinuousSummary]:
        return self.continuous.get(name)

    def categorical_stat(self, field: CategoricalField) -> Optional[CategoricalSummary]:
        return self.categorical.get(field)

    def primary_value(self, field: CategoricalField, default: str) -> str:
        """First value observed for a categorical field in the corpus."""
        summary = self.categorical.get(field)
        if summary is None or not summary.values:
            return default
        return summary.values[0]

    def sample_categorical(self, field: CategoricalField, rng: random.Random, default: str) -> str:
        summary = self.categorical.get(field)
        if summary is None or not summary.total:
            return default
        return summary.sample(rng)

    def observed_values(self, field: CategoricalField) -> List[str]:
        summary = self.categorical.get(field)
        return list(summary.values) if summary else []

    def to_dict(self) -> Dict[str, Dict]:
        return {
            "size": self.size,
            "continuous": {name: s._asdict() for name, s in self.continuous.items()},
            "categorical": {
                cat.value: {"values": list(s.values), "counts": list(s.counts)}
                for cat, s in self.categorical.items()
            },
        }
