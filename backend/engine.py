import logging
import random
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from approval_model import ApprovalModel
from borrowers.loader import load_corpus
from borrowers.matcher import DEFAULT_MIN_THRESHOLD, DEFAULT_TOP_K, DEFAULT_WEIGHTS, find_similar
from borrowers.models import BorrowerProfile
from feature_importance import FeatureImportance, FeatureImportanceAnalyzer
from feature_stats import FeatureStatistics
from profile_generator import SyntheticProfileGenerator
from seed_data import generate_seed_corpus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineState:
    stats: FeatureStatistics
    model: ApprovalModel
    analyzer: FeatureImportanceAnalyzer


def load_or_seed_corpus(path: Union[str, Path], seed_size: int, seed: Optional[int] = None) -> List[BorrowerProfile]:
    path = Path(path)
    if path.exists():
        return load_corpus(path)
    logger.warning("Corpus %s not found; using %d seeded profiles", path, seed_size)
    return generate_seed_corpus(seed_size, seed=seed if seed is not None else 42)


def build_state(corpus: Sequence[BorrowerProfile]) -> EngineState:
    stats = FeatureStatistics.build(corpus)
    model = ApprovalModel()
    model.train(corpus)
    return EngineState(stats=stats, model=model, analyzer=FeatureImportanceAnalyzer(model))


class LoanApprovalEngine:
    """Process-wide statistics and model; retraining swaps in a fully built state."""

    def __init__(self, state: EngineState, seed: Optional[int] = None):
        self._state = state
        self._publish_lock = threading.Lock()
        self._rng = random.Random(seed)
        self._rng_lock = threading.Lock()

    @classmethod
    def from_corpus(cls, corpus: Sequence[BorrowerProfile], seed: Optional[int] = None) -> "LoanApprovalEngine":
        return cls(build_state(corpus), seed=seed)

    @property
    def state(self) -> EngineState:
        return self._state

    def retrain(self, corpus: Sequence[BorrowerProfile]) -> EngineState:
        state = build_state(corpus)
        with self._publish_lock:
            self._state = state
        logger.info("Published retrained approval model (%d profiles)", state.stats.size)
        return state

    def predict(self, profile: BorrowerProfile) -> float:
        return self._state.model.predict(profile)

    def analyze(self, profile: BorrowerProfile) -> FeatureImportance:
        return self._state.analyzer.analyze(profile)

    def generate(self, n: int) -> List[BorrowerProfile]:
        with self._rng_lock:
            rng = random.Random(self._rng.getrandbits(64))
        return SyntheticProfileGenerator(self._state.stats, rng=rng).generate(n)

    def similar_profiles(
        self,
        target_credit: float,
        target_income: float,
        target_loan: float,
        pool_size: int,
        weights: Sequence[float] = DEFAULT_WEIGHTS,
        top_k: int = DEFAULT_TOP_K,
        min_threshold: float = DEFAULT_MIN_THRESHOLD,
    ) -> List[Tuple[BorrowerProfile, float]]:
        """Generate a pool of synthetic borrowers and rank it against the target."""
        samples = self.generate(pool_size)
        return find_similar(samples, target_credit, target_income, target_loan, weights, top_k, min_threshold)
