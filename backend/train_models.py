import argparse
import json
import logging
from pathlib import Path

from borrowers.loader import save_corpus
from config import Config
from engine import build_state, load_or_seed_corpus
from profile_generator import SyntheticProfileGenerator

logger = logging.getLogger(__name__)

METRICS_PATH = Path(__file__).resolve().parent / "models" / "metrics.json"


def main(argv=None):
    parser = argparse.ArgumentParser(description="Train the loan approval model and optionally sample synthetic borrowers.")
    parser.add_argument("--data", default=Config.CORPUS_PATH, help="Labeled loans CSV")
    parser.add_argument("--metrics-out", default=str(METRICS_PATH))
    parser.add_argument("--samples", type=int, default=0, help="Number of synthetic profiles to generate")
    parser.add_argument("--samples-out", default="generated_profiles.csv")
    parser.add_argument("--seed", type=int, default=Config.RANDOM_SEED)
    args = parser.parse_args(argv)

    logging.basicConfig(level=Config.LOG_LEVEL)
    corpus = load_or_seed_corpus(args.data, Config.SEED_CORPUS_SIZE, args.seed)
    state = build_state(corpus)
    model = state.model

    metrics_payload = {
        "corpus_size": len(corpus),
        "approval_rate": sum(p.loan_approved for p in corpus) / len(corpus),
        "training_accuracy": model.training_accuracy,
        "metrics": model.training_metrics,
        "tier": model.tier.name.lower(),
        "parameters": model.parameters.to_dict(),
        "feature_stats": state.stats.to_dict(),
    }
    metrics_path = Path(args.metrics_out)
    metrics_path.parent.mkdir(parents=True, exist_ok=True)
    metrics_path.write_text(json.dumps(metrics_payload, indent=2))
    print("Approval model metrics:", model.training_metrics)
    print(f"Saved metrics to {metrics_path}")

    if args.samples > 0:
        samples = SyntheticProfileGenerator(state.stats, seed=args.seed).generate(args.samples)
        path = save_corpus(samples, args.samples_out)
        print(f"Wrote {len(samples)} synthetic profiles to {path}")


if __name__ == "__main__":
    main()
