from engine import LoanApprovalEngine, load_or_seed_corpus
from borrowers.loader import save_corpus


def test_retrain_publishes_new_state(separable_corpus, make_profile):
    engine = LoanApprovalEngine.from_corpus(separable_corpus, seed=4)
    before = engine.state
    after = engine.retrain(separable_corpus[:30])

    assert engine.state is after
    assert after is not before
    assert after.stats.size == 30
    assert before.stats.size == len(separable_corpus)
    assert 0.0 <= engine.predict(make_profile()) <= 1.0


def test_generate_and_similar_profiles(separable_corpus):
    engine = LoanApprovalEngine.from_corpus(separable_corpus, seed=4)
    assert len(engine.generate(3)) == 3
    # every generated income equals the corpus income, so the income axis scores 1.0
    matches = engine.similar_profiles(720, 100000, 100000, pool_size=20, weights=(0, 1, 0), top_k=4, min_threshold=0)
    assert len(matches) == 4
    assert [s for _, s in matches] == sorted((s for _, s in matches), reverse=True)


def test_load_or_seed_corpus_prefers_existing_file(tmp_path, separable_corpus):
    path = save_corpus(separable_corpus, tmp_path / "loans.csv")
    assert len(load_or_seed_corpus(path, seed_size=10)) == len(separable_corpus)
    seeded = load_or_seed_corpus(tmp_path / "missing.csv", seed_size=10, seed=1)
    assert len(seeded) == 10
    assert all(p.loan_approved in (0, 1) for p in seeded)
