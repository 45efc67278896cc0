import pytest

pytest.importorskip("flask")

from app import create_app
from approval_model import PredictionTier
from engine import LoanApprovalEngine
from seed_data import generate_seed_corpus


@pytest.fixture(scope="module")
def engine():
    return LoanApprovalEngine.from_corpus(generate_seed_corpus(150, seed=3), seed=9)


@pytest.fixture
def client(engine):
    app = create_app(engine)
    app.config["TESTING"] = True
    return app.test_client()


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json()["trained"] is True


def test_predict_returns_decision_and_report(client):
    resp = client.post("/api/predict", json={"credit_score": 760, "annual_income": 95000, "loan_amount": 150000})
    assert resp.status_code == 200
    body = resp.get_json()
    assert 0.0 <= body["approval_probability"] <= 1.0
    assert body["decision"] in ("APPROVED", "DENIED")
    assert len(body["ranked_features"]) == 7
    assert body["recommendations"]
    assert body["report"].startswith("# Loan Approval Analysis")


def test_predict_missing_fields_is_bad_request(client):
    resp = client.post("/api/predict", json={"credit_score": 700})
    assert resp.status_code == 400
    assert "loan_amount" in resp.get_json()["error"]


def test_analyze_full_profile(client, make_profile):
    resp = client.post("/api/analyze", json={"profile": make_profile(credit_score=610).to_dict()})
    assert resp.status_code == 200
    body = resp.get_json()
    assert "credit_score_impact" in body
    assert body["report"].startswith("# Profile Improvement Analysis")


def test_analyze_rejects_partial_profile(client):
    resp = client.post("/api/analyze", json={"profile": {"credit_score": 700}})
    assert resp.status_code == 400


def test_generate_profiles(client):
    resp = client.post("/api/profiles/generate", json={"count": 3})
    assert resp.status_code == 200
    profiles = resp.get_json()["profiles"]
    assert len(profiles) == 3
    assert all(p["loan_approved"] in (0, 1) for p in profiles)


def test_generate_rejects_bad_counts(client):
    assert client.post("/api/profiles/generate", json={"count": 0}).status_code == 400
    assert client.post("/api/profiles/generate", json={"count": 100000}).status_code == 400


def test_similar_profiles(client):
    resp = client.post(
        "/api/profiles/similar",
        json={"credit_score": 700, "annual_income": 60000, "loan_amount": 50000, "top_k": 3, "min_threshold": 0},
    )
    assert resp.status_code == 200
    body = resp.get_json()
    assert len(body["matches"]) == 3
    assert body["table"].startswith("| Rank |")


def test_similar_profiles_validates_arguments(client):
    resp = client.post("/api/profiles/similar", json={"top_k": 0})
    assert resp.status_code == 400


def test_model_and_stats_endpoints(client):
    model = client.get("/api/model").get_json()
    assert model["trained"] is True
    assert model["parameters"]["primary_loan_purpose"]
    stats = client.get("/api/stats").get_json()
    assert stats["size"] == 150


def test_retrain_uses_seed_when_corpus_missing(tmp_path, separable_corpus):
    app = create_app(LoanApprovalEngine.from_corpus(separable_corpus, seed=1))
    app.config.update(CORPUS_PATH=str(tmp_path / "missing.csv"), SEED_CORPUS_SIZE=60)
    resp = app.test_client().post("/api/model/retrain")
    assert resp.status_code == 200
    assert resp.get_json()["trained_on"] == 60


def test_bad_applications_leave_shared_tier_alone(separable_corpus):
    engine = LoanApprovalEngine.from_corpus(separable_corpus, seed=2)
    client = create_app(engine).test_client()

    zero = client.post("/api/predict", json={"credit_score": 700, "annual_income": 0, "loan_amount": 20000})
    assert zero.status_code == 200
    not_a_number = client.post(
        "/api/predict",
        data='{"credit_score": NaN, "annual_income": 60000, "loan_amount": 20000}',
        content_type="application/json",
    )
    assert not_a_number.status_code == 400
    assert "credit_score" in not_a_number.get_json()["error"]
    assert engine.state.model.tier is PredictionTier.STRUCTURED


def test_similar_profiles_rejects_non_finite_weights(client):
    resp = client.post(
        "/api/profiles/similar",
        data='{"weights": [NaN, 1, 1], "pool_size": 5}',
        content_type="application/json",
    )
    assert resp.status_code == 400
