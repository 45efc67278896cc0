from flask import Blueprint, current_app, jsonify, request

from borrowers.applications import application_from_payload
from borrowers.models import BorrowerProfile
from engine import LoanApprovalEngine, load_or_seed_corpus
from reports import approval_report, improvement_report

bp = Blueprint("approval", __name__, url_prefix="/api")

ENGINE_KEY = "approval_engine"


def current_engine() -> LoanApprovalEngine:
    return current_app.extensions[ENGINE_KEY]


@bp.route("/predict", methods=["POST"])
def predict():
    payload = request.get_json(force=True, silent=True) or {}
    profile = application_from_payload(payload)
    importance = current_engine().analyze(profile)
    return jsonify(
        {
            "approval_probability": importance.base_approval_probability,
            "decision": importance.decision,
            "ranked_features": importance.to_dict()["ranked_features"],
            "recommendations": importance.recommendations,
            "report": approval_report(profile, importance),
        }
    )


@bp.route("/analyze", methods=["POST"])
def analyze():
    payload = request.get_json(force=True, silent=True) or {}
    data = payload.get("profile", payload)
    profile = BorrowerProfile.from_dict(data)
    importance = current_engine().analyze(profile)
    result = importance.to_dict()
    result["report"] = improvement_report(importance)
    return jsonify(result)


@bp.route("/model", methods=["GET"])
def model_summary():
    return jsonify(current_engine().state.model.to_dict())


@bp.route("/stats", methods=["GET"])
def feature_statistics():
    return jsonify(current_engine().state.stats.to_dict())


@bp.route("/model/retrain", methods=["POST"])
def retrain():
    cfg = current_app.config
    corpus = load_or_seed_corpus(cfg["CORPUS_PATH"], cfg["SEED_CORPUS_SIZE"], cfg.get("RANDOM_SEED"))
    state = current_engine().retrain(corpus)
    return jsonify({"trained_on": state.stats.size, "model": state.model.to_dict()})
