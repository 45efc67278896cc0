from flask import Blueprint, current_app, jsonify, request

from api.approval_routes import current_engine
from borrowers.matcher import DEFAULT_TOP_K
from errors import ValidationError
from reports import similar_profiles_table

bp = Blueprint("profiles", __name__, url_prefix="/api")

# Credit score counts double when looking for comparable borrowers.
SIMILARITY_WEIGHTS = (2.0, 1.0, 1.0)
SIMILARITY_THRESHOLD = 0.7


def _int_arg(payload, name: str, default: int) -> int:
    try:
        return int(payload.get(name, default))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be an integer") from exc


@bp.route("/profiles/generate", methods=["POST"])
def generate_profiles():
    payload = request.get_json(force=True, silent=True) or {}
    count = _int_arg(payload, "count", 1)
    limit = current_app.config.get("MAX_GENERATED_PROFILES", 500)
    if count > limit:
        return jsonify({"error": f"count must be at most {limit}"}), 400
    profiles = current_engine().generate(count)
    return jsonify({"profiles": [p.to_dict() for p in profiles]})


@bp.route("/profiles/similar", methods=["POST"])
def similar_profiles():
    payload = request.get_json(force=True, silent=True) or {}
    engine = current_engine()
    stats = engine.state.stats
    try:
        target_credit = float(payload.get("credit_score", stats.continuous["credit_score"].mean))
        target_income = float(payload.get("annual_income", stats.continuous["annual_income"].mean))
        target_loan = float(payload.get("loan_amount", stats.continuous["loan_amount"].mean))
        weights = tuple(float(w) for w in payload.get("weights", SIMILARITY_WEIGHTS))
        min_threshold = float(payload.get("min_threshold", SIMILARITY_THRESHOLD))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid similarity parameter: {exc}") from exc
    top_k = _int_arg(payload, "top_k", DEFAULT_TOP_K)
    pool_size = _int_arg(payload, "pool_size", current_app.config.get("SIMILARITY_SEARCH_RECORDS", 50))
    if pool_size <= 0 or pool_size > current_app.config.get("MAX_GENERATED_PROFILES", 500):
        raise ValidationError("pool_size is out of range")

    matches = engine.similar_profiles(
        target_credit,
        target_income,
        target_loan,
        pool_size=pool_size,
        weights=weights,
        top_k=top_k,
        min_threshold=min_threshold,
    )
    return jsonify(
        {
            "target": {"credit_score": target_credit, "annual_income": target_income, "loan_amount": target_loan},
            "matches": [{"similarity": score, "profile": profile.to_dict()} for profile, score in matches],
            "table": similar_profiles_table(matches),
        }
    )
