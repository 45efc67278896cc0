import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from api.approval_routes import ENGINE_KEY
from api.approval_routes import bp as approval_bp
from api.profiles_routes import bp as profiles_bp
from config import Config
from engine import LoanApprovalEngine, load_or_seed_corpus
from errors import EmptyCorpusError, ValidationError

logging.basicConfig(level=Config.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(engine: Optional[LoanApprovalEngine] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    app.secret_key = app.config.get("SECRET_KEY", "dev")
    allowed_origins = app.config.get("CORS_ORIGINS", "http://localhost:4200,http://127.0.0.1:4200")
    origins_list = [o.strip() for o in allowed_origins.split(",") if o.strip()]
    CORS(app, resources={r"/api/*": {"origins": origins_list}}, supports_credentials=True)

    if engine is None:
        corpus = load_or_seed_corpus(app.config["CORPUS_PATH"], app.config["SEED_CORPUS_SIZE"], app.config["RANDOM_SEED"])
        engine = LoanApprovalEngine.from_corpus(corpus, seed=app.config["RANDOM_SEED"])
    app.extensions[ENGINE_KEY] = engine

    app.register_blueprint(approval_bp)
    app.register_blueprint(profiles_bp)

    @app.errorhandler(ValidationError)
    @app.errorhandler(EmptyCorpusError)
    def bad_request(exc):
        return jsonify({"error": str(exc)}), 400

    @app.route("/api/health", methods=["GET"])
    def health():
        model = app.extensions[ENGINE_KEY].state.model
        return jsonify({"status": "ok", "trained": model.is_trained, "tier": model.tier.name.lower()})

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=app.config.get("DEBUG", False))
