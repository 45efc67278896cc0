import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
DOTENV_PATH = BASE_DIR / ".env"
if DOTENV_PATH.exists():
    load_dotenv(DOTENV_PATH)
else:  # pragma: no cover
    load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else None


class Config:
    DEBUG = os.getenv("FLASK_DEBUG", "1") == "1"
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:4200,http://127.0.0.1:4200")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Labeled corpus used for statistics and training; a seed corpus is built when missing.
    CORPUS_PATH = os.getenv("CORPUS_PATH", str(BASE_DIR / "data" / "loans.csv"))
    SEED_CORPUS_SIZE = int(os.getenv("SEED_CORPUS_SIZE", "500"))
    RANDOM_SEED = _optional_int("RANDOM_SEED")

    MAX_GENERATED_PROFILES = int(os.getenv("MAX_GENERATED_PROFILES", "500"))
    SIMILARITY_SEARCH_RECORDS = int(os.getenv("SIMILARITY_SEARCH_RECORDS", "50"))
