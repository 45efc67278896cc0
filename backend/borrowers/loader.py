import logging
from dataclasses import fields
from pathlib import Path
from typing import Dict, List, Sequence, Union

import pandas as pd

from errors import EmptyCorpusError, ValidationError
from .models import BorrowerProfile

logger = logging.getLogger(__name__)


def _column_name(field_name: str) -> str:
    return "".join(part.capitalize() for part in field_name.split("_"))


# CSV files use PascalCase headers (CreditScore, LoanApproved, ...).
FIELD_TO_COLUMN: Dict[str, str] = {f.name: _column_name(f.name) for f in fields(BorrowerProfile)}
COLUMN_TO_FIELD: Dict[str, str] = {column: name for name, column in FIELD_TO_COLUMN.items()}


def profiles_from_frame(df: pd.DataFrame) -> List[BorrowerProfile]:
    renamed = df.rename(columns=COLUMN_TO_FIELD)
    missing = [name for name in FIELD_TO_COLUMN if name != "loan_approved" and name not in renamed.columns]
    if missing:
        raise ValidationError(f"Corpus is missing columns: {', '.join(FIELD_TO_COLUMN[m] for m in missing)}")
    records = renamed.astype(object).where(pd.notnull(renamed), None).to_dict(orient="records")
    return [BorrowerProfile.from_dict(record) for record in records]


def profiles_to_frame(profiles: Sequence[BorrowerProfile]) -> pd.DataFrame:
    df = pd.DataFrame([p.to_dict() for p in profiles], columns=list(FIELD_TO_COLUMN))
    return df.rename(columns=FIELD_TO_COLUMN)


def load_corpus(path: Union[str, Path]) -> List[BorrowerProfile]:
    """Read a labeled borrower corpus from CSV."""
    path = Path(path)
    df = pd.read_csv(path, float_precision="round_trip")
    if df.empty:
        raise EmptyCorpusError(f"No borrower rows in {path}")
    profiles = profiles_from_frame(df)
    logger.info("Loaded %d borrower profiles from %s", len(profiles), path)
    return profiles


def save_corpus(profiles: Sequence[BorrowerProfile], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    profiles_to_frame(profiles).to_csv(path, index=False)
    logger.info("Wrote %d borrower profiles to %s", len(profiles), path)
    return path
