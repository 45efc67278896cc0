import pandas as pd
import pytest

from borrowers.loader import FIELD_TO_COLUMN, load_corpus, profiles_from_frame, save_corpus
from errors import ValidationError


def test_csv_round_trip_uses_pascal_case_headers(tmp_path, make_profile):
    corpus = [make_profile(loan_approved=1), make_profile(credit_score=590, loan_approved=0)]
    path = save_corpus(corpus, tmp_path / "loans.csv")

    header = path.read_text().splitlines()[0].split(",")
    assert "CreditScore" in header
    assert "DebtToIncomeRatio" in header
    assert "LoanApproved" in header
    assert load_corpus(path) == corpus


def test_missing_columns_are_reported(make_profile):
    df = pd.DataFrame([{FIELD_TO_COLUMN["credit_score"]: 700}])
    with pytest.raises(ValidationError) as exc:
        profiles_from_frame(df)
    assert "AnnualIncome" in str(exc.value)


def test_unlabeled_rows_load_without_label(make_profile):
    df = pd.DataFrame([make_profile().to_dict()]).rename(columns=FIELD_TO_COLUMN).drop(columns=["LoanApproved"])
    (profile,) = profiles_from_frame(df)
    assert profile.loan_approved is None
