import math
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Optional

from errors import ValidationError


class CategoricalField(Enum):
    EMPLOYMENT_STATUS = "employment_status"
    MARITAL_STATUS = "marital_status"
    EDUCATION_LEVEL = "education_level"
    HOME_OWNERSHIP_STATUS = "home_ownership_status"
    LOAN_PURPOSE = "loan_purpose"
    HEALTH_INSURANCE_STATUS = "health_insurance_status"
    LIFE_INSURANCE_STATUS = "life_insurance_status"
    CAR_INSURANCE_STATUS = "car_insurance_status"
    HOME_INSURANCE_STATUS = "home_insurance_status"
    EMPLOYER_TYPE = "employer_type"


INTEGER_FIELDS = (
    "loan_duration",
    "age",
    "number_of_dependents",
    "number_of_open_credit_lines",
    "number_of_credit_inquiries",
    "bankruptcy_history",
    "previous_loan_defaults",
    "length_of_credit_history",
    "other_insurance_policies",
    "job_tenure",
)

FLOAT_FIELDS = (
    "credit_score",
    "annual_income",
    "loan_amount",
    "monthly_debt_payments",
    "credit_card_utilization_rate",
    "debt_to_income_ratio",
    "interest_rate",
    "payment_history",
    "savings_account_balance",
    "checking_account_balance",
    "investment_account_balance",
    "retirement_account_balance",
    "emergency_fund_balance",
    "total_assets",
    "total_liabilities",
    "net_worth",
    "mortgage_balance",
    "rent_payments",
    "auto_loan_balance",
    "personal_loan_balance",
    "student_loan_balance",
    "utility_bills_payment_history",
    "monthly_savings",
    "annual_bonuses",
    "annual_expenses",
    "monthly_housing_costs",
    "monthly_transportation_costs",
    "monthly_food_costs",
    "monthly_healthcare_costs",
    "monthly_entertainment_costs",
)

CONTINUOUS_FIELDS = FLOAT_FIELDS + INTEGER_FIELDS
CATEGORICAL_FIELDS = tuple(f.value for f in CategoricalField)

INSURED = "Insured"
UNINSURED = "Uninsured"
UNEMPLOYED = "Unemployed"
SELF_EMPLOYED = "Self-Employed"


def loan_to_income(loan_amount: float, annual_income: float) -> float:
    """Loan amount over annual income, with income floored at 1."""
    return loan_amount / max(1.0, annual_income)


def require_finite(values: Dict[str, Any]) -> None:
    """Raise ValidationError naming every numeric value that is NaN or infinite."""
    bad = sorted(
        name
        for name, value in values.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isfinite(value)
    )
    if bad:
        raise ValidationError(f"Non-finite values for: {', '.join(bad)}")


@dataclass(frozen=True)
class BorrowerProfile:
    credit_score: float
    annual_income: float
    loan_amount: float
    loan_duration: int
    age: int
    employment_status: str
    marital_status: str
    number_of_dependents: int
    education_level: str
    home_ownership_status: str
    monthly_debt_payments: float
    credit_card_utilization_rate: float
    number_of_open_credit_lines: int
    number_of_credit_inquiries: int
    debt_to_income_ratio: float
    bankruptcy_history: int
    loan_purpose: str
    previous_loan_defaults: int
    interest_rate: float
    payment_history: float
    savings_account_balance: float
    checking_account_balance: float
    investment_account_balance: float
    retirement_account_balance: float
    emergency_fund_balance: float
    total_assets: float
    total_liabilities: float
    net_worth: float
    length_of_credit_history: int
    mortgage_balance: float
    rent_payments: float
    auto_loan_balance: float
    personal_loan_balance: float
    student_loan_balance: float
    utility_bills_payment_history: float
    health_insurance_status: str
    life_insurance_status: str
    car_insurance_status: str
    home_insurance_status: str
    other_insurance_policies: int
    employer_type: str
    job_tenure: int
    monthly_savings: float
    annual_bonuses: float
    annual_expenses: float
    monthly_housing_costs: float
    monthly_transportation_costs: float
    monthly_food_costs: float
    monthly_healthcare_costs: float
    monthly_entertainment_costs: float
    loan_approved: Optional[int] = None

    @property
    def loan_to_income_ratio(self) -> float:
        return loan_to_income(self.loan_amount, self.annual_income)

    @property
    def is_unemployed(self) -> bool:
        return self.employment_status == UNEMPLOYED

    def with_overrides(self, **changes: Any) -> "BorrowerProfile":
        """Copy of this profile with the given fields replaced."""
        unknown = sorted(set(changes) - _FIELD_NAMES)
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(unknown)}")
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "BorrowerProfile":
        missing = [name for name in _REQUIRED_FIELDS if data.get(name) is None]
        if missing:
            raise ValidationError(f"Missing profile fields: {', '.join(missing)}")
        values: Dict[str, Any] = {}
        try:
            for name in FLOAT_FIELDS:
                values[name] = float(data[name])
            require_finite(values)
            for name in INTEGER_FIELDS:
                values[name] = int(round(float(data[name])))
        except (TypeError, ValueError, OverflowError) as exc:
            if isinstance(exc, ValidationError):
                raise
            raise ValidationError(f"Invalid numeric profile value: {exc}") from exc
        for name in CATEGORICAL_FIELDS:
            values[name] = str(data[name])
        values["loan_approved"] = _parse_label(data.get("loan_approved"))
        return BorrowerProfile(**values)


def _parse_label(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("", "none", "nan"):
            return None
        if lowered in ("true", "yes"):
            return 1
        if lowered in ("false", "no"):
            return 0
    try:
        label = int(float(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid loan_approved label: {value!r}") from exc
    if label not in (0, 1):
        raise ValidationError(f"loan_approved must be 0 or 1, got {label}")
    return label


_FIELD_NAMES = {f.name for f in fields(BorrowerProfile)}
_REQUIRED_FIELDS = [f.name for f in fields(BorrowerProfile) if f.name != "loan_approved"]
