from typing import List, Sequence, Tuple

from borrowers.models import BorrowerProfile
from feature_importance import FeatureImportance, strength


def approval_report(profile: BorrowerProfile, importance: FeatureImportance) -> str:
    """Markdown summary of a single application's prediction."""
    lines = [
        "# Loan Approval Analysis",
        "",
        f"**Decision**: {importance.decision}",
        f"**Approval probability**: {importance.base_approval_probability:.2%}",
        "",
        "## Application",
        "",
        f"- **Credit Score**: {profile.credit_score:.0f}",
        f"- **Annual Income**: ${profile.annual_income:,.0f}",
        f"- **Loan Amount**: ${profile.loan_amount:,.0f}",
        f"- **Loan Duration**: {profile.loan_duration} years",
        f"- **Debt-to-Income Ratio**: {profile.debt_to_income_ratio:.2%}",
        f"- **Loan-to-Income Ratio**: {profile.loan_to_income_ratio:.2f}x",
        f"- **Employment Status**: {profile.employment_status}",
        f"- **Loan Purpose**: {profile.loan_purpose}",
        "",
        "## Key Factors",
        "",
        "| Factor | Impact | Direction | Strength |",
        "| --- | --- | --- | --- |",
    ]
    for name, impact in importance.ranked_features():
        direction = "Positive" if impact >= 0 else "Negative"
        lines.append(f"| {name} | {impact:+.2%} | {direction} | {strength(impact)} |")
    lines.extend(["", "## Recommendations", ""])
    lines.extend(f"- {rec}" for rec in importance.recommendations)
    return "\n".join(lines) + "\n"


def improvement_report(importance: FeatureImportance) -> str:
    lines = [
        "# Profile Improvement Analysis",
        "",
        f"Current approval probability: {importance.base_approval_probability:.2%}",
        "",
        "## Suggested Improvements",
    ]
    lines.extend(f"- {rec}" for rec in importance.recommendations)
    return "\n".join(lines) + "\n"


def similar_profiles_table(matches: Sequence[Tuple[BorrowerProfile, float]]) -> str:
    lines: List[str] = [
        "| Rank | Similarity | Credit Score | Annual Income | Loan Amount | Outcome |",
        "| --- | --- | --- | --- | --- | --- |",
    ]
    for rank, (profile, score) in enumerate(matches, start=1):
        outcome = "Approved" if profile.loan_approved == 1 else "Rejected"
        lines.append(
            f"| {rank} | {score:.1%} | {profile.credit_score:.0f} | ${profile.annual_income:,.0f} "
            f"| ${profile.loan_amount:,.0f} | {outcome} |"
        )
    return "\n".join(lines) + "\n"
