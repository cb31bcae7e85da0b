"""
Deterministic rules shared by diagnosis post-processing: season lookup,
product type per issue category and overall risk level.
"""
from datetime import date
from typing import Iterable, Optional

from lawn_guardian.domain.models import IdentifiedIssue

PRODUCT_TYPES = {
    "disease": "fungicide",
    "insect": "insecticide",
    "weed": "herbicide",
    "nutrient_deficiency": "fertilizer",
}


def current_season(today: Optional[date] = None) -> str:
    """Northern-hemisphere meteorological season."""
    month = (today or date.today()).month
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "fall"
    return "winter"


def map_product_type(category: str) -> str:
    return PRODUCT_TYPES.get(category, "herbicide")


def calculate_risk_level(issues: Iterable[IdentifiedIssue]) -> str:
    severities = [issue.severity for issue in issues]
    severe = severities.count("severe")
    moderate = severities.count("moderate")

    if severe >= 2 or (severe >= 1 and moderate >= 2):
        return "high"
    if severe >= 1 or moderate >= 2:
        return "medium"
    return "low"
