"""Finding and risk breakdown models"""
from dataclasses import dataclass
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class FindingCategory(str, Enum):
    SANCTIONS = "SANCTIONS"
    MIXER = "MIXER"
    SOURCE = "SOURCE"
    JURISDICTION = "JURISDICTION"
    BEHAVIOR = "BEHAVIOR"
    PRIVACY = "PRIVACY"
    MARKET = "MARKET"
    OTHER = "OTHER"


class FindingSeverity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"


class RiskLevel(str, Enum):
    UNASSESSED = "UNASSESSED"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class FindingInput:
    """The part of a case finding the scoring engine reads"""
    category: FindingCategory
    severity: FindingSeverity
    is_resolved: bool = False


class RiskCategoryScore(BaseModel):
    """Score of one scored category, before weighting"""
    category: FindingCategory
    score: int = Field(..., ge=0)
    weight: float
    findings: int = Field(..., ge=0, description="Unresolved findings in this category")
    description: str


class RiskBreakdown(BaseModel):
    """
    Composite risk assessment for a set of findings.

    Attributes:
        overall_score: Weighted composite between 0 and 100
        risk_level: Discrete bucket derived from overall_score
        categories: Per-category scores in fixed category order
        total_findings: Unresolved findings across every category, OTHER included
        *_findings: Unresolved findings per severity
    """
    overall_score: int = Field(0, ge=0, le=100)
    risk_level: RiskLevel = RiskLevel.UNASSESSED
    categories: List[RiskCategoryScore] = []
    total_findings: int = 0
    critical_findings: int = 0
    high_findings: int = 0
    medium_findings: int = 0
    low_findings: int = 0
    info_findings: int = 0
