"""Risk scoring of case findings"""
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

from diligence_core.models.risk import (
    FindingCategory,
    FindingSeverity,
    RiskBreakdown,
    RiskCategoryScore,
    RiskLevel,
)

SEVERITY_SCORES = MappingProxyType({
    FindingSeverity.CRITICAL: 40,
    FindingSeverity.HIGH: 25,
    FindingSeverity.MEDIUM: 15,
    FindingSeverity.LOW: 8,
    FindingSeverity.INFO: 3,
})

# Iteration order is the order categories are reported in
CATEGORY_WEIGHTS = MappingProxyType({
    FindingCategory.SANCTIONS: 1.5,
    FindingCategory.MIXER: 1.3,
    FindingCategory.SOURCE: 1.2,
    FindingCategory.JURISDICTION: 1.0,
    FindingCategory.BEHAVIOR: 1.1,
    FindingCategory.PRIVACY: 1.0,
    FindingCategory.MARKET: 0.9,
})

CATEGORY_DESCRIPTIONS = MappingProxyType({
    FindingCategory.SANCTIONS: 'Interactions with OFAC sanctioned addresses or entities',
    FindingCategory.MIXER: 'Use of Tornado Cash, tumblers, or mixing services',
    FindingCategory.SOURCE: 'Large unexplained deposits or unclear source of funds',
    FindingCategory.JURISDICTION: 'Transactions involving high-risk jurisdictions',
    FindingCategory.BEHAVIOR: 'Suspicious patterns like layering or rapid movements',
    FindingCategory.PRIVACY: 'Privacy coin usage or cross-chain bridge activity',
    FindingCategory.MARKET: 'Darknet market exposure or wash trading patterns',
})

CATEGORY_NAMES = MappingProxyType({
    FindingCategory.SANCTIONS: 'Sanctions',
    FindingCategory.MIXER: 'Mixer',
    FindingCategory.SOURCE: 'Source of Funds',
    FindingCategory.JURISDICTION: 'Jurisdiction',
    FindingCategory.BEHAVIOR: 'Behavior',
    FindingCategory.PRIVACY: 'Privacy',
    FindingCategory.MARKET: 'Market',
    FindingCategory.OTHER: 'Other',
})

MAX_CATEGORY_SCORE = 100

# Lower bound of each level, highest first
RISK_LEVEL_THRESHOLDS = (
    (75, RiskLevel.CRITICAL),
    (50, RiskLevel.HIGH),
    (25, RiskLevel.MEDIUM),
)


def _frozen(mapping: Mapping) -> Mapping:
    return mapping if isinstance(mapping, MappingProxyType) else MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ScoringConfig:
    """Read-only tables the scorer works from"""
    severity_scores: Mapping[FindingSeverity, int] = field(default_factory=lambda: SEVERITY_SCORES)
    category_weights: Mapping[FindingCategory, float] = field(default_factory=lambda: CATEGORY_WEIGHTS)
    category_descriptions: Mapping[FindingCategory, str] = field(default_factory=lambda: CATEGORY_DESCRIPTIONS)
    max_category_score: int = MAX_CATEGORY_SCORE

    def __post_init__(self):
        # Copy caller supplied tables so later changes to them cannot leak in
        object.__setattr__(self, 'severity_scores', _frozen(self.severity_scores))
        object.__setattr__(self, 'category_weights', _frozen(self.category_weights))
        object.__setattr__(self, 'category_descriptions', _frozen(self.category_descriptions))


DEFAULT_CONFIG = ScoringConfig()


def _attr(finding: Any, name: str, default: Any = None) -> Any:
    if isinstance(finding, Mapping):
        return finding.get(name, default)
    return getattr(finding, name, default)


def _category(finding: Any) -> Optional[FindingCategory]:
    try:
        return FindingCategory(_attr(finding, 'category'))
    except ValueError:
        return None


def _severity(finding: Any) -> Optional[FindingSeverity]:
    try:
        return FindingSeverity(_attr(finding, 'severity'))
    except ValueError:
        return None


def _is_active(finding: Any) -> bool:
    return not _attr(finding, 'is_resolved', False)


def score_to_risk_level(score: float) -> RiskLevel:
    """Convert a composite score to its risk level"""
    for threshold, level in RISK_LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    if score > 0:
        return RiskLevel.LOW
    return RiskLevel.UNASSESSED


def format_category_name(category: FindingCategory) -> str:
    return CATEGORY_NAMES[FindingCategory(category)]


class RiskScorer:
    """Calculates category and composite risk scores from case findings"""

    def __init__(self, config: ScoringConfig = DEFAULT_CONFIG):
        self.config = config

    def calculate_category_score(self, findings: Iterable[Any]) -> int:
        """Severity points of the unresolved findings, capped per category"""
        raw_score = sum(
            self.config.severity_scores.get(_severity(f), 0)
            for f in findings
            if _is_active(f)
        )
        return min(raw_score, self.config.max_category_score)

    def group_by_category(self, findings: Iterable[Any]) -> Dict[FindingCategory, List[Any]]:
        """Partition findings into the scored categories; OTHER and unknown ones are dropped"""
        groups = {category: [] for category in self.config.category_weights}
        for finding in findings:
            category = _category(finding)
            if category in groups:
                groups[category].append(finding)
        return groups

    def count_by_severity(self, findings: Iterable[Any]) -> Dict[FindingSeverity, int]:
        """Unresolved findings per severity, whatever their category"""
        counts = {severity: 0 for severity in FindingSeverity}
        for finding in findings:
            severity = _severity(finding)
            if _is_active(finding) and severity is not None:
                counts[severity] += 1
        return counts

    def calculate_breakdown(self, findings: Iterable[Any]) -> RiskBreakdown:
        """
        Score a set of findings.

        Each category's capped score is weighted, and the weighted sum is
        divided by the sum reached with every category at its cap, so the
        composite always lands in 0-100.
        """
        findings = list(findings)
        groups = self.group_by_category(findings)

        categories = [
            RiskCategoryScore(
                category=category,
                score=self.calculate_category_score(category_findings),
                weight=self.config.category_weights[category],
                findings=sum(1 for f in category_findings if _is_active(f)),
                description=self.config.category_descriptions.get(category, ''),
            )
            for category, category_findings in groups.items()
        ]

        total_weight = sum(cs.weight for cs in categories)
        weighted_sum = sum(cs.score * cs.weight for cs in categories)
        max_weighted_sum = self.config.max_category_score * total_weight

        overall_score = 0
        if max_weighted_sum > 0:
            # Half up, so 14.5 scores 15
            overall_score = math.floor(weighted_sum / max_weighted_sum * 100 + 0.5)

        severity_counts = self.count_by_severity(findings)

        return RiskBreakdown(
            overall_score=overall_score,
            risk_level=score_to_risk_level(overall_score),
            categories=categories,
            total_findings=sum(1 for f in findings if _is_active(f)),
            critical_findings=severity_counts[FindingSeverity.CRITICAL],
            high_findings=severity_counts[FindingSeverity.HIGH],
            medium_findings=severity_counts[FindingSeverity.MEDIUM],
            low_findings=severity_counts[FindingSeverity.LOW],
            info_findings=severity_counts[FindingSeverity.INFO],
        )

    def calculate_score(self, findings: Iterable[Any]) -> int:
        return self.calculate_breakdown(findings).overall_score


def calculate_risk_breakdown(findings: Iterable[Any], config: ScoringConfig = DEFAULT_CONFIG) -> RiskBreakdown:
    return RiskScorer(config).calculate_breakdown(findings)


def calculate_risk_score(findings: Iterable[Any], config: ScoringConfig = DEFAULT_CONFIG) -> int:
    return RiskScorer(config).calculate_score(findings)
