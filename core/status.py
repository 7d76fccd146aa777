from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class KpiStatus(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    NEEDS_IMPROVEMENT = "Needs Improvement"


@dataclass(frozen=True)
class StatusThresholds:
    # Both comparisons are strict: exactly 10.0 on a KPI is Good, not Excellent.
    kpi_excellent: float = 10.0
    department_excellent: float = 20.0


DEFAULT_THRESHOLDS = StatusThresholds()


def _classify(value: float, excellent_above: float) -> KpiStatus:
    if value > excellent_above:
        return KpiStatus.EXCELLENT
    if value > 0:
        return KpiStatus.GOOD
    return KpiStatus.NEEDS_IMPROVEMENT


def classify_kpi(improvement: float, thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> KpiStatus:
    return _classify(improvement, thresholds.kpi_excellent)


def classify_department(avg_improvement: float, thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> KpiStatus:
    return _classify(avg_improvement, thresholds.department_excellent)


def trend_direction(improvement: float) -> str:
    if improvement > 0:
        return "up"
    if improvement < 0:
        return "down"
    return "flat"


def improvement_tone(improvement: float, thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> str:
    """Colour bucket for an improvement badge (green / blue / red / grey)."""
    if improvement > thresholds.kpi_excellent:
        return "excellent"
    if improvement > 0:
        return "positive"
    if improvement < 0:
        return "negative"
    return "neutral"
