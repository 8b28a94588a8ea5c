"""Aggregation of Codacy security and repository analysis payloads."""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Missing metrics count as a perfect score.
MISSING_METRIC_FALLBACK = 100.0

GRADE_THRESHOLDS = (
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
)


@dataclass(frozen=True, slots=True)
class ComponentMetricsSummary:
    """Averaged analysis metrics and security counters for one component."""

    grade: float
    grade_letter: str
    code_coverage: float
    issues_percentage: float
    complex_files_percentage: float
    duplication_percentage: float
    total_open: int | None
    total_closed: int | None
    on_track: int | None
    closed_on_time: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "grade": self.grade,
            "gradeLetter": self.grade_letter,
            "codeCoverage": self.code_coverage,
            "issuesPercentage": self.issues_percentage,
            "complexFilesPercentage": self.complex_files_percentage,
            "duplicationPercentage": self.duplication_percentage,
            "totalOpen": self.total_open,
            "totalClosed": self.total_closed,
            "onTrack": self.on_track,
            "closedOnTime": self.closed_on_time,
        }


def grade_letter(average: float) -> str:
    """Bucket an average grade into a letter; NaN falls through to F."""
    for threshold, letter in GRADE_THRESHOLDS:
        if average >= threshold:
            return letter
    return "F"


def metric_value(record: Mapping[str, Any], field_name: str) -> float:
    # Zero is a real measurement; only non-numeric or missing values fall back.
    value = record.get(field_name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return MISSING_METRIC_FALLBACK
    return float(value)


def _average(total: float, count: int) -> float:
    if count == 0:
        return math.nan
    return total / count


def summarize(
    security: Mapping[str, Any],
    analysis: Mapping[str, Any],
) -> ComponentMetricsSummary | None:
    """
    Combine the security dashboard and repository analysis payloads.

    Returns ``None`` when either payload does not carry its ``data`` field in
    the expected shape. An empty analysis list yields NaN averages.
    """
    counters = security.get("data")
    records = analysis.get("data")
    if not isinstance(counters, Mapping) or not isinstance(records, list):
        logger.warning(
            "Codacy payload missing expected data field",
            extra={
                "security_has_data": isinstance(counters, Mapping),
                "analysis_has_data": isinstance(records, list),
            },
        )
        return None

    grade_total = 0.0
    coverage_total = 0.0
    issues_total = 0.0
    complex_total = 0.0
    duplication_total = 0.0
    for record in records:
        if not isinstance(record, Mapping):
            record = {}
        grade_total += metric_value(record, "grade")
        coverage_total += metric_value(record, "coveragePercentageWithDecimals")
        issues_total += metric_value(record, "issuesPercentage")
        complex_total += metric_value(record, "complexFilesPercentage")
        duplication_total += metric_value(record, "duplicationPercentage")

    count = len(records)
    grade = _average(grade_total, count)
    summary = ComponentMetricsSummary(
        grade=grade,
        grade_letter=grade_letter(grade),
        code_coverage=_average(coverage_total, count),
        issues_percentage=_average(issues_total, count),
        complex_files_percentage=_average(complex_total, count),
        duplication_percentage=_average(duplication_total, count),
        total_open=counters.get("totalOpen"),
        total_closed=counters.get("totalClosed"),
        on_track=counters.get("onTrack"),
        closed_on_time=counters.get("closedOnTime"),
    )
    logger.debug(
        "Aggregated codacy analysis",
        extra={"repositories": count, **summary.to_dict()},
    )
    return summary
