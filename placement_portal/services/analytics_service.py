"""
Analytics Service - Placement statistics over the whole student population.

PURPOSE:
Recompute a fresh AggregateStatistics snapshot every time statistics are
displayed. Nothing is cached or persisted: the record set is bounded by
institution size, so a full pass per call is cheap.

WHAT IS COMPUTED:
1. Totals and placement rate
2. Average / median / highest package (lakhs per annum)
3. Branch-wise breakdown (total, placed, rate, avg package)
4. Company-wise breakdown (tier, hires, avg package)
5. Package distribution over six fixed ranges
6. Monthly placement trends from joining dates
7. Recent placements (joining date within the last 30 days)
"""

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from placement_portal.schemas.schemas import (
    AggregateStatistics,
    BranchStats,
    CompanyReference,
    CompanyStats,
    MonthlyTrend,
    PackageBucket,
    StudentResult,
)

logger = logging.getLogger(__name__)

UNKNOWN_BRANCH = "Unknown"
UNKNOWN_TIER = "Unknown"
RECENT_DAYS = 30

# (lower bound inclusive, upper bound exclusive, label)
PACKAGE_RANGES = [
    (0, 3, "0-3 LPA"),
    (3, 6, "3-6 LPA"),
    (6, 10, "6-10 LPA"),
    (10, 15, "10-15 LPA"),
    (15, 25, "15-25 LPA"),
    (25, float("inf"), "25+ LPA"),
]


# ============================================================
# NUMERIC HELPERS
# ============================================================

def package_value(student: StudentResult) -> Optional[float]:
    """Package in LPA, or None when the student has no parsed package."""
    if student.package is None:
        return None
    return student.package.amount


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def lower_median(values: Sequence[float]) -> float:
    """
    Middle element of the sorted values.

    On an even count this is the lower of the two middle elements
    (index selection, no interpolation).
    """
    if len(values) == 0:
        return 0.0
    ordered = np.sort(np.asarray(values, dtype=float))
    return float(ordered[(len(ordered) - 1) // 2])


def highest(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.max(values))


def rate(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return part / whole * 100


def package_distribution(values: Sequence[float]) -> List[PackageBucket]:
    packages = np.asarray(values, dtype=float)
    return [
        PackageBucket(
            range=label,
            count=int(np.count_nonzero((packages >= low) & (packages < high)))
        )
        for low, high, label in PACKAGE_RANGES
    ]


def _tier_map(companies: Iterable[CompanyReference]) -> Dict[str, str]:
    return {c.name.strip().lower(): c.tier for c in companies}


# ============================================================
# BREAKDOWNS
# ============================================================

def branch_wise_stats(students: Sequence[StudentResult]) -> List[BranchStats]:
    """Per branch, in order of first appearance."""
    groups: Dict[str, Dict[str, list]] = {}
    for student in students:
        branch = (student.branch or "").strip() or UNKNOWN_BRANCH
        group = groups.setdefault(branch, {"total": 0, "placed": 0, "packages": []})
        group["total"] += 1
        if student.is_placed:
            group["placed"] += 1
            value = package_value(student)
            if value is not None:
                group["packages"].append(value)

    return [
        BranchStats(
            branch=branch,
            total=group["total"],
            placed=group["placed"],
            rate=rate(group["placed"], group["total"]),
            avg_package=mean(group["packages"])
        )
        for branch, group in groups.items()
    ]


def company_wise_stats(
    students: Sequence[StudentResult],
    companies: Iterable[CompanyReference] = ()
) -> List[CompanyStats]:
    """Placed students grouped by company name, tier attached from reference data."""
    tiers = _tier_map(companies)
    groups: Dict[str, Dict[str, list]] = {}
    for student in students:
        if not student.is_placed or not (student.company or "").strip():
            continue
        name = student.company.strip()
        group = groups.setdefault(name, {"hires": 0, "packages": []})
        group["hires"] += 1
        value = package_value(student)
        if value is not None:
            group["packages"].append(value)

    return [
        CompanyStats(
            company=name,
            tier=tiers.get(name.lower(), UNKNOWN_TIER),
            hires=group["hires"],
            avg_package=mean(group["packages"])
        )
        for name, group in groups.items()
    ]


def monthly_trends(students: Sequence[StudentResult]) -> List[MonthlyTrend]:
    """Placements per joining month (YYYY-MM), oldest first."""
    months = Counter(
        s.joining_date.strftime("%Y-%m")
        for s in students if s.is_placed and s.joining_date
    )
    return [MonthlyTrend(month=m, placements=months[m]) for m in sorted(months)]


def recent_placements(students: Sequence[StudentResult], today: Optional[date] = None) -> int:
    """Placed students whose joining date falls in the last RECENT_DAYS days, today included."""
    today = today or date.today()
    since = today - timedelta(days=RECENT_DAYS)
    return sum(
        1 for s in students
        if s.is_placed and s.joining_date and since <= s.joining_date <= today
    )


def filter_branch(students: Iterable[StudentResult], branch: Optional[str]) -> List[StudentResult]:
    """Students of one branch (case-insensitive). No branch means everyone."""
    students = list(students)
    if not branch:
        return students
    wanted = branch.strip().lower()
    return [s for s in students if (s.branch or "").strip().lower() == wanted]


# ============================================================
# AGGREGATOR
# ============================================================

def compute_statistics(
    students: Iterable[StudentResult],
    companies: Iterable[CompanyReference] = (),
    today: Optional[date] = None
) -> AggregateStatistics:
    """
    Full statistics snapshot.

    An empty record set yields all-zero statistics, empty breakdowns and
    all-zero package buckets.
    """
    students = list(students)
    companies = list(companies)

    placed = [s for s in students if s.is_placed]
    packages = [v for v in (package_value(s) for s in placed) if v is not None]

    stats = AggregateStatistics(
        total_students=len(students),
        placed_students=len(placed),
        placement_rate=rate(len(placed), len(students)),
        average_package=mean(packages),
        highest_package=highest(packages),
        median_package=lower_median(packages),
        recent_placements=recent_placements(students, today),
        branch_wise_stats=branch_wise_stats(students),
        company_wise_stats=company_wise_stats(students, companies),
        package_distribution=package_distribution(packages),
        monthly_placement_trends=monthly_trends(students)
    )
    logger.debug(
        "Statistics computed: %d students, %d placed, %d packages",
        stats.total_students, stats.placed_students, len(packages)
    )
    return stats


class AnalyticsService:
    """
    Statistics over the records held in a RecordStore.

    Usage:
        service = AnalyticsService(store)
        stats = service.get_statistics()
    """

    def __init__(self, store):
        self.store = store

    def get_statistics(self, branch: Optional[str] = None) -> AggregateStatistics:
        students = filter_branch(self.store.read_students(), branch)
        return compute_statistics(students, self.store.read_companies())

    def get_branch_stats(self) -> List[BranchStats]:
        return branch_wise_stats(self.store.read_students())

    def get_company_stats(self) -> List[CompanyStats]:
        return company_wise_stats(self.store.read_students(), self.store.read_companies())
