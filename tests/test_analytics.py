from datetime import date

import pytest

from placement_portal.schemas.schemas import (
    CompanyReference,
    PackageAmount,
    PlacementStatus,
    StudentResult,
)
from placement_portal.services.analytics_service import (
    AnalyticsService,
    PACKAGE_RANGES,
    compute_statistics,
    filter_branch,
    lower_median,
    recent_placements,
)
from placement_portal.services.record_store import InMemoryRecordStore

PLACED = PlacementStatus.placed


def student(roll, branch, status=PlacementStatus.not_placed, company=None, package=None,
            joining_date=None):
    return StudentResult(
        roll_number=roll,
        name=roll,
        branch=branch,
        placement_status=status,
        company=company,
        package=PackageAmount.parse(package) if package else None,
        joining_date=joining_date
    )


@pytest.fixture
def population():
    return [
        student("A", "CSE", PLACED, "Infosys", "6.5 LPA", date(2025, 7, 1)),
        student("B", "CSE", PLACED, "Infosys", "4 LPA", date(2025, 7, 20)),
        student("C", "ECE", PLACED, "TCS", "12 LPA", date(2025, 6, 15)),
        student("D", "ECE", PLACED, "Startup X"),
        student("E", "CSE", PlacementStatus.in_process),
        # Legacy free-text package that cannot be read
        StudentResult(roll_number="F", name="F", branch="Mech", placement_status=PLACED,
                      company="TCS", package="competitive"),
    ]


@pytest.fixture
def companies():
    return [
        CompanyReference(name="infosys ", tier="Tier 2"),
        CompanyReference(name="TCS", tier="Tier 1"),
    ]


def test_empty_population_gives_zero_statistics():
    stats = compute_statistics([])
    assert stats.total_students == 0
    assert stats.placed_students == 0
    assert stats.placement_rate == 0.0
    assert stats.average_package == 0.0
    assert stats.highest_package == 0.0
    assert stats.median_package == 0.0
    assert stats.branch_wise_stats == []
    assert stats.company_wise_stats == []
    assert stats.monthly_placement_trends == []
    assert [b.count for b in stats.package_distribution] == [0] * len(PACKAGE_RANGES)


def test_totals_and_packages(population, companies):
    stats = compute_statistics(population, companies)
    assert stats.total_students == 6
    assert stats.placed_students == 5
    assert stats.placement_rate == pytest.approx(500 / 6)
    # Only parseable packages of placed students: 6.5, 4, 12
    assert stats.average_package == pytest.approx(7.5)
    assert stats.highest_package == 12
    assert stats.median_package == 6.5


def test_median_takes_lower_middle_on_even_count():
    assert lower_median([12, 4, 20, 6.5]) == 6.5
    assert lower_median([3]) == 3
    assert lower_median([]) == 0.0


def test_unplaced_packages_are_ignored():
    students = [
        student("A", "CSE", PLACED, "Infosys", "5 LPA"),
        student("B", "CSE", PlacementStatus.not_placed, package="40 LPA"),
    ]
    stats = compute_statistics(students)
    assert stats.highest_package == 5


def test_branch_breakdown(population):
    branches = {b.branch: b for b in compute_statistics(population).branch_wise_stats}
    assert list(branches) == ["CSE", "ECE", "Mech"]

    cse = branches["CSE"]
    assert (cse.total, cse.placed) == (3, 2)
    assert cse.rate == pytest.approx(200 / 3)
    assert cse.avg_package == pytest.approx(5.25)
    assert branches["ECE"].avg_package == 12
    assert branches["Mech"].avg_package == 0.0


def test_missing_branch_is_grouped_as_unknown():
    stats = compute_statistics([student("A", None), student("B", "  ")])
    assert [(b.branch, b.total) for b in stats.branch_wise_stats] == [("Unknown", 2)]


def test_company_breakdown(population, companies):
    stats = compute_statistics(population, companies)
    assert [(c.company, c.tier, c.hires) for c in stats.company_wise_stats] == [
        ("Infosys", "Tier 2", 2),
        ("TCS", "Tier 1", 2),
        ("Startup X", "Unknown", 1),
    ]
    by_name = {c.company: c for c in stats.company_wise_stats}
    assert by_name["Infosys"].avg_package == pytest.approx(5.25)
    assert by_name["TCS"].avg_package == 12
    assert by_name["Startup X"].avg_package == 0.0


def test_package_distribution(population):
    buckets = {b.range: b.count for b in compute_statistics(population).package_distribution}
    assert buckets == {
        "0-3 LPA": 0, "3-6 LPA": 1, "6-10 LPA": 1,
        "10-15 LPA": 1, "15-25 LPA": 0, "25+ LPA": 0,
    }


def test_bucket_bounds_are_lower_inclusive():
    students = [student(str(i), "CSE", PLACED, "X", p)
                for i, p in enumerate(["3 LPA", "25 LPA", "2.99 LPA"])]
    buckets = {b.range: b.count for b in compute_statistics(students).package_distribution}
    assert buckets["0-3 LPA"] == 1
    assert buckets["3-6 LPA"] == 1
    assert buckets["25+ LPA"] == 1


def test_monthly_trends(population):
    trends = compute_statistics(population).monthly_placement_trends
    assert [(t.month, t.placements) for t in trends] == [("2025-06", 1), ("2025-07", 2)]


def test_statistics_serialize_in_camel_case(population):
    dumped = compute_statistics(population).model_dump(by_alias=True)
    assert dumped["totalStudents"] == 6
    assert dumped["branchWiseStats"][0]["avgPackage"] == pytest.approx(5.25)
    assert "monthlyPlacementTrends" in dumped


def test_service_reads_from_store(population, companies):
    service = AnalyticsService(InMemoryRecordStore(students=population, companies=companies))
    assert service.get_statistics().placed_students == 5
    assert len(service.get_branch_stats()) == 3
    assert service.get_company_stats()[0].tier == "Tier 2"


def test_recent_placements_window(population):
    # Window is 2025-06-25 .. 2025-07-25: A and B joined inside, C before it
    stats = compute_statistics(population, today=date(2025, 7, 25))
    assert stats.recent_placements == 2
    assert compute_statistics(population, today=date(2025, 7, 15)).recent_placements == 2
    assert compute_statistics(population, today=date(2025, 9, 30)).recent_placements == 0


def test_recent_placements_bounds():
    joined = [
        student("A", "CSE", PLACED, joining_date=date(2025, 6, 1)),
        student("B", "CSE", PLACED, joining_date=date(2025, 7, 1)),
        student("C", "CSE", PLACED, joining_date=date(2025, 7, 2)),
        student("D", "CSE", joining_date=date(2025, 6, 20)),
    ]
    assert recent_placements(joined, today=date(2025, 7, 1)) == 2


def test_filter_branch_ignores_case(population):
    assert [s.roll_number for s in filter_branch(population, " cse")] == ["A", "B", "E"]
    assert filter_branch(population, None) == population
    assert filter_branch(population, "Civil") == []


def test_service_statistics_for_one_branch(population, companies):
    service = AnalyticsService(InMemoryRecordStore(students=population, companies=companies))
    stats = service.get_statistics(branch="ece")
    assert stats.total_students == 2
    assert stats.placed_students == 2
    assert stats.highest_package == 12
    assert [b.branch for b in stats.branch_wise_stats] == ["ECE"]

    assert service.get_statistics(branch="Civil").total_students == 0
