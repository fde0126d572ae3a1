"""Tests for the expense tracker report."""

from datetime import date
from decimal import Decimal

from trip_split.models import Expense, Share, SplitType
from trip_split.report import UNCATEGORIZED, build_expense_report, category_percentage


def make_expense(expense_id: str, amount: int, day: int, category: str | None) -> Expense:
    return Expense(
        id=expense_id,
        trip_id="trip-1",
        description=expense_id,
        amount=amount,
        date=date(2024, 8, day),
        paid_by="A",
        category=category,
        split_type=SplitType.EXACT,
        shares=[Share(member_id="A", amount=amount)],
    )


class TestCategoryPercentage:
    def test_rounds_half_up(self):
        # 1/8 = 12.5% exactly; 1/16 = 6.25% -> 6.3
        assert category_percentage(1, 8) == Decimal("12.5")
        assert category_percentage(1, 16) == Decimal("6.3")

    def test_thirds(self):
        assert category_percentage(1, 3) == Decimal("33.3")
        assert category_percentage(2, 3) == Decimal("66.7")

    def test_zero_whole(self):
        assert category_percentage(0, 0) == Decimal("0.0")


class TestBuildExpenseReport:
    def test_groups_by_category(self):
        report = build_expense_report(
            "trip-1",
            [
                make_expense("hotel", 600_000, 1, "Lodging"),
                make_expense("pho", 100_000, 1, "Food"),
                make_expense("banh-mi", 50_000, 2, "Food"),
                make_expense("souvenir", 250_000, 2, None),
            ],
        )

        assert report.total == 1_000_000
        assert report.expense_count == 4
        assert [(c.category, c.total, c.count) for c in report.categories] == [
            ("Food", 150_000, 2),
            ("Lodging", 600_000, 1),
            (UNCATEGORIZED, 250_000, 1),
        ]
        assert [c.percentage for c in report.categories] == [
            Decimal("15.0"),
            Decimal("60.0"),
            Decimal("25.0"),
        ]

    def test_daily_totals_and_average(self):
        report = build_expense_report(
            "trip-1",
            [
                make_expense("b", 100, 3, None),
                make_expense("a", 200, 1, None),
                make_expense("c", 1, 1, None),
            ],
        )

        assert [(d.date.day, d.total, d.count) for d in report.daily] == [(1, 201, 2), (3, 100, 1)]
        # 301 / 2 days = 150.5 -> 151
        assert report.daily_average == 151

    def test_empty_trip(self):
        report = build_expense_report("trip-1", [])
        assert report.total == 0
        assert report.daily_average == 0
        assert report.categories == []
        assert report.daily == []
