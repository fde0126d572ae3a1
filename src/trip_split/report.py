"""Expense tracker report: spend by category and by day."""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from . import money
from .models import CategorySummary, DailyTotal, Expense, ExpenseReport

UNCATEGORIZED = "Other"


def category_percentage(part: int, whole: int) -> Decimal:
    """
    Compute part/whole as a percentage with one decimal place.

    Uses ROUND_HALF_UP for consistency with display rounding.
    """
    if whole == 0:
        return Decimal("0.0")
    pct = Decimal(part) * 100 / Decimal(whole)
    return pct.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def build_expense_report(trip_id: str, expenses: Sequence[Expense]) -> ExpenseReport:
    """
    Summarize a trip's expenses by category and by day.

    Expenses without a category are grouped under "Other". Categories are
    listed alphabetically and days chronologically. The daily average is the
    trip total over the number of days with at least one expense, rounded
    half up.
    """
    grand_total = money.total(exp.amount for exp in expenses)

    by_category: dict[str, list[Expense]] = {}
    by_day: dict = {}
    for expense in expenses:
        by_category.setdefault(expense.category or UNCATEGORIZED, []).append(expense)
        by_day.setdefault(expense.date, []).append(expense)

    categories = []
    for name in sorted(by_category):
        items = by_category[name]
        cat_total = money.total(exp.amount for exp in items)
        categories.append(
            CategorySummary(
                category=name,
                total=cat_total,
                count=len(items),
                percentage=category_percentage(cat_total, grand_total),
            )
        )

    daily = [
        DailyTotal(
            date=day,
            total=money.total(exp.amount for exp in by_day[day]),
            count=len(by_day[day]),
        )
        for day in sorted(by_day)
    ]

    if daily:
        average = (Decimal(grand_total) / len(daily)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        daily_average = int(average)
    else:
        daily_average = 0

    return ExpenseReport(
        trip_id=trip_id,
        total=grand_total,
        expense_count=len(expenses),
        daily_average=daily_average,
        categories=categories,
        daily=daily,
    )
