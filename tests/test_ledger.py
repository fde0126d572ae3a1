"""Tests for the in-memory expense ledger."""

from datetime import date

import pytest
from pydantic import ValidationError

from trip_split.exceptions import (
    ExpenseNotFoundError,
    SplitMismatchError,
    UnknownMemberError,
)
from trip_split.ledger import ExpenseLedger
from trip_split.models import (
    ExactShareInput,
    Expense,
    Member,
    Share,
    SplitType,
    Trip,
)


@pytest.fixture
def trip():
    """A trip with three members."""
    return Trip(
        id="trip-1",
        name="Da Lat",
        members=[
            Member(id="A", name="Anh"),
            Member(id="B", name="Bao"),
            Member(id="C", name="Chi"),
        ],
    )


@pytest.fixture
def ledger(trip):
    return ExpenseLedger(trip)


class TestAddExpense:
    """Adding expenses resolves the split first."""

    def test_attaches_resolved_shares(self, ledger):
        expense = ledger.add_expense("Hotel", 100, "A", SplitType.EQUAL)

        assert expense.trip_id == "trip-1"
        assert [(s.member_id, s.amount) for s in expense.shares] == [
            ("A", 33),
            ("B", 33),
            ("C", 34),
        ]
        assert len(ledger) == 1

    def test_assigns_increasing_sequence(self, ledger):
        first = ledger.add_expense("Hotel", 300, "A", SplitType.EQUAL)
        second = ledger.add_expense("Taxi", 60, "B", SplitType.EQUAL)
        assert (first.sequence, second.sequence) == (1, 2)

    def test_defaults_date_to_today(self, ledger):
        expense = ledger.add_expense("Coffee", 30, "A", SplitType.EQUAL)
        assert expense.date == date.today()

    def test_failed_split_leaves_ledger_unchanged(self, ledger):
        ledger.add_expense("Hotel", 300, "A", SplitType.EQUAL)

        with pytest.raises(SplitMismatchError):
            ledger.add_expense(
                "Dinner",
                100,
                "A",
                SplitType.EXACT,
                [
                    ExactShareInput(member_id="A", amount=40),
                    ExactShareInput(member_id="B", amount=40),
                ],
            )

        assert len(ledger) == 1
        assert [e.description for e in ledger.list_expenses()] == ["Hotel"]

    def test_payer_must_be_member(self, ledger):
        with pytest.raises(UnknownMemberError, match="Payer"):
            ledger.add_expense("Hotel", 300, "Z", SplitType.EQUAL)
        assert len(ledger) == 0

    def test_duplicate_expense_id_rejected(self, ledger):
        ledger.add_expense("Hotel", 300, "A", SplitType.EQUAL, expense_id="e1")
        with pytest.raises(ValueError, match="already exists"):
            ledger.add_expense("Taxi", 30, "A", SplitType.EQUAL, expense_id="e1")


class TestListExpenses:
    def test_ordered_by_date_then_insertion(self, ledger):
        ledger.add_expense("Late", 10, "A", SplitType.EQUAL, expense_date=date(2024, 3, 2))
        ledger.add_expense("Early 1", 10, "A", SplitType.EQUAL, expense_date=date(2024, 3, 1))
        ledger.add_expense("Early 2", 10, "A", SplitType.EQUAL, expense_date=date(2024, 3, 1))

        assert [e.description for e in ledger.list_expenses()] == ["Early 1", "Early 2", "Late"]

    def test_snapshot_is_detached_copy(self, ledger):
        ledger.add_expense("Hotel", 300, "A", SplitType.EQUAL)
        frozen = ledger.snapshot()

        ledger.add_expense("Taxi", 60, "B", SplitType.EQUAL)

        assert isinstance(frozen, tuple)
        assert len(frozen) == 1


class TestRemoveAndReplace:
    def test_remove_expense(self, ledger):
        expense = ledger.add_expense("Hotel", 300, "A", SplitType.EQUAL)
        removed = ledger.remove_expense(expense.id)
        assert removed.id == expense.id
        assert len(ledger) == 0

    def test_remove_missing_expense(self, ledger):
        with pytest.raises(ExpenseNotFoundError):
            ledger.remove_expense("nope")

    def test_replace_resplits_and_keeps_identity(self, ledger):
        original = ledger.add_expense(
            "Hotel", 300, "A", SplitType.EQUAL, expense_date=date(2024, 3, 1)
        )
        ledger.add_expense("Taxi", 60, "B", SplitType.EQUAL)

        replaced = ledger.replace_expense(
            original.id,
            "Hotel (2 nights)",
            600,
            "B",
            SplitType.EXACT,
            [
                ExactShareInput(member_id="A", amount=400),
                ExactShareInput(member_id="C", amount=200),
            ],
        )

        assert replaced.id == original.id
        assert replaced.sequence == original.sequence
        assert replaced.date == date(2024, 3, 1)
        assert ledger.get_expense(original.id).amount == 600
        assert len(ledger) == 2

    def test_failed_replace_keeps_original(self, ledger):
        original = ledger.add_expense("Hotel", 300, "A", SplitType.EQUAL)

        with pytest.raises(SplitMismatchError):
            ledger.replace_expense(
                original.id,
                "Hotel",
                600,
                "A",
                SplitType.EXACT,
                [ExactShareInput(member_id="A", amount=100)],
            )

        assert ledger.get_expense(original.id) == original

    def test_replace_missing_expense(self, ledger):
        with pytest.raises(ExpenseNotFoundError):
            ledger.replace_expense("nope", "X", 10, "A", SplitType.EQUAL)


class TestExpenseModel:
    def test_shares_must_sum_to_amount(self):
        with pytest.raises(ValidationError, match="sum to 90"):
            Expense(
                id="e1",
                trip_id="t",
                description="Broken",
                amount=100,
                date=date(2024, 1, 1),
                paid_by="A",
                split_type=SplitType.EXACT,
                shares=[Share(member_id="A", amount=90)],
            )

    def test_float_amount_rejected(self):
        with pytest.raises(ValidationError):
            Expense(
                id="e1",
                trip_id="t",
                description="Float",
                amount=100.0,
                date=date(2024, 1, 1),
                paid_by="A",
                split_type=SplitType.EXACT,
                shares=[Share(member_id="A", amount=100)],
            )
