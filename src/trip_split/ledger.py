"""In-memory expense ledger for a single trip."""

import logging
import uuid
from collections.abc import Iterable, Sequence
from datetime import date

from .exceptions import ExpenseNotFoundError, UnknownMemberError
from .models import (
    ExactShareInput,
    Expense,
    PercentageShareInput,
    SplitType,
    Trip,
)
from .splits import resolve

logger = logging.getLogger(__name__)


def ordered_expenses(expenses: Iterable[Expense]) -> list[Expense]:
    """Order expenses by date, then insertion sequence."""
    return sorted(expenses, key=lambda exp: (exp.date, exp.sequence))


class ExpenseLedger:
    """The set of expenses recorded for one trip.

    Every mutation resolves the split before touching the ledger, so a failed
    add or replace leaves the ledger exactly as it was.
    """

    def __init__(self, trip: Trip, expenses: Iterable[Expense] = ()):
        """Initialize the ledger with a trip and its existing expenses."""
        self.trip = trip
        self._expenses: list[Expense] = list(expenses)

    def __len__(self) -> int:
        return len(self._expenses)

    def build_expense(
        self,
        description: str,
        amount: int,
        paid_by: str,
        split_type: SplitType,
        split_input: Sequence[ExactShareInput | PercentageShareInput] | None = None,
        expense_date: date | None = None,
        category: str | None = None,
        expense_id: str | None = None,
        sequence: int | None = None,
    ) -> Expense:
        """
        Resolve a split and build an Expense without adding it to the ledger.

        Raises:
            UnknownMemberError: If the payer is not a trip member
            InvalidSplitError: If the split cannot be resolved
        """
        if self.trip.get_member(paid_by) is None:
            raise UnknownMemberError([paid_by], f"Payer {paid_by} is not a member of this trip")

        shares = resolve(split_type, amount, self.trip.members, split_input)

        return Expense(
            id=expense_id or uuid.uuid4().hex,
            trip_id=self.trip.id,
            description=description,
            amount=amount,
            date=expense_date or date.today(),
            paid_by=paid_by,
            category=category,
            split_type=split_type,
            shares=shares,
            sequence=sequence if sequence is not None else self._next_sequence(),
        )

    def add_expense(
        self,
        description: str,
        amount: int,
        paid_by: str,
        split_type: SplitType,
        split_input: Sequence[ExactShareInput | PercentageShareInput] | None = None,
        expense_date: date | None = None,
        category: str | None = None,
        expense_id: str | None = None,
    ) -> Expense:
        """Resolve the split and append a new expense."""
        if expense_id is not None and self._find_index(expense_id) is not None:
            raise ValueError(f"Expense {expense_id} already exists")

        expense = self.build_expense(
            description=description,
            amount=amount,
            paid_by=paid_by,
            split_type=split_type,
            split_input=split_input,
            expense_date=expense_date,
            category=category,
            expense_id=expense_id,
        )
        self._expenses.append(expense)

        logger.info(
            f"Added expense {expense.id} '{description}' ({amount}, {split_type}) "
            f"to trip {self.trip.id}"
        )
        return expense

    def replace_expense(
        self,
        expense_id: str,
        description: str,
        amount: int,
        paid_by: str,
        split_type: SplitType,
        split_input: Sequence[ExactShareInput | PercentageShareInput] | None = None,
        expense_date: date | None = None,
        category: str | None = None,
    ) -> Expense:
        """
        Replace an expense and re-split it.

        The replacement keeps the original id and insertion sequence.
        """
        index = self._find_index(expense_id)
        if index is None:
            raise ExpenseNotFoundError(expense_id)
        old = self._expenses[index]

        expense = self.build_expense(
            description=description,
            amount=amount,
            paid_by=paid_by,
            split_type=split_type,
            split_input=split_input,
            expense_date=expense_date or old.date,
            category=category,
            expense_id=old.id,
            sequence=old.sequence,
        )
        self._expenses[index] = expense

        logger.info(f"Replaced expense {expense_id} in trip {self.trip.id}")
        return expense

    def remove_expense(self, expense_id: str) -> Expense:
        """Remove an expense. Settlements are not recomputed."""
        index = self._find_index(expense_id)
        if index is None:
            raise ExpenseNotFoundError(expense_id)
        removed = self._expenses.pop(index)
        logger.info(f"Removed expense {expense_id} from trip {self.trip.id}")
        return removed

    def get_expense(self, expense_id: str) -> Expense:
        """Look up an expense by id."""
        index = self._find_index(expense_id)
        if index is None:
            raise ExpenseNotFoundError(expense_id)
        return self._expenses[index]

    def list_expenses(self) -> list[Expense]:
        """List expenses ordered by date, then insertion order."""
        return ordered_expenses(self._expenses)

    def snapshot(self) -> tuple[Expense, ...]:
        """Immutable copy of the expense list for aggregation."""
        return tuple(exp.model_copy(deep=True) for exp in self.list_expenses())

    def _find_index(self, expense_id: str) -> int | None:
        for i, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return i
        return None

    def _next_sequence(self) -> int:
        return max((exp.sequence for exp in self._expenses), default=0) + 1
