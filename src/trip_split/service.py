"""Service layer that composes the ledger, aggregator and settlement store.

TripService implements the request/response contracts the presentation layer
consumes: expense creation, settlement read, settlement detail and
recalculation.
"""

import logging
import uuid
from datetime import date

from .config import Settings
from .db import Database
from .exceptions import ExpenseNotFoundError, MemberNotFoundError, StaleSnapshotError
from .ledger import ExpenseLedger
from .models import (
    Expense,
    ExpenseCreate,
    ExpenseReport,
    Member,
    SettlementDetailResponse,
    SettlementSnapshot,
    SettlementsResponse,
    Trip,
)
from .report import build_expense_report
from .settlement import detail
from .store import SettlementStore

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Generate a short random identifier for trips and members."""
    return uuid.uuid4().hex[:8]


class TripService:
    """Service for recording trip expenses and reporting settlements."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the trip service."""
        self.settings = settings
        self.db = database
        self.store = SettlementStore(database)

    # ========================================================================
    # Trips and members
    # ========================================================================

    def create_trip(
        self,
        name: str,
        member_names: list[str] | None = None,
        destination: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Trip:
        """Create a trip, optionally with its initial members."""
        trip = Trip(
            id=new_id(),
            name=name,
            destination=destination,
            start_date=start_date,
            end_date=end_date,
            members=[Member(id=new_id(), name=n) for n in member_names or []],
        )
        self.db.save_trip(trip)
        logger.info(f"Created trip {trip.id} '{name}' with {len(trip.members)} members")
        return trip

    def add_member(self, trip_id: str, name: str) -> Member:
        """Add a member to the end of a trip's member order."""
        self.db.get_trip(trip_id)
        member = Member(id=new_id(), name=name)
        with self.store.trip_lock(trip_id):
            self.db.add_member(trip_id, member)
        logger.info(f"Added member {member.id} '{name}' to trip {trip_id}")
        return member

    def get_trip(self, trip_id: str) -> Trip:
        """Get a trip with its members."""
        return self.db.get_trip(trip_id)

    def list_trips(self) -> list[Trip]:
        """List all trips."""
        return self.db.list_trips()

    def find_member(self, trip_id: str, ref: str) -> Member:
        """
        Find a member by id, or by case-insensitive display name.

        Raises:
            MemberNotFoundError: If no member matches
        """
        trip = self.db.get_trip(trip_id)
        member = trip.get_member(ref)
        if member:
            return member
        for candidate in trip.members:
            if candidate.name.casefold() == ref.casefold():
                return candidate
        raise MemberNotFoundError(trip_id, ref)

    # ========================================================================
    # Expenses
    # ========================================================================

    def create_expense(self, trip_id: str, data: ExpenseCreate) -> Expense:
        """
        Create an expense with its resolved share list.

        Nothing is stored when the split fails to resolve.

        Raises:
            UnknownMemberError: If the payer or a split member is not in the trip
            SplitMismatchError: If EXACT amounts don't sum to the total
            InvalidPercentageError: If PERCENTAGE weights are invalid
        """
        with self.store.trip_lock(trip_id):
            ledger = self._load_ledger(trip_id)
            expense = ledger.add_expense(
                description=data.description,
                amount=data.amount,
                paid_by=data.paid_by,
                split_type=data.split_type,
                split_input=data.split_input,
                expense_date=data.date,
                category=data.category,
            )
            self.db.save_expense(expense)
            self._after_ledger_change(trip_id)
        return expense

    def replace_expense(self, trip_id: str, expense_id: str, data: ExpenseCreate) -> Expense:
        """Replace an expense and re-split it, keeping its id and position."""
        with self.store.trip_lock(trip_id):
            ledger = self._load_ledger(trip_id)
            expense = ledger.replace_expense(
                expense_id,
                description=data.description,
                amount=data.amount,
                paid_by=data.paid_by,
                split_type=data.split_type,
                split_input=data.split_input,
                expense_date=data.date,
                category=data.category,
            )
            self.db.save_expense(expense)
            self._after_ledger_change(trip_id)
        return expense

    def remove_expense(self, trip_id: str, expense_id: str):
        """
        Delete an expense.

        The stored settlement is left as is unless auto_recompute is enabled.
        """
        with self.store.trip_lock(trip_id):
            if not self.db.delete_expense(trip_id, expense_id):
                raise ExpenseNotFoundError(expense_id)
            logger.info(f"Removed expense {expense_id} from trip {trip_id}")
            self._after_ledger_change(trip_id)

    def list_expenses(self, trip_id: str) -> list[Expense]:
        """List a trip's expenses ordered by date, then insertion order."""
        return self._load_ledger(trip_id).list_expenses()

    def expense_report(self, trip_id: str) -> ExpenseReport:
        """Summarize a trip's spend by category and by day."""
        return build_expense_report(trip_id, self.list_expenses(trip_id))

    # ========================================================================
    # Settlements
    # ========================================================================

    def get_settlements(self, trip_id: str) -> SettlementsResponse:
        """Get the cached settlement, computing the first one if needed."""
        self.db.get_trip(trip_id)
        return _to_response(self.store.get_or_compute(trip_id))

    def get_settlement_detail(self, trip_id: str, member_id: str) -> SettlementDetailResponse:
        """
        Get one member's settlement total with its per-expense breakdown.

        Raises:
            MemberNotFoundError: If the member is not in the trip
            StaleSnapshotError: If the member joined after the stored snapshot
        """
        member = self.find_member(trip_id, member_id)
        snapshot = self.store.get_or_compute(trip_id)
        entry = snapshot.entry_for(member.id)
        if entry is None:
            raise StaleSnapshotError(trip_id, member.id)

        return SettlementDetailResponse(
            member_id=entry.member_id,
            member_name=entry.member_name,
            total_amount=entry.total_owed,
            breakdown=detail(snapshot, member.id),
        )

    def recalculate(self, trip_id: str) -> SettlementsResponse:
        """Recompute the trip's settlement from the current ledger."""
        return _to_response(self.store.recompute(trip_id))

    # ========================================================================
    # Helpers
    # ========================================================================

    def _load_ledger(self, trip_id: str) -> ExpenseLedger:
        trip = self.db.get_trip(trip_id)
        return ExpenseLedger(trip, self.db.get_expenses(trip_id))

    def _after_ledger_change(self, trip_id: str):
        if self.settings.auto_recompute:
            self.store.recompute(trip_id)


def _to_response(snapshot: SettlementSnapshot) -> SettlementsResponse:
    return SettlementsResponse(
        trip_id=snapshot.trip_id,
        computed_at=snapshot.computed_at,
        settlements=snapshot.entries,
        total=snapshot.total,
    )
