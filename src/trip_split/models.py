"""Pydantic domain models for TripSplit."""

import datetime as dt
from decimal import Decimal
from enum import StrEnum
from fractions import Fraction
from typing import Annotated

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    StrictInt,
    model_validator,
)

from .money import MAX_AMOUNT, MIN_AMOUNT

# ============================================================================
# Field types
# ============================================================================

Money = Annotated[StrictInt, Field(ge=MIN_AMOUNT, le=MAX_AMOUNT)]
NonNegativeMoney = Annotated[StrictInt, Field(ge=0, le=MAX_AMOUNT)]


def to_fraction(value: object) -> Fraction:
    """
    Coerce a percentage into an exact Fraction.

    Accepts ints, Decimals, Fractions and strings such as "33.5" or "100/3".
    Floats go through their shortest repr so 33.3 means 333/10.
    """
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool):
        raise ValueError("Percentage must be a number, not a bool")
    if isinstance(value, float):
        return Fraction(repr(value))
    if isinstance(value, int | Decimal | str):
        try:
            return Fraction(value)
        except (ValueError, ZeroDivisionError, OverflowError) as e:
            raise ValueError(f"Invalid percentage: {value!r}") from e
    raise ValueError(f"Invalid percentage type: {type(value).__name__}")


Percentage = Annotated[
    Fraction,
    BeforeValidator(to_fraction),
    PlainSerializer(str, return_type=str),
]


class SplitType(StrEnum):
    """How an expense total is divided among members."""

    EQUAL = "EQUAL"
    EXACT = "EXACT"
    PERCENTAGE = "PERCENTAGE"


# ============================================================================
# Trip Models
# ============================================================================


class Member(BaseModel):
    """A member of a trip."""

    id: str
    name: str
    joined_at: dt.datetime = Field(default_factory=dt.datetime.now)


class Trip(BaseModel):
    """A trip and its members.

    The order of `members` is the enumeration order used for deterministic
    split resolution and settlement tie-breaking.
    """

    id: str
    name: str
    destination: str | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)
    members: list[Member] = Field(default_factory=list)

    def member_ids(self) -> list[str]:
        """Member ids in enumeration order."""
        return [member.id for member in self.members]

    def get_member(self, member_id: str) -> Member | None:
        """Look up a member by id."""
        for member in self.members:
            if member.id == member_id:
                return member
        return None


# ============================================================================
# Expense Models
# ============================================================================


class ExactShareInput(BaseModel):
    """Caller-supplied amount for one member of an EXACT split."""

    member_id: str
    amount: Money


class PercentageShareInput(BaseModel):
    """Caller-supplied weight for one member of a PERCENTAGE split."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    member_id: str
    percentage: Percentage


SplitInput = list[ExactShareInput | PercentageShareInput]


class Share(BaseModel):
    """One member's portion of a single expense."""

    member_id: str
    amount: Money


class Expense(BaseModel):
    """A shared expense with its resolved share list.

    The share list always sums to `amount`; construction fails otherwise.
    """

    id: str
    trip_id: str
    description: str
    amount: NonNegativeMoney
    date: dt.date
    paid_by: str
    category: str | None = None
    split_type: SplitType
    shares: list[Share]
    sequence: int = 0  # insertion order within the trip
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)

    @model_validator(mode="after")
    def _shares_sum_to_amount(self) -> "Expense":
        share_total = sum(share.amount for share in self.shares)
        if share_total != self.amount:
            raise ValueError(
                f"Shares of expense {self.id} sum to {share_total}, "
                f"expected {self.amount}"
            )
        return self


class ExpenseCreate(BaseModel):
    """Request body for creating (or replacing) an expense."""

    description: str
    amount: NonNegativeMoney
    paid_by: str
    date: dt.date | None = None
    category: str | None = None
    split_type: SplitType = SplitType.EQUAL
    split_input: SplitInput | None = None


# ============================================================================
# Settlement Models
# ============================================================================


class SettlementBreakdownEntry(BaseModel):
    """One expense's contribution to a member's settlement total."""

    expense_id: str
    description: str
    share_amount: Money
    split_type: SplitType
    expense_date: dt.date
    category: str | None = None
    paid_by: str


class SettlementEntry(BaseModel):
    """A member's aggregate position across every expense in a trip."""

    member_id: str
    member_name: str
    total_owed: Money
    total_paid: Money = 0
    net_balance: Money = 0  # total_paid - total_owed


class SettlementSnapshot(BaseModel):
    """Point-in-time result of a full settlement aggregation pass.

    ledger_hash fingerprints the expense set the snapshot was computed from,
    so an unchanged ledger can be recognized on recompute.
    """

    trip_id: str
    computed_at: dt.datetime
    entries: list[SettlementEntry]
    breakdowns: dict[str, list[SettlementBreakdownEntry]] = Field(default_factory=dict)
    total: Money
    ledger_hash: str

    def entry_for(self, member_id: str) -> SettlementEntry | None:
        """Get the settlement entry for a member."""
        for entry in self.entries:
            if entry.member_id == member_id:
                return entry
        return None


class SettlementsResponse(BaseModel):
    """Settlement read/recalculate response."""

    trip_id: str
    computed_at: dt.datetime
    settlements: list[SettlementEntry]
    total: Money


class SettlementDetailResponse(BaseModel):
    """Settlement detail response for one member."""

    member_id: str
    member_name: str
    total_amount: Money
    breakdown: list[SettlementBreakdownEntry]


# ============================================================================
# Report Models
# ============================================================================


class CategorySummary(BaseModel):
    """Spend in one expense category."""

    category: str
    total: Money
    count: int
    percentage: Decimal  # share of trip total, one decimal place


class DailyTotal(BaseModel):
    """Spend on one day."""

    date: dt.date
    total: Money
    count: int


class ExpenseReport(BaseModel):
    """Expense tracker summary for a trip."""

    trip_id: str
    total: Money
    expense_count: int
    daily_average: Money
    categories: list[CategorySummary]
    daily: list[DailyTotal]
