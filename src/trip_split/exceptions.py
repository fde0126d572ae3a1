"""Custom exceptions for TripSplit."""


class TripSplitError(Exception):
    """Base exception for all TripSplit errors."""

    pass


class ConfigurationError(TripSplitError):
    """Raised when configuration is invalid or missing."""

    pass


# ============================================================================
# Money errors
# ============================================================================


class MoneyOverflowError(TripSplitError, ArithmeticError):
    """Raised when an amount falls outside the representable range."""

    def __init__(self, value: int, message: str | None = None):
        self.value = value
        super().__init__(message or f"Amount {value} is outside the representable range")


class InvalidScaleError(TripSplitError, ArithmeticError):
    """Raised when a scale or division is requested with a non-positive divisor."""

    pass


# ============================================================================
# Split errors
# ============================================================================


class InvalidSplitError(TripSplitError):
    """Raised when a split input cannot be resolved into shares."""

    pass


class SplitMismatchError(InvalidSplitError):
    """Raised when EXACT shares don't sum to the expense total."""

    def __init__(self, expected: int, actual: int, message: str | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            message
            or f"Split shares sum to {actual} but the expense total is {expected}"
        )


class InvalidPercentageError(InvalidSplitError):
    """Raised when PERCENTAGE weights are empty, negative, or don't sum to 100."""

    def __init__(
        self,
        message: str,
        total: object | None = None,
        member_ids: list[str] | None = None,
    ):
        self.total = total
        self.member_ids = member_ids or []
        super().__init__(message)


class UnknownMemberError(InvalidSplitError):
    """Raised when a split or payer references someone outside the trip."""

    def __init__(self, member_ids: list[str], message: str | None = None):
        self.member_ids = member_ids
        super().__init__(
            message or f"Not members of this trip: {', '.join(member_ids)}"
        )


# ============================================================================
# Lookup errors
# ============================================================================


class NotFoundError(TripSplitError):
    """Base class for missing-record errors."""

    pass


class TripNotFoundError(NotFoundError):
    """Raised when a trip does not exist."""

    def __init__(self, trip_id: str):
        self.trip_id = trip_id
        super().__init__(f"Trip {trip_id} not found")


class MemberNotFoundError(NotFoundError):
    """Raised when a member does not exist in a trip."""

    def __init__(self, trip_id: str, member_id: str):
        self.trip_id = trip_id
        self.member_id = member_id
        super().__init__(f"Member {member_id} not found in trip {trip_id}")


class ExpenseNotFoundError(NotFoundError):
    """Raised when an expense does not exist in a trip."""

    def __init__(self, expense_id: str):
        self.expense_id = expense_id
        super().__init__(f"Expense {expense_id} not found")


# ============================================================================
# Settlement errors
# ============================================================================


class NotComputedError(TripSplitError):
    """Raised when a settlement is read before any recompute has run."""

    def __init__(self, trip_id: str):
        self.trip_id = trip_id
        super().__init__(f"Settlement for trip {trip_id} has not been computed yet")


class StaleSnapshotError(TripSplitError):
    """Raised when a member is missing from a snapshot computed before they joined."""

    def __init__(self, trip_id: str, member_id: str):
        self.trip_id = trip_id
        self.member_id = member_id
        super().__init__(
            f"Settlement for trip {trip_id} was computed before member {member_id} "
            f"joined. Run recalculate to include them."
        )


class SettlementInvariantError(TripSplitError):
    """Raised when aggregated member totals don't match the expense totals."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Settlement total mismatch:\n"
            f"  Expenses total: {expected}\n"
            f"  Members total:  {actual}\n"
            f"This indicates a corrupted share list."
        )
