"""Split policy resolution: turn an expense total into a per-member share list."""

import logging
from collections.abc import Sequence
from fractions import Fraction

from . import money
from .exceptions import (
    InvalidPercentageError,
    InvalidSplitError,
    SplitMismatchError,
    UnknownMemberError,
)
from .models import (
    ExactShareInput,
    Member,
    PercentageShareInput,
    Share,
    SplitType,
)

logger = logging.getLogger(__name__)

HUNDRED = Fraction(100)


def resolve(
    split_type: SplitType,
    total: int,
    members: Sequence[Member],
    split_input: Sequence[ExactShareInput | PercentageShareInput] | None = None,
) -> list[Share]:
    """
    Resolve a split policy into a share list.

    Shares come back in member enumeration order regardless of the order of
    split_input, and always sum to exactly `total`.

    Args:
        split_type: EQUAL, EXACT or PERCENTAGE
        total: Expense total (>= 0)
        members: Trip members in enumeration order
        split_input: Per-member amounts (EXACT) or percentages (PERCENTAGE);
                     ignored for EQUAL

    Returns:
        List of shares

    Raises:
        InvalidSplitError: On bad member sets or malformed input
        SplitMismatchError: If EXACT amounts don't sum to total
        InvalidPercentageError: If PERCENTAGE weights are invalid
        UnknownMemberError: If split_input names a non-member
    """
    money.check_amount(total)
    if total < 0:
        raise InvalidSplitError(f"Expense total must not be negative, got {total}")
    if not members:
        raise InvalidSplitError("Cannot split an expense among zero members")

    member_ids = [member.id for member in members]
    if len(member_ids) != len(set(member_ids)):
        raise InvalidSplitError("Duplicate members in member list")

    split_type = SplitType(split_type)
    if split_type is SplitType.EQUAL:
        shares = resolve_equal(total, member_ids)
    elif split_type is SplitType.EXACT:
        shares = resolve_exact(total, member_ids, _require_input(split_input, ExactShareInput))
    else:
        shares = resolve_percentage(
            total, member_ids, _require_input(split_input, PercentageShareInput)
        )

    # Final verification
    share_total = money.total(share.amount for share in shares)
    if share_total != total:
        raise SplitMismatchError(expected=total, actual=share_total)

    return shares


def resolve_equal(total: int, member_ids: Sequence[str]) -> list[Share]:
    """
    Divide total equally; the last member absorbs the remainder.

    Example: 100 among [A, B, C] -> A:33, B:33, C:34
    """
    per_person, remainder = money.split_evenly(total, len(member_ids))
    last = len(member_ids) - 1
    return [
        Share(
            member_id=member_id,
            amount=money.add(per_person, remainder) if i == last else per_person,
        )
        for i, member_id in enumerate(member_ids)
    ]


def resolve_exact(
    total: int, member_ids: Sequence[str], shares_in: Sequence[ExactShareInput]
) -> list[Share]:
    """Validate caller-supplied amounts against the total and pass them through."""
    by_member = _index_by_member(shares_in, member_ids)

    negative = [mid for mid, item in by_member.items() if item.amount < 0]
    if negative:
        raise InvalidSplitError(
            f"Split amounts must not be negative (members: {', '.join(negative)})"
        )

    declared = money.total(item.amount for item in by_member.values())
    if declared != total:
        raise SplitMismatchError(expected=total, actual=declared)

    return [
        Share(member_id=mid, amount=by_member[mid].amount)
        for mid in member_ids
        if mid in by_member
    ]


def resolve_percentage(
    total: int, member_ids: Sequence[str], weights_in: Sequence[PercentageShareInput]
) -> list[Share]:
    """
    Derive amounts from percentage weights.

    Each share is floored; the residual goes to the largest-percentage holder,
    ties going to the last such holder in enumeration order.

    Example: 100 split 1/3 each among [A, B, C] -> floors 33/33/33,
    residual 1 to C -> A:33, B:33, C:34
    """
    if not weights_in:
        raise InvalidPercentageError("Percentage split needs at least one member")

    by_member = _index_by_member(weights_in, member_ids)

    negative = [mid for mid, item in by_member.items() if item.percentage < 0]
    if negative:
        raise InvalidPercentageError(
            f"Percentages must not be negative (members: {', '.join(negative)})",
            member_ids=negative,
        )

    weight_total = sum((item.percentage for item in by_member.values()), Fraction(0))
    if weight_total != HUNDRED:
        raise InvalidPercentageError(
            f"Percentages sum to {_format_percentage(weight_total)}, expected 100",
            total=weight_total,
            member_ids=list(by_member),
        )

    ordered = [mid for mid in member_ids if mid in by_member]
    amounts = []
    for mid in ordered:
        pct = by_member[mid].percentage
        amounts.append(
            money.scale_by_ratio(total, pct.numerator, 100 * pct.denominator)
        )

    residual = money.subtract(total, money.total(amounts))
    if residual != 0:
        # Largest percentage wins; later enumeration position breaks ties
        target = max(
            range(len(ordered)),
            key=lambda i: (by_member[ordered[i]].percentage, i),
        )
        amounts[target] = money.add(amounts[target], residual)
        logger.debug(
            f"Swept percentage rounding residual of {residual} to member {ordered[target]}"
        )

    return [Share(member_id=mid, amount=amount) for mid, amount in zip(ordered, amounts, strict=True)]


def _require_input(split_input, expected_type) -> list:
    """Check that split_input is present and holds only the expected item type."""
    if split_input is None:
        raise InvalidSplitError(
            f"Split input is required ({expected_type.__name__} per member)"
        )
    items = list(split_input)
    wrong = [item for item in items if not isinstance(item, expected_type)]
    if wrong:
        raise InvalidSplitError(
            f"Split input must contain only {expected_type.__name__} items"
        )
    return items


def _index_by_member(items, member_ids: Sequence[str]) -> dict:
    """Map member_id -> item, rejecting duplicates and non-members."""
    known = set(member_ids)
    by_member: dict = {}
    duplicates = []
    for item in items:
        if item.member_id in by_member:
            duplicates.append(item.member_id)
        by_member[item.member_id] = item

    if duplicates:
        raise InvalidSplitError(
            f"Members listed more than once: {', '.join(sorted(set(duplicates)))}"
        )

    unknown = [mid for mid in by_member if mid not in known]
    if unknown:
        raise UnknownMemberError(unknown)

    return by_member


def _format_percentage(value: Fraction) -> str:
    """Render a percentage for error messages."""
    if value.denominator == 1:
        return str(value.numerator)
    return f"{float(value):.4g}"
