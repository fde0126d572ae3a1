"""Settlement aggregation: fold every expense's share list into per-member totals.

Aggregation is always a full recomputation over the expense list passed in.
Nothing here is incremental and nothing here touches storage.
"""

import hashlib
import json
import logging
from collections.abc import Sequence
from datetime import datetime

from . import money
from .exceptions import MemberNotFoundError, SettlementInvariantError, UnknownMemberError
from .ledger import ordered_expenses
from .models import (
    Expense,
    SettlementBreakdownEntry,
    SettlementEntry,
    SettlementSnapshot,
    Trip,
)

logger = logging.getLogger(__name__)


def aggregate(
    trip: Trip,
    expenses: Sequence[Expense],
    computed_at: datetime | None = None,
) -> SettlementSnapshot:
    """
    Aggregate every expense in a trip into a settlement snapshot.

    Steps:
    1. Start every trip member at zero (members without expenses still appear)
    2. Add each share to its member's total and record a breakdown entry
       for every nonzero share; credit the payer with the expense amount
    3. Cross-check the grand total against the sum of expense amounts
    4. Sort entries by total owed (descending), then enumeration order

    Args:
        trip: Trip with its members in enumeration order
        expenses: Expense list to aggregate (treated as read-only)
        computed_at: Timestamp for the snapshot (defaults to now)

    Returns:
        Settlement snapshot

    Raises:
        UnknownMemberError: If a share or payer is not a trip member
        SettlementInvariantError: If member totals don't add up to expense totals
    """
    position = {member.id: i for i, member in enumerate(trip.members)}
    owed = {member.id: 0 for member in trip.members}
    paid = {member.id: 0 for member in trip.members}
    breakdowns: dict[str, list[SettlementBreakdownEntry]] = {
        member.id: [] for member in trip.members
    }

    ordered = ordered_expenses(expenses)
    expense_total = 0

    for expense in ordered:
        unknown = [s.member_id for s in expense.shares if s.member_id not in owed]
        if expense.paid_by not in owed:
            unknown.append(expense.paid_by)
        if unknown:
            raise UnknownMemberError(
                unknown,
                f"Expense {expense.id} references non-members: {', '.join(unknown)}",
            )

        expense_total = money.add(expense_total, expense.amount)
        paid[expense.paid_by] = money.add(paid[expense.paid_by], expense.amount)

        for share in expense.shares:
            owed[share.member_id] = money.add(owed[share.member_id], share.amount)
            if share.amount != 0:
                breakdowns[share.member_id].append(
                    SettlementBreakdownEntry(
                        expense_id=expense.id,
                        description=expense.description,
                        share_amount=share.amount,
                        split_type=expense.split_type,
                        expense_date=expense.date,
                        category=expense.category,
                        paid_by=expense.paid_by,
                    )
                )

    grand_total = money.total(owed.values())
    if grand_total != expense_total:
        raise SettlementInvariantError(expected=expense_total, actual=grand_total)

    entries = [
        SettlementEntry(
            member_id=member.id,
            member_name=member.name,
            total_owed=owed[member.id],
            total_paid=paid[member.id],
            net_balance=money.subtract(paid[member.id], owed[member.id]),
        )
        for member in trip.members
    ]
    entries.sort(key=lambda e: (-e.total_owed, position[e.member_id]))

    snapshot = SettlementSnapshot(
        trip_id=trip.id,
        computed_at=computed_at or datetime.now(),
        entries=entries,
        breakdowns=breakdowns,
        total=grand_total,
        ledger_hash=compute_ledger_hash(trip, ordered),
    )

    logger.info(
        f"Aggregated {len(ordered)} expenses across {len(entries)} members "
        f"for trip {trip.id} (total: {grand_total})"
    )
    return snapshot


def detail(snapshot: SettlementSnapshot, member_id: str) -> list[SettlementBreakdownEntry]:
    """
    Get the breakdown entries behind one member's settlement total.

    The entries sum to that member's total_owed in the same snapshot.

    Raises:
        MemberNotFoundError: If the member has no entry in the snapshot
    """
    if snapshot.entry_for(member_id) is None:
        raise MemberNotFoundError(snapshot.trip_id, member_id)
    return list(snapshot.breakdowns.get(member_id, []))


def compute_ledger_hash(trip: Trip, expenses: Sequence[Expense]) -> str:
    """
    Compute a fingerprint of a trip's members and expenses for change detection.

    Covers the member list, expense ids, amounts, payers, dates, free-text
    fields and every share, so any edit that could change a snapshot changes
    the hash. Fields are JSON-encoded, so separators inside free text stay
    unambiguous.

    Returns:
        SHA256 hash as hex string
    """
    payload = {
        "members": [[m.id, m.name] for m in trip.members],
        "expenses": [
            {
                "id": expense.id,
                "amount": expense.amount,
                "paid_by": expense.paid_by,
                "date": expense.date.isoformat(),
                "sequence": expense.sequence,
                "description": expense.description,
                "category": expense.category,
                "split_type": str(expense.split_type),
                "shares": [[s.member_id, s.amount] for s in expense.shares],
            }
            for expense in sorted(expenses, key=lambda exp: exp.id)
        ],
    }

    combined = json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(combined.encode()).hexdigest()
