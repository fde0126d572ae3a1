"""MCP server for TripSplit: exposes expense and settlement endpoints as tools."""

import logging
from dataclasses import dataclass
from datetime import date

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .exceptions import TripSplitError
from .models import (
    ExactShareInput,
    ExpenseCreate,
    PercentageShareInput,
    SettlementsResponse,
    SplitType,
)
from .money import format_amount
from .service import TripService

logger = logging.getLogger(__name__)

mcp_app = FastMCP("trip-split")

# ---------------------------------------------------------------------------
# Session state: one MCP server process holds one database connection
# ---------------------------------------------------------------------------


@dataclass
class SessionState:
    """Holds the lazily created service between MCP tool calls."""

    service: TripService | None = None
    db: Database | None = None
    locale: str = "vi-VN"


_state = SessionState()


def _ensure_service() -> TripService:
    """Lazily initialize the TripService (loads .env config)."""
    if _state.service is None:
        settings = load_settings()
        _state.db = Database(settings.database_path)
        _state.service = TripService(settings, _state.db)
        _state.locale = settings.locale
    return _state.service


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _format_amount(amount: int) -> str:
    return format_amount(amount, _state.locale)


def _format_settlements(response: SettlementsResponse) -> str:
    lines = [f"Settlements (computed {response.computed_at:%Y-%m-%d %H:%M:%S}):"]
    for entry in response.settlements:
        lines.append(
            f"  - {entry.member_name} [{entry.member_id}] "
            f"| owes {_format_amount(entry.total_owed)} "
            f"| paid {_format_amount(entry.total_paid)} "
            f"| net {_format_amount(entry.net_balance)}"
        )
    lines.append(f"Total: {_format_amount(response.total)}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@mcp_app.tool()
def list_trips() -> str:
    """List all trips with their members."""
    try:
        trips = _ensure_service().list_trips()
        if not trips:
            return "No trips found."

        lines = ["Trips:"]
        for trip in trips:
            members = ", ".join(f"{m.name} [{m.id}]" for m in trip.members)
            lines.append(f"  - {trip.name} [{trip.id}] | members: {members or 'none'}")
        return "\n".join(lines)
    except TripSplitError as e:
        return f"Error: {e}"


@mcp_app.tool()
def list_expenses(trip_id: str) -> str:
    """List a trip's expenses ordered by date.

    Args:
        trip_id: Trip ID from list_trips.
    """
    try:
        expenses = _ensure_service().list_expenses(trip_id)
        if not expenses:
            return "No expenses recorded for this trip."

        lines = [f"Expenses ({len(expenses)} total):"]
        for exp in expenses:
            shares = ", ".join(f"{s.member_id}: {_format_amount(s.amount)}" for s in exp.shares)
            lines.append(
                f"  - [{exp.id}] {exp.date} | {exp.description} | "
                f"{_format_amount(exp.amount)} | paid by {exp.paid_by} | "
                f"{exp.split_type} | {shares}"
            )
        return "\n".join(lines)
    except TripSplitError as e:
        return f"Error: {e}"


@mcp_app.tool()
def add_expense(
    trip_id: str,
    description: str,
    amount: int,
    paid_by: str,
    split_type: str = "EQUAL",
    shares: dict[str, str] | None = None,
    expense_date: str | None = None,
    category: str | None = None,
) -> str:
    """Record an expense and split it among trip members.

    Args:
        trip_id: Trip ID from list_trips.
        description: What was paid for.
        amount: Total amount in đồng (whole number).
        paid_by: Payer member id or name.
        split_type: EQUAL, EXACT or PERCENTAGE.
        shares: For EXACT, member -> amount; for PERCENTAGE, member -> percentage
            (e.g. "50", "33.5" or "100/3"). Members may be ids or names.
        expense_date: Date as YYYY-MM-DD (defaults to today).
        category: Optional category label.
    """
    try:
        service = _ensure_service()
        policy = SplitType(split_type.upper())
        payer = service.find_member(trip_id, paid_by)

        split_input: list[ExactShareInput | PercentageShareInput] | None = None
        if policy is not SplitType.EQUAL:
            split_input = []
            for ref, value in (shares or {}).items():
                member = service.find_member(trip_id, ref)
                if policy is SplitType.EXACT:
                    split_input.append(ExactShareInput(member_id=member.id, amount=int(value)))
                else:
                    split_input.append(PercentageShareInput(member_id=member.id, percentage=value))

        expense = service.create_expense(
            trip_id,
            ExpenseCreate(
                description=description,
                amount=amount,
                paid_by=payer.id,
                date=date.fromisoformat(expense_date) if expense_date else None,
                category=category,
                split_type=policy,
                split_input=split_input,
            ),
        )

        lines = [
            f"Recorded expense {expense.id}: {expense.description} "
            f"({_format_amount(expense.amount)})"
        ]
        for share in expense.shares:
            lines.append(f"  - {share.member_id}: {_format_amount(share.amount)}")
        return "\n".join(lines)
    except (TripSplitError, ValueError) as e:
        return f"Error: {e}"


@mcp_app.tool()
def get_settlements(trip_id: str) -> str:
    """Show what each member owes across the trip (cached snapshot).

    Args:
        trip_id: Trip ID from list_trips.
    """
    try:
        return _format_settlements(_ensure_service().get_settlements(trip_id))
    except TripSplitError as e:
        return f"Error: {e}"


@mcp_app.tool()
def get_settlement_detail(trip_id: str, member: str) -> str:
    """Show the expenses behind one member's settlement total.

    Args:
        trip_id: Trip ID from list_trips.
        member: Member id or name.
    """
    try:
        result = _ensure_service().get_settlement_detail(trip_id, member)
        lines = [
            f"{result.member_name} owes {_format_amount(result.total_amount)} "
            f"from {len(result.breakdown)} expenses:"
        ]
        for item in result.breakdown:
            lines.append(
                f"  - {item.expense_date} | {item.description} | "
                f"{item.split_type} | {_format_amount(item.share_amount)}"
            )
        return "\n".join(lines)
    except TripSplitError as e:
        return f"Error: {e}"


@mcp_app.tool()
def recalculate_settlements(trip_id: str) -> str:
    """Recompute the trip's settlements from its current expenses.

    Args:
        trip_id: Trip ID from list_trips.
    """
    try:
        return _format_settlements(_ensure_service().recalculate(trip_id))
    except TripSplitError as e:
        return f"Error: {e}"


def run_server():
    """Start the MCP server (stdio transport)."""
    mcp_app.run(transport="stdio")
