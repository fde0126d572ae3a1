"""TripSplit - Split shared trip expenses and settle up who owes what."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .ledger import ExpenseLedger
from .models import (
    Expense,
    ExpenseCreate,
    Member,
    SettlementSnapshot,
    Share,
    SplitType,
    Trip,
)
from .service import TripService
from .settlement import aggregate, detail
from .splits import resolve
from .store import SettlementStore

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "ExpenseLedger",
    "Expense",
    "ExpenseCreate",
    "Member",
    "SettlementSnapshot",
    "Share",
    "SplitType",
    "Trip",
    "TripService",
    "aggregate",
    "detail",
    "resolve",
    "SettlementStore",
]
