"""SQLite database operations for TripSplit."""

import sqlite3
import threading
from datetime import date, datetime
from pathlib import Path

from .exceptions import TripNotFoundError
from .models import Expense, Member, SettlementSnapshot, Share, SplitType, Trip


class Database:
    """SQLite database manager.

    One connection is shared by every caller; a lock serializes access so the
    store can recompute different trips from different threads.
    """

    def __init__(self, db_path: Path | str):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.RLock()
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS trips (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                destination TEXT,
                start_date DATE,
                end_date DATE,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

        # position is the enumeration order used by split resolution
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS members (
                trip_id TEXT NOT NULL REFERENCES trips(id) ON DELETE CASCADE,
                id TEXT NOT NULL,
                name TEXT NOT NULL,
                position INTEGER NOT NULL,
                joined_at TIMESTAMP NOT NULL,
                PRIMARY KEY (trip_id, id)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id TEXT PRIMARY KEY,
                trip_id TEXT NOT NULL REFERENCES trips(id) ON DELETE CASCADE,
                description TEXT NOT NULL,
                amount INTEGER NOT NULL CHECK (amount >= 0),
                expense_date DATE NOT NULL,
                paid_by TEXT NOT NULL,
                category TEXT,
                split_type TEXT NOT NULL,
                sequence INTEGER NOT NULL,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expense_shares (
                expense_id TEXT NOT NULL REFERENCES expenses(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                member_id TEXT NOT NULL,
                amount INTEGER NOT NULL,
                PRIMARY KEY (expense_id, position)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS settlement_snapshots (
                trip_id TEXT PRIMARY KEY REFERENCES trips(id) ON DELETE CASCADE,
                computed_at TIMESTAMP NOT NULL,
                ledger_hash TEXT NOT NULL,
                payload TEXT NOT NULL
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    # ========================================================================
    # Trip operations
    # ========================================================================

    def save_trip(self, trip: Trip):
        """Insert a trip and its members."""
        with self._lock, self.conn:
            self.conn.execute(
                """
                INSERT INTO trips (id, name, destination, start_date, end_date, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    trip.id,
                    trip.name,
                    trip.destination,
                    trip.start_date.isoformat() if trip.start_date else None,
                    trip.end_date.isoformat() if trip.end_date else None,
                    trip.created_at.isoformat(),
                ),
            )
            for position, member in enumerate(trip.members):
                self._insert_member(trip.id, member, position)

    def get_trip(self, trip_id: str) -> Trip:
        """Get a trip with its members in enumeration order."""
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                SELECT id, name, destination, start_date, end_date, created_at
                FROM trips WHERE id = ?
                """,
                (trip_id,),
            )
            row = cursor.fetchone()
            if not row:
                raise TripNotFoundError(trip_id)

            return Trip(
                id=row["id"],
                name=row["name"],
                destination=row["destination"],
                start_date=_parse_date(row["start_date"]),
                end_date=_parse_date(row["end_date"]),
                created_at=datetime.fromisoformat(row["created_at"]),
                members=self.get_members(trip_id),
            )

    def list_trips(self) -> list[Trip]:
        """Get all trips, newest first."""
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute("SELECT id FROM trips ORDER BY created_at DESC, id")
            return [self.get_trip(row["id"]) for row in cursor.fetchall()]

    # ========================================================================
    # Member operations
    # ========================================================================

    def add_member(self, trip_id: str, member: Member):
        """Append a member to the end of a trip's enumeration order."""
        with self._lock, self.conn:
            cursor = self.conn.execute(
                "SELECT COALESCE(MAX(position), -1) + 1 AS next FROM members WHERE trip_id = ?",
                (trip_id,),
            )
            self._insert_member(trip_id, member, cursor.fetchone()["next"])

    def get_members(self, trip_id: str) -> list[Member]:
        """Get a trip's members in enumeration order."""
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                SELECT id, name, joined_at FROM members
                WHERE trip_id = ?
                ORDER BY position, id
                """,
                (trip_id,),
            )
            return [
                Member(
                    id=row["id"],
                    name=row["name"],
                    joined_at=datetime.fromisoformat(row["joined_at"]),
                )
                for row in cursor.fetchall()
            ]

    def _insert_member(self, trip_id: str, member: Member, position: int):
        self.conn.execute(
            """
            INSERT INTO members (trip_id, id, name, position, joined_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (trip_id, member.id, member.name, position, member.joined_at.isoformat()),
        )

    # ========================================================================
    # Expense operations
    # ========================================================================

    def save_expense(self, expense: Expense):
        """Insert or replace an expense together with its share list."""
        with self._lock, self.conn:
            self.conn.execute(
                """
                INSERT INTO expenses (
                    id, trip_id, description, amount, expense_date, paid_by,
                    category, split_type, sequence, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    description = excluded.description,
                    amount = excluded.amount,
                    expense_date = excluded.expense_date,
                    paid_by = excluded.paid_by,
                    category = excluded.category,
                    split_type = excluded.split_type,
                    sequence = excluded.sequence
                """,
                (
                    expense.id,
                    expense.trip_id,
                    expense.description,
                    expense.amount,
                    expense.date.isoformat(),
                    expense.paid_by,
                    expense.category,
                    str(expense.split_type),
                    expense.sequence,
                    expense.created_at.isoformat(),
                ),
            )
            self.conn.execute(
                "DELETE FROM expense_shares WHERE expense_id = ?", (expense.id,)
            )
            self.conn.executemany(
                """
                INSERT INTO expense_shares (expense_id, position, member_id, amount)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (expense.id, position, share.member_id, share.amount)
                    for position, share in enumerate(expense.shares)
                ],
            )

    def delete_expense(self, trip_id: str, expense_id: str) -> bool:
        """Delete an expense and its shares. Returns False if it didn't exist."""
        with self._lock, self.conn:
            cursor = self.conn.execute(
                "DELETE FROM expenses WHERE id = ? AND trip_id = ?",
                (expense_id, trip_id),
            )
            return cursor.rowcount > 0

    def get_expenses(self, trip_id: str) -> list[Expense]:
        """Get a trip's expenses ordered by date, then insertion sequence."""
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute(
                """
                SELECT id, trip_id, description, amount, expense_date, paid_by,
                       category, split_type, sequence, created_at
                FROM expenses
                WHERE trip_id = ?
                ORDER BY expense_date, sequence
                """,
                (trip_id,),
            )
            rows = cursor.fetchall()

            cursor.execute(
                """
                SELECT s.expense_id, s.member_id, s.amount
                FROM expense_shares s
                JOIN expenses e ON e.id = s.expense_id
                WHERE e.trip_id = ?
                ORDER BY s.expense_id, s.position
                """,
                (trip_id,),
            )
            shares: dict[str, list[Share]] = {}
            for share_row in cursor.fetchall():
                shares.setdefault(share_row["expense_id"], []).append(
                    Share(member_id=share_row["member_id"], amount=share_row["amount"])
                )

        return [
            Expense(
                id=row["id"],
                trip_id=row["trip_id"],
                description=row["description"],
                amount=row["amount"],
                date=date.fromisoformat(row["expense_date"]),
                paid_by=row["paid_by"],
                category=row["category"],
                split_type=SplitType(row["split_type"]),
                shares=shares.get(row["id"], []),
                sequence=row["sequence"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    # ========================================================================
    # Settlement snapshot operations
    # ========================================================================

    def save_snapshot(self, snapshot: SettlementSnapshot):
        """Insert or overwrite the settlement snapshot for a trip."""
        with self._lock, self.conn:
            self.conn.execute(
                """
                INSERT INTO settlement_snapshots (trip_id, computed_at, ledger_hash, payload)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(trip_id) DO UPDATE SET
                    computed_at = excluded.computed_at,
                    ledger_hash = excluded.ledger_hash,
                    payload = excluded.payload
                """,
                (
                    snapshot.trip_id,
                    snapshot.computed_at.isoformat(),
                    snapshot.ledger_hash,
                    snapshot.model_dump_json(),
                ),
            )

    def get_snapshot(self, trip_id: str) -> SettlementSnapshot | None:
        """Get the stored settlement snapshot for a trip."""
        with self._lock:
            cursor = self.conn.cursor()
            cursor.execute(
                "SELECT payload FROM settlement_snapshots WHERE trip_id = ?",
                (trip_id,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        return SettlementSnapshot.model_validate_json(row["payload"])


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None
