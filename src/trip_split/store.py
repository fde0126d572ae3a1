"""Settlement snapshot cache and the explicit recompute trigger."""

import logging
import threading
from collections import defaultdict

from .db import Database
from .exceptions import NotComputedError
from .ledger import ExpenseLedger
from .models import SettlementSnapshot
from .settlement import aggregate

logger = logging.getLogger(__name__)


class SettlementStore:
    """Persists the last computed settlement snapshot per trip.

    Snapshots are never invalidated here; callers decide when to recompute.
    """

    def __init__(self, database: Database):
        """Initialize the store."""
        self.db = database
        self._locks: defaultdict[str, threading.RLock] = defaultdict(threading.RLock)
        self._locks_guard = threading.Lock()

    def get_snapshot(self, trip_id: str) -> SettlementSnapshot:
        """
        Get the most recently computed snapshot for a trip.

        Raises:
            NotComputedError: If no recompute has run for this trip
        """
        snapshot = self.db.get_snapshot(trip_id)
        if snapshot is None:
            raise NotComputedError(trip_id)
        logger.debug(f"Snapshot cache hit for trip {trip_id}")
        return snapshot

    def recompute(self, trip_id: str) -> SettlementSnapshot:
        """
        Re-aggregate the trip's current ledger and overwrite the stored snapshot.

        Recomputes for the same trip are serialized. When the ledger is
        unchanged since the stored snapshot, its computed_at is carried over
        so repeated recomputes produce identical snapshots.

        Returns:
            The new snapshot
        """
        with self.trip_lock(trip_id):
            trip = self.db.get_trip(trip_id)
            ledger = ExpenseLedger(trip, self.db.get_expenses(trip_id))
            expenses = ledger.snapshot()

            snapshot = aggregate(trip, expenses)

            previous = self.db.get_snapshot(trip_id)
            if previous is not None and previous.ledger_hash == snapshot.ledger_hash:
                snapshot = snapshot.model_copy(update={"computed_at": previous.computed_at})
                logger.debug(f"Ledger unchanged for trip {trip_id}, keeping computed_at")

            self.db.save_snapshot(snapshot)

        logger.info(
            f"Recomputed settlement for trip {trip_id}: "
            f"{len(expenses)} expenses, total {snapshot.total} "
            f"(hash: {snapshot.ledger_hash[:8]}...)"
        )
        return snapshot

    def get_or_compute(self, trip_id: str) -> SettlementSnapshot:
        """Get the stored snapshot, running a first recompute if there is none."""
        try:
            return self.get_snapshot(trip_id)
        except NotComputedError:
            logger.info(f"No settlement for trip {trip_id} yet, computing first snapshot")
            return self.recompute(trip_id)

    def trip_lock(self, trip_id: str) -> threading.RLock:
        """Get the lock that serializes ledger writes and recomputes for a trip."""
        with self._locks_guard:
            return self._locks[trip_id]
