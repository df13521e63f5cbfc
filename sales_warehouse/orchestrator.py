"""
Silver batch orchestration.

Loads the six silver tables in a fixed order, each inside its own
transaction (or all of them inside one when atomic=True). The first failing
table stops the batch; the failure is reported in the returned BatchResult
rather than raised.
"""
import sqlite3
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence

from sales_warehouse.exceptions import BatchLoadError
from sales_warehouse.silver import SILVER_LOADS, TableLoad, load_table

logger = logging.getLogger("sales_warehouse.orchestrator")


class BatchStatus(Enum):
    SUCCEEDED = "succeeded"
    PARTIAL = "partial"
    FAILED = "failed"


class TableStatus(Enum):
    LOADED = "loaded"
    FAILED = "failed"
    SKIPPED = "skipped"
    ROLLED_BACK = "rolled_back"


@dataclass
class LoadEvent:
    """Progress notification emitted after each table load attempt."""
    table: str
    status: TableStatus
    rows: int
    duration_seconds: float
    position: int
    total: int


@dataclass
class LoadFailure:
    table: str
    message: str
    code: Optional[int]
    state: str

    @classmethod
    def from_exception(cls, table: str, exc: BaseException) -> "LoadFailure":
        # pandas wraps driver errors in its own DatabaseError
        source = exc.__cause__ if isinstance(exc.__cause__, sqlite3.Error) else exc
        return cls(
            table=table,
            message=str(source),
            code=getattr(source, "sqlite_errorcode", None),
            state=getattr(source, "sqlite_errorname", None) or type(source).__name__,
        )


@dataclass
class TableLoadResult:
    table: str
    status: TableStatus
    rows: int = 0
    duration_seconds: float = 0.0


@dataclass
class BatchResult:
    started_at: datetime
    finished_at: Optional[datetime] = None
    atomic: bool = False
    tables: List[TableLoadResult] = field(default_factory=list)
    failure: Optional[LoadFailure] = None

    @property
    def status(self) -> BatchStatus:
        if self.failure is None:
            return BatchStatus.SUCCEEDED
        if any(result.status is TableStatus.LOADED for result in self.tables):
            return BatchStatus.PARTIAL
        return BatchStatus.FAILED

    @property
    def succeeded(self) -> bool:
        return self.status is BatchStatus.SUCCEEDED

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def loaded_tables(self) -> List[str]:
        return [result.table for result in self.tables if result.status is TableStatus.LOADED]

    def raise_for_status(self) -> "BatchResult":
        """Raise BatchLoadError unless every table loaded."""
        if not self.succeeded:
            raise BatchLoadError(self)
        return self


Listener = Callable[[LoadEvent], None]


class LoadOrchestrator:
    """Runs the bronze-to-silver batch against one SQLite connection."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        loads: Sequence[TableLoad] = SILVER_LOADS,
        atomic: bool = False,
        listeners: Iterable[Listener] = (),
    ):
        """
        Args:
            conn: Open SQLite connection holding bronze and silver tables
            loads: Table loads, in execution order
            atomic: Commit all tables together or none of them
            listeners: Callables notified with a LoadEvent after each table
        """
        self.conn = conn
        self.loads = list(loads)
        self.atomic = atomic
        self.listeners = list(listeners)

    def _emit(self, event: LoadEvent) -> None:
        logger.info(
            f"[{event.position}/{event.total}] {event.table}: {event.status.value}, "
            f"{event.rows} rows in {event.duration_seconds:.3f} seconds"
        )
        for listener in self.listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Progress listener {listener!r} failed: {e}")

    def _begin(self) -> None:
        if self.conn.in_transaction:
            self.conn.commit()
        self.conn.execute("BEGIN")

    def run(self) -> BatchResult:
        """
        Load every silver table in order, stopping at the first failure.

        Returns:
            BatchResult describing every table and the failure, if any
        """
        result = BatchResult(started_at=datetime.now(), atomic=self.atomic)
        total = len(self.loads)
        logger.info(f"Starting silver batch: {total} tables, atomic={self.atomic}")

        if self.atomic:
            self._begin()

        for position, load in enumerate(self.loads, start=1):
            if result.failure is not None:
                result.tables.append(TableLoadResult(load.target, TableStatus.SKIPPED))
                continue

            start_time = time.perf_counter()
            try:
                if not self.atomic:
                    self._begin()
                rows = load_table(self.conn, load)
                if not self.atomic:
                    self.conn.commit()
                status = TableStatus.LOADED
            except Exception as e:
                if self.conn.in_transaction:
                    self.conn.rollback()
                rows = 0
                status = TableStatus.FAILED
                result.failure = LoadFailure.from_exception(load.target, e)
                logger.error(
                    f"Error occurred during loading of {load.target}: {result.failure.message} "
                    f"(code: {result.failure.code}, state: {result.failure.state})"
                )

            duration = time.perf_counter() - start_time
            result.tables.append(TableLoadResult(load.target, status, rows, duration))
            self._emit(LoadEvent(load.target, status, rows, duration, position, total))

        if self.atomic:
            if result.failure is None:
                self.conn.commit()
            else:
                for table_result in result.tables:
                    if table_result.status is TableStatus.LOADED:
                        table_result.status = TableStatus.ROLLED_BACK

        result.finished_at = datetime.now()
        logger.info(
            f"Silver batch {result.status.value} in {result.duration_seconds:.3f} seconds "
            f"({len(result.loaded_tables)}/{total} tables loaded)"
        )
        return result


def load_silver(
    conn: sqlite3.Connection,
    atomic: bool = False,
    listeners: Iterable[Listener] = (),
) -> BatchResult:
    """Run the full silver batch with the standard table loads."""
    return LoadOrchestrator(conn, atomic=atomic, listeners=listeners).run()
