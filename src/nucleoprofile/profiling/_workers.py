"""Per-cell worker pool shared by the dataset methods."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from nucleoprofile.core.models import Cell

logger = logging.getLogger(__name__)

# Work applied to one cell; may return a warning message.
CellWork = Callable[[Cell], Optional[str]]


@dataclass(frozen=True)
class CellOutcome:
    """What happened to one cell.

    Attributes:
        cell: The cell processed.
        error: Failure message, or None on success.
        warning: Non-fatal message from a successful run.
    """

    cell: Cell
    error: str | None = None
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_per_cell(
    cells: Sequence[Cell],
    work: CellWork,
    *,
    action: str,
    max_workers: int | None = None,
    progress_callback: Callable[[int, int, str], None] | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[list[CellOutcome], bool]:
    """Apply ``work`` to every cell on a thread pool and wait for all of them.

    Each task touches only its own cell. A set ``cancel_event`` stops cells
    that have not started yet; cells already processed keep their results.

    Args:
        cells: Cells to process.
        work: Function applied to each cell.
        action: Verb used in log messages (e.g. "profiling").
        max_workers: Pool size. None lets the executor decide.
        progress_callback: Optional callback(current, total, cell_name).
        cancel_event: Optional event checked before each cell starts.

    Returns:
        Outcomes of the cells that ran, in input order, and whether the run
        was cancelled.
    """

    def guarded(cell: Cell) -> CellOutcome | None:
        if cancel_event is not None and cancel_event.is_set():
            return None
        try:
            return CellOutcome(cell, warning=work(cell))
        except Exception as exc:
            if isinstance(exc, (MemoryError, KeyboardInterrupt, SystemExit)):
                raise
            logger.warning("%s failed for cell %s: %s", action, cell.name, exc, exc_info=True)
            return CellOutcome(cell, error=str(exc))

    outcomes: list[CellOutcome] = []
    total = len(cells)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(guarded, cell) for cell in cells]
        for i, (cell, future) in enumerate(zip(cells, futures)):
            outcome = future.result()
            if outcome is not None:
                outcomes.append(outcome)
            if progress_callback:
                progress_callback(i + 1, total, cell.name)

    cancelled = cancel_event is not None and cancel_event.is_set()
    if cancelled:
        logger.info("%s cancelled after %d of %d cells", action, len(outcomes), total)
    return outcomes, cancelled
