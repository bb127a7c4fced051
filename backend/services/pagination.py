"""Cursor pagination and per-record error accounting for sync runs."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from integrations.exceptions import SyncBudgetExceeded
from integrations.pms_envelope import CollectionEnvelope

logger = logging.getLogger(__name__)


@dataclass
class SyncAccumulator:
    """Running totals for a sync run or step.

    ``errors`` keeps messages in the order they occurred.
    """

    processed: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def record_success(self) -> None:
        self.processed += 1

    def record_failure(self, label: str, item_id: Any, exc: Exception) -> None:
        self.failed += 1
        self.errors.append(f"{label} {item_id}: {exc}")

    def record_error(self, message: str) -> None:
        """Record a failure that is not tied to one record (a step or tenant)."""
        self.errors.append(message)

    def merge(self, other: "SyncAccumulator") -> None:
        self.processed += other.processed
        self.failed += other.failed
        self.errors.extend(other.errors)


def paginate(
    fetch_page: Callable[..., CollectionEnvelope],
    process_item: Callable[[dict[str, Any]], None],
    label: str,
    acc: SyncAccumulator,
    page_size: int = 100,
    deadline: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Walk every page of a collection, processing each record.

    ``fetch_page`` is called with ``per_page`` and, after the first page,
    ``end_cursor``. The walk stops when a page reports no next page, has no
    ``end_cursor``, or hands back a cursor that was already used.

    A record that raises is counted as failed and the walk continues.
    Errors from ``fetch_page`` itself propagate to the caller.

    Returns:
        Number of pages fetched.

    Raises:
        SyncBudgetExceeded: If ``clock()`` passes ``deadline`` between pages.
    """
    cursor: Optional[str] = None
    seen_cursors: set[str] = set()
    pages = 0

    while True:
        if deadline is not None and clock() > deadline:
            raise SyncBudgetExceeded(
                f"Sync time budget exhausted while fetching {label} (after {pages} pages)"
            )

        params: dict[str, Any] = {"per_page": page_size}
        if cursor:
            params["end_cursor"] = cursor
        envelope = fetch_page(**params)
        pages += 1

        for item in envelope.data:
            try:
                process_item(item)
            except Exception as e:
                logger.warning("%s %s failed: %s", label, item.get("id"), e)
                acc.record_failure(label, item.get("id"), e)
            else:
                acc.record_success()

        next_cursor = envelope.next_cursor
        if not next_cursor:
            break
        if next_cursor in seen_cursors:
            logger.warning("%s: cursor %s repeated, stopping pagination", label, next_cursor)
            break
        seen_cursors.add(next_cursor)
        cursor = next_cursor

    return pages
