"""
Bulk price index.

Holds a process-wide snapshot of normalized card name -> PriceRecord built
from Scryfall's bulk data.

INVARIANTS:
- A snapshot is immutable. Refreshes build a new one and swap it in.
- A snapshot is fully populated or absent. A failed or empty fetch never
  replaces the current snapshot.
- At most one refresh is in flight. Concurrent callers share it.
- Once a snapshot exists, readers never wait on a refresh.

STALENESS:
- Snapshots older than max_age_seconds trigger a refresh.
- If a refresh fails, the previous snapshot keeps being served.
- If there is no previous snapshot, DataUnavailableError is raised.
- After a failed refresh, ensure_fresh() starts no new one until
  retry_after_seconds have passed.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from cardbored.models.card import PriceRecord
from cardbored.models.failure import DataUnavailableError
from cardbored.parsers.card_names import normalize_name
from cardbored.parsers.scryfall import build_price_lookup, load_price_lookup, write_price_lookup
from cardbored.services.scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 24 * 60 * 60
DEFAULT_RETRY_AFTER_SECONDS = 15 * 60


@dataclass(frozen=True)
class BulkData:
    """Result of one bulk fetch: the lookup plus the dataset's own timestamp."""

    records: dict[str, PriceRecord]
    source_updated_at: str | None = None


@dataclass(frozen=True)
class BulkIndexSnapshot:
    """
    An immutable, fully built price lookup.

    Attributes:
        records: normalize_name(canonical_name) -> PriceRecord
        fetched_at_ms: When the data was fetched (epoch milliseconds)
        source_updated_at: Scryfall's updated_at for the dataset, if known
    """

    records: Mapping[str, PriceRecord]
    fetched_at_ms: int
    source_updated_at: str | None = None

    def get(self, key: str) -> PriceRecord | None:
        return self.records.get(key)

    def age_seconds(self, now: float) -> float:
        return max(0.0, now - self.fetched_at_ms / 1000)

    def is_stale(self, max_age_seconds: float, now: float) -> bool:
        return self.age_seconds(now) > max_age_seconds

    def __len__(self) -> int:
        return len(self.records)


class BulkDataSource(Protocol):
    """Anything that can produce a complete price lookup."""

    async def fetch(self) -> BulkData: ...


class ScryfallBulkSource:
    """Fetches bulk metadata, downloads the dataset, and builds the lookup."""

    def __init__(self, client: ScryfallClient, drop_non_positive: bool = False):
        self.client = client
        self.drop_non_positive = drop_non_positive

    async def fetch(self) -> BulkData:
        metadata = await self.client.fetch_bulk_metadata()
        logger.info(
            "Downloading bulk data (%s bytes, updated %s)",
            metadata.get("size", "unknown"),
            metadata.get("updated_at", "unknown"),
        )

        cards = await self.client.fetch_bulk_cards(metadata["download_uri"])
        logger.info("Downloaded %d card entries", len(cards))

        records = build_price_lookup(cards, drop_non_positive=self.drop_non_positive)
        return BulkData(records=records, source_updated_at=metadata.get("updated_at"))


def _format_timestamp(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=UTC).isoformat()


def _parse_timestamp(value: Any) -> int | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp() * 1000)


@dataclass
class SnapshotStore:
    """
    Persists snapshots as a lookup file.

    Uses the same file format as the build job, so a file produced by
    `python -m cardbored.jobs.build_price_lookup` can seed the index.
    """

    path: Path
    version: str = field(default="1")

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> BulkIndexSnapshot | None:
        """
        Load the persisted snapshot.

        Returns:
            The snapshot, or None if the file is missing, unreadable, or empty.
        """
        if not self.path.exists():
            return None

        try:
            records, metadata = load_price_lookup(self.path)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable price lookup file %s: %s", self.path, e)
            return None

        if not records:
            return None

        fetched_at_ms = _parse_timestamp(metadata.get("fetchedAt"))
        if fetched_at_ms is None:
            # Unknown age: treat as expired so a refresh is attempted
            fetched_at_ms = 0

        return BulkIndexSnapshot(
            records=records,
            fetched_at_ms=fetched_at_ms,
            source_updated_at=metadata.get("lastUpdated"),
        )

    def save(self, snapshot: BulkIndexSnapshot) -> None:
        metadata = {
            "lastUpdated": snapshot.source_updated_at,
            "totalCards": len(snapshot.records),
            "fetchedAt": _format_timestamp(snapshot.fetched_at_ms),
            "version": self.version,
        }
        write_price_lookup(self.path, dict(snapshot.records), metadata)


class PriceIndex:
    """
    Process-wide bulk price index with single-flight refresh.

    Create one per process (the FastAPI lifespan owns it) and share it
    across requests.
    """

    def __init__(
        self,
        source: BulkDataSource,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        retry_after_seconds: float = DEFAULT_RETRY_AFTER_SECONDS,
        store: SnapshotStore | None = None,
        background_refresh: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.max_age_seconds = max_age_seconds
        self.retry_after_seconds = retry_after_seconds
        self.store = store
        self.background_refresh = background_refresh
        self._clock = clock
        self._snapshot: BulkIndexSnapshot | None = None
        self._refresh_task: asyncio.Task[BulkIndexSnapshot] | None = None
        self._store_checked = False
        self._store_lock = asyncio.Lock()
        self._last_failure_at: float | None = None

    @property
    def snapshot(self) -> BulkIndexSnapshot | None:
        return self._snapshot

    @property
    def refresh_in_progress(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def get(self, key: str) -> PriceRecord | None:
        """O(1) lookup by normalized key. Never triggers a refresh."""
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return snapshot.get(key)

    def lookup(self, name: str) -> PriceRecord | None:
        """Look up a card by name as typed."""
        return self.get(normalize_name(name))

    def replace(self, snapshot: BulkIndexSnapshot) -> None:
        """Atomically swap in a fully built snapshot."""
        if not snapshot.records:
            raise ValueError("Refusing to install an empty snapshot")
        self._snapshot = snapshot

    def is_stale(self) -> bool:
        snapshot = self._snapshot
        return snapshot is None or snapshot.is_stale(self.max_age_seconds, self._clock())

    async def ensure_fresh(self) -> BulkIndexSnapshot:
        """
        Return a usable snapshot, refreshing if missing or stale.

        Raises:
            DataUnavailableError: If no snapshot exists and refresh fails,
                or failed less than retry_after_seconds ago
        """
        if self._snapshot is None and not self._store_checked:
            await self._load_from_store()

        snapshot = self._snapshot
        if snapshot is None:
            if self._in_retry_cooldown() and not self.refresh_in_progress:
                raise DataUnavailableError(detail="Bulk refresh failed recently")
            return await self.refresh()

        if snapshot.is_stale(self.max_age_seconds, self._clock()):
            if self._in_retry_cooldown():
                return snapshot
            if self.background_refresh:
                self._start_refresh()
                return snapshot
            return await self.refresh()

        return snapshot

    def _in_retry_cooldown(self) -> bool:
        last_failure = self._last_failure_at
        if last_failure is None:
            return False
        return self._clock() - last_failure < self.retry_after_seconds

    async def refresh(self) -> BulkIndexSnapshot:
        """
        Refresh now, joining the in-flight refresh if there is one.

        Returns:
            The new snapshot, or the previous one if the refresh failed.

        Raises:
            DataUnavailableError: If the refresh failed and there is no
                previous snapshot
        """
        # shield: a cancelled caller must not cancel the shared refresh
        return await asyncio.shield(self._start_refresh())

    async def wait_for_refresh(self) -> None:
        """Wait for an in-flight refresh to settle, if any."""
        task = self._refresh_task
        if task is None or task.done():
            return
        try:
            await asyncio.shield(task)
        except DataUnavailableError:
            pass

    def _start_refresh(self) -> "asyncio.Task[BulkIndexSnapshot]":
        # Check-and-create runs without an await, so it is atomic on the loop
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._run_refresh())
            self._refresh_task.add_done_callback(_consume_task_exception)
        return self._refresh_task

    async def _run_refresh(self) -> BulkIndexSnapshot:
        previous = self._snapshot
        logger.info("Refreshing bulk price index...")

        try:
            data = await self.source.fetch()
            if not data.records:
                raise ValueError("Bulk data produced no priced cards")
        except Exception as e:
            self._last_failure_at = self._clock()
            if previous is not None:
                logger.warning(
                    "Bulk price refresh failed, serving snapshot from %s: %s",
                    _format_timestamp(previous.fetched_at_ms),
                    e,
                )
                return previous
            logger.error("Bulk price refresh failed with no snapshot to fall back on: %s", e)
            raise DataUnavailableError(detail=f"Bulk refresh failed: {type(e).__name__}") from e

        snapshot = BulkIndexSnapshot(
            records=data.records,
            fetched_at_ms=int(self._clock() * 1000),
            source_updated_at=data.source_updated_at,
        )
        self.replace(snapshot)
        self._last_failure_at = None
        logger.info("Bulk price index refreshed with %d cards", len(snapshot))

        if self.store is not None:
            await self._save_to_store(snapshot)

        return snapshot

    async def _load_from_store(self) -> None:
        # Concurrent first callers wait for one load instead of downloading
        async with self._store_lock:
            if self._store_checked:
                return
            try:
                if self.store is not None:
                    snapshot = await asyncio.to_thread(self.store.load)
                    if snapshot is not None and self._snapshot is None:
                        self._snapshot = snapshot
                        logger.info(
                            "Loaded %d cards from price lookup file %s",
                            len(snapshot),
                            self.store.path,
                        )
            finally:
                self._store_checked = True

    async def _save_to_store(self, snapshot: BulkIndexSnapshot) -> None:
        assert self.store is not None
        try:
            await asyncio.to_thread(self.store.save, snapshot)
        except OSError as e:
            # The in-memory snapshot is already installed
            logger.warning("Could not persist price lookup to %s: %s", self.store.path, e)


def _consume_task_exception(task: "asyncio.Task[BulkIndexSnapshot]") -> None:
    """Mark background refresh failures as retrieved; they are already logged."""
    if not task.cancelled():
        task.exception()
