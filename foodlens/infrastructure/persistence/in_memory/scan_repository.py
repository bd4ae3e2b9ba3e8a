"""In-memory scan repository implementation.

Provides an in-memory implementation of IScanRepository for tests and
embedding. Uses a dictionary for storage with no external dependencies.
"""

from typing import Dict, List, Optional

from foodlens.domain.scan.persistence.models import NewScanRecord, ScanRecord
from foodlens.domain.shared.errors import ScanNotFoundError
from foodlens.domain.shared.value_objects import ScanId


class InMemoryScanRepository:
    """
    In-memory implementation of IScanRepository.

    Records are frozen, so they are stored and returned as is.

    Thread safety: NOT thread-safe (single event loop only)
    Persistence: Data lost on process restart (in-memory only)

    Example:
        >>> repository = InMemoryScanRepository()
        >>> record = await repository.create(new_record)
        >>> assert await repository.get(record.scan_id) == record
    """

    def __init__(self) -> None:
        """Initialize repository with empty storage."""
        self._storage: Dict[str, ScanRecord] = {}

    async def create(self, new_record: NewScanRecord) -> ScanRecord:
        record = ScanRecord.from_new(ScanId.generate(), new_record)
        self._storage[record.scan_id.value] = record
        return record

    async def get(self, scan_id: ScanId) -> Optional[ScanRecord]:
        return self._storage.get(scan_id.value)

    async def list_by_user(self, user_id: str, limit: Optional[int] = None) -> List[ScanRecord]:
        """
        Get scans for a user.

        Returns:
            Records ordered by scanned_at descending (newest first)
        """
        user_scans = [scan for scan in self._storage.values() if scan.user_id == user_id]
        user_scans.sort(key=lambda s: s.scanned_at, reverse=True)
        return user_scans if limit is None else user_scans[:limit]

    async def delete(self, scan_id: ScanId, user_id: str) -> None:
        record = self._storage.get(scan_id.value)

        # Authorization check: scan must belong to user
        if record is None or record.user_id != user_id:
            raise ScanNotFoundError(f"Scan {scan_id} not found")

        del self._storage[scan_id.value]

    def count(self) -> int:
        """Number of stored scans (for tests)."""
        return len(self._storage)

    def clear(self) -> None:
        """Clear all stored scans (for tests)."""
        self._storage.clear()
