"""
Scan repository interface.

Protocol for the durable scan history store. The pipeline only ever
creates records; deletion is driven by the host application.
"""

from typing import List, Optional, Protocol, runtime_checkable

from foodlens.domain.scan.persistence.models import NewScanRecord, ScanRecord
from foodlens.domain.shared.value_objects import ScanId


@runtime_checkable
class IScanRepository(Protocol):
    """
    Repository interface for scan records.

    Implementations must provide:
    - Identity assignment on create
    - User-scoped queries, newest first
    - Deletion by id

    Design Pattern: Repository Pattern + Protocol (Dependency Injection)

    Example:
        >>> record = await repository.create(new_record)
        >>> history = await repository.list_by_user(record.user_id)
        >>> assert history[0] == record
    """

    async def create(self, new_record: NewScanRecord) -> ScanRecord:
        """
        Store a new scan and assign its identity.

        Args:
            new_record: Scan outcome without identity

        Returns:
            Stored ScanRecord with scan_id

        Raises:
            PersistenceError: On storage failure
        """
        ...

    async def get(self, scan_id: ScanId) -> Optional[ScanRecord]:
        """
        Retrieve a scan by id.

        Returns:
            ScanRecord if found, None otherwise
        """
        ...

    async def list_by_user(self, user_id: str, limit: Optional[int] = None) -> List[ScanRecord]:
        """
        Scans of one user ordered by scanned_at DESC.

        Args:
            user_id: Owner
            limit: Max records, all when None
        """
        ...

    async def delete(self, scan_id: ScanId, user_id: str) -> None:
        """
        Delete a scan owned by user_id.

        Raises:
            ScanNotFoundError: If missing or owned by another user
        """
        ...
