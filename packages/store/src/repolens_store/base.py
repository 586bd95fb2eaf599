"""Abstract store interface.

Any storage backend (Gist, SQLite, in-memory) implements this interface.
The review session depends on BaseStore, not on a concrete backend, so
backends are swappable without touching session or CLI code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repolens_store.models import ReviewRecord

DEFAULT_PARTITION = "repolens"


class StoreError(Exception):
    """A document store operation failed."""

    kind = "store"


class BaseStore(ABC):
    """Pluggable persistence layer for review history.

    Records are scoped to a partition (one application or team namespace).
    Every public operation raises StoreError on failure. Backends that need
    an identity call _ensure_session() at the start of each operation and
    establish it lazily there, so callers never manage authentication.

    list_reviews() makes no ordering guarantee; callers sort.
    """

    def __init__(self, partition: str = DEFAULT_PARTITION):
        self.partition = partition

    @abstractmethod
    def save(self, record: ReviewRecord) -> str:
        """Persist a new record and return the id the store assigned."""

    @abstractmethod
    def update(self, record_id: str, record: ReviewRecord) -> None:
        """Overwrite the record stored under ``record_id``."""

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Remove the record stored under ``record_id``."""

    @abstractmethod
    def list_reviews(self, repo: str | None = None) -> list[ReviewRecord]:
        """Return stored records, optionally only those for ``owner/repo``."""

    def get(self, record_id: str) -> ReviewRecord:
        """Return one record by id, or raise StoreError if it does not exist."""
        for record in self.list_reviews():
            if record.id == record_id:
                return record
        raise StoreError(f"No review with id {record_id!r}")

    def _ensure_session(self) -> None:
        """Establish whatever identity the backend needs. Default is a no-op."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional: subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """


def filter_by_repo(records: list[ReviewRecord], repo: str | None) -> list[ReviewRecord]:
    if repo is None:
        return records
    return [r for r in records if r.slug == repo]
