"""In-memory store: no configuration, nothing survives the process.

Useful for one-off terminal sessions (``store: memory``) and as the
store double in tests, since it honours the full BaseStore contract.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import TYPE_CHECKING

from repolens_store.base import DEFAULT_PARTITION, BaseStore, StoreError, filter_by_repo

if TYPE_CHECKING:
    from repolens_store.models import ReviewRecord


class MemoryStore(BaseStore):
    def __init__(self, partition: str = DEFAULT_PARTITION):
        super().__init__(partition)
        self._records: dict[str, ReviewRecord] = {}

    def save(self, record: ReviewRecord) -> str:
        record_id = uuid.uuid4().hex
        self._records[record_id] = replace(record, id=record_id)
        return record_id

    def update(self, record_id: str, record: ReviewRecord) -> None:
        if not record_id:
            raise StoreError("Cannot update a review without an id")
        self._records[record_id] = replace(record, id=record_id)

    def delete(self, record_id: str) -> None:
        if self._records.pop(record_id, None) is None:
            raise StoreError(f"No review with id {record_id!r}")

    def list_reviews(self, repo: str | None = None) -> list[ReviewRecord]:
        return filter_by_repo(list(self._records.values()), repo)
