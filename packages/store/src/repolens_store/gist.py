"""GistStore: shared review history kept in a GitHub Gist.

Anyone who can read the Gist can read the history, with the GitHub
identity they already have. Each partition is one JSON file holding an
object keyed by record id, so save/update/delete are plain dict edits.

Data format: one file per partition, named `repolens_<partition>.json`,
containing `{"<id>": {<ReviewRecord.to_dict()>}, ...}`.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable

from github import Github

from repolens_store.base import DEFAULT_PARTITION, BaseStore, StoreError, filter_by_repo
from repolens_store.models import ReviewRecord

logger = logging.getLogger(__name__)


def gist_filename(partition: str) -> str:
    return f"repolens_{partition}.json"


class GistStore(BaseStore):
    """Stores review history in a GitHub Gist as a JSON document map.

    The GitHub session is opened lazily: the first operation resolves a
    token (the explicit one, else ``token_provider()``, typically the
    GITHUB_TOKEN / `gh auth token` resolver) and builds the client. Callers
    never authenticate explicitly.

    The Gist ID is stored in .repolens.yml under `gist_id`.
    """

    def __init__(
        self,
        gist_id: str,
        token: str | None = None,
        token_provider: Callable[[], str | None] | None = None,
        partition: str = DEFAULT_PARTITION,
    ):
        super().__init__(partition)
        self._gist_id = gist_id
        self._token = token
        self._token_provider = token_provider
        self._gh = None

    @property
    def _filename(self) -> str:
        return gist_filename(self.partition)

    def _ensure_session(self) -> None:
        if self._gh is not None:
            return
        token = self._token or (self._token_provider() if self._token_provider else None)
        if not token:
            raise StoreError("GistStore needs a GitHub token with 'gist' scope. Set GITHUB_TOKEN or run `gh auth login`.")
        self._gh = Github(token)
        logger.debug("GistStore session opened for gist %s", self._gist_id)

    def save(self, record: ReviewRecord) -> str:
        record_id = uuid.uuid4().hex
        self._put(record_id, record)
        return record_id

    def update(self, record_id: str, record: ReviewRecord) -> None:
        if not record_id:
            raise StoreError("Cannot update a review without an id")
        self._put(record_id, record)

    def delete(self, record_id: str) -> None:
        def _remove(docs: dict) -> None:
            if docs.pop(record_id, None) is None:
                raise StoreError(f"No review with id {record_id!r}")

        self._mutate(_remove)

    def list_reviews(self, repo: str | None = None) -> list[ReviewRecord]:
        self._ensure_session()
        try:
            docs = self._read_documents(self._get_gist())
        except StoreError:
            raise
        except Exception as e:
            logger.warning("GistStore.list_reviews() failed (%s): %s", type(e).__name__, e)
            raise StoreError(f"Could not read review history from Gist: {e}") from e

        records = [ReviewRecord.from_dict(record_id, d) for record_id, d in docs.items() if isinstance(d, dict)]
        return filter_by_repo(records, repo)

    def _put(self, record_id: str, record: ReviewRecord) -> None:
        def _set(docs: dict) -> None:
            docs[record_id] = record.to_dict()

        self._mutate(_set)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def _mutate(self, change: Callable[[dict], None]) -> None:
        """Read the partition file, apply ``change`` to it and write it back."""
        self._ensure_session()
        try:
            gist = self._get_gist()
            docs = self._read_documents(gist)
            change(docs)
            gist.edit(files={self._filename: {"content": json.dumps(docs, indent=2)}})
        except StoreError:
            raise
        except Exception as e:
            logger.warning("GistStore write failed (%s): %s", type(e).__name__, e)
            raise StoreError(f"Could not write review history to Gist ({type(e).__name__}: {e})") from e

    def _read_documents(self, gist) -> dict:
        """Read the current JSON object from the Gist file, or return {}."""
        file_obj = gist.files.get(self._filename)
        if file_obj is None:
            return {}
        try:
            docs = json.loads(file_obj.content) or {}
        except (json.JSONDecodeError, TypeError) as e:
            raise StoreError(f"Gist file {self._filename} is not valid JSON: {e}") from e
        if not isinstance(docs, dict):
            raise StoreError(f"Gist file {self._filename} does not hold a JSON object")
        return docs
