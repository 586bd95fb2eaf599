"""Tests for repolens-store implementations."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from repolens_store.base import StoreError
from repolens_store.gist import GistStore, gist_filename
from repolens_store.memory import MemoryStore
from repolens_store.models import CommentRecord, ReviewRecord
from repolens_store.sqlite import SQLiteStore


def _make_record(owner="acme", repo="widgets", branch="main", created_at="2026-01-01T10:00:00+00:00"):
    return ReviewRecord(
        owner=owner,
        repo=repo,
        branch=branch,
        created_at=created_at,
        comments=[CommentRecord(file_name="app/src/Main.kt", comment="Missing null check")],
        ai_summary="Mostly fine.",
        project_kind="KOTLIN",
    )


# ---------------------------------------------------------------------------
# ReviewRecord
# ---------------------------------------------------------------------------


class TestReviewRecord:
    def test_to_dict_uses_document_field_names(self):
        d = _make_record().to_dict()
        assert d["comments"] == [{"fileName": "app/src/Main.kt", "comment": "Missing null check"}]
        assert d["ai_summary"] == "Mostly fine."
        assert "id" not in d

    def test_from_dict_tolerates_missing_fields(self):
        record = ReviewRecord.from_dict("abc", {"owner": "acme"})
        assert record.id == "abc"
        assert record.repo == ""
        assert record.comments == []
        assert record.project_kind == "KOTLIN"
        assert record.created_at == ""

    def test_from_dict_skips_malformed_comments(self):
        record = ReviewRecord.from_dict("abc", {"comments": ["junk", {"fileName": "a.kt", "comment": "ok"}]})
        assert record.comments == [CommentRecord(file_name="a.kt", comment="ok")]

    def test_slug(self):
        assert _make_record().slug == "acme/widgets"


# ---------------------------------------------------------------------------
# MemoryStore
# ---------------------------------------------------------------------------


class TestMemoryStore:
    def test_save_assigns_id(self):
        store = MemoryStore()
        record_id = store.save(_make_record())
        assert record_id
        assert store.list_reviews()[0].id == record_id

    def test_update_replaces_record(self):
        store = MemoryStore()
        record_id = store.save(_make_record(branch="main"))
        store.update(record_id, _make_record(branch="dev"))

        results = store.list_reviews()
        assert len(results) == 1
        assert results[0].branch == "dev"

    def test_delete_missing_raises(self):
        with pytest.raises(StoreError):
            MemoryStore().delete("nope")

    def test_update_without_id_raises(self):
        with pytest.raises(StoreError):
            MemoryStore().update("", _make_record())

    def test_list_filters_by_repo(self):
        store = MemoryStore()
        store.save(_make_record(repo="a"))
        store.save(_make_record(repo="b"))
        assert [r.repo for r in store.list_reviews("acme/a")] == ["a"]

    def test_get_returns_record_or_raises(self):
        store = MemoryStore()
        record_id = store.save(_make_record())
        assert store.get(record_id).id == record_id
        with pytest.raises(StoreError):
            store.get("missing")


# ---------------------------------------------------------------------------
# SQLiteStore
# ---------------------------------------------------------------------------


class TestSQLiteStore:
    def test_save_and_list(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        record_id = store.save(_make_record())

        results = store.list_reviews()
        assert len(results) == 1
        assert results[0].id == record_id
        assert results[0].owner == "acme"
        assert results[0].repo == "widgets"
        store.close()

    def test_comments_survive_storage(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.save(_make_record())

        comment = store.list_reviews()[0].comments[0]
        assert comment.file_name == "app/src/Main.kt"
        assert comment.comment == "Missing null check"
        store.close()

    def test_update_overwrites_existing(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        record_id = store.save(_make_record())
        store.update(record_id, _make_record(branch="dev"))

        results = store.list_reviews()
        assert len(results) == 1
        assert results[0].branch == "dev"
        store.close()

    def test_update_unknown_id_creates_record(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.update("fixed-id", _make_record())
        assert [r.id for r in store.list_reviews()] == ["fixed-id"]
        store.close()

    def test_delete(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        record_id = store.save(_make_record())
        store.delete(record_id)
        assert store.list_reviews() == []
        store.close()

    def test_delete_missing_raises(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        with pytest.raises(StoreError):
            store.delete("missing")
        store.close()

    def test_partitions_are_isolated(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        store_a = SQLiteStore(db_path=db_path, partition="team-a")
        store_b = SQLiteStore(db_path=db_path, partition="team-b")
        store_a.save(_make_record())

        assert len(store_a.list_reviews()) == 1
        assert store_b.list_reviews() == []
        store_a.close()
        store_b.close()

    def test_list_by_repo(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.save(_make_record(repo="widgets"))
        store.save(_make_record(repo="gadgets"))

        results = store.list_reviews("acme/gadgets")
        assert len(results) == 1
        assert results[0].repo == "gadgets"
        store.close()

    def test_persists_across_connections(self, tmp_path):
        """Data written by one SQLiteStore instance must be readable by another."""
        db_path = str(tmp_path / "test.db")
        store_a = SQLiteStore(db_path=db_path)
        store_a.save(_make_record())
        store_a.close()

        store_b = SQLiteStore(db_path=db_path)
        assert len(store_b.list_reviews()) == 1
        store_b.close()

    def test_unopenable_path_raises_store_error(self, tmp_path):
        with pytest.raises(StoreError):
            SQLiteStore(db_path=str(tmp_path / "missing-dir" / "test.db"))


# ---------------------------------------------------------------------------
# GistStore
# ---------------------------------------------------------------------------


_FILENAME = gist_filename("repolens")


def _make_gist_mock(existing_docs: dict | None = None):
    """Return a mock Gist object with the partition file pre-populated."""
    gist = MagicMock()
    if existing_docs is None:
        gist.files = {}
    else:
        file_mock = MagicMock()
        file_mock.content = json.dumps(existing_docs)
        gist.files = {_FILENAME: file_mock}
    return gist


def _make_gist_store(gist=None):
    """Return a GistStore whose GitHub session is already open on a mock."""
    store = GistStore(gist_id="abc123", token="tok")
    store._gh = MagicMock()
    store._gh.get_gist.return_value = gist if gist is not None else _make_gist_mock({})
    return store


def _written_docs(gist) -> dict:
    return json.loads(gist.edit.call_args[1]["files"][_FILENAME]["content"])


class TestGistStore:
    def test_save_writes_document_under_new_id(self):
        gist = _make_gist_mock({})
        store = _make_gist_store(gist)

        record_id = store.save(_make_record())

        docs = _written_docs(gist)
        assert list(docs) == [record_id]
        assert docs[record_id]["owner"] == "acme"

    def test_save_keeps_existing_documents(self):
        gist = _make_gist_mock({"old": _make_record().to_dict()})
        store = _make_gist_store(gist)

        store.save(_make_record())

        assert len(_written_docs(gist)) == 2

    def test_update_overwrites_document(self):
        gist = _make_gist_mock({"r1": _make_record(branch="main").to_dict()})
        store = _make_gist_store(gist)

        store.update("r1", _make_record(branch="dev"))

        assert _written_docs(gist)["r1"]["branch"] == "dev"

    def test_delete_removes_document(self):
        gist = _make_gist_mock({"r1": _make_record().to_dict(), "r2": _make_record().to_dict()})
        store = _make_gist_store(gist)

        store.delete("r1")

        assert list(_written_docs(gist)) == ["r2"]

    def test_delete_missing_raises_without_writing(self):
        gist = _make_gist_mock({})
        store = _make_gist_store(gist)

        with pytest.raises(StoreError):
            store.delete("missing")
        gist.edit.assert_not_called()

    def test_list_reviews_reads_ids_from_keys(self):
        store = _make_gist_store(_make_gist_mock({"r1": _make_record().to_dict()}))

        results = store.list_reviews()
        assert len(results) == 1
        assert results[0].id == "r1"

    def test_list_reviews_handles_missing_file(self):
        store = _make_gist_store(_make_gist_mock(None))
        assert store.list_reviews() == []

    def test_list_reviews_raises_store_error_on_exception(self):
        store = _make_gist_store()
        store._gh.get_gist.side_effect = Exception("network error")

        with pytest.raises(StoreError):
            store.list_reviews()

    def test_save_raises_store_error_on_exception(self):
        store = _make_gist_store()
        store._gh.get_gist.side_effect = Exception("401 Unauthorized")

        with pytest.raises(StoreError, match="401"):
            store.save(_make_record())

    def test_invalid_json_raises_store_error(self):
        gist = MagicMock()
        file_mock = MagicMock()
        file_mock.content = "not json"
        gist.files = {_FILENAME: file_mock}
        store = _make_gist_store(gist)

        with pytest.raises(StoreError):
            store.list_reviews()

    def test_session_opened_lazily_from_token_provider(self, mocker):
        github_cls = mocker.patch("repolens_store.gist.Github")
        github_cls.return_value.get_gist.return_value = _make_gist_mock({})
        provider = MagicMock(return_value="provided-token")
        store = GistStore(gist_id="abc123", token_provider=provider)

        github_cls.assert_not_called()
        store.list_reviews()
        store.list_reviews()

        github_cls.assert_called_once_with("provided-token")
        provider.assert_called_once()

    def test_missing_token_raises_store_error(self):
        store = GistStore(gist_id="abc123", token_provider=lambda: None)
        with pytest.raises(StoreError, match="token"):
            store.list_reviews()

    def test_partition_selects_file(self):
        assert gist_filename("team-a") == "repolens_team-a.json"
