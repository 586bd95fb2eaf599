"""Review history data models.

Decoupled from repolens_core so the store layer can be used independently.
The session maps its in-memory comment mapping to CommentRecord objects
before calling store.save() or store.update().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CommentRecord:
    """The review comment attached to one file."""

    file_name: str
    comment: str


@dataclass
class ReviewRecord:
    """A completed review session persisted to the store.

    ``id`` is empty until the store assigns one on the first save. The
    store never reads it from the payload; it is the document key.
    """

    owner: str
    repo: str
    branch: str
    created_at: str = field(default_factory=utc_now_iso)  # ISO-8601 UTC timestamp
    comments: list[CommentRecord] = field(default_factory=list)
    ai_summary: str = ""
    project_kind: str = "KOTLIN"
    id: str = ""

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    def to_dict(self) -> dict:
        return {
            "owner": self.owner,
            "repo": self.repo,
            "branch": self.branch,
            "created_at": self.created_at,
            "comments": [{"fileName": c.file_name, "comment": c.comment} for c in self.comments],
            "ai_summary": self.ai_summary,
            "project_kind": self.project_kind,
        }

    @classmethod
    def from_dict(cls, record_id: str, d: dict) -> ReviewRecord:
        # Tolerant of partial documents. A missing created_at stays empty so the
        # record sorts as oldest, not newest.
        return cls(
            id=record_id,
            owner=d.get("owner", ""),
            repo=d.get("repo", ""),
            branch=d.get("branch", ""),
            created_at=d.get("created_at") or "",
            comments=[
                CommentRecord(file_name=c.get("fileName", ""), comment=c.get("comment", ""))
                for c in d.get("comments") or []
                if isinstance(c, dict)
            ],
            ai_summary=d.get("ai_summary", ""),
            project_kind=d.get("project_kind") or "KOTLIN",
        )
