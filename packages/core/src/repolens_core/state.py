"""The immutable snapshot ReviewSession publishes after every transition."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional

from repolens_core.models import Comment, FileItem, ProjectKind

if TYPE_CHECKING:
    from repolens_store.models import ReviewRecord


@dataclass(frozen=True)
class SessionState:
    """Everything a presentation layer needs to render one review session.

    Never mutated: the session builds a new snapshot with
    dataclasses.replace() for every change. ``comments`` maps file name to
    comment text in insertion order as a read-only mapping; it is replaced,
    never edited in place, so at most one comment per file holds by
    construction.
    """

    # Repository coordinates
    repository_url: str = ""
    owner: str = ""
    repo: str = ""
    branch: str = "main"
    project_kind: ProjectKind = ProjectKind.KOTLIN
    branches: tuple[str, ...] = ()

    # Files and the currently open one
    files: tuple[FileItem, ...] = ()
    current_file_name: str = ""
    current_file_content: str = ""

    # Review content
    current_comment: str = ""
    comments: Mapping[str, str] = field(default_factory=dict)
    ai_summary: str = ""

    # History
    history: tuple[ReviewRecord, ...] = ()
    editing_review_id: Optional[str] = None
    last_deleted_item: Optional[ReviewRecord] = None
    review_saved: bool = False

    # Per-concern progress flags
    is_loading_branches: bool = False
    is_loading_files: bool = False
    is_loading_content: bool = False
    is_suggesting: bool = False
    is_summarizing: bool = False
    is_saving: bool = False
    is_loading_history: bool = False
    is_deleting: bool = False

    # Last failure: message for humans, kind (e.g. "config") for branching
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def __post_init__(self):
        # Read-only view over a private copy.
        if not isinstance(self.comments, MappingProxyType):
            object.__setattr__(self, "comments", MappingProxyType(dict(self.comments)))

    @property
    def selected_files(self) -> list[FileItem]:
        return [f for f in self.files if f.selected]

    @property
    def comment_list(self) -> list[Comment]:
        return [Comment(file_name=name, text=text) for name, text in self.comments.items()]

    @property
    def is_busy(self) -> bool:
        return any(
            (
                self.is_loading_branches,
                self.is_loading_files,
                self.is_loading_content,
                self.is_suggesting,
                self.is_summarizing,
                self.is_saving,
                self.is_loading_history,
                self.is_deleting,
            )
        )

    @property
    def feature_unavailable(self) -> bool:
        return self.error_kind == "config"
