"""Commands accepted by ReviewSession.dispatch().

One frozen dataclass per command. Commands without payload are still
classes so that dispatch can route on type alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from repolens_core.models import FileItem, ProjectKind
    from repolens_store.models import ReviewRecord


@dataclass(frozen=True)
class UpdateRepositoryUrl:
    url: str


@dataclass(frozen=True)
class UpdateOwner:
    owner: str


@dataclass(frozen=True)
class UpdateRepo:
    repo: str


@dataclass(frozen=True)
class UpdateBranch:
    branch: str


@dataclass(frozen=True)
class UpdateProjectKind:
    kind: ProjectKind


@dataclass(frozen=True)
class LoadBranches:
    pass


@dataclass(frozen=True)
class LoadFiles:
    pass


@dataclass(frozen=True)
class ToggleFileSelection:
    path: str


@dataclass(frozen=True)
class LoadFileContent:
    file: FileItem


@dataclass(frozen=True)
class LoadCommentForFile:
    file_name: str


@dataclass(frozen=True)
class UpdateComment:
    text: str


@dataclass(frozen=True)
class AddComment:
    pass


@dataclass(frozen=True)
class SuggestComment:
    pass


@dataclass(frozen=True)
class GenerateAISummary:
    pass


@dataclass(frozen=True)
class SaveReviewToHistory:
    pass


@dataclass(frozen=True)
class LoadHistory:
    pass


@dataclass(frozen=True)
class DeleteHistoryItem:
    record: ReviewRecord


@dataclass(frozen=True)
class UndoDeleteHistoryItem:
    pass


@dataclass(frozen=True)
class EditReview:
    record: ReviewRecord


@dataclass(frozen=True)
class ConsumeReviewSavedEvent:
    pass


@dataclass(frozen=True)
class ResetState:
    pass


ReviewEvent = Union[
    UpdateRepositoryUrl,
    UpdateOwner,
    UpdateRepo,
    UpdateBranch,
    UpdateProjectKind,
    LoadBranches,
    LoadFiles,
    ToggleFileSelection,
    LoadFileContent,
    LoadCommentForFile,
    UpdateComment,
    AddComment,
    SuggestComment,
    GenerateAISummary,
    SaveReviewToHistory,
    LoadHistory,
    DeleteHistoryItem,
    UndoDeleteHistoryItem,
    EditReview,
    ConsumeReviewSavedEvent,
    ResetState,
]
