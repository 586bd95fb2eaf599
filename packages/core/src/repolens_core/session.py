"""ReviewSession: the single owner of an in-progress code review.

The session is a command-in / snapshot-out state container:

    await session.dispatch(LoadFiles())
    session.state.files            # latest immutable SessionState
    session.subscribe(render)      # called with every new snapshot

Remote calls (GitHub, AI, store) are blocking SDK calls, so each runs in a
worker thread via asyncio.to_thread. Commands are not serialised against
each other: two loads may be in flight at once. Every snapshot replacement
happens synchronously on the event loop, so readers never observe a
half-applied transition.

Failures of the leaf clients never escape a command. They are recorded on
the snapshot as ``error`` (message) and ``error_kind`` (RepoLensError.kind),
and the user retries by issuing the command again.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from repolens_core import events
from repolens_core.errors import SESSION_ERRORS, ValidationError
from repolens_core.gh.repository import parse_github_url
from repolens_core.models import ProjectKind
from repolens_core.state import SessionState
from repolens_store.models import CommentRecord, ReviewRecord, utc_now_iso

if TYPE_CHECKING:
    from repolens_core.gh.repository import GitHubClient
    from repolens_core.providers.base import BaseAssistant
    from repolens_store.base import BaseStore

logger = logging.getLogger(__name__)

Listener = Callable[[SessionState], None]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _recency_key(record: ReviewRecord) -> datetime:
    try:
        created = datetime.fromisoformat(record.created_at)
    except (TypeError, ValueError):
        return _EPOCH
    return created if created.tzinfo else created.replace(tzinfo=timezone.utc)


def sort_by_recency(records: list[ReviewRecord]) -> list[ReviewRecord]:
    """Newest first. Stores make no ordering guarantee, so the session sorts."""
    return sorted(records, key=_recency_key, reverse=True)


class ReviewSession:
    """Drives one review workflow against a GitHub client, an assistant and a store.

    One session belongs to one presentation context for its whole life;
    nothing is shared between sessions.
    """

    def __init__(
        self,
        github: GitHubClient,
        assistant: BaseAssistant,
        store: BaseStore,
        initial_state: SessionState | None = None,
    ):
        self._github = github
        self._assistant = assistant
        self._store = store
        self._state = initial_state or SessionState()
        self._listeners: list[Listener] = []
        # Bumped by every file-content load; a completion whose number is no
        # longer current belongs to a file the user already left.
        self._content_generation = 0
        self._handlers = {
            events.UpdateRepositoryUrl: self._update_repository_url,
            events.UpdateOwner: lambda e: self._update(owner=e.owner),
            events.UpdateRepo: lambda e: self._update(repo=e.repo),
            events.UpdateBranch: lambda e: self._update(branch=e.branch),
            events.UpdateProjectKind: lambda e: self._update(project_kind=e.kind),
            events.LoadBranches: self._load_branches,
            events.LoadFiles: self._load_files,
            events.ToggleFileSelection: self._toggle_file_selection,
            events.LoadFileContent: self._load_file_content,
            events.LoadCommentForFile: self._load_comment_for_file,
            events.UpdateComment: lambda e: self._update(current_comment=e.text),
            events.AddComment: self._add_or_update_comment,
            events.SuggestComment: self._suggest_comment,
            events.GenerateAISummary: self._generate_ai_summary,
            events.SaveReviewToHistory: self._save_review_to_history,
            events.LoadHistory: self._load_history,
            events.DeleteHistoryItem: self._delete_history_item,
            events.UndoDeleteHistoryItem: self._undo_delete_history_item,
            events.EditReview: self._edit_review,
            events.ConsumeReviewSavedEvent: self._consume_review_saved,
            events.ResetState: self._reset_state,
        }

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and call it with the current snapshot.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def dispatch(self, event: events.ReviewEvent) -> None:
        """Run one command to completion."""
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unknown review command: {event!r}")
        logger.debug("Dispatching %s", type(event).__name__)
        result = handler(event)
        if inspect.isawaitable(result):
            await result

    # ------------------------------------------------------------------ #
    # State plumbing                                                       #
    # ------------------------------------------------------------------ #

    def _set(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _update(self, **changes) -> None:
        self._set(replace(self._state, **changes))

    def _begin(self, **flags) -> None:
        """Raise progress flags and clear the previous error."""
        self._update(error=None, error_kind=None, **flags)

    def _fail(self, e: Exception, **changes) -> None:
        logger.warning("Review command failed (%s): %s", e.kind, e)
        self._update(error=str(e), error_kind=e.kind, **changes)

    # ------------------------------------------------------------------ #
    # Repository coordinates                                               #
    # ------------------------------------------------------------------ #

    def _update_repository_url(self, event: events.UpdateRepositoryUrl) -> None:
        parsed = parse_github_url(event.url)
        if parsed is None:
            # Unrecognised URLs leave the coordinates as they were.
            logger.debug("Not a GitHub repository URL: %r", event.url)
            self._update(repository_url=event.url)
            return
        owner, repo = parsed
        self._update(repository_url=event.url, owner=owner, repo=repo)

    async def _load_branches(self, event: events.LoadBranches) -> None:
        owner, repo = self._state.owner, self._state.repo
        if not owner.strip() or not repo.strip():
            self._fail(ValidationError("Owner and repository are required to load branches"))
            return

        self._begin(is_loading_branches=True)
        try:
            names = await asyncio.to_thread(self._github.list_branches, owner, repo)
        except SESSION_ERRORS as e:
            self._fail(e, is_loading_branches=False)
            return

        # Keep the selected branch when it exists, otherwise fall back to the
        # first one the remote returned.
        branch = self._state.branch
        if names and branch not in names:
            branch = names[0]
        self._update(branches=tuple(names), branch=branch, is_loading_branches=False)

    # ------------------------------------------------------------------ #
    # Files                                                                #
    # ------------------------------------------------------------------ #

    async def _load_files(self, event: events.LoadFiles) -> bool:
        s = self._state
        self._begin(is_loading_files=True)
        try:
            files = await asyncio.to_thread(self._github.list_files, s.owner, s.repo, s.branch, s.project_kind)
        except SESSION_ERRORS as e:
            self._fail(e, is_loading_files=False)
            return False
        self._update(files=tuple(files), is_loading_files=False)
        return True

    def _toggle_file_selection(self, event: events.ToggleFileSelection) -> None:
        self._update(
            files=tuple(replace(f, selected=not f.selected) if f.path == event.path else f for f in self._state.files)
        )

    async def _load_file_content(self, event: events.LoadFileContent) -> None:
        file = event.file
        self._content_generation += 1
        generation = self._content_generation
        s = self._state

        # Name and draft switch immediately; the content follows.
        self._begin(
            current_file_name=file.path,
            current_file_content="",
            current_comment=s.comments.get(file.path, ""),
            is_loading_content=True,
        )
        try:
            content = await asyncio.to_thread(self._github.get_file_content, s.owner, s.repo, file.sha)
        except SESSION_ERRORS as e:
            if generation != self._content_generation:
                logger.debug("Dropping stale failure for %s", file.path)
                return
            self._fail(e, current_file_content="", is_loading_content=False)
            return

        if generation != self._content_generation:
            logger.debug("Dropping stale content for %s", file.path)
            return
        self._update(current_file_content=content, is_loading_content=False)

    # ------------------------------------------------------------------ #
    # Comments                                                             #
    # ------------------------------------------------------------------ #

    def _load_comment_for_file(self, event: events.LoadCommentForFile) -> None:
        self._update(current_comment=self._state.comments.get(event.file_name, ""))

    def _add_or_update_comment(self, event: events.AddComment) -> None:
        s = self._state
        if not s.current_comment.strip():
            return
        if not s.current_file_name:
            self._fail(ValidationError("Open a file before adding a comment"))
            return
        comments = dict(s.comments)
        comments[s.current_file_name] = s.current_comment
        self._update(comments=comments, current_comment="")

    # ------------------------------------------------------------------ #
    # AI                                                                   #
    # ------------------------------------------------------------------ #

    async def _suggest_comment(self, event: events.SuggestComment) -> None:
        s = self._state
        self._begin(is_suggesting=True)
        try:
            suggestion = await asyncio.to_thread(
                self._assistant.suggest_comment, s.current_file_content, s.current_file_name, s.project_kind
            )
        except SESSION_ERRORS as e:
            self._fail(e, is_suggesting=False)
            return

        if self._state.current_file_name != s.current_file_name:
            # The user moved on; the suggestion belongs to another file's draft.
            logger.debug("Dropping suggestion for %s", s.current_file_name)
            self._update(is_suggesting=False)
            return
        self._update(current_comment=suggestion, is_suggesting=False)

    async def _generate_ai_summary(self, event: events.GenerateAISummary) -> None:
        s = self._state
        self._begin(is_summarizing=True)
        try:
            summary = await asyncio.to_thread(self._assistant.summarize, s.comment_list, s.project_kind)
        except SESSION_ERRORS as e:
            self._fail(e, is_summarizing=False)
            return
        self._update(ai_summary=summary, is_summarizing=False)

    # ------------------------------------------------------------------ #
    # History                                                              #
    # ------------------------------------------------------------------ #

    def _build_record(self) -> ReviewRecord:
        s = self._state
        return ReviewRecord(
            owner=s.owner,
            repo=s.repo,
            branch=s.branch,
            created_at=utc_now_iso(),
            comments=[CommentRecord(file_name=name, comment=text) for name, text in s.comments.items()],
            ai_summary=s.ai_summary,
            project_kind=s.project_kind.name,
        )

    async def _save_review_to_history(self, event: events.SaveReviewToHistory) -> None:
        if not self._state.comments:
            return
        record = self._build_record()
        editing_id = self._state.editing_review_id

        self._begin(is_saving=True)
        try:
            if editing_id:
                await asyncio.to_thread(self._store.update, editing_id, record)
                record_id = editing_id
            else:
                record_id = await asyncio.to_thread(self._store.save, record)
        except SESSION_ERRORS as e:
            self._fail(e, is_saving=False)
            return

        logger.debug("Review %s saved for %s", record_id, record.slug)
        # Remember the id so a second save in this session updates, not duplicates.
        self._update(is_saving=False, review_saved=True, editing_review_id=record_id)

    async def _load_history(self, event: events.LoadHistory) -> None:
        self._begin(is_loading_history=True)
        try:
            records = await asyncio.to_thread(self._store.list_reviews)
        except SESSION_ERRORS as e:
            self._fail(e, is_loading_history=False, history=())
            return
        self._update(history=tuple(sort_by_recency(records)), is_loading_history=False)

    async def _delete_history_item(self, event: events.DeleteHistoryItem) -> None:
        record = event.record
        self._begin(is_deleting=True)
        try:
            await asyncio.to_thread(self._store.delete, record.id)
        except SESSION_ERRORS as e:
            self._fail(e, is_deleting=False)
            return
        self._update(
            history=tuple(r for r in self._state.history if r.id != record.id),
            is_deleting=False,
            last_deleted_item=record,
        )

    async def _undo_delete_history_item(self, event: events.UndoDeleteHistoryItem) -> None:
        record = self._state.last_deleted_item
        if record is None:
            return
        self._begin(is_saving=True)
        try:
            # Restored under a fresh id; the content is what was deleted.
            await asyncio.to_thread(self._store.save, replace(record, id=""))
        except SESSION_ERRORS as e:
            self._fail(e, is_saving=False)
            return
        self._update(is_saving=False, last_deleted_item=None)
        await self._load_history(events.LoadHistory())

    async def _edit_review(self, event: events.EditReview) -> None:
        record = event.record
        try:
            kind = ProjectKind.from_name(record.project_kind)
        except ValidationError:
            logger.warning("Review %s has unknown project kind %r; using Kotlin", record.id, record.project_kind)
            kind = ProjectKind.KOTLIN

        self._content_generation += 1
        self._update(
            repository_url=f"https://github.com/{record.owner}/{record.repo}",
            owner=record.owner,
            repo=record.repo,
            branch=record.branch,
            project_kind=kind,
            comments={c.file_name: c.comment for c in record.comments},
            ai_summary=record.ai_summary,
            editing_review_id=record.id,
            files=(),
            current_file_name="",
            current_file_content="",
            current_comment="",
            review_saved=False,
        )

        if not await self._load_files(events.LoadFiles()):
            return

        # Rebuild the past selection from the comment set alone.
        commented = set(self._state.comments)
        self._update(files=tuple(replace(f, selected=f.path in commented) for f in self._state.files))

    # ------------------------------------------------------------------ #
    # Reset                                                                #
    # ------------------------------------------------------------------ #

    def _reset_state(self, event: events.ResetState) -> None:
        # Repository coordinates and project kind survive: same repo, new pass.
        self._content_generation += 1
        self._update(
            files=(),
            current_file_name="",
            current_file_content="",
            current_comment="",
            comments={},
            ai_summary="",
            error=None,
            error_kind=None,
            editing_review_id=None,
        )

    def _consume_review_saved(self, event: events.ConsumeReviewSavedEvent) -> None:
        self._update(review_saved=False)
        self._reset_state(events.ResetState())
