"""Thin wrapper over PyGithub for the three reads a review needs.

Branch listing, extension-filtered tree listing and blob fetching are the
only remote operations; everything else about a review is local state.
PyGithub and transport failures are converted to NetworkError at this
boundary so callers only ever see repolens errors.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from contextlib import contextmanager

import requests
from github import Github, GithubException

from repolens_core.errors import DecodeError, NetworkError, ValidationError
from repolens_core.models import FileItem, ProjectKind

logger = logging.getLogger(__name__)

_GITHUB_URL_RE = re.compile(r"(?:https?://)?(?:www\.)?github\.com/([^/]+)/([^/.]+)(?:\.git)?")
_WHITESPACE_RE = re.compile(r"\s")


def parse_github_url(url: str) -> tuple[str, str] | None:
    """Extract ``(owner, repo)`` from a GitHub URL, or None if it is not one.

    Accepts https://github.com/owner/repo, the same with a .git suffix, and
    the scheme-less github.com/owner/repo form.
    """
    match = _GITHUB_URL_RE.search(url or "")
    if match is None:
        return None
    return match.group(1), match.group(2)


def decode_blob_content(content: str, encoding: str) -> str:
    """Return a blob's text, decoding base64 payloads.

    The API wraps base64 content at 60 columns, so all whitespace is
    stripped before decoding. Any other encoding is returned verbatim.
    """
    if encoding != "base64":
        return content
    try:
        return base64.b64decode(_WHITESPACE_RE.sub("", content), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise DecodeError(f"Could not decode file content: {e}") from e


def _require(owner: str, repo: str) -> None:
    if not owner or not owner.strip() or not repo or not repo.strip():
        raise ValidationError("Owner and repository are required")


def _describe(e: GithubException) -> str:
    data = e.data if isinstance(e.data, dict) else {}
    return data.get("message") or str(e)


@contextmanager
def _translate_errors(action: str):
    """Turn PyGithub and transport failures into NetworkError."""
    try:
        yield
    except GithubException as e:
        logger.warning("%s: HTTP %s %s", action, e.status, _describe(e))
        raise NetworkError(f"{action}: {_describe(e)} (HTTP {e.status})", status=e.status) from e
    except requests.RequestException as e:
        logger.warning("%s: %s", action, e)
        raise NetworkError(f"{action}: {e}") from e


class GitHubClient:
    """Read-only access to branches, trees and blobs of GitHub repositories.

    ``token`` is optional: public repositories are readable anonymously,
    at a lower rate limit.
    """

    def __init__(self, token: str | None = None, github: Github | None = None):
        self._gh = github or Github(token)

    def list_branches(self, owner: str, repo: str) -> list[str]:
        _require(owner, repo)
        logger.debug("Listing branches of %s/%s", owner, repo)
        with _translate_errors(f"Could not load branches of {owner}/{repo}"):
            return [branch.name for branch in self._get_repo(owner, repo).get_branches()]

    def list_files(self, owner: str, repo: str, branch: str, kind: ProjectKind) -> list[FileItem]:
        """Return the files of ``branch`` that belong to ``kind``, in tree order."""
        _require(owner, repo)
        if not branch or not branch.strip():
            raise ValidationError("A branch is required to list files")
        logger.debug("Listing %s files of %s/%s@%s", kind.display_name, owner, repo, branch)
        with _translate_errors(f"Could not load files of {owner}/{repo}@{branch}"):
            tree = self._get_repo(owner, repo).get_git_tree(branch, recursive=True)
            return [
                FileItem(path=entry.path, sha=entry.sha)
                for entry in tree.tree
                if entry.type == "blob" and kind.matches(entry.path)
            ]

    def get_file_content(self, owner: str, repo: str, sha: str) -> str:
        _require(owner, repo)
        logger.debug("Fetching blob %s of %s/%s", sha, owner, repo)
        with _translate_errors(f"Could not load file content of {owner}/{repo}"):
            blob = self._get_repo(owner, repo).get_git_blob(sha)
        return decode_blob_content(blob.content or "", blob.encoding)

    def _get_repo(self, owner: str, repo: str):
        return self._gh.get_repo(f"{owner.strip()}/{repo.strip()}")

