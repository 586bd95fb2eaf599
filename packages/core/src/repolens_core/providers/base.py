"""Base assistant implementing the Template Method pattern.

All providers share the same two operations:
    suggest_comment() / summarize()
        → configuration and input checks
        → _build_*_prompt()
        → _call_api()   ← only this differs per provider
        → fallback text for empty output, ModelError for SDK failures

Subclasses implement two things only:
  - __init__: store the SDK client, or leave it None when no API key is set
  - _call_api: make one raw API call and return the text response

Nothing is retried and nothing is cached: a failed call surfaces to the
session, and the user decides whether to try again.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from repolens_core.errors import ConfigError, ModelError, ValidationError

if TYPE_CHECKING:
    from repolens_core.models import Comment, ProjectKind

logger = logging.getLogger(__name__)

SUGGESTION_FALLBACK = "Could not generate a suggestion."
SUMMARY_FALLBACK = "Could not generate the summary."


class BaseAssistant(ABC):
    # Generation profile shared by every provider; each passes the subset
    # its SDK supports.
    TEMPERATURE: float = 0.7
    TOP_K: int = 40
    TOP_P: float = 0.95
    MAX_TOKENS: int = 1024

    # Name of the environment variable that configures this provider.
    API_KEY_ENV: str = ""

    client = None

    @property
    def configured(self) -> bool:
        return self.client is not None

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def suggest_comment(self, file_content: str, file_name: str, kind: ProjectKind) -> str:
        """Return a short review comment for one file.

        Raises ConfigError when no API key is configured, ValidationError
        when there is no content to review, ModelError when the call fails.
        """
        self._require_configured()
        if not file_content or not file_content.strip():
            raise ValidationError("Open a file with content before asking for a suggestion")
        prompt = self._build_suggestion_prompt(file_content, file_name, kind)
        return self._generate(prompt, SUGGESTION_FALLBACK)

    def summarize(self, comments: list[Comment], kind: ProjectKind) -> str:
        """Return an executive summary of a review's comments."""
        self._require_configured()
        if not comments:
            raise ValidationError("There are no comments to summarize")
        prompt = self._build_summary_prompt(comments, kind)
        return self._generate(prompt, SUMMARY_FALLBACK)

    # ------------------------------------------------------------------ #
    # Abstract — implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, prompt: str) -> str | None:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; _generate converts the exception to ModelError.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _require_configured(self) -> None:
        if not self.configured:
            raise ConfigError(
                f"AI suggestions are unavailable: {self.API_KEY_ENV or 'an API key'} is not configured."
            )

    def _generate(self, prompt: str, fallback: str) -> str:
        logger.debug("Calling %s (%d prompt chars)", self.__class__.__name__, len(prompt))
        try:
            text = self._call_api(prompt)
        except Exception as e:
            logger.warning("%s API call failed: %s", self.__class__.__name__, e)
            raise ModelError(f"The AI model call failed: {e}") from e
        if not text or not text.strip():
            logger.debug("%s returned no text; using fallback", self.__class__.__name__)
            return fallback
        return text.strip()

    def _build_suggestion_prompt(self, file_content: str, file_name: str, kind: ProjectKind) -> str:
        focus = "\n".join(f"- {item}" for item in kind.focus)
        return f"""You are an expert code reviewer specialised in {kind.display_name}.
Analyse the following code and write one constructive review comment.
The comment must be brief, specific, and focus on improvements to:
- Code quality
- Best practices
- Possible bugs
- Performance
- Readability

This is {kind.display_name} code. Focus on:
{focus}

File: {file_name}

Code:
```
{file_content}
```

Reply with the review comment only, without headings or extra formatting."""

    def _build_summary_prompt(self, comments: list[Comment], kind: ProjectKind) -> str:
        comments_text = "\n\n".join(f"File: {c.file_name}\nComment: {c.text}" for c in comments)
        return f"""You are an expert in code analysis. Below are the comments of a code review for a {kind.display_name} project.

Write an executive summary that:
- Identifies the main themes found
- Highlights the critical problems
- Suggests general areas for improvement
- Is concise (300 words at most)

Review comments:
{comments_text}

Reply with the summary only, without extra headings."""  # noqa: E501
