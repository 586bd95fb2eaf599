"""Domain models shared by the GitHub client, the AI assistants and the session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from repolens_core.errors import ValidationError


class ProjectKind(Enum):
    """The language/ecosystem a review targets.

    Drives which files are listed, which lexer highlights them, and how the
    AI prompts frame the review.
    """

    KOTLIN = (
        "Kotlin",
        "kotlin",
        (".kt",),
        (
            "Correct use of coroutines and flows",
            "Null safety and type handling",
            "Kotlin conventions (data classes, extension functions, etc.)",
            "Android architecture patterns (MVVM, Repository, etc.)",
        ),
    )
    BLAZOR = (
        "Blazor (C#)",
        "csharp",
        (".razor", ".cs", ".cshtml"),
        (
            "Blazor components and their lifecycle",
            "Data binding and events",
            "State management",
            "C# and .NET best practices",
            "Web architecture patterns",
        ),
    )

    def __init__(self, display_name: str, lexer: str, extensions: tuple[str, ...], focus: tuple[str, ...]):
        self.display_name = display_name
        self.lexer = lexer
        self.extensions = extensions
        self.focus = focus

    def matches(self, path: str) -> bool:
        return path.endswith(self.extensions)

    @classmethod
    def from_name(cls, name: str) -> ProjectKind:
        """Resolve a configured or persisted kind name, case-insensitively."""
        try:
            return cls[name.strip().upper()]
        except (KeyError, AttributeError):
            choices = ", ".join(k.name.lower() for k in cls)
            raise ValidationError(f"Unknown project kind {name!r} (expected one of: {choices})")


@dataclass(frozen=True)
class FileItem:
    """One reviewable file of a repository tree. Identity is ``path``."""

    path: str
    sha: str  # blob id, used to fetch content
    selected: bool = False

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class Comment:
    """The review comment for one file."""

    file_name: str
    text: str
