"""Data models for command classification and suggestions."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cmdsense.context.models import ProjectType

# Display bound for suggestion reasons, ellipsis included
REASON_MAX_LENGTH = 35
ELLIPSIS = "…"

DEFAULT_CONFIDENCE = 0.8


class SuggestionSource(str, Enum):
    """Which contextual signal produced a suggestion."""

    PROJECT_CONTEXT = "projectContext"
    ERROR_ANALYSIS = "errorAnalysis"
    GIT_STATUS = "gitStatus"
    CWD_CHANGE = "cwdChange"
    GENERAL_CONTEXT = "generalContext"
    STARTUP = "startup"
    RESUME_COMMAND = "resumeCommand"
    SHELL_HISTORY = "shellHistory"

    @classmethod
    def from_tag(cls, tag: object) -> SuggestionSource:
        """Resolve a raw tag, falling back to GENERAL_CONTEXT when unrecognized."""
        if isinstance(tag, str):
            try:
                return cls(tag)
            except ValueError:
                pass
        return cls.GENERAL_CONTEXT


class VersionControl(str, Enum):
    """Non-language requirement attached to repository-mutating commands."""

    GIT = "git"


Requirement = Union[ProjectType, VersionControl]


def truncate_reason(reason: str, limit: int = REASON_MAX_LENGTH) -> str:
    """Shorten a reason to ``limit`` characters, preferring a word boundary.

    Truncated text ends with an ellipsis that counts towards the limit.
    """
    reason = " ".join(reason.split())
    if len(reason) <= limit:
        return reason

    cut = reason[: limit - len(ELLIPSIS)]
    boundary = cut.rfind(" ")
    if boundary > limit // 2:
        cut = cut[:boundary]
    return cut.rstrip(" ,.;:-") + ELLIPSIS


class CommandSuggestion(BaseModel):
    """A single vetted command suggestion.

    Attributes:
        command: The exact command text to run.
        reason: Short explanation, always within REASON_MAX_LENGTH.
        confidence: Score between 0.0 and 1.0.
        source: The signal that produced the suggestion.
    """

    model_config = ConfigDict(frozen=True)

    command: str
    reason: str
    confidence: float = Field(default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0)
    source: SuggestionSource = SuggestionSource.GENERAL_CONTEXT

    @field_validator("reason")
    @classmethod
    def bound_reason(cls, v: str) -> str:
        return truncate_reason(v)


class Universal(BaseModel):
    """Behaves the same from any directory."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["universal"] = "universal"


class PathDependent(BaseModel):
    """Refers to paths that may only exist where the command was first seen."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["path_dependent"] = "path_dependent"


class Ambiguous(BaseModel):
    """No rule applies; treated permissively downstream."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ambiguous"] = "ambiguous"


class ProjectSpecific(BaseModel):
    """Only meaningful in a directory that meets ``requires``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["project_specific"] = "project_specific"
    requires: Requirement


CommandContextType = Annotated[
    Union[Universal, PathDependent, Ambiguous, ProjectSpecific],
    Field(discriminator="kind"),
]

UNIVERSAL = Universal()
PATH_DEPENDENT = PathDependent()
AMBIGUOUS = Ambiguous()
