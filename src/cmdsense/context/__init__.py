"""Working-directory context: project type detection and environment facts."""

from cmdsense.context.detection import (
    EnvironmentContextProvider,
    detect_git_info,
    detect_primary_project_type,
    detect_project_types,
    detect_technologies,
    list_directory,
)
from cmdsense.context.models import (
    CommonCommand,
    EnvironmentContext,
    GitInfo,
    ProjectType,
)

__all__ = [
    "CommonCommand",
    "EnvironmentContext",
    "EnvironmentContextProvider",
    "GitInfo",
    "ProjectType",
    "detect_git_info",
    "detect_primary_project_type",
    "detect_project_types",
    "detect_technologies",
    "list_directory",
]
