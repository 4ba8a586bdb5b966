"""Data models for working-directory context."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from cmdsense.suggestions.models import Requirement


class CommonCommand(NamedTuple):
    """A typical command for a project type, with a short description."""

    command: str
    reason: str


class ProjectType(str, Enum):
    """Technology stacks a directory can be classified as."""

    NODE = "node"
    SWIFT = "swift"
    RUST = "rust"
    PYTHON = "python"
    GO = "go"
    RUBY = "ruby"
    JAVA = "java"
    DOTNET = "dotnet"
    UNKNOWN = "unknown"

    @property
    def common_commands(self) -> tuple[CommonCommand, ...]:
        """Typical startup commands for this project type."""
        return COMMON_COMMANDS.get(self, ())


COMMON_COMMANDS: dict[ProjectType, tuple[CommonCommand, ...]] = {
    ProjectType.NODE: (
        CommonCommand("npm install", "Install dependencies"),
        CommonCommand("npm start", "Start development server"),
        CommonCommand("npm run dev", "Run dev script"),
        CommonCommand("npm test", "Run tests"),
    ),
    ProjectType.SWIFT: (
        CommonCommand("swift build", "Build the package"),
        CommonCommand("swift run", "Build and run"),
        CommonCommand("swift test", "Run tests"),
    ),
    ProjectType.RUST: (
        CommonCommand("cargo build", "Build the project"),
        CommonCommand("cargo run", "Build and run"),
        CommonCommand("cargo test", "Run tests"),
        CommonCommand("cargo check", "Check for errors"),
    ),
    ProjectType.PYTHON: (
        CommonCommand("pip install -r requirements.txt", "Install dependencies"),
        CommonCommand("python -m venv venv", "Create virtual environment"),
        CommonCommand("source venv/bin/activate", "Activate venv"),
        CommonCommand("pytest", "Run tests"),
    ),
    ProjectType.GO: (
        CommonCommand("go build", "Build the project"),
        CommonCommand("go run .", "Run the project"),
        CommonCommand("go test ./...", "Run tests"),
        CommonCommand("go mod tidy", "Tidy dependencies"),
    ),
    ProjectType.RUBY: (
        CommonCommand("bundle install", "Install dependencies"),
        CommonCommand("bundle exec rails s", "Start Rails server"),
        CommonCommand("bundle exec rspec", "Run tests"),
    ),
    ProjectType.JAVA: (
        CommonCommand("mvn clean install", "Build with Maven"),
        CommonCommand("./gradlew build", "Build with Gradle"),
        CommonCommand("mvn test", "Run Maven tests"),
    ),
    ProjectType.DOTNET: (
        CommonCommand("dotnet build", "Build the project"),
        CommonCommand("dotnet run", "Run the project"),
        CommonCommand("dotnet test", "Run tests"),
    ),
}


class GitInfo(BaseModel):
    """Git repository state for a directory.

    Attributes:
        branch: Current branch name.
        is_dirty: Whether there are uncommitted changes.
        ahead: Commits not yet pushed to the upstream branch.
        behind: Upstream commits not yet pulled.
    """

    branch: str | None = None
    is_dirty: bool = False
    ahead: int = 0
    behind: int = 0


class EnvironmentContext(BaseModel):
    """Facts about a working directory that drive command filtering.

    Produced once per directory scan and never mutated afterwards.

    Attributes:
        cwd: The directory the context describes.
        project_type: Primary detected project type.
        technologies: Every technology label detected in the directory listing.
        git_info: Repository state, or None outside a git repository.
    """

    model_config = ConfigDict(frozen=True)

    cwd: str = ""
    project_type: ProjectType = ProjectType.UNKNOWN
    technologies: list[str] = Field(default_factory=list)
    git_info: GitInfo | None = None

    @property
    def has_project_files(self) -> bool:
        return self.project_type != ProjectType.UNKNOWN or bool(self.technologies)

    @property
    def is_git_repo(self) -> bool:
        return self.git_info is not None

    def satisfies(self, requirement: Requirement) -> bool:
        """Check whether this directory meets a project-specific requirement.

        Nothing is satisfied while the project type is ``unknown``. A project
        type only matches exactly; the version-control marker additionally
        needs a git repository.
        """
        if self.project_type == ProjectType.UNKNOWN:
            return False
        if isinstance(requirement, ProjectType):
            return requirement == self.project_type
        return self.is_git_repo
