"""Smart filtering engine that classifies files by deletion risk.

The filter combines several signals: protected filename patterns, git status,
``.gitignore`` rules, modification age, and a coarse file type derived from
the extension. Repository handles and compiled ignore matchers are cached for
the lifetime of the filter; callers that share a filter across threads must
serialize access to it.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pathspec

from .errors import ConfigurationError
from .git import GitError, GitRepository
from .models import FileType, GitFileStatus, RiskLevel

LOGGER = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60

PROTECTED_PATTERNS = (
    ".env",
    ".env.*",
    "*.db",
    "*.sqlite",
    "*.sqlite3",
    "*.key",
    "*.pem",
    "*.crt",
    "*.p12",
    "credentials*",
    "secrets*",
)

TEST_DATA_PATTERNS = (
    "test-data*",
    "test_data*",
    "fixture*",
    "sample*",
    "mock*",
    "*.test.*",
    "*.spec.*",
    "*_test.*",
    "*_spec.*",
)

_EXTENSION_TYPES: Dict[str, FileType] = {}
for _type, _extensions in (
    (FileType.TEST_DATA, ("test", "fixture", "sample", "mock")),
    (FileType.DATABASE, ("db", "sqlite", "sqlite3", "sql", "dump")),
    (FileType.ARCHIVE, ("zip", "tar", "gz", "bz2", "xz", "rar", "7z")),
    (
        FileType.MEDIA,
        (
            "jpg", "jpeg", "png", "gif", "bmp", "svg", "ico", "mp4", "avi", "mkv",
            "mov", "wmv", "mp3", "wav", "flac", "ogg",
        ),
    ),
    (FileType.LOG, ("log", "out", "err")),
    (
        FileType.DOCUMENT,
        ("pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "odt", "ods", "odp", "txt", "md", "rst"),
    ),
    (
        FileType.SOURCE,
        (
            "rs", "py", "js", "ts", "java", "c", "cpp", "h", "hpp", "go", "rb", "php",
            "cs", "swift", "kt",
        ),
    ),
    (FileType.CONFIGURATION, ("json", "yaml", "yml", "toml", "ini", "cfg", "conf")),
    (FileType.BINARY, ("exe", "dll", "so", "dylib", "o", "a")),
):
    for _extension in _extensions:
        _EXTENSION_TYPES[_extension] = _type

_TEST_DATA_NAME_HINTS = ("test", "fixture", "sample", "mock")


def matches_pattern(text: str, pattern: str) -> bool:
    """Match ``text`` against a pattern containing at most a single ``*`` wildcard.

    Supported shapes are ``prefix*suffix`` (either side may be empty) and
    ``*middle*``. Any other pattern is compared for exact equality.
    """
    if "*" in pattern:
        parts = pattern.split("*")
        if len(parts) == 2:
            prefix, suffix = parts
            if not prefix and not suffix:
                return True
            if not prefix:
                return text.endswith(suffix)
            if not suffix:
                return text.startswith(prefix)
            return text.startswith(prefix) and text.endswith(suffix)
        if len(parts) == 3:
            prefix, middle, suffix = parts
            if not prefix and not suffix:
                return middle in text

    return text == pattern


def _is_within(path: Path, directory: Path) -> bool:
    try:
        path.relative_to(directory)
    except ValueError:
        return False
    return True


class SmartFilter:
    """Classify files using git status, ignore rules, age, and filename heuristics."""

    def __init__(
        self,
        *,
        protected_patterns: Iterable[str] = PROTECTED_PATTERNS,
        test_data_patterns: Iterable[str] = TEST_DATA_PATTERNS,
    ) -> None:
        self._git_repos: Dict[Path, GitRepository] = {}
        self._gitignore_cache: Dict[Path, pathspec.GitIgnoreSpec] = {}
        self.protected_patterns: List[str] = list(protected_patterns)
        self.test_data_patterns: List[str] = list(test_data_patterns)

    @property
    def git_repos(self) -> Dict[Path, GitRepository]:
        """Return the cached repositories keyed by canonical working directory."""
        return self._git_repos

    @property
    def gitignore_cache(self) -> Dict[Path, pathspec.GitIgnoreSpec]:
        """Return the compiled ignore matchers keyed by directory."""
        return self._gitignore_cache

    def discover_git_repos(self, path: Path) -> None:
        """Cache the first repository found at ``path`` or one of its ancestors.

        Only the innermost enclosing repository is cached; the search stops as
        soon as one directory opens successfully.
        """
        for current in (path, *path.parents):
            if not (current / ".git").exists():
                continue
            try:
                repo = GitRepository.open(current)
            except GitError as exc:
                LOGGER.debug("Skipping %s: %s", current, exc)
                continue
            self._git_repos[repo.workdir] = repo
            LOGGER.debug("Discovered git repository at %s", repo.workdir)
            break

    def get_git_status(self, file_path: Path) -> GitFileStatus:
        """Return the git status of ``file_path`` using the cached repositories."""
        for repo_path, repo in self._git_repos.items():
            if not _is_within(file_path, repo_path):
                continue
            relative = file_path.relative_to(repo_path)
            try:
                return repo.classify(relative)
            except GitError as exc:
                LOGGER.debug("git status failed for %s: %s", file_path, exc)
        return GitFileStatus.NOT_IN_REPO

    def load_gitignore(self, directory: Path) -> None:
        """Compile ``directory/.gitignore`` and cache the matcher.

        Raises:
            ConfigurationError: If the file cannot be read or contains invalid patterns.
        """
        gitignore_path = directory / ".gitignore"
        if not gitignore_path.exists():
            return

        try:
            lines = gitignore_path.read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError as exc:
            raise ConfigurationError(f"Failed to read .gitignore: {exc}") from exc

        try:
            spec = pathspec.GitIgnoreSpec.from_lines(lines)
        except (ValueError, TypeError) as exc:
            raise ConfigurationError(f"Failed to parse .gitignore: {exc}") from exc

        self._gitignore_cache[directory] = spec

    def is_gitignored(self, file_path: Path) -> bool:
        """Return True if any cached ``.gitignore`` above ``file_path`` matches it.

        Matchers are consulted deepest directory first.
        """
        directories = sorted(self._gitignore_cache, key=lambda item: len(item.parts), reverse=True)
        for directory in directories:
            if not _is_within(file_path, directory):
                continue
            relative = file_path.relative_to(directory).as_posix()
            if file_path.is_dir():
                relative += "/"
            if self._gitignore_cache[directory].match_file(relative):
                return True
        return False

    def detect_file_type(self, path: Path) -> FileType:
        """Classify ``path`` by extension, falling back to filename hints."""
        suffix = path.suffix
        if suffix:
            file_type = _EXTENSION_TYPES.get(suffix[1:].lower())
            if file_type is not None:
                return file_type

        name = path.name.lower()
        if any(hint in name for hint in _TEST_DATA_NAME_HINTS):
            return FileType.TEST_DATA
        if "log" in name:
            return FileType.LOG
        return FileType.UNKNOWN

    def is_protected(self, path: Path) -> bool:
        """Return True if the filename matches a protected pattern."""
        return any(matches_pattern(path.name, pattern) for pattern in self.protected_patterns)

    def is_test_data(self, path: Path) -> bool:
        """Return True if the filename matches a test-data pattern."""
        return any(matches_pattern(path.name, pattern) for pattern in self.test_data_patterns)

    def calculate_risk_level(
        self,
        path: Path,
        metadata: os.stat_result,
        include_git_tracked: bool,
        git_status: Optional[GitFileStatus] = None,
    ) -> RiskLevel:
        """Return the deletion risk for ``path``; the first matching rule wins.

        Args:
            path: File being classified.
            metadata: Result of ``stat`` for the file.
            include_git_tracked: When False, tracked and modified files are Critical.
            git_status: Status already looked up for ``path``; queried when omitted.

        Returns:
            RiskLevel: Classification for the file.
        """
        if self.is_protected(path):
            return RiskLevel.CRITICAL

        if git_status is None:
            git_status = self.get_git_status(path)
        if (
            git_status in (GitFileStatus.TRACKED, GitFileStatus.MODIFIED)
            and not include_git_tracked
        ):
            return RiskLevel.CRITICAL
        if git_status is GitFileStatus.IGNORED:
            return RiskLevel.SAFE

        if self.is_gitignored(path):
            return RiskLevel.SAFE

        age = time.time() - metadata.st_mtime
        if age >= 0:
            if age < 3 * DAY_SECONDS:
                return RiskLevel.HIGH
            if age < 7 * DAY_SECONDS:
                return RiskLevel.MEDIUM
            if age < 30 * DAY_SECONDS:
                return RiskLevel.LOW

        file_type = self.detect_file_type(path)
        if file_type in (FileType.DATABASE, FileType.CONFIGURATION):
            return RiskLevel.HIGH
        if file_type is FileType.SOURCE:
            return RiskLevel.MEDIUM
        if file_type is FileType.TEST_DATA:
            return RiskLevel.LOW
        if file_type in (FileType.LOG, FileType.ARCHIVE):
            return RiskLevel.SAFE

        if self.is_test_data(path):
            return RiskLevel.LOW

        return RiskLevel.LOW

    def __repr__(self) -> str:
        return (
            f"SmartFilter(git_repos={len(self._git_repos)}, "
            f"gitignores={len(self._gitignore_cache)}, "
            f"protected_patterns={self.protected_patterns!r}, "
            f"test_data_patterns={self.test_data_patterns!r})"
        )


__all__ = [
    "SmartFilter",
    "matches_pattern",
    "PROTECTED_PATTERNS",
    "TEST_DATA_PATTERNS",
    "DAY_SECONDS",
]
