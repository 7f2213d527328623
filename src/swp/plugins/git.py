"""Thin repository handle backed by the ``git`` executable."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Iterator, Sequence, Tuple

from .models import GitFileStatus

GIT_TIMEOUT_SECONDS = 30
LITERAL_PATHSPEC = ":(literal)"


class GitError(Exception):
    """Raised when a git command fails or git is unavailable."""


def _run_git(workdir: Path, args: Sequence[str]) -> str:
    """Run git in ``workdir`` and return stdout decoded like a filesystem path.

    Output is read as bytes and decoded with ``os.fsdecode`` so filenames that
    are not valid UTF-8 round-trip to the same ``str`` that ``os.scandir``
    yields for them.
    """
    cmd = ["git", "-C", str(workdir), *args]
    try:
        completed = subprocess.run(
            cmd,
            capture_output=True,
            check=False,
            timeout=GIT_TIMEOUT_SECONDS,
        )
        stdout = os.fsdecode(completed.stdout)
        stderr = os.fsdecode(completed.stderr)
    except (OSError, subprocess.SubprocessError, UnicodeError) as exc:
        raise GitError(f"Failed to run {' '.join(cmd)}: {exc}") from exc

    if completed.returncode != 0:
        raise GitError(stderr.strip() or f"git exited with {completed.returncode}")
    return stdout


def _iter_porcelain(output: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(code, path)`` pairs from ``git status --porcelain=v1 -z`` output."""
    records = iter(output.split("\0"))
    for record in records:
        if len(record) < 4:
            continue
        code, path = record[:2], record[3:]
        if code[0] in "RC":
            # renames and copies carry their source path as the next record
            next(records, None)
        yield code, path


class GitRepository:
    """Open repository with a working directory.

    Status queries shell out per file, so results always reflect the current
    worktree and index.
    """

    def __init__(self, workdir: Path) -> None:
        self._workdir = workdir

    @classmethod
    def open(cls, path: Path) -> "GitRepository":
        """Open the repository whose working directory contains ``path``.

        Raises:
            GitError: If ``path`` is not inside a non-bare repository.
        """
        output = _run_git(path, ["rev-parse", "--show-toplevel"]).strip()
        if not output:
            raise GitError(f"{path} has no working directory")
        return cls(Path(output).resolve())

    @property
    def workdir(self) -> Path:
        """Return the canonical working directory."""
        return self._workdir

    def status_file(self, relative_path: Path) -> str:
        """Return the two-letter porcelain status for ``relative_path``.

        The path is passed as a literal pathspec, and only records naming the
        file itself (or an ignored directory containing it) are accepted. An
        empty string means git reports nothing for the file, i.e. it is a
        clean, committed file.
        """
        target = relative_path.as_posix()
        output = _run_git(
            self._workdir,
            [
                "status",
                "--porcelain=v1",
                "-z",
                "--ignored=matching",
                "--untracked-files=all",
                "--",
                LITERAL_PATHSPEC + target,
            ],
        )
        for code, path in _iter_porcelain(output):
            if path == target:
                return code
            if code == "!!" and path.endswith("/") and target.startswith(path):
                return code
        return ""

    def classify(self, relative_path: Path) -> GitFileStatus:
        """Classify ``relative_path`` as Ignored, Untracked, Modified, or Tracked.

        Modified covers changes in either the index or the worktree column; any
        other recorded change (for example a staged addition) is Tracked.
        """
        code = self.status_file(relative_path)
        if code == "!!":
            return GitFileStatus.IGNORED
        if code == "??":
            return GitFileStatus.UNTRACKED
        if "M" in code:
            return GitFileStatus.MODIFIED
        return GitFileStatus.TRACKED

    def __repr__(self) -> str:
        return f"GitRepository(workdir={str(self._workdir)!r})"


__all__ = ["GitError", "GitRepository", "GIT_TIMEOUT_SECONDS", "LITERAL_PATHSPEC"]
