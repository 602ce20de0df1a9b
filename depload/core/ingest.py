"""Commit ingestor that parses version-control logs into the graph store."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from depload.core.exceptions import IngestError
from depload.core.models import ChangeType, IngestStats
from depload.core.storage import GraphRepository

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]

LOG_FORMAT = "%H|%an|%ad|%s"

_CHANGE_CODES = {ct.value: ct for ct in ChangeType}


@dataclass
class ParsedCommit:
    """A commit header and the changes listed under it."""

    hash: str
    author: str
    date: str
    message: str
    changes: list[tuple[str, ChangeType]] = field(default_factory=list)


def parse_header(line: str) -> ParsedCommit | None:
    """Parse ``hash|author|date|subject``; None if malformed.

    The subject may itself contain ``|``.
    """
    parts = line.split("|", 3)
    if len(parts) < 4:
        return None
    hash, author, date, message = (p.strip() for p in parts)
    if not hash or not date:
        return None
    return ParsedCommit(hash=hash, author=author, date=date, message=message)


def parse_change(line: str) -> tuple[str, ChangeType] | None:
    """Parse ``<code>\\t<path>``; None if malformed.

    Renames carry a similarity score and two paths (``R100\\told\\tnew``);
    the last path wins.
    """
    fields = line.split("\t")
    code = fields[0]
    if len(fields) < 2 or not code or (code[1:] and not code[1:].isdigit()):
        return None
    change_type = _CHANGE_CODES.get(code[0])
    path = fields[-1].strip()
    if change_type is None or not path:
        return None
    return path, change_type


class CommitIngestor:
    """Streams a commit log into the store.

    On each header line the previous commit is flushed and a new one started;
    change lines accumulate on the current commit; the last commit is flushed
    at end of input. A line that parses as a change is never taken for a
    header, even when its path contains ``|``. Malformed lines are skipped.
    """

    def __init__(self, repo: GraphRepository) -> None:
        self._repo = repo

    def ingest_text(self, text: str, on_progress: ProgressCallback | None = None) -> IngestStats:
        return self.ingest_lines(text.splitlines(), on_progress=on_progress)

    def ingest_lines(
        self, lines: Iterable[str], on_progress: ProgressCallback | None = None
    ) -> IngestStats:
        """Ingest log lines.

        Args:
            lines: Raw log lines, headers followed by change lines
            on_progress: Optional callback (commit hash, commits so far)

        Returns:
            IngestStats with counts of commits, touched files and skipped lines
        """
        stats = IngestStats()
        current: ParsedCommit | None = None

        for raw in lines:
            line = raw.rstrip("\r\n")
            if not line.strip():
                continue

            change = parse_change(line)
            if change is None and "|" in line:
                if current is not None:
                    self._flush(current, stats, on_progress)
                current = parse_header(line)
                if current is None:
                    logger.debug("Skipping malformed header: %r", line)
                    stats.skipped_lines += 1
                continue

            if current is None or change is None:
                logger.debug("Skipping malformed line: %r", line)
                stats.skipped_lines += 1
                continue
            current.changes.append(change)

        if current is not None:
            self._flush(current, stats, on_progress)

        if stats.skipped_lines:
            logger.warning("Skipped %d malformed commit log lines", stats.skipped_lines)
        return stats

    def _flush(
        self,
        commit: ParsedCommit,
        stats: IngestStats,
        on_progress: ProgressCallback | None,
    ) -> None:
        """Write one commit and its touched files atomically."""
        with self._repo.transaction():
            is_new = not self._repo.commits.exists(commit.hash)
            commit_id = self._repo.commits.insert_if_absent(
                commit.hash, commit.author, commit.date, commit.message
            )
            for path, change_type in commit.changes:
                self._repo.commits.insert_touched_file(commit_id, path, change_type)

        stats.commits += 1
        stats.touched_files += len(commit.changes)
        if is_new:
            stats.new_commits += 1
        if on_progress:
            on_progress(commit.hash, stats.commits)


def read_git_log(workspace_root: Path, commit_count: int = 100) -> str:
    """Run ``git log`` in ``workspace_root`` and return its name-status output."""
    if commit_count < 1:
        raise ValueError("commit_count must be a positive number")
    cmd = [
        "git",
        "log",
        "--name-status",
        f"-{commit_count}",
        f"--pretty=format:{LOG_FORMAT}",
        "--date=iso",
    ]
    try:
        result = subprocess.run(
            cmd,
            cwd=workspace_root,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise IngestError("git executable not found") from e
    except subprocess.CalledProcessError as e:
        raise IngestError(f"git log failed in {workspace_root}: {e.stderr.strip()}") from e
    return result.stdout


def sync_git_commits(
    repo: GraphRepository,
    workspace_root: Path,
    commit_count: int = 100,
    on_progress: ProgressCallback | None = None,
) -> IngestStats:
    """Read the last ``commit_count`` commits of a workspace into the store."""
    text = read_git_log(workspace_root, commit_count)
    return CommitIngestor(repo).ingest_text(text, on_progress=on_progress)
