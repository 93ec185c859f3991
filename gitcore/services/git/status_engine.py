"""Status computation service for gitcore.

Two views of a worktree are provided. `status_matrix` compares the HEAD
tree, the index and the working directory file by file and reports numeric
codes:

    HEAD     0 absent, 1 present
    WORKDIR  0 absent, 1 identical to HEAD, 2 different from HEAD
    STAGE    0 absent, 1 identical to HEAD, 2 identical to WORKDIR,
             3 different from both

`worktree_status` asks `git status --porcelain` and translates each
two-character code with `process_status_code`.
"""

import asyncio
import hashlib
import os
import re
from typing import Dict, Iterable, List, Optional, Protocol, Set, Tuple

import git

from gitcore.models.entry import ContentEntry, DirectoryEntry, FileEntry, VirtualEntry
from gitcore.models.status import BranchStatus, GitStatus, MatrixRow, StatusEntry, StatusOutput
from gitcore.services.git.path_resolver import PathResolver
from gitcore.utils import fs
from gitcore.logging_config import get_logger

logger = get_logger(__name__)

_UNMERGED = re.compile(r"DD|AA|.U|U.")
_STAGED_MODIFIED = re.compile(r"M(?=[ MTD])")
_STAGED_ADDED = re.compile(r"A(?=[ MTD])")
_STAGED_DELETED = re.compile(r"D(?=[ MTD])")
# unstaged rows only apply when the index column is unchanged or itself a plain change
_UNSTAGED_MODIFIED = re.compile(r"[ MTD]M")
_UNSTAGED_ADDED = re.compile(r"[ MTD]A")
_UNSTAGED_DELETED = re.compile(r"[ MTD]D")

_UNBORN_PREFIXES = ("No commits yet on ", "Initial commit on ")

# (head, workdir, stage) -> status
_MATRIX_STATUS = {
    (0, 2, 0): GitStatus.UNSTAGED_ADDED,     # new, untracked
    (0, 2, 2): GitStatus.ADDED,              # added, staged
    (0, 2, 3): GitStatus.UNSTAGED_ADDED,     # added, staged, with unstaged changes
    (1, 1, 1): GitStatus.UNMODIFIED,
    (1, 2, 1): GitStatus.UNSTAGED_MODIFIED,  # modified, unstaged
    (1, 2, 2): GitStatus.MODIFIED,           # modified, staged
    (1, 2, 3): GitStatus.UNSTAGED_MODIFIED,  # modified, staged, with unstaged changes
    (1, 1, 3): GitStatus.MODIFIED,           # modified, staged, with unstaged changes reverting to HEAD
    (1, 0, 1): GitStatus.UNSTAGED_DELETED,   # deleted, unstaged
    (1, 0, 3): GitStatus.UNSTAGED_DELETED,   # modified, staged, then deleted
    (1, 0, 0): GitStatus.DELETED,            # deleted, staged
    (1, 1, 0): GitStatus.DELETED,            # deleted, staged, file restored
    (1, 2, 0): GitStatus.DELETED,            # deleted, staged, file recreated with new content
    (0, 0, 3): GitStatus.UNSTAGED_DELETED,   # added, staged, then deleted
    (0, 0, 0): GitStatus.ABSENT,
}


class IgnoreMatcher(Protocol):
    """Answers whether a path is excluded by ignore rules."""

    def ignores(self, root: str, relative_path: str) -> bool:
        ...

    def ignored_paths(self, root: str, relative_paths: List[str]) -> Set[str]:
        """Subset of `relative_paths` excluded by ignore rules."""
        ...


class GitIgnoreMatcher:
    """Ignore matcher backed by `git check-ignore`."""

    def ignores(self, root: str, relative_path: str) -> bool:
        if not relative_path or relative_path in (".", os.curdir):
            return False
        repo = git.Repo(root)
        try:
            return bool(repo.ignored(relative_path))
        finally:
            repo.close()

    def ignored_paths(self, root: str, relative_paths: List[str]) -> Set[str]:
        candidates = [path for path in relative_paths if path and path != os.curdir]
        if not candidates:
            return set()
        repo = git.Repo(root)
        try:
            # one check-ignore run for the whole batch
            return set(repo.ignored(*candidates)) & set(candidates)
        finally:
            repo.close()


def process_status_code(code: Optional[str]) -> GitStatus:
    """Convert a two-character `git status --short` code to a GitStatus.

    X is the index/HEAD comparison and Y the worktree/index comparison.
    Unmerged combinations win over everything except `!!` and `??`; a
    letter in X followed by ` `, `M`, `T` or `D` is a staged change; a
    letter in Y is unstaged only when X is one of ` `, `M`, `T` or `D`.
    """
    if not code:
        return GitStatus.UNMODIFIED
    if code == "!!":
        return GitStatus.IGNORED
    if code == "??":
        return GitStatus.ABSENT
    if _UNMERGED.search(code):
        return GitStatus.UNMERGED
    if _STAGED_MODIFIED.search(code):
        return GitStatus.MODIFIED
    if _UNSTAGED_MODIFIED.match(code):
        return GitStatus.UNSTAGED_MODIFIED
    if _STAGED_ADDED.search(code):
        return GitStatus.ADDED
    if _UNSTAGED_ADDED.match(code):
        return GitStatus.UNSTAGED_ADDED
    if _STAGED_DELETED.search(code):
        return GitStatus.DELETED
    if _UNSTAGED_DELETED.match(code):
        return GitStatus.UNSTAGED_DELETED

    logger.error(f"Unable to convert '{code}' status code")
    return GitStatus.UNMODIFIED


def matrix_to_status(head: int, workdir: int, stage: int) -> GitStatus:
    """Convert one status-matrix row to a GitStatus."""
    status = _MATRIX_STATUS.get((head, workdir, stage))
    if status is None:
        logger.debug(f"No status for matrix row [{head}, {workdir}, {stage}]")
        return GitStatus.UNMODIFIED
    return status


def hash_blob(path: str) -> str:
    """Object id git would assign to the file (or symlink target) at `path`."""
    if os.path.islink(path):
        data = os.readlink(path).encode("utf-8")
    else:
        with open(path, "rb") as f:
            data = f.read()
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


def _to_posix(path: str) -> str:
    return path.replace(os.sep, "/")


class StatusEngine:
    """Service computing per-file and per-worktree git status."""

    def __init__(self, resolver: PathResolver, ignore_matcher: Optional[IgnoreMatcher] = None):
        """Initialize the status engine.

        Args:
            resolver: Used to find the worktree containing a path
            ignore_matcher: Ignore-rule engine (defaults to `git check-ignore`)
        """
        self.resolver = resolver
        self.ignore_matcher = ignore_matcher or GitIgnoreMatcher()

    async def _worktree_root(self, path: str) -> Optional[str]:
        paths = await self.resolver.get_worktree_paths(path)
        if not paths.dir:
            return None
        return paths.worktree_dir or paths.dir

    @staticmethod
    def _relative(root: str, path: str) -> str:
        relative = os.path.relpath(os.path.realpath(path), os.path.realpath(root))
        return "" if relative == os.curdir else _to_posix(relative)

    async def is_ignored(self, root: str, path: str) -> bool:
        """Check a path against the ignore rules of `root` (the root itself is never ignored)."""
        if fs.is_equal_paths(root, path):
            return False
        return await asyncio.to_thread(self.ignore_matcher.ignores, root, self._relative(root, path))

    @staticmethod
    def _compute_matrix(root: str, prefix: str) -> List[MatrixRow]:
        repo = git.Repo(root)
        try:
            head: Dict[str, str] = {}
            try:
                for item in repo.head.commit.tree.traverse():
                    if item.type == "blob":
                        head[item.path] = item.hexsha
            except ValueError:
                logger.debug(f"HEAD of {root} has no commits yet")

            stage: Dict[str, str] = {}
            for (filepath, stage_number), entry in sorted(repo.index.entries.items()):
                # merge stages 1-3 only count when no stage 0 entry exists
                if stage_number == 0 or filepath not in stage:
                    stage[filepath] = entry.hexsha

            untracked = set(repo.untracked_files)
        finally:
            repo.close()

        rows: List[MatrixRow] = []
        for filepath in sorted(set(head) | set(stage) | untracked):
            if prefix and filepath != prefix and not filepath.startswith(prefix + "/"):
                continue
            full_path = os.path.join(root, filepath)
            workdir_oid = hash_blob(full_path) if os.path.isfile(full_path) or os.path.islink(full_path) else None
            head_oid = head.get(filepath)
            stage_oid = stage.get(filepath)

            head_code = 1 if head_oid else 0
            if workdir_oid is None:
                workdir_code = 0
            else:
                workdir_code = 1 if workdir_oid == head_oid else 2
            if stage_oid is None:
                stage_code = 0
            elif stage_oid == head_oid:
                stage_code = 1
            elif stage_oid == workdir_oid:
                stage_code = 2
            else:
                stage_code = 3
            rows.append((filepath, head_code, workdir_code, stage_code))
        return rows

    async def status_matrix(self, path: str) -> Optional[List[MatrixRow]]:
        """Compare HEAD, index and working directory for every file under `path`.

        Args:
            path: A worktree root, or a directory or file inside one

        Returns:
            One `(filepath, head, workdir, stage)` row per file tracked by
            HEAD or the index or untracked and not ignored, with filepaths
            relative to the worktree root; None if `path` is not under
            version control
        """
        root = await self._worktree_root(path)
        if root is None:
            return None
        return await asyncio.to_thread(self._compute_matrix, root, self._relative(root, path))

    async def get_status(self, path: str) -> Optional[GitStatus]:
        """Status of a file, or an aggregate `modified`/`unmodified` for a directory.

        A directory counts as modified when any file below it has a staged
        state that differs from HEAD.
        """
        root = await self._worktree_root(path)
        if root is None:
            return None

        if await fs.is_dir(path):
            matrix = await self.status_matrix(path) or []
            changed = [row[0] for row in matrix if row[1] != row[3]]
            return GitStatus.MODIFIED if changed else GitStatus.UNMODIFIED

        if await self.is_ignored(root, path):
            return GitStatus.IGNORED
        relative = self._relative(root, path)
        matrix = await self.status_matrix(path) or []
        row = next((row for row in matrix if row[0] == relative), None)
        return matrix_to_status(*row[1:]) if row else GitStatus.UNMODIFIED

    async def has_status(self, path: str, filters: Iterable[GitStatus]) -> bool:
        """Check whether any file under `path` has one of the `filters` statuses."""
        matrix = await self.status_matrix(path)
        if not matrix:
            return False
        wanted = set(filters)
        return any(matrix_to_status(*row[1:]) in wanted for row in matrix)

    @staticmethod
    def _parse_porcelain(output: str) -> Tuple[str, List[Tuple[str, str]]]:
        """Split `git status --porcelain -z --branch` output into (ref, [(code, path)])."""
        records = [record for record in output.split("\0") if record]
        ref = ""
        entries: List[Tuple[str, str]] = []
        skip_next = False
        for record in records:
            if skip_next:
                # source path of a rename or copy
                skip_next = False
                continue
            if record.startswith("## "):
                header = record[3:]
                if header.startswith("HEAD (no branch)"):
                    ref = "HEAD"
                else:
                    for prefix in _UNBORN_PREFIXES:
                        if header.startswith(prefix):
                            header = header[len(prefix):]
                    # `<branch>...<upstream> [ahead N]`
                    ref = header.split("...", 1)[0].split(" ", 1)[0]
                continue
            code, filepath = record[:2], record[3:]
            entries.append((code, filepath))
            if code[0] in "RC":
                skip_next = True
        return ref, entries

    async def worktree_status(
        self, dir: str, pathspec: Optional[str] = None, ignored: bool = False
    ) -> Optional[StatusOutput]:
        """Show the working tree status.

        Lists paths that differ between the index and HEAD, paths that
        differ between the working tree and the index, and untracked paths.

        Args:
            dir: The worktree root directory
            pathspec: Optional path or pattern limiting the paths reported
            ignored: Include ignored files

        Returns:
            StatusOutput with the branch name, the aggregate BranchStatus
            and one entry per reported path, or None if `dir` is not under
            version control
        """
        root = await self.resolver.get_root(dir)
        if root is None:
            return None

        args = ["--porcelain", "-z", "--branch"]
        if ignored:
            args.append("--ignored")
        if pathspec:
            spec = self._relative(root, pathspec) if os.path.lexists(pathspec) else pathspec
            args.extend(["--", spec or "."])

        def _run() -> Tuple[int, str, str]:
            repo = git.Repo(root)
            try:
                return repo.git.status(*args, with_extended_output=True, with_exceptions=False)
            finally:
                repo.close()

        exit_code, stdout, stderr = await asyncio.to_thread(_run)
        if stderr:
            logger.error(f"git status in {root}: {stderr}")
        if exit_code != 0:
            return None

        ref, raw_entries = self._parse_porcelain(stdout)
        ignored_paths = await asyncio.to_thread(
            self.ignore_matcher.ignored_paths, root, [filepath.rstrip("/") for _, filepath in raw_entries]
        )
        entries = [
            StatusEntry(
                path=filepath,
                status=GitStatus.IGNORED if filepath.rstrip("/") in ignored_paths else process_status_code(code),
            )
            for code, filepath in raw_entries
        ]

        if not entries:
            status = BranchStatus.CLEAN
        elif any(entry.status == GitStatus.UNMERGED for entry in entries):
            status = BranchStatus.UNMERGED
        else:
            status = BranchStatus.UNCOMMITTED

        return StatusOutput(ref=ref, root=dir, status=status, bare=not ref, entries=entries)

    async def file_status(self, path: str) -> Optional[GitStatus]:
        """Show the git status of a single file or directory.

        Directories resolve to `ignored`, `unmodified`, `modified` or
        `unmerged`; files absent from the changed entries are `unmodified`.
        """
        root = await self.resolver.get_root(path)
        if root is None:
            logger.error(f"No .git exists within the parent directories of {path}")
            return None
        branch_status = await self.worktree_status(root, pathspec=path)
        if branch_status is None:
            logger.error(f"{path} is not contained in a directory tracked by version control")
            return None

        if await fs.is_dir(path):
            if await self.is_ignored(root, path):
                return GitStatus.IGNORED
            return {
                BranchStatus.CLEAN: GitStatus.UNMODIFIED,
                BranchStatus.UNCOMMITTED: GitStatus.MODIFIED,
                BranchStatus.UNMERGED: GitStatus.UNMERGED,
            }[branch_status.status]

        entry = branch_status.find(self._relative(root, path))
        return entry.status if entry else GitStatus.UNMODIFIED

    async def entry_status(self, entry: ContentEntry) -> Optional[GitStatus]:
        """Status of any content entry.

        In-memory content without a backing path has no status; with a
        path that does not exist yet it is reported as `absent`.
        """
        if isinstance(entry, (FileEntry, DirectoryEntry)):
            return await self.file_status(entry.path)
        if isinstance(entry, VirtualEntry):
            if entry.path is None:
                return None
            if not await fs.exists(entry.path):
                return GitStatus.ABSENT
            return await self.file_status(entry.path)
        raise TypeError(f"Unsupported content entry: {entry!r}")
