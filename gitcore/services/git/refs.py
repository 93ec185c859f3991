"""Ref helpers.

HEAD files are parsed directly because linked worktrees keep theirs in
administrative directories. Everything else goes through GitPython's
reference classes, which read loose and packed refs without touching the
object database, so worktree bookkeeping also works for refs whose commits
have not been fetched.
"""

import asyncio
import os
import re
from typing import Optional, Tuple

import git

from gitcore.utils import fs
from gitcore.logging_config import get_logger

logger = get_logger(__name__)

SYMREF_PREFIX = "ref: "
HEADS_PREFIX = "refs/heads/"
REMOTES_PREFIX = "refs/remotes/"
TAGS_PREFIX = "refs/tags/"

# SHA-1 (40) or SHA-256 (64) object ids
COMMIT_ID = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$")


def is_commit_id(ref: str) -> bool:
    """Check whether `ref` is a full, raw commit id rather than a ref name."""
    return bool(COMMIT_ID.match(ref))


def branch_ref(name: str) -> str:
    """Expand a short branch name to its full `refs/heads/` form."""
    return name if name.startswith("refs/") else f"{HEADS_PREFIX}{name}"


def short_name(ref: str) -> str:
    """Abbreviate a full ref name (`refs/heads/main` -> `main`)."""
    for prefix in (HEADS_PREFIX, REMOTES_PREFIX, TAGS_PREFIX):
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref


def parse_head(content: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split HEAD file content into (symbolic ref, detached commit id).

    Returns:
        `("refs/heads/main", None)` for a symbolic HEAD, `(None, sha)` for a
        detached HEAD and `(None, None)` for empty or unreadable content.
    """
    if not content:
        return None, None
    content = content.strip()
    if content.startswith(SYMREF_PREFIX):
        return content[len(SYMREF_PREFIX):].strip(), None
    if is_commit_id(content):
        return None, content
    return None, None


async def read_head(gitdir: str) -> Tuple[Optional[str], Optional[str]]:
    """Read and parse `<gitdir>/HEAD`."""
    return parse_head(await fs.read_file_if_exists(os.path.join(gitdir, "HEAD")))


def _open(common_dir: str) -> Optional[git.Repo]:
    try:
        return git.Repo(common_dir)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        logger.debug(f"{common_dir} is not a git directory")
        return None


def _dereference(repo: git.Repo, ref: str) -> Optional[str]:
    try:
        return git.SymbolicReference.dereference_recursive(repo, ref)
    except ValueError:
        return None


async def resolve_ref(common_dir: str, ref: str, gitdir: Optional[str] = None) -> Optional[str]:
    """Resolve a ref name to a commit id.

    Args:
        common_dir: The main repository's git directory (holds `refs/`)
        ref: `HEAD`, a full ref name, a short branch name or a raw commit id
        gitdir: Administrative directory holding HEAD (linked worktrees); defaults to `common_dir`

    Returns:
        The commit id, or None when the ref does not exist (e.g. unborn branch)
    """
    if is_commit_id(ref):
        return ref
    if ref == "HEAD" and gitdir and gitdir != common_dir:
        symref, sha = await read_head(gitdir)
        if sha or not symref:
            return sha
        ref = symref

    if ref == "HEAD" or ref.startswith("refs/"):
        candidates = [ref]
    else:
        candidates = [branch_ref(ref), f"{TAGS_PREFIX}{ref}", f"{REMOTES_PREFIX}{ref}"]

    def _resolve() -> Optional[str]:
        repo = _open(common_dir)
        if repo is None:
            return None
        try:
            for candidate in candidates:
                sha = _dereference(repo, candidate)
                if sha:
                    return sha
            return None
        finally:
            repo.close()

    return await asyncio.to_thread(_resolve)


async def ref_exists(common_dir: str, ref: str) -> bool:
    """Check whether a full ref name exists and points to a commit id."""
    return await resolve_ref(common_dir, ref) is not None


async def write_ref(common_dir: str, ref: str, sha: str) -> None:
    """Create or update a loose ref.

    The commit is not looked up, so refs can be written for objects the
    repository has not fetched yet.
    """
    def _write() -> None:
        repo = git.Repo(common_dir)
        try:
            git.Reference(repo, ref, check_path=False).set_reference(git.Commit(repo, bytes.fromhex(sha)))
        finally:
            repo.close()

    await asyncio.to_thread(_write)
    logger.debug(f"Wrote {ref} -> {sha}")


async def delete_ref(common_dir: str, ref: str) -> bool:
    """Delete a loose or packed ref together with its reflog.

    Returns:
        True if the ref existed
    """
    def _delete() -> bool:
        repo = _open(common_dir)
        if repo is None:
            return False
        try:
            if _dereference(repo, ref) is None:
                return False
            git.SymbolicReference.delete(repo, ref)
            return True
        finally:
            repo.close()

    existed = await asyncio.to_thread(_delete)
    if existed:
        logger.debug(f"Deleted ref {ref}")
    return existed
