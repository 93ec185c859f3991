"""Worktree operations service for gitcore."""

import asyncio
import os
from typing import List, Optional

import git

from gitcore.config import Config
from gitcore.exceptions import (
    BranchAlreadyCheckedOutError,
    BranchNotFoundError,
    NotARepositoryError,
    WorktreeLinkError,
)
from gitcore.models.repository import Repository
from gitcore.models.status import GitStatus
from gitcore.models.worktree import Worktree
from gitcore.services.git import refs
from gitcore.services.git.path_resolver import WORKTREES_DIR, PathResolver
from gitcore.services.git.status_engine import StatusEngine
from gitcore.utils import fs
from gitcore.logging_config import get_logger

logger = get_logger(__name__)


class WorktreeManager:
    """Service for managing linked git worktrees.

    Worktrees are created and removed by writing the administrative files
    git itself uses:

        <gitdir>/worktrees/<name>/HEAD       ref: refs/heads/<branch> (or a commit id)
        <gitdir>/worktrees/<name>/ORIG_HEAD  commit id
        <gitdir>/worktrees/<name>/commondir  ../..
        <gitdir>/worktrees/<name>/gitdir     absolute path of <workdir>/.git
        <workdir>/.git                       gitdir: <gitdir>/worktrees/<name>
    """

    def __init__(self, resolver: PathResolver, status_engine: StatusEngine, config: Optional[Config] = None):
        """Initialize the worktree manager.

        Args:
            resolver: Locates main and linked worktree metadata
            status_engine: Decides whether a worktree is clean before removal
            config: gitcore settings (remote used for tracking branches)
        """
        self.resolver = resolver
        self.status_engine = status_engine
        self.config = config or Config()

    async def _admin_name(self, worktrees: str, ref: str, detached: bool) -> str:
        base = ref[:7] if detached else ref.replace("/", "-")
        name = base
        suffix = 1
        while await fs.exists(os.path.join(worktrees, name)):
            name = f"{base}{suffix}"
            suffix += 1
        return name

    async def _resolve_start(self, gitdir: str, ref: str) -> str:
        """Find (creating it if needed) the commit a new worktree for branch `ref` starts at."""
        local = refs.branch_ref(ref)
        sha = await refs.resolve_ref(gitdir, local)
        if sha:
            return sha

        tracking = f"{refs.REMOTES_PREFIX}{self.config.remote_name}/{ref}"
        sha = await refs.resolve_ref(gitdir, tracking)
        source = tracking
        if not sha:
            sha = await refs.resolve_ref(gitdir, "HEAD")
            source = "HEAD"
        if not sha:
            raise BranchNotFoundError(ref)

        await refs.write_ref(gitdir, local, sha)
        logger.info(f"Created branch {ref} from {source} ({sha[:7]})")
        return sha

    async def add(self, repo: Repository, workdir_path: str, ref: str, no_checkout: bool = False) -> Worktree:
        """Create a linked worktree at `workdir_path` for a branch or commit.

        Args:
            repo: Repository descriptor; `repo.root` locates the main worktree
            workdir_path: Directory for the new worktree (created if missing)
            ref: Branch name, or a full commit id for a detached worktree
            no_checkout: Only write the administrative files; leave the
                index and working files unpopulated

        Returns:
            The new Worktree

        Raises:
            NotARepositoryError: If `repo.root` is not a repository
            BranchAlreadyCheckedOutError: If `ref` is checked out in any worktree
            WorktreeLinkError: If `workdir_path` already holds a `.git` entry
            BranchNotFoundError: If no commit can be found to start the branch from
        """
        paths = await self.resolver.get_worktree_paths(repo.root)
        if not paths.gitdir:
            raise NotARepositoryError("worktree_add", repo.root)
        gitdir = paths.gitdir

        detached = refs.is_commit_id(ref)
        if not detached:
            existing = await self.resolver.get_branch_root(paths.dir, ref)
            if existing:
                raise BranchAlreadyCheckedOutError(ref, existing)

        git_file = os.path.join(workdir_path, ".git")
        if await fs.exists(git_file):
            raise WorktreeLinkError(workdir_path, f"'{workdir_path}' already contains a .git entry")

        sha = ref if detached else await self._resolve_start(gitdir, ref)
        worktrees = os.path.join(gitdir, WORKTREES_DIR)
        name = await self._admin_name(worktrees, ref, detached)
        admin_dir = os.path.join(worktrees, name)

        await fs.make_dirs(admin_dir)
        await fs.make_dirs(workdir_path)
        head = f"{sha}\n" if detached else f"{refs.SYMREF_PREFIX}{refs.branch_ref(ref)}\n"
        await fs.write_file(os.path.join(admin_dir, "HEAD"), head)
        await fs.write_file(os.path.join(admin_dir, "ORIG_HEAD"), f"{sha}\n")
        await fs.write_file(os.path.join(admin_dir, "commondir"), "../..\n")
        await fs.write_file(os.path.join(admin_dir, "gitdir"), f"{os.path.abspath(git_file)}\n")
        await fs.write_file(git_file, f"gitdir: {admin_dir}\n")
        logger.info(f"Added worktree {name} at {workdir_path}")

        if not no_checkout:
            await asyncio.to_thread(self._populate, workdir_path)

        return Worktree(
            id=name,
            path=os.path.abspath(workdir_path),
            bare=False,
            detached=detached,
            main=False,
            ref=None if detached else ref,
            rev=sha,
        )

    @staticmethod
    def _populate(workdir_path: str) -> None:
        """Fill the index and working files of a freshly linked worktree from its HEAD."""
        repo = git.Repo(workdir_path)
        try:
            repo.git.reset("--hard")
        finally:
            repo.close()
        logger.debug(f"Checked out files in {workdir_path}")

    async def _read_worktree(self, common_dir: str, admin_dir: str, path: str, main: bool) -> Worktree:
        symref, sha = await refs.read_head(admin_dir)
        if symref:
            rev = await refs.resolve_ref(common_dir, symref)
            ref = refs.short_name(symref)
        else:
            rev, ref = sha, None
        return Worktree(
            id=os.path.basename(os.path.abspath(path)) if main else os.path.basename(admin_dir),
            path=os.path.abspath(path),
            bare=False,
            detached=symref is None,
            main=main,
            ref=ref,
            rev=rev,
        )

    async def list(self, path: str) -> Optional[List[Worktree]]:
        """List the main worktree followed by every linked worktree.

        Args:
            path: Any path inside the main worktree or a linked worktree

        Returns:
            Worktrees with absolute paths, or None if `path` is not in a repository
        """
        paths = await self.resolver.get_worktree_paths(path)
        if not paths.dir or not paths.gitdir:
            logger.debug(f"Could not list worktrees: {path} is not in a repository")
            return None

        worktrees = [await self._read_worktree(paths.gitdir, paths.gitdir, paths.dir, main=True)]
        admin_root = os.path.join(paths.gitdir, WORKTREES_DIR)
        for name in await fs.list_dir(admin_root):
            admin_dir = os.path.join(admin_root, name)
            if not await fs.is_dir(admin_dir):
                continue
            pointer = await fs.read_file_if_exists(os.path.join(admin_dir, "gitdir"))
            if not pointer or not pointer.strip():
                logger.debug(f"Skipping worktree {name}: no gitdir file")
                continue
            workdir = os.path.dirname(pointer.strip())
            worktrees.append(await self._read_worktree(paths.gitdir, admin_dir, workdir, main=False))

        logger.debug(f"Found {len(worktrees)} worktrees")
        for worktree in worktrees:
            logger.debug(f"  {worktree}")
        return worktrees

    async def remove(self, worktree: Worktree, force: bool = False) -> bool:
        """Remove a linked worktree together with its branch.

        The main worktree is never removed. A worktree with uncommitted
        changes is only removed when `force` is set. Removal deletes the
        working directory, the administrative directory and the branch ref.

        Args:
            worktree: The worktree to remove
            force: Remove even if the worktree has uncommitted changes

        Returns:
            True if the worktree was removed
        """
        if worktree.main:
            logger.debug(f"Not removing main worktree at {worktree.path}")
            return False

        status = await self.status_engine.get_status(worktree.path)
        if status is not None and status != GitStatus.UNMODIFIED and not force:
            logger.warning(f"Worktree at {worktree.path} has uncommitted changes ({status.value}), not removing")
            return False

        paths = await self.resolver.get_worktree_paths(worktree.path)
        if not paths.is_linked or not paths.gitdir:
            logger.warning(f"{worktree.path} is not a linked worktree, not removing")
            return False

        await fs.remove_tree(paths.worktree_dir)
        await fs.remove_tree(paths.worktree_link)
        if worktree.ref:
            await refs.delete_ref(paths.gitdir, refs.branch_ref(worktree.ref))
        logger.info(f"Removed worktree at {worktree.path}")
        return True

    async def prune(self, path: str) -> List[str]:
        """Delete administrative directories whose working directory no longer exists.

        Returns:
            Names of the pruned administrative directories
        """
        paths = await self.resolver.get_worktree_paths(path)
        if not paths.gitdir:
            return []

        pruned = []
        admin_root = os.path.join(paths.gitdir, WORKTREES_DIR)
        for name in await fs.list_dir(admin_root):
            admin_dir = os.path.join(admin_root, name)
            pointer = await fs.read_file_if_exists(os.path.join(admin_dir, "gitdir"))
            if pointer and await fs.exists(pointer.strip()):
                continue
            await fs.remove_tree(admin_dir)
            pruned.append(name)
            logger.info(f"Pruned worktree {name}")
        return pruned
