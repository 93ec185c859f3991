"""Repository operations service for gitcore."""

import asyncio
import os
import re
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import git

from gitcore.config import Config
from gitcore.exceptions import (
    BranchAlreadyCheckedOutError,
    BranchNotFoundError,
    CheckoutConflictError,
    GitOperationError,
    MergeConflictError,
    MissingConfigError,
    NotARepositoryError,
)
from gitcore.models.operations import Identity, MergeResult, RemoteInfo, ServerRef, local_timezone_offset
from gitcore.models.repository import Repository
from gitcore.models.worktree import WorktreePaths
from gitcore.services.git import refs
from gitcore.services.git.config_store import ConfigStore
from gitcore.services.git.path_resolver import WORKTREES_DIR, PathResolver
from gitcore.services.git.remote import (
    AuthCallback,
    AuthFailureCallback,
    AuthSuccessCallback,
    ProgressCallback,
    RemoteClient,
)
from gitcore.services.git.status_engine import StatusEngine
from gitcore.services.git.worktrees import WorktreeManager
from gitcore.utils import fs
from gitcore.logging_config import get_logger

logger = get_logger(__name__)

_ANCESTRY = re.compile(r"^(?P<base>.+)~(?P<count>\d+)$")


def _identity_env(author: Identity, committer: Identity) -> Dict[str, str]:
    return {
        "GIT_AUTHOR_NAME": author.name or "",
        "GIT_AUTHOR_EMAIL": author.email or "",
        "GIT_AUTHOR_DATE": author.git_date(),
        "GIT_COMMITTER_NAME": committer.name or "",
        "GIT_COMMITTER_EMAIL": committer.email or "",
        "GIT_COMMITTER_DATE": committer.git_date(),
    }


class RepositoryOperations:
    """Entry point for clone, checkout, commit, branch and merge operations.

    Works the same from the main worktree and from linked worktrees: every
    operation first resolves the worktree layout for the path it is given.
    """

    def __init__(
        self,
        resolver: PathResolver,
        config_store: ConfigStore,
        status_engine: StatusEngine,
        worktrees: WorktreeManager,
        remote: RemoteClient,
        config: Optional[Config] = None,
    ):
        self.resolver = resolver
        self.config_store = config_store
        self.status_engine = status_engine
        self.worktrees = worktrees
        self.remote = remote
        self.config = config or Config()

    def _get_repo(self, path: str) -> git.Repo:
        """Get a fresh git.Repo instance for a worktree root."""
        return git.Repo(path)

    async def _locate(self, operation: str, dir: str, gitdir: Optional[str] = None):
        """Resolve worktree paths, raising when `dir` is not in a repository.

        Returns:
            (paths, root) where root is the working directory to operate in
        """
        paths = await self.resolver.get_worktree_paths(gitdir or dir)
        if not paths.dir or not paths.gitdir:
            raise NotARepositoryError(operation, dir)
        return paths, paths.worktree_dir or paths.dir

    async def _identity(self, dir: str, identity: Optional[Identity], operation: str) -> Identity:
        """Fill in missing name/email from git config and the timestamp from the clock."""
        identity = identity or Identity()
        name = identity.name
        email = identity.email
        missing = []
        if not name:
            name = (await self.config_store.get_config(dir, "user.name")).value
            if not name:
                missing.append("user.name")
        if not email:
            email = (await self.config_store.get_config(dir, "user.email")).value
            if not email:
                missing.append("user.email")
        if missing:
            raise MissingConfigError(operation, missing)

        timestamp = identity.timestamp if identity.timestamp is not None else int(time.time())
        offset = identity.timezone_offset if identity.timezone_offset is not None else local_timezone_offset(timestamp)
        return Identity(name=name, email=email, timestamp=timestamp, timezone_offset=offset)

    # -- branches -------------------------------------------------------

    async def current_branch(
        self, dir: str, gitdir: Optional[str] = None, fullname: bool = False, test: bool = False
    ) -> Optional[str]:
        """Get the branch HEAD points to in the worktree containing `dir`.

        Args:
            dir: The worktree root directory
            gitdir: Explicit git directory or `.git` file
            fullname: Return `refs/heads/<name>` instead of `<name>`
            test: Return None when the branch has no commits yet

        Returns:
            The branch name, or None when HEAD is detached or `dir` is not a repository
        """
        paths = await self.resolver.get_worktree_paths(gitdir or dir)
        if not paths.gitdir:
            return None
        symref, _ = await refs.read_head(paths.worktree_link or paths.gitdir)
        if not symref:
            return None
        if test and not await refs.ref_exists(paths.gitdir, symref):
            return None
        return symref if fullname else refs.short_name(symref)

    async def default_branch(self, dir: str) -> Optional[str]:
        """Name of the branch `refs/remotes/<remote>/HEAD` points to."""
        paths = await self.resolver.get_worktree_paths(dir)
        if not paths.gitdir:
            return None
        remote_prefix = f"{refs.REMOTES_PREFIX}{self.config.remote_name}/"
        content = await fs.read_file_if_exists(os.path.join(paths.gitdir, remote_prefix, "HEAD"))
        symref, _ = refs.parse_head(content)
        if not symref or not symref.startswith(remote_prefix):
            return None
        return symref[len(remote_prefix):]

    async def list_branches(self, dir: str, remote: Optional[str] = None) -> List[str]:
        """List local branches, or the branches tracked for `remote`."""
        paths = await self.resolver.get_worktree_paths(dir)
        if not paths.gitdir:
            return []

        def _list() -> List[str]:
            repo = self._get_repo(paths.dir)
            try:
                if not remote:
                    return sorted(head.name for head in repo.heads)
                return sorted(
                    ref.remote_head
                    for ref in repo.references
                    if isinstance(ref, git.RemoteReference)
                    and ref.remote_name == remote
                    and ref.remote_head != "HEAD"
                )
            finally:
                repo.close()

        return await asyncio.to_thread(_list)

    async def resolve_ref(self, dir: str, ref: str) -> Optional[str]:
        """Resolve a ref, branch, tag, commit id or `<ref>~N` to a commit id."""
        paths = await self.resolver.get_worktree_paths(dir)
        if not paths.gitdir:
            return None
        admin = paths.worktree_link or paths.gitdir

        match = _ANCESTRY.match(ref)
        if not match:
            return await refs.resolve_ref(paths.gitdir, ref, gitdir=admin)

        sha = await refs.resolve_ref(paths.gitdir, match.group("base"), gitdir=admin)
        if not sha:
            return None

        def _walk() -> Optional[str]:
            repo = self._get_repo(paths.worktree_dir or paths.dir)
            try:
                commit = repo.commit(sha)
                for _ in range(int(match.group("count"))):
                    if not commit.parents:
                        return None
                    commit = commit.parents[0]
                return commit.hexsha
            finally:
                repo.close()

        return await asyncio.to_thread(_walk)

    async def branch(self, dir: str, ref: str, checkout: bool = False) -> str:
        """Create a branch.

        With `checkout`, the branch is created and checked out in `dir`.
        Otherwise it is created in a new linked worktree at
        `<dir>/../<linked_worktree_root>/<repo name>/<ref>`.

        Returns:
            The directory where the branch is checked out
        """
        paths, root = await self._locate("branch", dir)
        if checkout:
            def _create_and_checkout():
                repo = self._get_repo(root)
                try:
                    repo.git.checkout("-b", ref)
                finally:
                    repo.close()
            await asyncio.to_thread(_create_and_checkout)
            logger.info(f"Created and checked out branch {ref} in {root}")
            return dir

        name = os.path.basename(os.path.abspath(dir))
        linked_root = os.path.normpath(os.path.join(dir, os.pardir, self.config.linked_worktree_root, name, ref))
        await self.worktrees.add(Repository(id=name, name=name, root=dir), linked_root, ref)
        return linked_root

    async def delete_branch(self, dir: str, ref: str) -> None:
        """Delete a local branch that is not checked out in any worktree.

        Raises:
            BranchNotFoundError: If the branch does not exist
            BranchAlreadyCheckedOutError: If a worktree has the branch checked out
        """
        paths, _ = await self._locate("delete_branch", dir)
        checked_out = await self.resolver.get_branch_root(paths.dir, ref)
        if checked_out:
            raise BranchAlreadyCheckedOutError(ref, checked_out)

        def _delete() -> bool:
            repo = self._get_repo(paths.dir)
            try:
                if ref not in [head.name for head in repo.heads]:
                    return False
                repo.delete_head(ref, force=True)
                return True
            finally:
                repo.close()

        if not await asyncio.to_thread(_delete):
            raise BranchNotFoundError(ref)
        logger.info(f"Deleted branch {ref}")

    async def log(
        self, dir: str, ref: str = "HEAD", depth: Optional[int] = None, since: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Get commits reachable from `ref`, newest first.

        Returns:
            Dicts with `oid`, `message`, `author`, `email`, `timestamp` and
            `parents`; empty when the worktree no longer exists or `ref` has
            no commits
        """
        paths = await self.resolver.get_worktree_paths(dir)
        if not paths.dir:
            return []
        root = paths.worktree_dir or paths.dir

        def _log() -> List[Dict[str, Any]]:
            options: Dict[str, Any] = {}
            if depth:
                options["max_count"] = depth
            if since:
                options["since"] = since.isoformat()
            repo = self._get_repo(root)
            try:
                return [
                    {
                        "oid": commit.hexsha,
                        "message": commit.message,
                        "author": commit.author.name,
                        "email": commit.author.email,
                        "timestamp": commit.authored_date,
                        "parents": [parent.hexsha for parent in commit.parents],
                    }
                    for commit in repo.iter_commits(ref, **options)
                ]
            except (git.exc.GitCommandError, ValueError) as e:
                logger.debug(f"No history for {ref} in {root}: {e}")
                return []
            finally:
                repo.close()

        return await asyncio.to_thread(_log)

    # -- working tree ---------------------------------------------------

    @staticmethod
    def _checkout_conflicts(repo: git.Repo, target: str) -> List[str]:
        """Local changes that a checkout of `target` would overwrite."""
        local = {diff.a_path for diff in repo.index.diff(None)}
        try:
            local |= {diff.a_path or diff.b_path for diff in repo.index.diff("HEAD")}
            changed = set()
            for diff in repo.head.commit.diff(target):
                changed.update(path for path in (diff.a_path, diff.b_path) if path)
        except ValueError:
            # unborn HEAD: everything in the target is new
            changed = {item.path for item in repo.commit(target).tree.traverse() if item.type == "blob"}
        return sorted(local & changed)

    async def checkout(
        self,
        dir: str,
        ref: Optional[str] = None,
        gitdir: Optional[str] = None,
        filepaths: Optional[List[str]] = None,
        remote: Optional[str] = None,
        no_checkout: bool = False,
        no_update_head: Optional[bool] = None,
        dry_run: bool = False,
        force: bool = False,
    ) -> None:
        """Switch branches or restore working tree files.

        Args:
            dir: The worktree root directory
            ref: Branch name or commit id; defaults to HEAD
            gitdir: Explicit git directory or `.git` file
            filepaths: Limit the checkout to these files and directories
            remote: Remote used to create a tracking branch when `ref` only
                exists remotely (defaults to the configured remote)
            no_checkout: Move HEAD without updating the working directory
            no_update_head: Update files without moving HEAD; defaults to
                True when `ref` is omitted
            dry_run: Only check that the checkout would succeed
            force: Overwrite local changes

        Raises:
            NotARepositoryError: If `dir` is not in a repository
            BranchAlreadyCheckedOutError: If another worktree has `ref` checked out
            BranchNotFoundError: If `ref` cannot be resolved locally or on the remote
            CheckoutConflictError: If local changes would be overwritten and `force` is not set
        """
        paths, root = await self._locate("checkout", dir, gitdir)
        remote = remote or self.config.remote_name
        if no_update_head is None:
            no_update_head = ref is None
        target = ref or "HEAD"

        if not no_update_head and ref:
            current = await self.current_branch(root)
            if current == refs.short_name(ref):
                logger.debug(f"{ref} is already checked out in {root}")
                return
            if not refs.is_commit_id(ref):
                checked_out = await self.resolver.get_branch_root(paths.dir, refs.short_name(ref))
                if checked_out and not fs.is_equal_paths(checked_out, root):
                    raise BranchAlreadyCheckedOutError(ref, checked_out)

        create_tracking = False
        local_ref = refs.branch_ref(refs.short_name(target))
        if target != "HEAD" and not refs.is_commit_id(target) and not await refs.ref_exists(paths.gitdir, local_ref):
            tracking = f"{refs.REMOTES_PREFIX}{remote}/{target}"
            create_tracking = await refs.resolve_ref(paths.gitdir, tracking) is not None

        def _checkout() -> None:
            repo = self._get_repo(root)
            try:
                start = f"{remote}/{target}" if create_tracking else target
                try:
                    repo.commit(start)
                except (git.exc.BadName, ValueError) as e:
                    raise BranchNotFoundError(target) from e

                if filepaths:
                    if not dry_run:
                        repo.git.checkout(start, "--", *filepaths)
                        logger.info(f"Restored {', '.join(filepaths)} from {target}")
                    return

                if not force and not no_checkout:
                    conflicts = self._checkout_conflicts(repo, start)
                    if no_update_head:
                        conflicts = sorted(
                            {diff.a_path for diff in repo.index.diff(None)} | set(conflicts)
                        )
                    if conflicts:
                        raise CheckoutConflictError(target, conflicts)
                if dry_run:
                    return

                if no_update_head:
                    repo.git.checkout(start, "--", ".")
                    logger.info(f"Updated working directory of {root} from {target}")
                    return

                if create_tracking:
                    repo.git.branch("--track", target, f"{remote}/{target}")
                    logger.info(f"Created branch {target} tracking {remote}/{target}")

                if no_checkout:
                    if refs.is_commit_id(target) or target not in repo.heads:
                        repo.head.reference = repo.commit(target)
                    else:
                        repo.head.reference = repo.heads[target]
                else:
                    args = ["--force", target] if force else [target]
                    repo.git.checkout(*args)
                logger.info(f"Checked out {target} in {root}")
            finally:
                repo.close()

        await asyncio.to_thread(_checkout)

    async def commit(
        self,
        dir: str,
        message: str,
        gitdir: Optional[str] = None,
        author: Optional[Identity] = None,
        committer: Optional[Identity] = None,
        signing_key: Optional[str] = None,
        dry_run: bool = False,
        no_update_branch: bool = False,
        ref: Optional[str] = None,
        parent: Optional[List[str]] = None,
        tree: Optional[str] = None,
    ) -> str:
        """Create a new commit from the index (or an explicit tree).

        Args:
            dir: The worktree root directory
            message: The commit message
            gitdir: Explicit git directory or `.git` file
            author: Defaults to `user.name`/`user.email`, now, local timezone
            committer: Defaults to the author
            signing_key: GPG key id used to sign the commit
            dry_run: Create the commit object without moving any ref
            no_update_branch: Do not move the branch to the new commit
            ref: Full name of the branch to commit to (defaults to HEAD)
            parent: Parent commit ids (defaults to the commit `ref` points to)
            tree: Tree id (defaults to a tree written from the index)

        Returns:
            The id of the new commit

        Raises:
            MissingConfigError: If no author name or email is available
        """
        paths, root = await self._locate("commit", dir, gitdir)
        author = await self._identity(root, author, "commit")
        committer = await self._identity(root, committer, "commit") if committer else author
        if dry_run:
            no_update_branch = True
        target_ref = ref or "HEAD"

        parents = parent
        if parents is None:
            admin = paths.worktree_link or paths.gitdir
            head_sha = await refs.resolve_ref(paths.gitdir, target_ref, gitdir=admin)
            parents = [head_sha] if head_sha else []

        def _commit() -> str:
            repo = self._get_repo(root)
            try:
                tree_sha = tree or repo.index.write_tree().hexsha
                args = [tree_sha]
                for parent_sha in parents:
                    args.extend(["-p", parent_sha])
                args.extend(["-m", message])
                if signing_key:
                    args.append(f"-S{signing_key}")
                sha = repo.git.commit_tree(*args, env=_identity_env(author, committer))
                if not no_update_branch:
                    subject = message.splitlines()[0] if message else ""
                    repo.git.update_ref("-m", f"commit: {subject}", target_ref, sha)
                return sha
            finally:
                repo.close()

        sha = await asyncio.to_thread(_commit)
        if no_update_branch:
            logger.debug(f"Created commit {sha[:7]} without updating {target_ref}")
        else:
            logger.info(f"Committed {sha[:7]} to {target_ref} in {root}")
        return sha

    async def merge(self, dir: str, base: str, compare: str, dry_run: bool = False) -> MergeResult:
        """Merge `compare` into `base`.

        Missing `user.name`/`user.email` do not stop the merge: a placeholder
        identity is used and the missing keys are reported in
        `missing_configs`.

        Raises:
            BranchNotFoundError: If either branch cannot be resolved
            MergeConflictError: If the branches cannot be merged cleanly
        """
        paths, root = await self._locate("merge", dir)

        missing = []
        name = (await self.config_store.get_config(root, "user.name")).value
        if not name:
            missing.append("user.name")
        email = (await self.config_store.get_config(root, "user.email")).value
        if not email:
            missing.append("user.email")
        identity = await self._identity(
            root,
            Identity(name=name or self.config.placeholder_name, email=email or self.config.placeholder_email),
            "merge",
        )
        if missing:
            logger.warning(f"Missing git-config entries {', '.join(missing)}; merging as {identity.name}")
        missing_configs = missing or None

        base_sha = await self.resolve_ref(root, base)
        compare_sha = await self.resolve_ref(root, compare)
        if not base_sha:
            raise BranchNotFoundError(base)
        if not compare_sha:
            raise BranchNotFoundError(compare)
        base_root = await self.resolver.get_branch_root(paths.dir, refs.short_name(base))
        env = _identity_env(identity, identity)
        message = f"Merge branch '{refs.short_name(compare)}' into {refs.short_name(base)}"

        def _merge() -> MergeResult:
            repo = self._get_repo(root)
            try:
                if base_sha == compare_sha or repo.is_ancestor(compare_sha, base_sha):
                    return MergeResult(
                        oid=base_sha, tree=repo.commit(base_sha).tree.hexsha, already_merged=True,
                        missing_configs=missing_configs,
                    )

                if repo.is_ancestor(base_sha, compare_sha):
                    if not dry_run:
                        if base_root:
                            checked_out = self._get_repo(base_root)
                            try:
                                checked_out.git.merge("--ff-only", compare_sha)
                            finally:
                                checked_out.close()
                        else:
                            repo.git.update_ref("-m", f"merge {compare}: Fast-forward", refs.branch_ref(base), compare_sha)
                    return MergeResult(
                        oid=compare_sha, tree=repo.commit(compare_sha).tree.hexsha, fast_forward=True,
                        missing_configs=missing_configs,
                    )

                status, stdout, stderr = repo.git.merge_tree(
                    "--write-tree", "--name-only", "--no-messages", base_sha, compare_sha,
                    with_extended_output=True, with_exceptions=False,
                )
                lines = stdout.splitlines()
                if status == 1:
                    raise MergeConflictError(base, compare, list(dict.fromkeys(line for line in lines[1:] if line)))
                if status != 0:
                    raise GitOperationError("merge", base, stderr.strip() or f"git merge-tree exited with {status}")
                tree_sha = lines[0].strip()
                if dry_run:
                    return MergeResult(tree=tree_sha, merge_commit=True, missing_configs=missing_configs)

                if base_root:
                    checked_out = self._get_repo(base_root)
                    try:
                        checked_out.git.merge("--no-ff", "-m", message, compare_sha, env=env)
                        oid = checked_out.head.commit.hexsha
                    finally:
                        checked_out.close()
                else:
                    oid = repo.git.commit_tree(tree_sha, "-p", base_sha, "-p", compare_sha, "-m", message, env=env)
                    repo.git.update_ref("-m", message, refs.branch_ref(base), oid)
                return MergeResult(oid=oid, tree=tree_sha, merge_commit=True, missing_configs=missing_configs)
            finally:
                repo.close()

        result = await asyncio.to_thread(_merge)
        if not dry_run and not result.already_merged:
            logger.info(f"Merged {compare} into {base} ({(result.oid or '')[:7]})")
        return result

    # -- network --------------------------------------------------------

    async def _remote_url(self, dir: Optional[str], url: Optional[str]) -> str:
        if url:
            return url
        if dir:
            found = await self.config_store.get_config(dir, f"remote.{self.config.remote_name}.url")
            if found.value:
                return found.value
        raise ValueError("A remote URL is required (none given and none configured)")

    async def get_remote_info(
        self,
        dir: Optional[str] = None,
        url: Optional[str] = None,
        on_auth: Optional[AuthCallback] = None,
        on_auth_failure: Optional[AuthFailureCallback] = None,
        on_auth_success: Optional[AuthSuccessCallback] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> RemoteInfo:
        """List a remote's branches, tags and HEAD; `url` defaults to the configured remote of `dir`."""
        return await self.remote.get_remote_info(
            await self._remote_url(dir, url),
            on_auth=on_auth,
            on_auth_failure=on_auth_failure,
            on_auth_success=on_auth_success,
            headers=headers,
        )

    async def list_server_refs(
        self,
        dir: Optional[str] = None,
        url: Optional[str] = None,
        prefix: Optional[str] = None,
        symrefs: bool = False,
        peel_tags: bool = False,
        on_auth: Optional[AuthCallback] = None,
        on_auth_failure: Optional[AuthFailureCallback] = None,
        on_auth_success: Optional[AuthSuccessCallback] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> List[ServerRef]:
        """List refs on a remote; `url` defaults to the configured remote of `dir`."""
        return await self.remote.list_server_refs(
            await self._remote_url(dir, url),
            prefix=prefix,
            symrefs=symrefs,
            peel_tags=peel_tags,
            on_auth=on_auth,
            on_auth_failure=on_auth_failure,
            on_auth_success=on_auth_success,
            headers=headers,
        )

    async def _copy_repository(self, root: str, paths: WorktreePaths, dir: str) -> None:
        """Copy the worktree at `root` into `dir` as a standalone repository.

        A linked worktree has only a `.git` pointer file, so the main git
        directory is copied in its place and the linked worktree's own HEAD
        and index are carried over. Linked worktree registrations are dropped.
        """
        gitdir = os.path.join(dir, ".git")
        if not paths.is_linked:
            await fs.copy_tree(root, dir, exclude=self.config.clone_excludes)
        else:
            await fs.copy_tree(root, dir, exclude=[*self.config.clone_excludes, ".git"])
            await fs.copy_tree(paths.gitdir, gitdir)
            head = await fs.read_file(os.path.join(paths.worktree_link, "HEAD"))
            await fs.write_file(os.path.join(gitdir, "HEAD"), head)
            index = os.path.join(paths.worktree_link, "index")
            if await fs.is_file(index):
                await fs.copy_file(index, os.path.join(gitdir, "index"))
        worktrees = os.path.join(gitdir, WORKTREES_DIR)
        if await fs.is_dir(worktrees):
            await fs.remove_tree(worktrees)

    async def clone(
        self,
        dir: str,
        repo: Optional[Repository] = None,
        url: Optional[str] = None,
        ref: Optional[str] = None,
        single_branch: bool = False,
        no_checkout: bool = False,
        no_tags: bool = False,
        depth: Optional[int] = None,
        exclude: Optional[List[str]] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_auth: Optional[AuthCallback] = None,
        on_auth_failure: Optional[AuthFailureCallback] = None,
        on_auth_success: Optional[AuthSuccessCallback] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        """Clone a repository from a URL or from a local repository.

        When cloning a local `repo` whose target branch (`ref`, or its
        current branch) has never been pushed, the working directory is
        copied instead (skipping the configured clone excludes) and the
        target branch is checked out in the copy.

        Returns:
            True on success; False when `dir` is empty or neither `url`
            nor `repo` is given

        Raises:
            RemoteOperationError: If a network clone fails
        """
        if not dir:
            return False

        network = dict(
            single_branch=single_branch,
            no_checkout=no_checkout,
            no_tags=no_tags,
            depth=depth,
            exclude=exclude,
            on_progress=on_progress,
            on_auth=on_auth,
            on_auth_failure=on_auth_failure,
            on_auth_success=on_auth_success,
            headers=headers,
        )
        if url:
            await self.remote.clone(url, dir, branch=ref, **network)
            return True
        if repo is None:
            return False

        paths = await self.resolver.get_worktree_paths(repo.root)
        existing = await self.current_branch(repo.root) if paths.dir else None
        remote_branches = await self.list_branches(paths.dir, remote=self.config.remote_name) if paths.dir else []
        target = ref or existing

        if target and target not in remote_branches:
            logger.info(f"{target} has no remote branch, copying {repo.root} to {dir}")
            await self._copy_repository(repo.root, paths, dir)
            if not await refs.ref_exists(os.path.join(dir, ".git"), refs.branch_ref(target)):
                head = await refs.resolve_ref(os.path.join(dir, ".git"), "HEAD")
                if head:
                    await refs.write_ref(os.path.join(dir, ".git"), refs.branch_ref(target), head)
            if not no_checkout and await self.current_branch(dir) != target:
                await self.checkout(dir, ref=target)
            return True

        await self.remote.clone(repo.url, dir, branch=ref, **network)
        return True
