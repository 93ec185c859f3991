"""Network operations service for gitcore."""

import asyncio
import inspect
import os
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from urllib.parse import quote, urlsplit, urlunsplit

import git

from gitcore.exceptions import RemoteOperationError
from gitcore.models.operations import RemoteInfo, ServerRef
from gitcore.models.repository import Credentials
from gitcore.services.git import refs
from gitcore.logging_config import get_logger

logger = get_logger(__name__)

# Callbacks may be plain functions or coroutine functions
AuthCallback = Callable[[str], Union[Optional[Credentials], Awaitable[Optional[Credentials]]]]
AuthFailureCallback = Callable[[str, Credentials], Union[Optional[Credentials], Awaitable[Optional[Credentials]]]]
AuthSuccessCallback = Callable[[str, Credentials], Union[None, Awaitable[None]]]
ProgressCallback = Callable[[str, int, Optional[int]], Union[None, Awaitable[None]]]

_AUTH_FAILURE_MARKERS = (
    "Authentication failed",
    "could not read Username",
    "could not read Password",
    "403",
    "401",
)


async def invoke_callback(callback: Callable, *args: Any) -> Any:
    """Call a sync or async callback and return its result."""
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def with_credentials(url: str, credentials: Optional[Credentials]) -> str:
    """Embed credentials in an HTTP(S) URL; other URLs are returned unchanged."""
    if not credentials or not credentials.secret:
        return url
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        return url
    username = credentials.username or ("oauth2" if credentials.token else "")
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    netloc = f"{quote(username, safe='')}:{quote(credentials.secret, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def redact(url: str) -> str:
    """Remove any userinfo from a URL before it is logged or raised."""
    parts = urlsplit(url)
    if not parts.username and not parts.password:
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))


def is_auth_failure(error: git.exc.GitCommandError) -> bool:
    stderr = str(error.stderr or "")
    return any(marker in stderr for marker in _AUTH_FAILURE_MARKERS)


class CloneProgress(git.RemoteProgress):
    """Forwards GitPython progress updates to an `on_progress(phase, loaded, total)` callback.

    Updates arrive on the worker thread running the clone; each one is
    handed to the event loop and waited for before the clone continues.
    """

    PHASES = {
        git.RemoteProgress.COUNTING: "Counting objects",
        git.RemoteProgress.COMPRESSING: "Compressing objects",
        git.RemoteProgress.WRITING: "Writing objects",
        git.RemoteProgress.RECEIVING: "Receiving objects",
        git.RemoteProgress.RESOLVING: "Resolving deltas",
        git.RemoteProgress.FINDING_SOURCES: "Finding sources",
        git.RemoteProgress.CHECKING_OUT: "Checking out files",
    }

    def __init__(self, callback: ProgressCallback, loop: asyncio.AbstractEventLoop):
        super().__init__()
        self.callback = callback
        self.loop = loop

    def update(self, op_code, cur_count, max_count=None, message=""):
        phase = self.PHASES.get(op_code & self.OP_MASK, "Working")
        loaded = int(cur_count or 0)
        total = int(max_count) if max_count else None
        future = asyncio.run_coroutine_threadsafe(invoke_callback(self.callback, phase, loaded, total), self.loop)
        future.result()


class RemoteClient:
    """Service for operations that talk to a remote server."""

    def _git(self, headers: Optional[Dict[str, str]] = None) -> git.Git:
        """A git command runner that never prompts and sends any extra HTTP headers."""
        runner = git.Git()
        runner.update_environment(GIT_TERMINAL_PROMPT="0")
        if headers:
            runner = runner(c=[f"http.extraHeader={name}: {value}" for name, value in headers.items()])
        return runner

    async def _with_auth(
        self,
        operation: str,
        url: str,
        action: Callable[[str], Any],
        on_auth: Optional[AuthCallback] = None,
        on_auth_failure: Optional[AuthFailureCallback] = None,
        on_auth_success: Optional[AuthSuccessCallback] = None,
    ) -> Any:
        """Run `action(authenticated_url)` in a worker thread, retrying once after an auth failure."""
        credentials = await invoke_callback(on_auth, url) if on_auth else None
        retried = False
        while True:
            try:
                result = await asyncio.to_thread(action, with_credentials(url, credentials))
            except git.exc.GitCommandError as e:
                if is_auth_failure(e) and credentials and on_auth_failure and not retried:
                    logger.debug(f"{operation}: authentication failed for {redact(url)}, asking for new credentials")
                    credentials = await invoke_callback(on_auth_failure, url, credentials)
                    retried = True
                    if credentials:
                        continue
                stderr = str(e.stderr or "").strip()
                logger.error(f"{operation} failed for {redact(url)}: {stderr}")
                raise RemoteOperationError(operation, redact(url), stderr or f"exit code {e.status}") from e

            if credentials and on_auth_success:
                await invoke_callback(on_auth_success, url, credentials)
            return result

    async def list_server_refs(
        self,
        url: str,
        prefix: Optional[str] = None,
        symrefs: bool = False,
        peel_tags: bool = False,
        on_auth: Optional[AuthCallback] = None,
        on_auth_failure: Optional[AuthFailureCallback] = None,
        on_auth_success: Optional[AuthSuccessCallback] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> List[ServerRef]:
        """List refs advertised by a remote (`git ls-remote`).

        Args:
            url: Remote URL (or local path)
            prefix: Only return refs starting with this prefix
            symrefs: Report symbolic ref targets (e.g. HEAD -> refs/heads/main)
            peel_tags: Keep the peeled `^{}` entries of annotated tags

        Raises:
            RemoteOperationError: If the remote cannot be reached
        """
        def _ls_remote(authed_url: str) -> str:
            args = ["--symref"] if symrefs else []
            args.append(authed_url)
            return self._git(headers).ls_remote(*args)

        output = await self._with_auth("ls_remote", url, _ls_remote, on_auth, on_auth_failure, on_auth_success)

        targets: Dict[str, str] = {}
        server_refs: List[ServerRef] = []
        for line in output.splitlines():
            if line.startswith(refs.SYMREF_PREFIX):
                target, _, name = line[len(refs.SYMREF_PREFIX):].partition("\t")
                targets[name.strip()] = target.strip()
                continue
            oid, _, name = line.partition("\t")
            name = name.strip()
            if not name or (name.endswith("^{}") and not peel_tags):
                continue
            if prefix and not name.startswith(prefix):
                continue
            server_refs.append(ServerRef(ref=name, oid=oid.strip(), target=targets.get(name)))

        logger.debug(f"{redact(url)} advertises {len(server_refs)} refs")
        return server_refs

    async def get_remote_info(
        self,
        url: str,
        on_auth: Optional[AuthCallback] = None,
        on_auth_failure: Optional[AuthFailureCallback] = None,
        on_auth_success: Optional[AuthSuccessCallback] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> RemoteInfo:
        """Summarize the branches, tags and HEAD advertised by a remote."""
        server_refs = await self.list_server_refs(
            url,
            symrefs=True,
            on_auth=on_auth,
            on_auth_failure=on_auth_failure,
            on_auth_success=on_auth_success,
            headers=headers,
        )
        info = RemoteInfo(url=url)
        for server_ref in server_refs:
            if server_ref.ref == "HEAD":
                info.head = server_ref.target or server_ref.oid
            elif server_ref.ref.startswith(refs.HEADS_PREFIX):
                info.heads[refs.short_name(server_ref.ref)] = server_ref.oid
            elif server_ref.ref.startswith(refs.TAGS_PREFIX):
                info.tags[refs.short_name(server_ref.ref)] = server_ref.oid
        return info

    async def clone(
        self,
        url: str,
        dir: str,
        branch: Optional[str] = None,
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
    ) -> None:
        """Clone `url` into `dir` with `git clone`.

        Raises:
            RemoteOperationError: If the clone fails
        """
        options: Dict[str, Any] = {}
        if branch:
            options["branch"] = branch
        if single_branch:
            options["single_branch"] = True
        if no_checkout:
            options["no_checkout"] = True
        if no_tags:
            options["no_tags"] = True
        if depth:
            options["depth"] = depth
        if exclude:
            options["shallow_exclude"] = exclude
        if headers:
            options["c"] = [f"http.extraHeader={name}: {value}" for name, value in headers.items()]

        loop = asyncio.get_running_loop()
        progress = CloneProgress(on_progress, loop) if on_progress else None

        def _clone(authed_url: str) -> None:
            repo = git.Repo.clone_from(
                authed_url,
                dir,
                progress=progress,
                env={"GIT_TERMINAL_PROMPT": "0"},
                allow_unsafe_options=bool(headers),  # -c is needed for extra headers
                **options,
            )
            try:
                if authed_url != url:
                    # keep credentials out of the stored remote
                    repo.remote().set_url(url)
            finally:
                repo.close()

        await self._with_auth("clone", url, _clone, on_auth, on_auth_failure, on_auth_success)
        logger.info(f"Cloned {redact(url)} into {os.path.abspath(dir)}")
