"""Git config file access for gitcore."""

import asyncio
import configparser
import os
import tempfile
from typing import List, Optional, Tuple, Union

import git
from git.config import GitConfigParser

from gitcore.config import Config
from gitcore.models.git_config import ConfigScope, GitConfig
from gitcore.services.git.path_resolver import PathResolver
from gitcore.utils import fs
from gitcore.logging_config import get_logger

logger = get_logger(__name__)

ConfigValue = Union[str, bool, int, None]


def split_key(key_path: str) -> Tuple[str, str]:
    """Split a dotted key into a GitPython section name and an option.

    `user.name` -> (`user`, `name`); `remote.origin.url` ->
    (`remote "origin"`, `url`). The subsection may itself contain dots
    (`branch.feature.x.merge`).

    Raises:
        ValueError: If the key has no section part
    """
    section, dot, rest = key_path.partition(".")
    if not dot or not section or not rest:
        raise ValueError(f"Invalid config key '{key_path}': expected section.key")
    if "." in rest:
        subsection, option = rest.rsplit(".", 1)
        return f'{section} "{subsection}"', option
    return section, rest


def format_value(value: Union[str, bool, int]) -> str:
    """Serialize a value the way `git config` writes it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigStore:
    """Service for reading and writing repository and user git config."""

    def __init__(self, resolver: PathResolver, config: Optional[Config] = None):
        """Initialize the config store.

        Args:
            resolver: Used to map worktree paths to the main repository
            config: gitcore settings (global config location override)
        """
        self.resolver = resolver
        self.config = config or Config()

    def global_config_path(self) -> str:
        """Location of the user's global git config file."""
        if self.config.global_config_path:
            return self.config.global_config_path
        return git.config.get_config_path("global")

    async def local_config_path(self, dir: str, gitdir: Optional[str] = None) -> Optional[str]:
        """Location of the repository config file, shared by all worktrees."""
        paths = await self.resolver.get_worktree_paths(gitdir or dir)
        if not paths.gitdir:
            return None
        return os.path.join(paths.gitdir, "config")

    async def _config_path(self, dir: str, scope: ConfigScope, gitdir: Optional[str]) -> Optional[str]:
        if scope == "local":
            return await self.local_config_path(dir, gitdir)
        if scope == "global":
            return self.global_config_path()
        return None

    @staticmethod
    def _read_value(path: str, section: str, option: str) -> Optional[str]:
        if not os.path.isfile(path):
            return None
        parser = GitConfigParser(path, read_only=True)
        try:
            parser.read()
            if not parser.has_option(section, option):
                return None
            return parser.get(section, option)
        except configparser.Error as e:
            logger.debug(f"Could not parse {path}: {e}")
            return None
        finally:
            parser.release()

    async def get_config(
        self,
        dir: str,
        key_path: str,
        local: bool = True,
        global_: bool = True,
        show_origin: bool = False,
        gitdir: Optional[str] = None,
    ) -> GitConfig:
        """Look up a config value, local scope first, then global.

        Args:
            dir: Any path inside the repository
            key_path: Dotted key such as `user.name` or `remote.origin.url`
            local: Search the repository config
            global_: Search the user's global config
            show_origin: Include `file:<path>` for the file the value came from
            gitdir: Explicit git directory (defaults to the one found from `dir`)

        Returns:
            GitConfig with scope `none` when no enabled scope defines the key
        """
        section, option = split_key(key_path)
        scopes: List[ConfigScope] = []
        if local:
            scopes.append("local")
        if global_:
            scopes.append("global")

        for scope in scopes:
            path = await self._config_path(dir, scope, gitdir)
            if not path:
                continue
            value = await asyncio.to_thread(self._read_value, path, section, option)
            if value is not None:
                logger.debug(f"{key_path} found in {scope} config ({path})")
                return GitConfig(scope=scope, value=value, origin=f"file:{path}" if show_origin else None)

        logger.debug(f"{key_path} not found in config")
        return GitConfig(scope="none")

    @staticmethod
    def _write_value(path: str, section: str, option: str, value: Optional[str]) -> Optional[str]:
        with open(path, "r", encoding="utf-8") as f:
            original = f.read()

        directory = os.path.dirname(os.path.abspath(path))
        fd, temp_path = tempfile.mkstemp(prefix=".config-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(original)

            changed = True
            # includes are not merged so that write-back is never skipped
            writer = GitConfigParser(temp_path, read_only=False, merge_includes=False)
            try:
                writer.read()
                if value is None:
                    if writer.has_option(section, option):
                        writer.remove_option(section, option)
                    else:
                        changed = False
                else:
                    writer.set_value(section, option, value)
            finally:
                writer.release()

            if not changed:
                os.remove(temp_path)
                return original
            with open(temp_path, "r", encoding="utf-8") as f:
                updated = f.read()
            os.replace(temp_path, path)
            return updated
        except configparser.Error as e:
            logger.debug(f"Could not parse {path}: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            return None
        except BaseException:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    async def set_config(
        self,
        dir: str,
        scope: ConfigScope,
        key_path: str,
        value: ConfigValue,
        gitdir: Optional[str] = None,
    ) -> Optional[str]:
        """Set, overwrite or delete (`value=None`) a config value.

        The edited file is written to a temporary sibling first and then
        renamed over the original.

        Returns:
            The new contents of the config file, or None when the file for
            `scope` does not exist or cannot be parsed
        """
        section, option = split_key(key_path)
        path = await self._config_path(dir, scope, gitdir)
        if not path or not await fs.is_file(path):
            logger.debug(f"No {scope} config file for {dir}")
            return None

        serialized = None if value is None else format_value(value)
        contents = await asyncio.to_thread(self._write_value, path, section, option, serialized)
        if contents is not None:
            action = "Unset" if value is None else "Set"
            logger.info(f"{action} {key_path} in {scope} config")
        return contents
