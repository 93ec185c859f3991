"""Asynchronous filesystem helpers.

Every helper hands the blocking call to `asyncio.to_thread` and awaits it, so
callers suspend at each read, write or delete without leaving work running
after they resume.
"""

import asyncio
import os
import shutil
from typing import Callable, Iterable, List, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]


async def read_file(path: PathLike) -> str:
    """Read a text file as UTF-8."""
    def _read() -> str:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    return await asyncio.to_thread(_read)


async def read_file_if_exists(path: PathLike) -> Optional[str]:
    """Read a text file, returning None when it does not exist."""
    try:
        return await read_file(path)
    except (FileNotFoundError, NotADirectoryError):
        return None


async def write_file(path: PathLike, content: str, make_parents: bool = False) -> None:
    """Write a text file as UTF-8 (no newline translation)."""
    def _write() -> None:
        if make_parents:
            os.makedirs(os.path.dirname(os.fspath(path)) or os.curdir, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    await asyncio.to_thread(_write)


async def exists(path: PathLike) -> bool:
    return await asyncio.to_thread(os.path.lexists, path)


async def is_dir(path: PathLike) -> bool:
    return await asyncio.to_thread(os.path.isdir, path)


async def is_file(path: PathLike) -> bool:
    return await asyncio.to_thread(os.path.isfile, path)


async def list_dir(path: PathLike) -> List[str]:
    """Sorted directory entries, or an empty list when the directory is missing."""
    def _list() -> List[str]:
        try:
            return sorted(os.listdir(path))
        except (FileNotFoundError, NotADirectoryError):
            return []
    return await asyncio.to_thread(_list)


async def make_dirs(path: PathLike) -> None:
    await asyncio.to_thread(os.makedirs, path, exist_ok=True)


async def remove_tree(path: PathLike) -> None:
    """Recursively delete a directory (or a single file); missing paths are ignored."""
    def _remove() -> None:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        elif os.path.lexists(path):
            os.remove(path)
    await asyncio.to_thread(_remove)


async def copy_file(source: PathLike, destination: PathLike) -> None:
    await asyncio.to_thread(shutil.copyfile, source, destination)


async def copy_tree(source: PathLike, destination: PathLike, exclude: Iterable[str] = ()) -> None:
    """Recursively copy a directory, skipping any entry whose name is in `exclude`."""
    ignore: Optional[Callable] = shutil.ignore_patterns(*exclude) if exclude else None
    await asyncio.to_thread(shutil.copytree, source, destination, symlinks=True, ignore=ignore, dirs_exist_ok=True)


def is_equal_paths(first: PathLike, second: PathLike) -> bool:
    """Compare two paths after resolving symlinks and relative segments."""
    return os.path.realpath(first) == os.path.realpath(second)


def is_within(path: PathLike, parent: PathLike) -> bool:
    """True when `path` equals or is contained in `parent` (symlinks resolved)."""
    path_real = os.path.realpath(path)
    parent_real = os.path.realpath(parent)
    return path_real == parent_real or path_real.startswith(parent_real.rstrip(os.sep) + os.sep)
