"""
Staleness oracle — is a target older than any of its declared sources?
"""
import os
from pathlib import Path
from typing import Iterable, Union

from native_make.errors import FilesystemError

PathLike = Union[str, Path]


def is_stale(sources: Iterable[PathLike], target: PathLike) -> bool:
    """
    Return True if *target* must be rebuilt.

    A target whose metadata cannot be read (usually: it does not exist)
    is stale. Otherwise it is stale if any source was modified strictly
    after it. A source that cannot be stat'ed is a missing declared
    dependency and raises FilesystemError; it never counts as fresh.
    """
    try:
        target_mtime = os.stat(target).st_mtime_ns
    except OSError:
        return True

    stale = False
    for source in sources:
        try:
            source_mtime = os.stat(source).st_mtime_ns
        except OSError as e:
            raise FilesystemError(source, e.strerror or str(e)) from e
        if source_mtime > target_mtime:
            stale = True
    return stale
