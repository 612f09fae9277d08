"""
Content-addressed object naming.

An object path is a pure function of the compile invocation that
produces it: change any flag, the argument order or the source path and
the object lands somewhere else, so a stale object can never be reused
under new flags.

xxh3-128 is used as a cache key only. Accidental collisions are
improbable; it is not meant to resist deliberate ones.
"""
from pathlib import Path
from typing import Sequence

import xxhash

from native_make.policy.profile import Profile


def invocation_hash(args: Sequence[str]) -> str:
    """128-bit hex digest of the space-joined argument list."""
    return xxhash.xxh3_128_hexdigest(" ".join(args).encode("utf-8"))


def sanitize(stem: str, filler: str = "_") -> str:
    """Replace every non-alphanumeric character with *filler*.

    Alphanumeric is Unicode-aware: ``café.c`` becomes ``café_c``.
    """
    return "".join(c if c.isalnum() else filler for c in stem)


def object_path(
    args: Sequence[str],
    stem: str,
    namespace: str,
    target_dir: Path,
    profile: Profile,
) -> Path:
    """
    Derive the cache path for an invocation.

    *args* is the full per-unit argument list up to and including the
    source path, without the trailing ``-o <path>`` pair.

    Layout: <target_dir>/<namespace>/<sanitized stem>_<hash><suffix>
    """
    filename = f"{sanitize(stem, profile.filler)}_{invocation_hash(args)}{profile.object_suffix}"
    return target_dir / namespace / filename
