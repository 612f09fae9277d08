"""
Profile — fixed toolchain policy for a build.

Every opinion about compilers, diagnostics and on-disk layout lives here,
so core logic only applies what the profile says.
"""
import sys
from dataclasses import dataclass
from typing import Tuple

from native_make.errors import FALLBACK_EXIT_CODE


def _shared_library_suffix() -> str:
    if sys.platform == "darwin":
        return ".dylib"
    if sys.platform.startswith(("win", "cygwin")):
        return ".dll"
    return ".so"


@dataclass(frozen=True)
class Profile:
    """Describes the toolchain defaults and the object cache layout."""

    # Identity
    profile_id: str

    # Compiler defaults (overridden by CC / CXX)
    default_cc: str
    default_cxx: str

    # Diagnostics applied to generated translation units
    generated_unit_cflags: Tuple[str, ...]

    # Object cache layout
    foreign_namespace: str = "c"
    generated_namespace: str = "zz"
    object_suffix: str = ".o"
    filler: str = "_"

    shared_library_suffix: str = ".so"
    fallback_exit_code: int = FALLBACK_EXIT_CODE

    @classmethod
    def default(cls) -> "Profile":
        """clang toolchain, generated units held to strict diagnostics."""
        return cls(
            profile_id="native-clang-pic",
            default_cc="clang",
            default_cxx="clang++",
            generated_unit_cflags=(
                "-Werror=implicit-function-declaration",
                "-Werror=incompatible-pointer-types",
                "-Werror=return-type",
                "-Wpedantic",
                "-Wall",
                "-Wno-unused-function",
                "-Wno-parentheses-equality",
                "-Werror=pointer-sign",
                "-Werror=int-to-pointer-cast",
            ),
            shared_library_suffix=_shared_library_suffix(),
        )
