"""
Flag Set Builder — compiler selection and ordered compile/link flags.

Runs once per build invocation. The only side effects are the pkg-config
queries; any failure there aborts the build, since every later step
depends on these flags.
"""
import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from native_make.config import Settings
from native_make.errors import FALLBACK_EXIT_CODE, ConfigurationError, ExternalToolError
from native_make.io.schema import Project
from native_make.policy.profile import Profile

logger = logging.getLogger(__name__)

# c11, gnu99, c2x, c++17, gnu++2a, ...
_STD_PATTERN = re.compile(r"^(c|gnu|c\+\+|gnu\+\+)[0-9][0-9a-z]*$")


@dataclass
class FlagSet:
    """
    Compiler executable plus ordered compile and link flag sequences.

    Link inputs are only ever added with ``prepend_link_input``: the most
    recently registered object lands at the front, so objects registered
    first (foreign objects) end up last on the link line and resolve the
    symbols the generated units need.
    """

    compiler: str
    compile_flags: List[str] = field(default_factory=list)
    link_flags: List[str] = field(default_factory=list)

    def prepend_link_input(self, path: str) -> None:
        """Insert an object at the front of the link sequence."""
        self.link_flags.insert(0, path)


def is_cxx_standard(std: str) -> bool:
    return "c++" in std


def validate_standard(std: str) -> str:
    """Reject standard strings the compiler could not possibly accept."""
    if not _STD_PATTERN.match(std):
        raise ConfigurationError(f"malformed language standard: {std!r}")
    return std


def select_compiler(std: Optional[str], settings: Settings, profile: Profile) -> str:
    """CC (or the C default); CXX (or the C++ default) for a C++ standard."""
    compiler = settings.CC or profile.default_cc
    if std is not None and is_cxx_standard(std):
        compiler = settings.CXX or profile.default_cxx
    return compiler


def query_pkg_config(
    tool: str,
    option: str,
    package: str,
    fallback: int = FALLBACK_EXIT_CODE,
) -> List[str]:
    """Run ``<tool> <option> <package>`` and split stdout on whitespace."""
    cmd = [tool, option, package]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
    except OSError as e:
        raise ExternalToolError(
            tool, f"{option} {package}", detail=str(e), fallback=fallback
        ) from e

    if result.returncode != 0:
        raise ExternalToolError(
            tool,
            f"{option} {package}",
            result.returncode,
            detail=result.stderr.strip(),
            fallback=fallback,
        )
    return result.stdout.split()


def build_flag_set(
    project: Project,
    settings: Optional[Settings] = None,
    profile: Optional[Profile] = None,
    target_dir: Optional[Path] = None,
) -> FlagSet:
    """
    Assemble the FlagSet for *project*.

    Order of compile flags: -std, include dirs, pkg-config cflags,
    baseline (-fPIC, -I ., -I <target>/include/, hidden visibility),
    then the project's own cflags so they can override the baseline.
    Link flags: pkg-config libs, then the project's own lflags.
    """
    if settings is None:
        settings = Settings()
    if profile is None:
        profile = Profile.default()
    if target_dir is None:
        target_dir = Path(settings.NATIVE_MAKE_TARGET_DIR)

    compile_flags: List[str] = []
    link_flags: List[str] = []

    if project.std is not None:
        validate_standard(project.std)
        compile_flags.append(f"-std={project.std}")

    compiler = select_compiler(project.std, settings, profile)

    for include in project.cincludes:
        compile_flags.extend(["-I", include])

    for package in project.pkgconfig:
        compile_flags.extend(query_pkg_config(
            settings.PKG_CONFIG, "--cflags", package, profile.fallback_exit_code,
        ))
        link_flags.extend(query_pkg_config(
            settings.PKG_CONFIG, "--libs", package, profile.fallback_exit_code,
        ))

    compile_flags.extend([
        "-fPIC",
        "-I", ".",
        "-I", f"{target_dir.as_posix()}/include/",
        "-fvisibility=hidden",
    ])

    compile_flags.extend(project.cflags)
    link_flags.extend(project.lflags)

    logger.debug("Compiler: %s", compiler)
    logger.debug("Compile flags: %s", compile_flags)
    return FlagSet(compiler=compiler, compile_flags=compile_flags, link_flags=link_flags)
