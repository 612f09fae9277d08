"""
Linker — the final link invocation, run after every compile step.

The compiler executable doubles as the link driver. Link flags are the
accumulated sequence (objects in front, pkg-config libs and project
lflags behind), followed by kind-specific output flags and a trailing
hidden-visibility flag.
"""
import logging
import subprocess
import time
from pathlib import Path
from typing import List, Tuple

from native_make.core.flags import FlagSet
from native_make.core.progress import ProgressReporter
from native_make.errors import ConfigurationError, ExternalToolError
from native_make.io.schema import Artifact, ArtifactKind, LinkPhase
from native_make.policy.profile import Profile

logger = logging.getLogger(__name__)


def check_linkable(artifact: Artifact) -> None:
    """Header-only artifacts have nothing to link."""
    if artifact.kind == ArtifactKind.HEADER:
        raise ConfigurationError(f"cannot link header artifact {artifact.name!r}")


def artifact_path(artifact: Artifact, target_dir: Path, profile: Profile) -> Path:
    """Where the linked artifact lands."""
    check_linkable(artifact)
    if artifact.kind == ArtifactKind.LIBRARY:
        return target_dir / f"{artifact.name}{profile.shared_library_suffix}"
    return target_dir / artifact.name


def link_arguments(
    flags: FlagSet,
    artifact: Artifact,
    target_dir: Path,
    profile: Profile,
) -> Tuple[List[str], Path]:
    """Full link argument list (without the driver) and the output path."""
    outp = artifact_path(artifact, target_dir, profile)
    args = list(flags.link_flags)
    if artifact.kind == ArtifactKind.LIBRARY:
        args.append("-shared")
    args.extend(["-o", outp.as_posix()])
    args.append("-fvisibility=hidden")
    return args, outp


def link(
    flags: FlagSet,
    artifact: Artifact,
    target_dir: Path,
    profile: Profile,
    progress: ProgressReporter,
) -> Tuple[LinkPhase, Path]:
    """
    Link the artifact. Only call once every compile step has succeeded.

    Raises
    ------
    ConfigurationError
        For a Header artifact, before anything is spawned.
    ExternalToolError
        If the link driver cannot be started or exits non-zero.
    """
    args, outp = link_arguments(flags, artifact, target_dir, profile)
    outp.parent.mkdir(parents=True, exist_ok=True)

    cmd = [flags.compiler, *args]
    cmd_str = " ".join(cmd)

    progress.message(f"[WORK] ld [{artifact.kind.value}] {artifact.name}")
    logger.debug("Link flags: %s", args)

    t0 = time.monotonic()
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
    except OSError as e:
        raise ExternalToolError(
            flags.compiler,
            f"link {artifact.name}",
            detail=str(e),
            fallback=profile.fallback_exit_code,
        ) from e
    duration = int((time.monotonic() - t0) * 1000)

    if result.returncode != 0:
        logger.error("error linking %s\n%s", artifact.name, result.stderr.rstrip())
        raise ExternalToolError(
            flags.compiler,
            f"link {artifact.name}",
            result.returncode,
            fallback=profile.fallback_exit_code,
        )

    progress.finish("done linking")
    logger.info("Linked %s -> %s (%d ms)", artifact.name, outp, duration)

    phase = LinkPhase(command=cmd_str, exit_code=result.returncode, duration_ms=duration)
    return phase, outp
