"""
Build runner — top-level orchestration: request → compiled objects → artifact.

Ties the flag builder, scheduler and linker into a single ``run_build``
function that can be called from Python or from the CLI below.

Usage (CLI)::

    native-make build.json -j 8

where build.json holds a BuildRequest::

    {
      "project":  {"std": "c11", "cobjects": ["a.c"]},
      "artifact": {"name": "prog", "kind": "exe"},
      "units":    [{"name": "main", "filepath": "target/zz/main.c",
                    "sources": ["main.zz", "helper.zz"]}]
    }
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from native_make.config import Settings
from native_make.core.artifact import describe_artifact
from native_make.core.flags import build_flag_set
from native_make.core.linker import check_linkable, link
from native_make.core.progress import ProgressReporter
from native_make.core.scheduler import StepScheduler
from native_make.errors import ConfigurationError, NativeMakeError
from native_make.io.schema import (
    Artifact,
    BuildReceipt,
    BuildRequest,
    GeneratedUnit,
    Project,
    now_iso,
)
from native_make.io.writer import write_receipt
from native_make.policy.profile import Profile

logger = logging.getLogger(__name__)


def run_build(
    project: Project,
    artifact: Artifact,
    units: Iterable[GeneratedUnit] = (),
    settings: Optional[Settings] = None,
    profile: Optional[Profile] = None,
    target_dir: Optional[Path] = None,
    jobs: Optional[int] = None,
    show_progress: bool = True,
) -> BuildReceipt:
    """
    Run one incremental build.

    Parameters
    ----------
    project : Project
        Flags, includes, pkg-config packages and foreign object sources.
    artifact : Artifact
        What to link. A Header artifact fails before anything runs.
    units : iterable of GeneratedUnit
        Emitted translation units, registered after the foreign objects.
    settings : Settings, optional
        Environment settings. Defaults to ``Settings()``.
    profile : Profile, optional
        Toolchain policy. Defaults to ``Profile.default()``.
    target_dir : Path, optional
        Object cache and artifact root. Defaults to the settings value.
    jobs : int, optional
        Compile workers. Defaults to the settings value.

    Returns
    -------
    BuildReceipt, also written to ``<target_dir>/build_receipt.json``.

    Raises
    ------
    NativeMakeError
        On the first configuration, filesystem or external tool failure.
    """
    if settings is None:
        settings = Settings()
    if profile is None:
        profile = Profile.default()
    if target_dir is None:
        target_dir = Path(settings.NATIVE_MAKE_TARGET_DIR)
    if jobs is None:
        jobs = settings.jobs

    created_at = now_iso()
    check_linkable(artifact)
    logger.info("Building %s [%s]", artifact.name, artifact.kind.value)

    # ── Step 1: flags ────────────────────────────────────────────────
    flags = build_flag_set(project, settings, profile, target_dir)

    # ── Step 2: register units in order ──────────────────────────────
    scheduler = StepScheduler(flags, profile, target_dir)
    for source in project.cobjects:
        scheduler.add_foreign_object(source)
    for unit in units:
        scheduler.add_generated_unit(unit)

    logger.info(
        "%d stale, %d cached",
        len(scheduler.steps),
        len(scheduler.cached),
    )

    # ── Step 3: compile (barrier: run() returns only when all succeeded) ─
    progress = ProgressReporter(len(scheduler.steps), enabled=show_progress)
    try:
        compiled = scheduler.run(progress, jobs)

        # ── Step 4: link ─────────────────────────────────────────────
        link_phase, outp = link(flags, artifact, target_dir, profile, progress)
    finally:
        progress.close()

    receipt = BuildReceipt(
        profile_id=profile.profile_id,
        compiler=flags.compiler,
        created_at=created_at,
        finished_at=now_iso(),
        compiled=sorted(compiled, key=lambda r: r.source_path),
        cached_objects=[p.as_posix() for p in scheduler.cached],
        link=link_phase,
        artifact=describe_artifact(artifact, outp),
    )
    receipt_path = write_receipt(receipt, target_dir)
    logger.info("Receipt saved: %s", receipt_path)
    return receipt


def load_request(path: Path) -> BuildRequest:
    """Read and validate a BuildRequest JSON file."""
    try:
        return BuildRequest.model_validate_json(path.read_text())
    except OSError as e:
        raise ConfigurationError(f"cannot read build request {path}: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"invalid build request {path}:\n{e}") from e


# ── CLI ──────────────────────────────────────────────────────────────────────

def main(argv=None):
    """CLI entry point for native_make."""
    parser = argparse.ArgumentParser(
        description="native_make — incremental parallel build of native objects",
    )
    parser.add_argument(
        "request",
        type=Path,
        help="BuildRequest JSON (project, artifact, generated units)",
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Parallel compile workers (default: CPU count)",
    )
    parser.add_argument(
        "--target-dir",
        type=Path,
        default=None,
        help="Object cache and artifact root (default: ./target)",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        request = load_request(args.request)
        receipt = run_build(
            request.project,
            request.artifact,
            request.units,
            target_dir=args.target_dir,
            jobs=args.jobs,
            show_progress=not args.no_progress,
        )
    except NativeMakeError as e:
        logger.error("%s", e)
        sys.exit(e.exit_code)

    print(f"Compiled: {len(receipt.compiled)} (cached: {len(receipt.cached_objects)})")
    print(f"Artifact: {receipt.artifact.path}")


if __name__ == "__main__":
    main()
