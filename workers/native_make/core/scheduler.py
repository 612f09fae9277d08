"""
Step scheduler — one compile step per stale unit, run in parallel.

Registration (in order):
  1. build the unit's full argument list
  2. derive its content-addressed object path
  3. enqueue a Step if the object is stale
  4. prepend the object to the link inputs, stale or cached

Execution runs every enqueued Step on a bounded thread pool. Steps are
independent: each reads only its own argument list and writes only its
own uniquely named object. The first failing Step stops dispatch of the
rest and propagates; steps already running are left to finish.
"""
from __future__ import annotations

import logging
import subprocess
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from native_make.core.flags import FlagSet
from native_make.core.namer import object_path
from native_make.core.progress import ProgressReporter
from native_make.core.staleness import is_stale
from native_make.errors import ExternalToolError
from native_make.io.schema import CompileUnitResult, GeneratedUnit
from native_make.policy.profile import Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    """One compile invocation. Never depends on another Step."""
    source: Path
    object_path: Path
    args: Tuple[str, ...]


class StepScheduler:
    """Collects compile steps for stale units and executes them."""

    def __init__(self, flags: FlagSet, profile: Profile, target_dir: Path):
        self.flags = flags
        self.profile = profile
        self.target_dir = target_dir
        self.steps: List[Step] = []
        self.cached: List[Path] = []

    # -----------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------

    def _register(
        self,
        source: str,
        stem: str,
        namespace: str,
        extra_flags: Sequence[str],
        dependencies: Iterable[str],
    ) -> Optional[Step]:
        args = list(self.flags.compile_flags)
        args.extend(extra_flags)
        args.extend(["-c", source])

        outp = object_path(args, stem, namespace, self.target_dir, self.profile)
        args.extend(["-o", outp.as_posix()])

        step = None
        if is_stale(dependencies, outp):
            step = Step(source=Path(source), object_path=outp, args=tuple(args))
            self.steps.append(step)
            logger.debug("Stale: %s -> %s", source, outp)
        else:
            self.cached.append(outp)
            logger.debug("Cached: %s -> %s", source, outp)

        self.flags.prepend_link_input(outp.as_posix())
        return step

    def add_foreign_object(self, source: str) -> Optional[Step]:
        """Register a pre-existing C source compiled with the baseline flags."""
        return self._register(
            source,
            stem=source,
            namespace=self.profile.foreign_namespace,
            extra_flags=(),
            dependencies=[source],
        )

    def add_generated_unit(self, unit: GeneratedUnit) -> Optional[Step]:
        """Register an emitted translation unit; staleness uses all its sources."""
        return self._register(
            unit.filepath,
            stem=unit.name,
            namespace=self.profile.generated_namespace,
            extra_flags=self.profile.generated_unit_cflags,
            dependencies=unit.sources,
        )

    # -----------------------------------------------------------------
    # Execution
    # -----------------------------------------------------------------

    def _ensure_output_dirs(self) -> None:
        for step in self.steps:
            step.object_path.parent.mkdir(parents=True, exist_ok=True)

    def _run_step(
        self,
        step: Step,
        progress: ProgressReporter,
        abort: threading.Event,
    ) -> Optional[CompileUnitResult]:
        if abort.is_set():
            return None

        progress.message(f"{self.flags.compiler} {step.source}")
        cmd = [self.flags.compiler, *step.args]
        logger.debug("Running %s", " ".join(cmd))

        t0 = time.monotonic()
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
        except OSError as e:
            logger.error("error compiling %s: %s", step.source, e)
            abort.set()
            raise ExternalToolError(
                self.flags.compiler,
                str(step.source),
                detail=str(e),
                fallback=self.profile.fallback_exit_code,
            ) from e
        duration = int((time.monotonic() - t0) * 1000)

        if result.returncode != 0:
            abort.set()
            logger.error("error compiling %s\n%s", step.source, result.stderr.rstrip())
            raise ExternalToolError(
                self.flags.compiler,
                str(step.source),
                result.returncode,
                fallback=self.profile.fallback_exit_code,
            )

        if result.stderr.strip():
            logger.warning("%s:\n%s", step.source, result.stderr.rstrip())

        progress.step_done()
        return CompileUnitResult(
            source_path=str(step.source),
            object_path=step.object_path.as_posix(),
            exit_code=result.returncode,
            duration_ms=duration,
        )

    def run(self, progress: ProgressReporter, jobs: int) -> List[CompileUnitResult]:
        """
        Execute every enqueued Step with at most *jobs* workers.

        Returns once all Steps succeeded. Raises ExternalToolError for the
        first failure observed; remaining queued Steps are never spawned.
        """
        if not self.steps:
            return []

        self._ensure_output_dirs()
        abort = threading.Event()
        results: List[CompileUnitResult] = []

        with ThreadPoolExecutor(max_workers=max(1, jobs)) as pool:
            futures = [pool.submit(self._run_step, step, progress, abort) for step in self.steps]
            try:
                for future in as_completed(futures):
                    result = future.result()
                    if result is not None:
                        results.append(result)
            except Exception:
                abort.set()
                for future in futures:
                    future.cancel()
                raise

        return results
