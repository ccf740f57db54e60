# runner.py
from __future__ import annotations

import os
import runpy
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Callable, Deque, Dict, Iterable, Optional

from .errors import ERROR_FOR_KIND, CIError, PublishError
from .matrix import expand_matrix, select_targets
from .model import (
    STATE_FOR_KIND,
    Artifact,
    JobDescriptor,
    JobOutcome,
    JobResult,
    JobState,
    MatrixDefinition,
    StepOutcome,
    StepResult,
)
from .step_workflows import Collaborators, Environment, LocalEnvironment
from .step_workflows.pack import pack_binary
from .ui.console import get_console


# ----------------------------------------------------------------------
# Workflow loading (local file/module)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path) -> MatrixDefinition:
    """
    Load a matrix definition from a python file path.

    The file must define either:
      - workflow() -> MatrixDefinition
      - MATRIX = MatrixDefinition(...)
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")
    if wf_path.suffix != ".py":
        raise ValueError(f"Workflow must be a .py file, got: {wf_path.name}")

    module_name = f"buildmatrix_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    definition = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        definition = globals_dict["workflow"]()
    elif "MATRIX" in globals_dict:
        definition = globals_dict["MATRIX"]

    if not isinstance(definition, MatrixDefinition):
        raise TypeError(
            "Workflow must return/define a MatrixDefinition. "
            "Define workflow() -> definition(...) or MATRIX = definition(...)."
        )

    return definition


# ----------------------------------------------------------------------
# Step handlers
# ----------------------------------------------------------------------

class _StepContext:
    """Per-job state handed to step handlers. Collaborators resolve on first use."""

    def __init__(self, descriptor: JobDescriptor, definition: MatrixDefinition, environment: Environment):
        self.descriptor = descriptor
        self.definition = definition
        self._environment = environment
        self._collaborators: Optional[Collaborators] = None

    @property
    def collaborators(self) -> Collaborators:
        if self._collaborators is None:
            self._collaborators = self._environment(self.descriptor.runs_on)
            get_console().print_debug(
                f"[{self.descriptor.target}] runs-on '{self.descriptor.runs_on}' -> {self._collaborators.repo_root}"
            )
        return self._collaborators


def _install_toolchain(ctx: _StepContext) -> None:
    ctx.collaborators.toolchain.install(ctx.definition.toolchain, ctx.descriptor.target)


def _build(ctx: _StepContext) -> None:
    ctx.collaborators.compiler.build("build", True, ctx.descriptor.target, ctx.descriptor.use_cross)


def _compress(ctx: _StepContext) -> None:
    ctx.collaborators.compressor.compress(ctx.descriptor.binary_path, "best", "lzma", False)


def _pack(ctx: _StepContext) -> None:
    pack_binary(
        ctx.collaborators.repo_root,
        ctx.descriptor.binary_path,
        ctx.descriptor.target,
        ctx.definition.binary,
    )


def _publish(ctx: _StepContext) -> str:
    d = ctx.descriptor
    path = ctx.collaborators.repo_root / d.binary_path
    if not path.is_file():
        raise PublishError(
            f"expected binary is missing: {d.binary_path}",
            details={"hint": "the build did not produce a binary where the matrix expects it"},
        )

    artifact = Artifact(name=d.target, file_path=d.binary_path, content=path.read_bytes())
    return ctx.collaborators.store.put(artifact)


STEP_HANDLERS: Dict[str, Callable[[_StepContext], Any]] = {
    "toolchain": _install_toolchain,
    "build": _build,
    "compress": _compress,
    "pack": _pack,
    "publish": _publish,
}


# ----------------------------------------------------------------------
# Job execution
# ----------------------------------------------------------------------

def run_job(
    descriptor: JobDescriptor,
    environment: Environment,
    definition: MatrixDefinition,
) -> JobResult:
    """
    Run one job's steps strictly in order.

    - A failing step with continue_on_error is recorded and the job goes on.
    - Any other failure ends the job: remaining steps are recorded as skipped.
    Never raises for step failures; they end up in the returned JobResult.
    """
    console = get_console()
    ctx = _StepContext(descriptor, definition, environment)
    result = JobResult(target=descriptor.target)
    failed = False

    console.print_job_start(descriptor.target, descriptor.runs_on)

    for tmpl in descriptor.steps:
        if failed:
            result.steps.append(
                StepResult(tmpl.name, tmpl.kind, StepOutcome.SKIPPED, tmpl.continue_on_error)
            )
            continue

        result.states.append(STATE_FOR_KIND[tmpl.kind])
        console.print_step(descriptor.target, tmpl.name)

        try:
            out = STEP_HANDLERS[tmpl.kind](ctx)
        except Exception as e:
            err = e if isinstance(e, CIError) else ERROR_FOR_KIND[tmpl.kind](str(e) or type(e).__name__)
            err.job = err.job or descriptor.target
            err.step = err.step or tmpl.name

            result.steps.append(
                StepResult(tmpl.name, tmpl.kind, StepOutcome.FAILED, tmpl.continue_on_error, error=str(err))
            )
            if tmpl.continue_on_error:
                console.print_step_warning(descriptor.target, tmpl.name, str(err))
            else:
                console.print_failure(descriptor.target, tmpl.name, str(err))
                failed = True
            continue

        result.steps.append(StepResult(tmpl.name, tmpl.kind, StepOutcome.SUCCEEDED, tmpl.continue_on_error))
        if tmpl.kind == "publish":
            result.artifact_name = descriptor.target
            result.artifact_uri = out

    result.states.append(JobState.FAILED if failed else JobState.SUCCEEDED)
    console.print_job_done(descriptor.target, result.outcome.value)
    return result


def _cancelled_result(descriptor: JobDescriptor) -> JobResult:
    return JobResult(
        target=descriptor.target,
        steps=[
            StepResult(t.name, t.kind, StepOutcome.SKIPPED, t.continue_on_error)
            for t in descriptor.steps
        ],
        cancelled=True,
    )


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run(
    definition: MatrixDefinition,
    *,
    environment: Environment | None = None,
    max_workers: int | None = None,
    only: Iterable[str] | None = None,
    cancel: threading.Event | None = None,
    print_plan: bool = True,
    workflow_name: str | None = None,
) -> Dict[str, JobResult]:
    """
    Expand the matrix once and run every job, fail-fast off.

    One job's failure never stops another. Setting `cancel` (or Ctrl-C)
    stops launching new jobs; jobs already running finish normally and the
    rest are reported as cancelled. Returns target -> JobResult in matrix order.
    With `workflow_name`, a run header is printed once the matrix has expanded.
    """
    console = get_console()
    descriptors = select_targets(expand_matrix(definition), only)
    environment = environment or LocalEnvironment()
    cancel = cancel or threading.Event()

    if workflow_name is not None:
        console.print_run_started(workflow=workflow_name, job_count=len(descriptors), binary=definition.binary)

    if print_plan:
        for d in descriptors:
            console.print_plan_job(d.target, d.runs_on, d.use_cross)

    if max_workers is None:
        c = os.cpu_count() or 2
        max_workers = max(1, c - 1)

    pending: Deque[JobDescriptor] = deque(descriptors)
    in_flight: Dict[Future, JobDescriptor] = {}
    results: Dict[str, JobResult] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        while pending or in_flight:
            # launch up to the worker limit, never after cancellation
            while pending and not cancel.is_set() and len(in_flight) < max_workers:
                d = pending.popleft()
                in_flight[pool.submit(run_job, d, environment, definition)] = d

            if not in_flight:
                break

            try:
                done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
            except KeyboardInterrupt:
                console.print_info("\nCancelling: no new jobs will be started, waiting for running jobs")
                cancel.set()
                continue

            for fut in done:
                d = in_flight.pop(fut)
                results[d.target] = fut.result()

    for d in pending:
        results[d.target] = _cancelled_result(d)

    return {d.target: results[d.target] for d in descriptors}


def exit_code(results: Dict[str, JobResult]) -> int:
    """1 iff at least one job failed. Compression warnings never count."""
    return 1 if any(r.outcome is JobOutcome.FAILED for r in results.values()) else 0


def result_to_dict(result: JobResult) -> dict:
    """JSON-friendly form of a JobResult (used for --report)."""
    return {
        "target": result.target,
        "outcome": result.outcome.value,
        "states": [s.value for s in result.states],
        "artifact": result.artifact_name,
        "artifact_uri": result.artifact_uri,
        "steps": [
            {
                "name": s.step,
                "kind": s.kind,
                "outcome": s.outcome.value,
                "continue_on_error": s.continue_on_error,
                "error": s.error,
            }
            for s in result.steps
        ],
    }


def results_to_dict(results: Dict[str, JobResult]) -> dict:
    return {
        "exit_code": exit_code(results),
        "jobs": [result_to_dict(r) for r in results.values()],
    }
