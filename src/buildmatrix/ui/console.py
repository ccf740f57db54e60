"""Console output formatting utilities for buildmatrix."""

from __future__ import annotations

import sys
import threading
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from ..model import JobDescriptor, JobResult


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug
        # jobs print from worker threads
        self._lock = threading.Lock()

    def _emit(self, *lines: str, err: bool = False) -> None:
        stream = sys.stderr if err else sys.stdout
        with self._lock:
            for line in lines:
                print(line, file=stream)

    def print_run_started(self, workflow: str, job_count: int, binary: str) -> None:
        """Print run start information."""
        self._emit(
            "\nRUN STARTED",
            f"Workflow: {workflow}",
            f"Binary: {binary}",
            f"Jobs: {job_count}",
            "",
        )

    def print_plan_job(self, target: str, runs_on: str, use_cross: bool) -> None:
        """Print one selected job."""
        route = "cross" if use_cross else "native"
        self._emit(f"  {target} (runs-on: {runs_on}, {route})")

    def print_descriptor(self, descriptor: "JobDescriptor") -> None:
        """Print a fully expanded job (plan command)."""
        d = descriptor
        route = "cross" if d.use_cross else "native"
        steps = []
        for s in d.steps:
            steps.append(f"{s.name} (continue-on-error)" if s.continue_on_error else s.name)
        self._emit(
            f"\n{d.target}",
            f"  runs-on: {d.runs_on}",
            f"  build:   {route}",
            f"  binary:  {d.binary_path.as_posix()}",
            f"  steps:   {' -> '.join(steps)}",
        )

    def print_job_start(self, target: str, runs_on: str) -> None:
        self._emit(f"\nJOB STARTED: {target} ({runs_on})")

    def print_step(self, target: str, name: str) -> None:
        self._emit(f"[{target}] STEP: {name}")

    def print_step_warning(self, target: str, name: str, reason: str) -> None:
        """A continue-on-error step failed; the job goes on."""
        self._emit(f"[{target}] WARNING: step '{name}' failed (continuing)")
        self._print_reason(target, reason)

    def print_failure(self, target: str, name: str, reason: str) -> None:
        self._emit(f"[{target}] STEP FAILED: {name}")
        self._print_reason(target, reason)

    def _print_reason(self, target: str, reason: str) -> None:
        if self.debug:
            self._emit(*(f"[{target}]   {line}" for line in reason.splitlines()))
        else:
            # first line only outside debug mode
            first = reason.split("\n")[0] if reason else "Unknown error"
            self._emit(f"[{target}]   {first}")

    def print_job_done(self, target: str, outcome: str) -> None:
        self._emit(f"[{target}] STATUS: {outcome}")

    def print_results(self, results: Dict[str, "JobResult"]) -> None:
        """Print final results summary."""
        lines = ["\n" + "=" * 40, "RESULTS", "=" * 40]
        for target, result in results.items():
            line = f"  {target}: {result.outcome.value.upper()}"
            warnings = result.warnings
            if warnings:
                line += f" ({len(warnings)} warning{'s' if len(warnings) != 1 else ''})"
            if result.artifact_name:
                line += f" -> artifact '{result.artifact_name}'"
            lines.append(line)
        self._emit(*lines)

    def print_artifacts(self, root: str, names: List[str]) -> None:
        if not names:
            self._emit(f"No artifacts in {root}")
            return
        self._emit(f"Artifacts in {root}:", *(f"  {n}" for n in names))

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        lines = [f"\nERROR: {title}", message]
        if details:
            lines.extend(f"  {detail}" for detail in details)
        if suggestion:
            lines.append(f"\n{suggestion}")
        self._emit(*lines, err=True)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            self._emit(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._emit(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._emit(f"[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
