# model.py
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple


STEP_KINDS = ("toolchain", "build", "compress", "pack", "publish")


class StepOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class JobOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"  # never launched


class JobState(str, Enum):
    PENDING = "pending"
    INSTALLING = "installing"
    BUILDING = "building"
    COMPRESSING = "compressing"
    PACKING = "packing"
    PUBLISHING = "publishing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# step kind -> state the job is in while that step runs
STATE_FOR_KIND = {
    "toolchain": JobState.INSTALLING,
    "build": JobState.BUILDING,
    "compress": JobState.COMPRESSING,
    "pack": JobState.PACKING,
    "publish": JobState.PUBLISHING,
}


@dataclass(frozen=True)
class MatrixEntry:
    """
    One row of the build matrix.

    `enabled=False` drops the row from expansion entirely.
    `output_path` overrides the `<target_dir>/<target>/release/<binary><ext>`
    convention for where the build leaves the binary.
    """
    target: str
    runs_on: str
    use_cross: bool = False
    file_ext: str = ""
    enabled: bool = True
    output_path: Optional[str] = None


@dataclass(frozen=True)
class StepTemplate:
    """A step every job runs, in definition order."""
    name: str
    kind: str
    continue_on_error: bool = False
    enabled: bool = True


DEFAULT_STEPS: Tuple[StepTemplate, ...] = (
    StepTemplate("install toolchain", "toolchain"),
    StepTemplate("build", "build"),
    StepTemplate("compress binaries", "compress", continue_on_error=True),
    StepTemplate("pack", "pack", enabled=False),
    StepTemplate("upload artifact", "publish"),
)


@dataclass(frozen=True)
class MatrixDefinition:
    entries: Tuple[MatrixEntry, ...]
    steps: Tuple[StepTemplate, ...] = DEFAULT_STEPS
    binary: str = "cs"
    target_dir: str = "target"
    toolchain: str = "stable"

    def binary_path(self, entry: MatrixEntry) -> Path:
        if entry.output_path:
            return Path(entry.output_path)
        return Path(self.target_dir) / entry.target / "release" / f"{self.binary}{entry.file_ext}"


@dataclass(frozen=True)
class JobDescriptor:
    """A matrix entry bound to its resolved steps and binary path."""
    entry: MatrixEntry
    steps: Tuple[StepTemplate, ...]
    binary_path: Path

    @property
    def target(self) -> str:
        return self.entry.target

    @property
    def runs_on(self) -> str:
        return self.entry.runs_on

    @property
    def use_cross(self) -> bool:
        return self.entry.use_cross


@dataclass(frozen=True)
class StepResult:
    step: str
    kind: str
    outcome: StepOutcome
    continue_on_error: bool = False
    error: Optional[str] = None


@dataclass
class JobResult:
    target: str
    steps: List[StepResult] = field(default_factory=list)
    states: List[JobState] = field(default_factory=lambda: [JobState.PENDING])
    artifact_name: Optional[str] = None
    artifact_uri: Optional[str] = None
    cancelled: bool = False

    @property
    def outcome(self) -> JobOutcome:
        if self.cancelled:
            return JobOutcome.CANCELLED
        for s in self.steps:
            if s.outcome is StepOutcome.FAILED and not s.continue_on_error:
                return JobOutcome.FAILED
        return JobOutcome.SUCCEEDED

    @property
    def warnings(self) -> List[StepResult]:
        """Non-fatal step failures (e.g. compression)."""
        return [s for s in self.steps if s.outcome is StepOutcome.FAILED and s.continue_on_error]

    def step(self, name: str) -> StepResult:
        for s in self.steps:
            if s.step == name:
                return s
        raise KeyError(name)


@dataclass(frozen=True)
class Artifact:
    """A named build output. `name` is the target identifier."""
    name: str
    file_path: Path
    content: bytes = field(repr=False)

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.content).hexdigest()

    @property
    def size(self) -> int:
        return len(self.content)
