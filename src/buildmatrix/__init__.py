from .dsl import definition, default_steps, step, target
from .matrix import expand_matrix
from .model import Artifact, JobDescriptor, JobOutcome, JobResult, MatrixDefinition, MatrixEntry, StepOutcome, StepResult, StepTemplate
from .runner import run, run_job

__all__ = [
    "definition", "default_steps", "step", "target",
    "expand_matrix", "run", "run_job",
    "Artifact", "JobDescriptor", "JobOutcome", "JobResult", "MatrixDefinition",
    "MatrixEntry", "StepOutcome", "StepResult", "StepTemplate",
]
