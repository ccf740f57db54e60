# matrix.py
from __future__ import annotations

from typing import Iterable, List

from .errors import ConfigError
from .model import STEP_KINDS, JobDescriptor, MatrixDefinition


# (field, allowed types, description) checked on every matrix entry
_ENTRY_FIELDS = (
    ("target", (str,), "a string"),
    ("runs_on", (str,), "a string"),
    ("use_cross", (bool,), "a boolean"),
    ("file_ext", (str,), "a string"),
    ("enabled", (bool,), "a boolean"),
    ("output_path", (str, type(None)), "a string or None"),
)


def _check_entries(definition: MatrixDefinition) -> None:
    for idx, entry in enumerate(definition.entries):
        for name, types, expected in _ENTRY_FIELDS:
            value = getattr(entry, name)
            if not isinstance(value, types):
                raise ConfigError(
                    f"Matrix entry #{idx} field '{name}' must be {expected}, got {type(value).__name__}",
                    details={"value": repr(value)},
                )

        if not entry.target.strip():
            raise ConfigError(f"Matrix entry #{idx} is missing 'target'")
        if not entry.runs_on.strip():
            raise ConfigError(
                f"Matrix entry #{idx} is missing 'runs_on'",
                job=entry.target,
            )

    # disabled rows still count: re-enabling one must not silently collide
    targets = [e.target for e in definition.entries]
    if len(set(targets)) != len(targets):
        dupes = sorted({t for t in targets if targets.count(t) > 1})
        raise ConfigError(f"Duplicate matrix targets found: {dupes}")


def _check_steps(definition: MatrixDefinition) -> None:
    names = [s.name for s in definition.steps]
    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise ConfigError(f"Duplicate step names found: {dupes}")

    for s in definition.steps:
        if s.kind not in STEP_KINDS:
            raise ConfigError(
                f"Step '{s.name}' has unknown kind '{s.kind}'",
                details={"known": ",".join(STEP_KINDS)},
            )


def expand_matrix(definition: MatrixDefinition) -> List[JobDescriptor]:
    """
    Expand a matrix definition into one JobDescriptor per enabled entry.

    Requires:
      - entry.target: non-empty, unique across the whole matrix
      - entry.runs_on: non-empty
      - step kinds from STEP_KINDS, step names unique

    Disabled entries and disabled step templates leave no trace in the output.
    Order follows the matrix.
    """
    _check_entries(definition)
    _check_steps(definition)

    steps = tuple(s for s in definition.steps if s.enabled)

    return [
        JobDescriptor(entry=e, steps=steps, binary_path=definition.binary_path(e))
        for e in definition.entries
        if e.enabled
    ]


def select_targets(descriptors: List[JobDescriptor], only: Iterable[str] | None) -> List[JobDescriptor]:
    """Narrow an expansion to `only` (all descriptors when empty)."""
    wanted = list(only or [])
    if not wanted:
        return list(descriptors)

    known = {d.target for d in descriptors}
    missing = sorted(set(wanted) - known)
    if missing:
        raise ConfigError(
            f"Unknown or disabled targets requested: {missing}",
            details={"known": ",".join(sorted(known))},
        )

    return [d for d in descriptors if d.target in wanted]
