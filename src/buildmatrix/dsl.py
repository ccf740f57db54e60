# src/buildmatrix/dsl.py
from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from .model import DEFAULT_STEPS, MatrixDefinition, MatrixEntry, StepTemplate


# ---------------------------------------------------------------------
# Matrix rows
# ---------------------------------------------------------------------

def target(
    name: str,
    runs_on: str,
    *,
    cross: bool = False,
    file_ext: str = "",
    enabled: bool = True,
    output_path: str | None = None,
) -> MatrixEntry:
    """Create a matrix entry."""
    return MatrixEntry(
        target=name,
        runs_on=runs_on,
        use_cross=cross,
        file_ext=file_ext,
        enabled=enabled,
        output_path=output_path,
    )


# ---------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------

def step(name: str, kind: str, *, continue_on_error: bool = False, enabled: bool = True) -> StepTemplate:
    return StepTemplate(name=name, kind=kind, continue_on_error=continue_on_error, enabled=enabled)


def default_steps(*, compress: bool = True, pack: bool = False) -> Tuple[StepTemplate, ...]:
    """
    The standard pipeline: install toolchain -> build -> compress -> pack -> upload.

    compress is best-effort (continue_on_error); pack is off unless asked for.
    """
    toggles = {"compress": compress, "pack": pack}
    return tuple(replace(s, enabled=toggles.get(s.kind, s.enabled)) for s in DEFAULT_STEPS)


# ---------------------------------------------------------------------
# Definition helper (single-file story)
# ---------------------------------------------------------------------

def definition(
    *entries: MatrixEntry,
    entries_list: Optional[List[MatrixEntry]] = None,
    steps: Optional[Iterable[StepTemplate]] = None,
    binary: str = "cs",
    target_dir: str = "target",
    toolchain: str = "stable",
) -> MatrixDefinition:
    """
    Workflow definition helper.

    Users can write:
        from buildmatrix import definition, target

        def workflow():
            return definition(
                target("x86_64-unknown-linux-musl", "ubuntu-latest", cross=True),
                target("x86_64-pc-windows-msvc", "windows-latest", file_ext=".exe", enabled=False),
            )

    Or use MATRIX directly:
        MATRIX = definition(target(...), target(...))
    """
    all_entries: List[MatrixEntry] = list(entries_list or [])
    all_entries.extend(entries)

    return MatrixDefinition(
        entries=tuple(all_entries),
        steps=tuple(steps) if steps is not None else default_steps(),
        binary=binary,
        target_dir=target_dir,
        toolchain=toolchain,
    )
