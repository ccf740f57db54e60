# step_workflows/cargo.py
from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List

from ..errors import TOOL_HINTS, BuildError
from ._proc import check_tool_available, run_tool


def _check_docker_available() -> None:
    """cross runs the build inside a container, so the daemon must answer."""
    check_tool_available("docker", BuildError)
    try:
        subprocess.run(["docker", "info"], capture_output=True, check=True)
    except (subprocess.CalledProcessError, FileNotFoundError):
        raise BuildError(
            "Docker daemon is not reachable",
            details={"hint": TOOL_HINTS["docker"]},
        )


def build_command(command: str, target: str, *, release: bool, use_cross: bool) -> List[str]:
    """
    The build invocation for one target. `use_cross` only changes which
    executable runs it (cross in a container vs. native cargo).
    """
    cmd = ["cross" if use_cross else "cargo", command]
    if release:
        cmd.append("--release")
    cmd.append(f"--target={target}")
    return cmd


class CargoCompiler:
    def __init__(self, repo_root: Path):
        self.repo_root = repo_root

    def build(self, command: str, release: bool, target: str, use_cross: bool) -> None:
        if use_cross:
            check_tool_available("cross", BuildError)
            _check_docker_available()

        run_tool(
            build_command(command, target, release=release, use_cross=use_cross),
            BuildError,
            cwd=self.repo_root,
        )
