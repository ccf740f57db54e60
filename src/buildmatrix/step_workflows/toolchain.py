# step_workflows/toolchain.py
from __future__ import annotations

from pathlib import Path

from ..errors import ToolchainError
from ._proc import run_tool


class RustupToolchain:
    """Installs a Rust toolchain + target with rustup and pins it for the repo."""

    def __init__(self, repo_root: Path, *, override: bool = True):
        self.repo_root = repo_root
        self.override = override

    def install(self, channel: str, target: str) -> None:
        run_tool(
            ["rustup", "toolchain", "install", channel, "--target", target, "--profile", "minimal"],
            ToolchainError,
            cwd=self.repo_root,
        )
        if self.override:
            run_tool(["rustup", "override", "set", channel], ToolchainError, cwd=self.repo_root)
