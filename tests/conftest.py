"""Fake collaborators shared by the runner and CLI tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildmatrix.errors import BuildError, CompressionError, ToolchainError
from buildmatrix.model import MatrixDefinition
from buildmatrix.step_workflows import Collaborators
from buildmatrix.step_workflows.artifacts import LocalArtifactStore


class FakeToolchain:
    def __init__(self, env: "FakeEnvironment"):
        self.env = env

    def install(self, channel: str, target: str) -> None:
        self.env.calls.append(("toolchain", target, channel))
        if self.env.on_toolchain is not None:
            self.env.on_toolchain(target)
        if target in self.env.fail_toolchain:
            raise ToolchainError(f"toolchain for {target} unavailable")


class FakeCompiler:
    def __init__(self, env: "FakeEnvironment"):
        self.env = env

    def build(self, command: str, release: bool, target: str, use_cross: bool) -> None:
        self.env.calls.append(("build", target, use_cross, command, release))
        if target in self.env.fail_build:
            raise BuildError(f"cargo exited with 101 for {target}", details={"exit_code": 101})
        if target in self.env.no_output:
            return
        path = self.env.repo_root / self.env.binary_path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x7fELF" + target.encode())


class FakeCompressor:
    def __init__(self, env: "FakeEnvironment"):
        self.env = env

    def compress(self, file_path: Path, quality: str = "best", algorithm: str = "lzma", strip: bool = False) -> None:
        self.env.calls.append(("compress", file_path.as_posix(), quality, algorithm, strip))
        if self.env.fail_compress:
            raise CompressionError("upx: NotCompressibleException")


class FakeEnvironment:
    """runs_on -> Collaborators backed by fakes and a real LocalArtifactStore."""

    def __init__(self, tmp_path: Path, definition: MatrixDefinition):
        self.repo_root = tmp_path / "repo"
        self.repo_root.mkdir(parents=True, exist_ok=True)
        self.store = LocalArtifactStore(tmp_path / "artifacts")
        self.definition = definition
        self.calls: list[tuple] = []
        self.runs_on: list[str] = []
        self.fail_toolchain: set[str] = set()
        self.fail_build: set[str] = set()
        self.no_output: set[str] = set()
        self.fail_compress = False
        self.on_toolchain = None

    def binary_path(self, target: str) -> Path:
        entry = next(e for e in self.definition.entries if e.target == target)
        return self.definition.binary_path(entry)

    def __call__(self, runs_on: str) -> Collaborators:
        self.runs_on.append(runs_on)
        return Collaborators(
            repo_root=self.repo_root,
            toolchain=FakeToolchain(self),
            compiler=FakeCompiler(self),
            compressor=FakeCompressor(self),
            store=self.store,
        )


@pytest.fixture
def fake_env(tmp_path):
    def _make(definition: MatrixDefinition) -> FakeEnvironment:
        return FakeEnvironment(tmp_path, definition)
    return _make
