# step_workflows/__init__.py
from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from ..errors import EnvironmentUnavailable
from ..model import Artifact
from .artifacts import DEFAULT_ARTIFACTS_DIR, LocalArtifactStore
from .cargo import CargoCompiler
from .toolchain import RustupToolchain
from .upx import UpxCompressor


# ---------------------------------------------------------------------
# Collaborator interfaces
# ---------------------------------------------------------------------

class Toolchain(Protocol):
    def install(self, channel: str, target: str) -> None: ...


class Compiler(Protocol):
    def build(self, command: str, release: bool, target: str, use_cross: bool) -> None: ...


class Compressor(Protocol):
    def compress(self, file_path: Path, quality: str = "best", algorithm: str = "lzma", strip: bool = False) -> None: ...


class ArtifactStore(Protocol):
    def put(self, artifact: Artifact) -> str: ...


@dataclass
class Collaborators:
    """Everything one job needs from the machine it runs on."""
    repo_root: Path
    toolchain: Toolchain
    compiler: Compiler
    compressor: Compressor
    store: ArtifactStore


# runs_on label -> collaborators for a job on that runner
Environment = Callable[[str], Collaborators]


# ---------------------------------------------------------------------
# Local host
# ---------------------------------------------------------------------

HOST_LABELS = {
    "linux": ("ubuntu", "linux"),
    "darwin": ("macos", "darwin"),
    "win32": ("windows",),
}
ANY_HOST_LABELS = ("local", "self-hosted")


def host_matches(runs_on: str, platform: str | None = None) -> bool:
    """Can a runner label like 'ubuntu-latest' be served by this machine?"""
    label = runs_on.strip().lower()
    if label in ANY_HOST_LABELS:
        return True
    platform = platform or sys.platform
    prefixes = HOST_LABELS.get(platform, ())
    return any(label == p or label.startswith(p + "-") for p in prefixes)


class LocalEnvironment:
    """
    Serves jobs on this machine. Labels for another OS are refused
    (EnvironmentUnavailable) unless `strict_host` is off.
    """

    def __init__(
        self,
        repo_root: str | Path = ".",
        artifacts_root: str | Path = DEFAULT_ARTIFACTS_DIR,
        *,
        strict_host: bool = True,
    ):
        self.repo_root = Path(repo_root).resolve()
        self.store = LocalArtifactStore(artifacts_root)
        self.strict_host = strict_host

    def __call__(self, runs_on: str) -> Collaborators:
        if self.strict_host and not host_matches(runs_on):
            raise EnvironmentUnavailable(
                f"runner '{runs_on}' is not available on this host ({sys.platform})",
                details={"hint": "run on a matching machine or pass --any-host"},
            )
        return Collaborators(
            repo_root=self.repo_root,
            toolchain=RustupToolchain(self.repo_root),
            compiler=CargoCompiler(self.repo_root),
            compressor=UpxCompressor(self.repo_root),
            store=self.store,
        )
