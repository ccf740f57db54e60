# step_workflows/upx.py
from __future__ import annotations

from pathlib import Path
from typing import List

from ..errors import CompressionError
from ._proc import run_tool


def upx_command(file_path: Path, quality: str = "best", algorithm: str = "lzma") -> List[str]:
    return ["upx", "-q", f"--{quality}", f"--{algorithm}", str(file_path)]


class UpxCompressor:
    """Shrinks a binary in place with UPX (optionally stripping it first)."""

    def __init__(self, repo_root: Path):
        self.repo_root = repo_root

    def compress(
        self,
        file_path: Path,
        quality: str = "best",
        algorithm: str = "lzma",
        strip: bool = False,
    ) -> None:
        path = self.repo_root / file_path
        if not path.is_file():
            raise CompressionError(f"binary not found: {file_path}")

        if strip:
            run_tool(["strip", str(path)], CompressionError)
        run_tool(upx_command(path, quality, algorithm), CompressionError)
