# step_workflows/artifacts.py
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List

from ..errors import PublishError
from ..model import Artifact
from ..ui.console import get_console

DEFAULT_ARTIFACTS_DIR = ".buildmatrix/artifacts"
MANIFEST_NAME = "manifest.json"


class LocalArtifactStore:
    """
    Artifact store on the local filesystem.

    Layout:
      <root>/<name>/<file name>
      <root>/<name>/manifest.json   (name, file_path, sha256, size)

    Uploading under an existing name replaces the previous artifact.
    """

    def __init__(self, root: str | Path = DEFAULT_ARTIFACTS_DIR):
        self.root = Path(root).expanduser()

    def _dir(self, name: str) -> Path:
        # target triples never contain path separators, guard anyway
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise PublishError(f"invalid artifact name: {name!r}")
        return self.root / name

    def put(self, artifact: Artifact) -> str:
        d = self._dir(artifact.name)
        d.mkdir(parents=True, exist_ok=True)

        dest = d / artifact.file_path.name
        manifest_path = d / MANIFEST_NAME
        manifest = {
            "name": artifact.name,
            "file_path": artifact.file_path.as_posix(),
            "sha256": artifact.sha256,
            "size": artifact.size,
        }

        # the previous upload stays intact until both new files are on disk
        tmp = dest.with_name(dest.name + ".tmp")
        tmp_manifest = manifest_path.with_name(MANIFEST_NAME + ".tmp")
        try:
            tmp.write_bytes(artifact.content)
            tmp_manifest.write_text(json.dumps(manifest, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp, dest)
            os.replace(tmp_manifest, manifest_path)
        except OSError as e:
            for leftover in (tmp, tmp_manifest):
                if leftover.exists():
                    leftover.unlink()
            raise PublishError(f"could not store artifact {artifact.name!r}: {e}", job=artifact.name)

        for old in d.iterdir():
            if old.is_file() and old not in (dest, manifest_path):
                old.unlink()

        get_console().print_debug(f"[{artifact.name}] stored {dest}")
        return dest.resolve().as_uri()

    def exists(self, name: str) -> bool:
        return (self._dir(name) / MANIFEST_NAME).exists()

    def get(self, name: str) -> Artifact:
        d = self._dir(name)
        manifest_path = d / MANIFEST_NAME
        if not manifest_path.exists():
            raise KeyError(f"Artifact not found: {name}")

        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        file_path = Path(manifest["file_path"])
        return Artifact(
            name=manifest["name"],
            file_path=file_path,
            content=(d / file_path.name).read_bytes(),
        )

    def names(self) -> List[str]:
        if not self.root.exists():
            return []
        return sorted(p.name for p in self.root.iterdir() if (p / MANIFEST_NAME).exists())
